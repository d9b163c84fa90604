"""
TLS certificate probe.

Completes a TLS handshake on port 443 without verifying the peer and
reports the certificate's subject common name and subjectAltName list.
"""

import asyncio
import ssl
from typing import Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from .base_scanner import BaseProbe
from ..core.data_models import CertificateInfo
from ..utils.logger import Logger

HTTPS_PORT = 443

SAN_PREFIXES = (
    (x509.DNSName, "DNS"),
    (x509.IPAddress, "IP Address"),
    (x509.RFC822Name, "email"),
    (x509.UniformResourceIdentifier, "URI"),
)


def unverified_context() -> ssl.SSLContext:
    """
    Client context that accepts any certificate from any era of device.

    TLS 1.0 and the weak cipher suites still served by old embedded web
    interfaces are re-enabled; the context is only used to read names.
    """
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.minimum_version = ssl.TLSVersion.MINIMUM_SUPPORTED
    # Builds without security levels keep their default cipher list
    try:
        context.set_ciphers("DEFAULT:@SECLEVEL=0")
    except ssl.SSLError:
        pass
    context.options |= getattr(ssl, "OP_LEGACY_SERVER_CONNECT", 0)
    return context


def describe_certificate(der_bytes: bytes) -> CertificateInfo:
    """
    Extract CN and rendered SAN from a DER certificate.

    SAN entries are rendered as "DNS:a, DNS:b, IP Address:10.0.0.1".
    """
    cert = x509.load_der_x509_certificate(der_bytes)

    cn_attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    cn = str(cn_attributes[0].value) if cn_attributes else ""

    entries = []
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        san = None
    if san is not None:
        for general_name in san:
            for name_type, prefix in SAN_PREFIXES:
                if isinstance(general_name, name_type):
                    entries.append(f"{prefix}:{general_name.value}")
                    break

    return CertificateInfo(cn=cn, san=", ".join(entries))


class TLSScanner(BaseProbe):
    """Peer certificate probe."""

    probe_name = "tls"

    def __init__(self, logger: Optional[Logger] = None):
        super().__init__(logger)
        self.context = unverified_context()

    async def certificate(self, target: str, timeout: float) -> CertificateInfo:
        """
        Fetch the peer certificate of target:443.

        Returns:
            CertificateInfo; empty on any failure
        """
        return await self._guarded(target, self._fetch(target), timeout, CertificateInfo())

    async def _fetch(self, target: str) -> CertificateInfo:
        _, writer = await asyncio.open_connection(
            target, HTTPS_PORT, ssl=self.context, server_hostname=target
        )
        try:
            ssl_object = writer.get_extra_info("ssl_object")
            der_bytes = ssl_object.getpeercert(binary_form=True) if ssl_object else None
        finally:
            writer.close()

        if not der_bytes:
            return CertificateInfo()
        return describe_certificate(der_bytes)
