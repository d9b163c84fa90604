import asyncio
import datetime
import ipaddress
import ssl

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from lan_survey.core.data_models import CertificateInfo
from lan_survey.scanners.banner_scanner import BannerScanner
from lan_survey.scanners.http_scanner import HTTPScanner
from lan_survey.scanners.tls_scanner import TLSScanner, describe_certificate, unverified_context


def self_signed(common_name=None, san=None):
    key = ec.generate_private_key(ec.SECP256R1())
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Acme")]
    if common_name:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    name = x509.Name(attributes)
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
    )
    if san:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
    cert = builder.sign(key, hashes.SHA256())
    return cert.public_bytes(serialization.Encoding.DER)


def test_describe_certificate_renders_cn_and_san():
    der = self_signed("router.lan", [
        x509.DNSName("router.lan"),
        x509.DNSName("gw.lan"),
        x509.IPAddress(ipaddress.ip_address("192.168.1.1")),
    ])

    info = describe_certificate(der)

    assert info.cn == "router.lan"
    assert info.san == "DNS:router.lan, DNS:gw.lan, IP Address:192.168.1.1"


def test_describe_certificate_without_cn_or_san():
    assert describe_certificate(self_signed()) == CertificateInfo()


def serve_once(payload):
    """Start a local server that writes payload, run the banner read against it."""

    async def scenario():
        async def handle(reader, writer):
            writer.write(payload)
            await writer.drain()
            writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        async with server:
            scanner = BannerScanner()
            return await scanner._guarded(
                "127.0.0.1", scanner._read_first_line("127.0.0.1", port), 2.0, ""
            )

    return asyncio.run(scenario())


def test_ssh_banner_first_line():
    assert serve_once(b"SSH-2.0-OpenSSH_9.6 Ubuntu\r\nrest") == "SSH-2.0-OpenSSH_9.6 Ubuntu"


def test_ssh_banner_without_line_end_is_empty():
    assert serve_once(b"SSH-2.0-partial") == ""


def test_unreachable_port_yields_empty_string():
    async def scenario():
        server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        server.close()
        await server.wait_closed()
        scanner = BannerScanner()
        return await scanner._guarded(
            "127.0.0.1", scanner._read_first_line("127.0.0.1", port), 1.0, ""
        )

    assert asyncio.run(scenario()) == ""


def test_certificate_context_accepts_old_devices():
    context = unverified_context()

    assert context.verify_mode == ssl.CERT_NONE
    assert context.check_hostname is False
    assert context.minimum_version == ssl.TLSVersion.MINIMUM_SUPPORTED


def test_tls_and_http_probes_share_the_permissive_context():
    for context in (TLSScanner().context, HTTPScanner(timeout=2.0).ssl_context):
        assert context.verify_mode == ssl.CERT_NONE
        assert context.minimum_version == ssl.TLSVersion.MINIMUM_SUPPORTED
