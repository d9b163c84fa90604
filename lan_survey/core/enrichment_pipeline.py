"""
Per-host enrichment pipeline.

For every alive host the enabled probes run concurrently, each writing
only its own fields of the HostRecord. Probes whose fields were already
seeded from the inventory are skipped; the HTTP probe always runs.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from .data_models import CertificateInfo, HostRecord, HttpInfo, SNMPInfo
from ..config.config_loader import SurveyConfig
from ..scanners.banner_scanner import BannerScanner
from ..scanners.base_scanner import run_bounded
from ..scanners.http_scanner import HTTPScanner
from ..scanners.ping_scanner import os_guess_from_ttl
from ..scanners.snmp_scanner import SNMPScanner
from ..scanners.tls_scanner import TLSScanner
from ..utils.logger import Logger, get_logger


class HostProbes(ABC):
    """Capability: the per-host network probes."""

    @abstractmethod
    async def ssh_banner(self, ip: str) -> str:
        """SSH identification line, or an empty string."""

    @abstractmethod
    async def smb_presence(self, ip: str) -> str:
        """Return "SMB" when port 445 accepts connections, else an empty string."""

    @abstractmethod
    async def certificate(self, ip: str) -> CertificateInfo:
        """Peer certificate CN and SAN of port 443."""

    @abstractmethod
    async def http_info(self, ip: str) -> HttpInfo:
        """Derived name and headers of the web server."""

    @abstractmethod
    async def favicon_hash(self, ip: str) -> str:
        """Favicon fingerprint, or an empty string."""

    @abstractmethod
    async def snmp(self, ip: str) -> SNMPInfo:
        """SNMP sysName and sysDescr."""


class NetworkHostProbes(HostProbes):
    """HostProbes talking to the real hosts with the configured timeouts."""

    def __init__(self, config: SurveyConfig, logger: Optional[Logger] = None):
        self.config = config
        self.banners = BannerScanner(logger)
        self.tls = TLSScanner(logger)
        self.http = HTTPScanner(config.probes.http_timeout, logger)
        self.snmp_scanner = SNMPScanner(config.snmp, logger)

    async def ssh_banner(self, ip: str) -> str:
        return await self.banners.ssh_banner(ip, self.config.probes.ssh_timeout)

    async def smb_presence(self, ip: str) -> str:
        return await self.banners.smb_presence(ip, self.config.probes.smb_timeout)

    async def certificate(self, ip: str) -> CertificateInfo:
        return await self.tls.certificate(ip, self.config.probes.cert_timeout)

    async def http_info(self, ip: str) -> HttpInfo:
        return await self.http.http_info(ip)

    async def favicon_hash(self, ip: str) -> str:
        return await self.http.favicon_hash(ip)

    async def snmp(self, ip: str) -> SNMPInfo:
        return await self.snmp_scanner.query(ip)


class EnrichmentPipeline:
    """
    Runs the enabled probes against alive hosts.

    Hosts are processed with at most naming.concurrency in flight; the
    probes of one host run concurrently.
    """

    def __init__(self, config: SurveyConfig, probes: HostProbes, logger: Optional[Logger] = None):
        self.config = config
        self.probes = probes
        self.logger = logger or get_logger(__name__)

    async def enrich(self, records: List[HostRecord]) -> None:
        await run_bounded(records, self.config.naming.concurrency, self.enrich_host)

    async def enrich_host(self, record: HostRecord) -> None:
        """Run every applicable probe for one record and store the results."""
        probe_config = self.config.probes

        if probe_config.os_guess_enabled and record.ttl:
            record.os_guess = os_guess_from_ttl(record.ttl)

        steps = []
        if probe_config.ssh_enabled and not record.ssh_banner:
            steps.append(self._ssh(record))
        if probe_config.smb_enabled and not record.smb_banner:
            steps.append(self._smb(record))
        if probe_config.cert_enabled and not record.cert_cn and not record.cert_san:
            steps.append(self._certificate(record))
        if probe_config.http_title_enabled or probe_config.http_header_enabled:
            steps.append(self._http(record))
        if probe_config.favicon_enabled and not record.favicon_hash:
            steps.append(self._favicon(record))
        if self.config.snmp.enabled and not record.snmp_sysname and not record.snmp_sysdescr:
            steps.append(self._snmp(record))

        if steps:
            await asyncio.gather(*steps)

    async def _ssh(self, record: HostRecord) -> None:
        record.ssh_banner = await self.probes.ssh_banner(record.ip)

    async def _smb(self, record: HostRecord) -> None:
        record.smb_banner = await self.probes.smb_presence(record.ip)

    async def _certificate(self, record: HostRecord) -> None:
        cert = await self.probes.certificate(record.ip)
        record.cert_cn = cert.cn
        record.cert_san = cert.san

    async def _http(self, record: HostRecord) -> None:
        info = await self.probes.http_info(record.ip)
        record.http_name = info.name
        # Seeded header values survive an empty answer
        if info.server:
            record.http_server = info.server
        if info.powered_by:
            record.http_powered_by = info.powered_by
        if info.www_authenticate:
            record.http_www_auth = info.www_authenticate

    async def _favicon(self, record: HostRecord) -> None:
        record.favicon_hash = await self.probes.favicon_hash(record.ip)

    async def _snmp(self, record: HostRecord) -> None:
        info = await self.probes.snmp(record.ip)
        record.snmp_sysname = info.sys_name
        record.snmp_sysdescr = info.sys_descr
