"""
Naming resolver for the LAN survey.

Runs the fixed chain of name sources for each alive host, stopping at
the first one that yields a usable name, and finalizes the display
name against the persisted one.
"""

from typing import Dict, List, Optional

from .data_models import HostRecord, NamingSource
from ..config.config_loader import NamingConfig, ProbeConfig
from ..scanners.base_scanner import run_bounded
from ..scanners.name_lookup import NameLookups
from ..utils.logger import Logger, get_logger
from ..utils.network_utils import normalize_name


def finalize_name(record: HostRecord) -> None:
    """
    Settle the display name of a record after the chain ran.

    A persisted name always wins and marks the record as manual;
    otherwise the display name is the auto-derived one.
    """
    if record.name:
        record.source = NamingSource.MANUAL
    else:
        record.name = record.auto_name


class NamingResolver:
    """
    Runs the name source chain for host records.

    Order: reverse DNS, mDNS, NetBIOS, HTTP name, certificate CN,
    certificate SAN, SSH banner. Each step is gated by its toggle.
    """

    def __init__(
        self,
        naming: NamingConfig,
        probes: ProbeConfig,
        lookups: NameLookups,
        mdns_services: Optional[Dict[str, List[str]]] = None,
        logger: Optional[Logger] = None,
    ):
        self.naming = naming
        self.probes = probes
        self.lookups = lookups
        self.mdns_services = mdns_services or {}
        self.logger = logger or get_logger(__name__)

    async def resolve_all(self, records: List[HostRecord]) -> None:
        """Resolve every record with at most naming.concurrency in flight."""
        await run_bounded(records, self.naming.concurrency, self.resolve)

    async def resolve(self, record: HostRecord) -> None:
        """Set auto_name and source on one record."""
        name, source = await self._run_chain(record)
        record.auto_name = name
        record.source = source
        self.logger.debug(f"{record.ip} named '{name}'", source=source.value)

    async def _run_chain(self, record: HostRecord):
        if self.naming.dns_enabled:
            name = normalize_name(await self.lookups.reverse_dns(record.ip))
            if name:
                return name, NamingSource.RDNS

        if self.naming.mdns_enabled:
            raw = await self.lookups.mdns_reverse(record.ip)
            if raw:
                record.mdns_host = raw
                services = self.mdns_services.get(raw.rstrip("."))
                if services:
                    record.mdns_services = ";".join(services)
            name = normalize_name(raw)
            if name:
                return name, NamingSource.MDNS

        if self.naming.netbios_enabled:
            name = normalize_name(await self.lookups.netbios(record.ip))
            if name:
                return name, NamingSource.NETBIOS

        if self.probes.http_title_enabled:
            name = normalize_name(record.http_name)
            if name:
                return name, NamingSource.HTTP

        if self.probes.cert_enabled:
            for value in (record.cert_cn, record.cert_san):
                name = normalize_name(value)
                if name:
                    return name, NamingSource.CERT

        if self.probes.ssh_enabled:
            name = normalize_name(record.ssh_banner)
            if name:
                return name, NamingSource.SSH

        return "", NamingSource.NONE
