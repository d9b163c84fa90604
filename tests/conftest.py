import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from lan_survey.config.config_loader import (
    DiscoveryConfig,
    InventoryConfig,
    NamingConfig,
    SurveyConfig,
)
from lan_survey.core.data_models import CertificateInfo, HttpInfo, SNMPInfo, SSDPInfo
from lan_survey.core.enrichment_pipeline import HostProbes
from lan_survey.core.survey_orchestrator import SurveyCapabilities
from lan_survey.scanners.name_lookup import NameLookups
from lan_survey.scanners.neighbor_table import NeighborTableReader
from lan_survey.scanners.ping_scanner import LivenessChecker


class FakeLiveness(LivenessChecker):
    """Answers from a fixed table and tracks how many checks overlap."""

    def __init__(self, alive: Dict[str, Optional[int]], delay: float = 0.0):
        self.alive = alive
        self.delay = delay
        self.checked: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def check(self, ip: str) -> Tuple[bool, Optional[int]]:
        self.checked.append(ip)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        if ip in self.alive:
            return True, self.alive[ip]
        return False, None


class FakeNeighbors(NeighborTableReader):
    def __init__(self, table: Optional[Dict[str, str]] = None):
        self.table = table or {}
        self.reads = 0

    async def read(self) -> Dict[str, str]:
        self.reads += 1
        return dict(self.table)


class HostsInFlight:
    """Counts the distinct hosts that have a call in progress."""

    def __init__(self):
        self.active: Dict[str, int] = {}
        self.peak = 0

    async def hold(self, ip: str, delay: float) -> None:
        self.active[ip] = self.active.get(ip, 0) + 1
        self.peak = max(self.peak, len(self.active))
        try:
            await asyncio.sleep(delay)
        finally:
            self.active[ip] -= 1
            if not self.active[ip]:
                del self.active[ip]


class FakeHostProbes(HostProbes):
    """Per-IP canned probe answers; records every call as (probe, ip)."""

    def __init__(self, answers: Optional[Dict[str, dict]] = None, delay: float = 0.0):
        self.answers = answers or {}
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []
        self.in_flight = HostsInFlight()

    async def _answer(self, probe: str, ip: str, default):
        self.calls.append((probe, ip))
        await self.in_flight.hold(ip, self.delay)
        return self.answers.get(ip, {}).get(probe, default)

    async def ssh_banner(self, ip: str) -> str:
        return await self._answer("ssh", ip, "")

    async def smb_presence(self, ip: str) -> str:
        return await self._answer("smb", ip, "")

    async def certificate(self, ip: str) -> CertificateInfo:
        return await self._answer("cert", ip, CertificateInfo())

    async def http_info(self, ip: str) -> HttpInfo:
        return await self._answer("http", ip, HttpInfo())

    async def favicon_hash(self, ip: str) -> str:
        return await self._answer("favicon", ip, "")

    async def snmp(self, ip: str) -> SNMPInfo:
        return await self._answer("snmp", ip, SNMPInfo())


class FakeNameLookups(NameLookups):
    def __init__(
        self,
        rdns: Optional[Dict[str, str]] = None,
        mdns: Optional[Dict[str, str]] = None,
        netbios: Optional[Dict[str, str]] = None,
        delay: float = 0.0,
    ):
        self.rdns = rdns or {}
        self.mdns = mdns or {}
        self.netbios_names = netbios or {}
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []
        self.in_flight = HostsInFlight()

    async def _lookup(self, source: str, table: Dict[str, str], ip: str) -> str:
        self.calls.append((source, ip))
        await self.in_flight.hold(ip, self.delay)
        return table.get(ip, "")

    async def reverse_dns(self, ip: str) -> str:
        return await self._lookup("rdns", self.rdns, ip)

    async def mdns_reverse(self, ip: str) -> str:
        return await self._lookup("mdns", self.mdns, ip)

    async def netbios(self, ip: str) -> str:
        return await self._lookup("netbios", self.netbios_names, ip)


class FakeSSDP:
    def __init__(self, responders: Optional[Dict[str, SSDPInfo]] = None):
        self.responders = responders or {}

    async def discover(self) -> Dict[str, SSDPInfo]:
        return dict(self.responders)


class FakeServiceBrowser:
    def __init__(self, services: Optional[Dict[str, List[str]]] = None):
        self.services = services or {}

    async def browse(self) -> Dict[str, List[str]]:
        return dict(self.services)


@pytest.fixture()
def survey_config():
    """Defaults with NetBIOS forced on so the chain is the same on every platform."""
    return SurveyConfig(
        naming=NamingConfig(netbios_enabled=True),
        discovery=DiscoveryConfig(),
        inventory=InventoryConfig(),
    )


@pytest.fixture()
def make_capabilities():
    def build(
        alive: Dict[str, Optional[int]],
        neighbors: Optional[Dict[str, str]] = None,
        answers: Optional[Dict[str, dict]] = None,
        lookups: Optional[FakeNameLookups] = None,
        ssdp: Optional[Dict[str, SSDPInfo]] = None,
        services: Optional[Dict[str, List[str]]] = None,
    ) -> SurveyCapabilities:
        return SurveyCapabilities(
            liveness=FakeLiveness(alive),
            neighbors=FakeNeighbors(neighbors),
            host_probes=FakeHostProbes(answers),
            name_lookups=lookups or FakeNameLookups(),
            ssdp=FakeSSDP(ssdp),
            mdns_services=FakeServiceBrowser(services),
        )

    return build
