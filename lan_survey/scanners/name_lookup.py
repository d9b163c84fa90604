"""
Per-host name lookups used by the naming resolver.

NameLookups is the capability the resolver talks to; SystemNameLookups
implements it with reverse DNS (dnspython), multicast DNS and, on
Windows, nbtstat.
"""

import asyncio
import platform
import re
from abc import ABC, abstractmethod
from typing import Optional

import dns.asyncresolver

from .base_scanner import BaseProbe
from .mdns_scanner import MdnsReverseResolver
from ..config.config_loader import NamingConfig
from ..utils.logger import Logger

NETBIOS_NAME_PATTERN = re.compile(r"^\s*([^\s]+)\s+<00>\s+UNIQUE", re.IGNORECASE | re.MULTILINE)


def parse_netbios_name(output: str) -> str:
    """Return the workstation (<00> UNIQUE) name from nbtstat output, or ""."""
    match = NETBIOS_NAME_PATTERN.search(output)
    return match.group(1) if match else ""


class NameLookups(ABC):
    """Capability: name sources that query the network."""

    @abstractmethod
    async def reverse_dns(self, ip: str) -> str:
        """Return the first PTR name from the system resolver, or ""."""

    @abstractmethod
    async def mdns_reverse(self, ip: str) -> str:
        """Return the raw mDNS PTR hostname, or ""."""

    @abstractmethod
    async def netbios(self, ip: str) -> str:
        """Return the NetBIOS workstation name, or ""."""


class SystemNameLookups(BaseProbe, NameLookups):
    """NameLookups backed by the system resolver, multicast DNS and nbtstat."""

    probe_name = "name-lookup"

    def __init__(self, config: NamingConfig, logger: Optional[Logger] = None):
        super().__init__(logger)
        self.config = config
        self.mdns = MdnsReverseResolver(logger)
        self.is_windows = platform.system().lower() == "windows"

    async def reverse_dns(self, ip: str) -> str:
        return await self._guarded(ip, self._reverse_dns(ip), self.config.dns_timeout, "")

    async def mdns_reverse(self, ip: str) -> str:
        return await self.mdns.reverse(ip, self.config.mdns_timeout)

    async def netbios(self, ip: str) -> str:
        if not self.is_windows:
            return ""
        return await self._guarded(ip, self._nbtstat(ip), self.config.netbios_timeout, "")

    async def _reverse_dns(self, ip: str) -> str:
        answer = await dns.asyncresolver.resolve_address(ip, lifetime=self.config.dns_timeout)
        for rdata in answer:
            return rdata.target.to_text(omit_final_dot=True)
        return ""

    async def _nbtstat(self, ip: str) -> str:
        process = await asyncio.create_subprocess_exec(
            "nbtstat", "-A", ip,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        try:
            stdout, _ = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
            raise
        return parse_netbios_name(stdout.decode("utf-8", errors="replace"))
