"""
Neighbor (ARP) table reader.

Lists the operating system's neighbor cache once per cycle and maps each
IPv4 address to its hardware address.
"""

import asyncio
import platform
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .base_scanner import BaseProbe
from ..utils.logger import Logger
from ..utils.network_utils import is_valid_ip

NEIGHBOR_LINE_PATTERN = re.compile(r"(\d+\.\d+\.\d+\.\d+).+?([0-9a-fA-F:-]{11,})")


def normalize_mac(mac: str) -> str:
    """Normalize a MAC address to lowercase colon-separated form."""
    if not mac:
        return ""
    return mac.strip().replace("-", ":").lower()


def parse_neighbor_table(output: str) -> Dict[str, str]:
    """
    Parse `arp -a` or `ip neigh` output into IP -> MAC.

    Handles the Linux, macOS and Windows layouts; lines without a
    hardware address are skipped.
    """
    table = {}
    for line in output.splitlines():
        match = NEIGHBOR_LINE_PATTERN.search(line)
        if not match:
            continue
        ip = match.group(1)
        mac = normalize_mac(match.group(2))
        if is_valid_ip(ip) and mac:
            table[ip] = mac
    return table


def neighbor_command(system: Optional[str] = None) -> List[str]:
    system = system or platform.system().lower()
    if system in ("windows", "darwin"):
        return ["arp", "-a"]
    return ["ip", "neigh"]


class NeighborTableReader(ABC):
    """Capability: list the neighbor cache."""

    @abstractmethod
    async def read(self) -> Dict[str, str]:
        """Return IP -> MAC; an empty dict when the table is unavailable."""


class SystemNeighborTable(BaseProbe, NeighborTableReader):
    """NeighborTableReader backed by `ip neigh` or `arp -a`."""

    probe_name = "neighbor-table"

    def __init__(self, timeout: float, logger: Optional[Logger] = None):
        super().__init__(logger)
        self.timeout = timeout

    async def read(self) -> Dict[str, str]:
        command = neighbor_command()
        output = await self._guarded(" ".join(command), self._run(command), self.timeout, "")
        table = parse_neighbor_table(output)
        self._log_debug(f"Neighbor table contains {len(table)} entries")
        return table

    async def _run(self, command: List[str]) -> str:
        process = await asyncio.create_subprocess_exec(
            *command,
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
        return stdout.decode("utf-8", errors="replace")
