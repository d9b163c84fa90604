"""
Ping-based liveness prober for the LAN survey.

This module sweeps a list of addresses with the platform ping command,
keeping a bounded number of pings in flight, and extracts the TTL of
each reply for the OS hint.
"""

import asyncio
import math
import platform
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from .base_scanner import BaseProbe, run_bounded
from ..config.config_loader import LivenessConfig
from ..utils.error_handler import ToolMissingError
from ..utils.logger import Logger, get_logger

TTL_PATTERN = re.compile(r"ttl[=:\s]+(\d+)", re.IGNORECASE)

# Extra time granted to the ping process beyond its own timeout
PROCESS_GRACE = 1.0


def ping_command(ip: str, timeout: float, system: Optional[str] = None) -> List[str]:
    """
    Build the single-echo ping command line for the current platform.

    Args:
        ip: Address to ping
        timeout: Reply timeout in seconds
        system: Platform name as returned by platform.system(), lowercased

    Returns:
        List[str]: Command and arguments
    """
    system = system or platform.system().lower()
    timeout_ms = int(round(timeout * 1000))

    if system == "windows":
        return ["ping", "-n", "1", "-w", str(timeout_ms), ip]
    if system == "darwin":
        return ["ping", "-c", "1", "-W", str(timeout_ms), ip]
    return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout))), ip]


def parse_ttl(output: str) -> Optional[int]:
    """Extract the TTL from ping output, or None when absent."""
    match = TTL_PATTERN.search(output)
    if not match:
        return None
    return int(match.group(1))


def os_guess_from_ttl(ttl: Optional[int]) -> str:
    """
    Map a reply TTL to a coarse OS family.

    Returns:
        str: "Windows", "Linux/Unix", "Network/Embedded" or ""
    """
    if not ttl:
        return ""
    if ttl >= 128:
        return "Windows"
    if ttl >= 64:
        return "Linux/Unix"
    if ttl >= 1:
        return "Network/Embedded"
    return ""


class LivenessChecker(ABC):
    """Capability: decide whether one address answers."""

    @abstractmethod
    async def check(self, ip: str) -> Tuple[bool, Optional[int]]:
        """
        Probe one address.

        Returns:
            Tuple[bool, Optional[int]]: (alive, ttl)

        Raises:
            ToolMissingError: If the underlying tool cannot be run
        """


class PingChecker(BaseProbe, LivenessChecker):
    """
    LivenessChecker backed by the system ping command.

    Exit code 0 means alive. A ping that outlives its deadline is killed
    and counts as not alive.
    """

    probe_name = "ping"

    def __init__(self, timeout: float, logger: Optional[Logger] = None):
        super().__init__(logger)
        self.timeout = timeout
        self.system = platform.system().lower()

    async def check(self, ip: str) -> Tuple[bool, Optional[int]]:
        command = ping_command(ip, self.timeout, self.system)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ToolMissingError(
                f"Cannot run ping: {e}", tool_name="ping"
            ) from e

        try:
            stdout, _ = await asyncio.wait_for(
                process.communicate(), self.timeout + PROCESS_GRACE
            )
        except asyncio.TimeoutError:
            if process.returncode is None:
                process.kill()
            await process.wait()
            self._log_debug(f"ping {ip} did not finish in time")
            return False, None

        if process.returncode != 0:
            return False, None

        return True, parse_ttl(stdout.decode("utf-8", errors="replace"))


class LivenessProber:
    """
    Bounded concurrent liveness sweep.

    At most `config.concurrency` checks are in flight at any time.
    """

    def __init__(
        self,
        config: LivenessConfig,
        checker: LivenessChecker,
        logger: Optional[Logger] = None,
    ):
        self.config = config
        self.checker = checker
        self.logger = logger or get_logger(__name__)

    async def sweep(self, hosts: Iterable[str]) -> Dict[str, Optional[int]]:
        """
        Probe every host and collect the alive ones.

        Args:
            hosts: Dotted-quad addresses to probe, consumed lazily

        Returns:
            Dict[str, Optional[int]]: Alive address -> reply TTL (unordered)

        Raises:
            ToolMissingError: If the checker cannot run its tool
        """
        alive: Dict[str, Optional[int]] = {}
        checked = 0

        async def probe(ip: str) -> None:
            nonlocal checked
            checked += 1
            is_alive, ttl = await self.checker.check(ip)
            if is_alive:
                alive[ip] = ttl

        await run_bounded(hosts, self.config.concurrency, probe)
        self.logger.debug(f"Liveness sweep: {len(alive)}/{checked} hosts answered")
        return alive
