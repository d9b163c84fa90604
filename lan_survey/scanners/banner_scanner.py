"""
TCP banner probes: SSH identification line and SMB port presence.
"""

import asyncio
from typing import Optional

from .base_scanner import BaseProbe
from ..utils.logger import Logger

SSH_PORT = 22
SMB_PORT = 445
SMB_MARKER = "SMB"

# Upper bound on the bytes read while waiting for the SSH identification line
MAX_BANNER_BYTES = 4096


class BannerScanner(BaseProbe):
    """Connects to well-known TCP ports and reports what answers."""

    probe_name = "banner"

    def __init__(self, logger: Optional[Logger] = None):
        super().__init__(logger)

    async def ssh_banner(self, target: str, timeout: float) -> str:
        """
        Read the SSH server identification line.

        Returns:
            str: First line of the banner, trimmed; "" when no complete
            line arrives before the deadline
        """
        return await self._guarded(target, self._read_first_line(target, SSH_PORT), timeout, "")

    async def smb_presence(self, target: str, timeout: float) -> str:
        """
        Check whether the SMB port accepts connections.

        Returns:
            str: "SMB" when the connection succeeds, "" otherwise
        """
        return await self._guarded(target, self._connect_only(target, SMB_PORT), timeout, "")

    async def _read_first_line(self, target: str, port: int) -> str:
        reader, writer = await asyncio.open_connection(target, port)
        try:
            data = b""
            while b"\n" not in data and len(data) < MAX_BANNER_BYTES:
                chunk = await reader.read(1024)
                if not chunk:
                    return ""
                data += chunk
            if b"\n" not in data:
                return ""
            first_line = data.split(b"\n", 1)[0]
            return first_line.decode("utf-8", errors="replace").strip()
        finally:
            writer.close()

    async def _connect_only(self, target: str, port: int) -> str:
        _, writer = await asyncio.open_connection(target, port)
        writer.close()
        return SMB_MARKER
