"""
SSDP discovery broadcaster.

Sends one M-SEARCH to the SSDP multicast group and collects the
unicast answers for a fixed window.
"""

import asyncio
import socket
from typing import Dict, Optional, Tuple

from .base_scanner import BaseProbe, DatagramListener
from ..core.data_models import SSDPInfo
from ..utils.logger import Logger

SSDP_GROUP = ("239.255.255.250", 1900)

M_SEARCH = "\r\n".join([
    "M-SEARCH * HTTP/1.1",
    "HOST: 239.255.255.250:1900",
    'MAN: "ssdp:discover"',
    "MX: 1",
    "ST: ssdp:all",
    "", "",
]).encode()


def parse_ssdp_response(data: bytes) -> SSDPInfo:
    """
    Parse the header lines of an SSDP response.

    Keys are case-insensitive; the status line and lines without a
    colon are ignored.
    """
    headers = {}
    for line in data.decode("utf-8", errors="replace").splitlines():
        key, separator, value = line.partition(":")
        if not separator or not key.strip():
            continue
        headers[key.strip().lower()] = value.strip()
    return SSDPInfo(
        server=headers.get("server", ""),
        usn=headers.get("usn", ""),
        search_target=headers.get("st", ""),
    )


class SSDPDiscoverer(BaseProbe):
    """One-shot SSDP listener producing an address-keyed side-table."""

    probe_name = "ssdp"

    def __init__(
        self,
        timeout: float,
        logger: Optional[Logger] = None,
        group: Tuple[str, int] = SSDP_GROUP,
    ):
        super().__init__(logger)
        self.timeout = timeout
        self.group = group

    async def discover(self) -> Dict[str, SSDPInfo]:
        """
        Broadcast M-SEARCH and gather responses for the configured window.

        Returns:
            Dict[str, SSDPInfo]: Responder address -> last response seen
        """
        results: Dict[str, SSDPInfo] = {}

        def on_datagram(data: bytes, addr: Tuple[str, int]) -> None:
            info = parse_ssdp_response(data)
            if not info.is_empty():
                results[addr[0]] = info

        loop = asyncio.get_running_loop()
        try:
            transport, protocol = await loop.create_datagram_endpoint(
                lambda: DatagramListener(on_datagram),
                local_addr=("0.0.0.0", 0),
                family=socket.AF_INET,
            )
        except OSError as e:
            self._log_debug(f"SSDP socket unavailable: {e}")
            return results

        try:
            sock = transport.get_extra_info("socket")
            if sock is not None:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
            transport.sendto(M_SEARCH, self.group)
            await asyncio.sleep(self.timeout)
        except OSError as e:
            self._log_debug(f"SSDP discovery stopped early: {e}")
        finally:
            transport.close()

        if protocol.error is not None:
            self._log_debug(f"SSDP socket error: {protocol.error}")
        self._log_debug(f"SSDP discovery found {len(results)} responders")
        return results
