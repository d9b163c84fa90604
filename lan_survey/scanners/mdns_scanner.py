"""
Multicast DNS probes.

MdnsServiceBrowser enumerates DNS-SD services once per cycle and maps
each advertising hostname to its service labels. MdnsReverseResolver
asks the multicast group for the PTR record of one address.

Queries are sent from an ephemeral port, so responders answer by
unicast directly to this socket.
"""

import asyncio
import socket
import struct
from typing import Callable, Dict, List, Optional, Set, Tuple

import dns.exception
import dns.message
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.reversename

from .base_scanner import BaseProbe, DatagramListener
from ..utils.logger import Logger

MDNS_GROUP = ("224.0.0.251", 5353)
SERVICES_NAME = "_services._dns-sd._udp.local"
HEADER_SIZE = 12


def build_query(name: str, rdtype: dns.rdatatype.RdataType) -> bytes:
    query = dns.message.make_query(name, rdtype)
    query.id = 0
    query.flags = 0
    return query.to_wire()


def _skip_name(packet: bytes, offset: int) -> int:
    while True:
        if offset >= len(packet):
            raise ValueError("Truncated DNS name")
        length = packet[offset]
        if length & 0xC0 == 0xC0:
            return offset + 2
        if length == 0:
            return offset + 1
        offset += 1 + length


def clear_cache_flush(data: bytes) -> bytes:
    """
    Clear the top bit of every question and record class.

    mDNS responders set it on unique records (class 0x8001) and queriers
    on questions wanting a unicast reply. Left in place, dnspython treats
    such records as an unknown class and keeps their rdata undecoded.

    Raises:
        ValueError: If the packet is truncated
    """
    if len(data) < HEADER_SIZE:
        raise ValueError("Truncated DNS header")
    packet = bytearray(data)
    qdcount, ancount, nscount, arcount = struct.unpack_from("!4H", packet, 4)
    offset = HEADER_SIZE

    for _ in range(qdcount):
        offset = _skip_name(packet, offset)
        if offset + 4 > len(packet):
            raise ValueError("Truncated DNS question")
        packet[offset + 2] &= 0x7F
        offset += 4

    for _ in range(ancount + nscount + arcount):
        offset = _skip_name(packet, offset)
        if offset + 10 > len(packet):
            raise ValueError("Truncated DNS record")
        rdtype, = struct.unpack_from("!H", packet, offset)
        # OPT carries the payload size in the class field
        if rdtype != dns.rdatatype.OPT:
            packet[offset + 2] &= 0x7F
        rdlength, = struct.unpack_from("!H", packet, offset + 8)
        offset += 10 + rdlength

    return bytes(packet)


def decode_message(data: bytes) -> Optional[dns.message.Message]:
    """Decode an mDNS packet; None when it cannot be parsed."""
    try:
        return dns.message.from_wire(clear_cache_flush(data))
    except (dns.exception.DNSException, ValueError):
        return None


def _records(section, rdtype: dns.rdatatype.RdataType):
    for rrset in section:
        if rrset.rdtype == rdtype and rrset.rdclass == dns.rdataclass.IN:
            yield rrset


def _text(name: dns.name.Name) -> str:
    return name.to_text(omit_final_dot=True)


async def _open_endpoint(on_datagram: Callable[[bytes, Tuple[str, int]], None]):
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: DatagramListener(on_datagram),
        local_addr=("0.0.0.0", 0),
        family=socket.AF_INET,
    )
    sock = transport.get_extra_info("socket")
    if sock is not None:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 255)
    return transport, protocol


class ServiceTable:
    """
    Accumulates hostname -> service labels from mDNS responses.

    Also decides which follow-up queries a response calls for.
    """

    def __init__(self):
        self.services: Dict[str, Dict[str, None]] = {}
        self._asked: Set[Tuple[str, int]] = set()

    def absorb(self, message: dns.message.Message) -> List[Tuple[str, dns.rdatatype.RdataType]]:
        """
        Record the SRV targets of a response and return new follow-up queries.

        PTR records under the service enumeration name ask for instances
        of each service type; PTR records under any .local name ask for
        the SRV of their target; SRV records with a target add the first
        label of their owner to that target's services.
        """
        follow_ups = []
        records = list(message.answer) + list(message.additional)
        for rrset in _records(records, dns.rdatatype.PTR):
            owner = _text(rrset.name).lower()
            for rdata in rrset:
                target = _text(rdata.target)
                if owner == SERVICES_NAME:
                    follow_ups.append((target, dns.rdatatype.PTR))
                if owner.endswith(".local"):
                    follow_ups.append((target, dns.rdatatype.SRV))

        for rrset in _records(records, dns.rdatatype.SRV):
            if not rrset.name.labels:
                continue
            service = rrset.name.labels[0].decode("utf-8", errors="replace")
            for rdata in rrset:
                host = _text(rdata.target)
                if host:
                    self.services.setdefault(host, {})[service] = None

        fresh = []
        for name, rdtype in follow_ups:
            key = (name.lower(), int(rdtype))
            if key not in self._asked:
                self._asked.add(key)
                fresh.append((name, rdtype))
        return fresh

    def as_dict(self) -> Dict[str, List[str]]:
        return {host: list(labels) for host, labels in self.services.items()}


class MdnsServiceBrowser(BaseProbe):
    """One-shot DNS-SD enumeration over multicast DNS."""

    probe_name = "mdns-services"

    def __init__(
        self,
        timeout: float,
        logger: Optional[Logger] = None,
        group: Tuple[str, int] = MDNS_GROUP,
    ):
        super().__init__(logger)
        self.timeout = timeout
        self.group = group

    async def browse(self) -> Dict[str, List[str]]:
        """
        Enumerate services for the configured window.

        Returns:
            Dict[str, List[str]]: Hostname (no trailing dot) -> service
            labels in first-seen order
        """
        table = ServiceTable()
        transport = None

        def send(name: str, rdtype: dns.rdatatype.RdataType) -> None:
            if transport is not None and not transport.is_closing():
                transport.sendto(build_query(name, rdtype), self.group)

        def on_datagram(data: bytes, addr: Tuple[str, int]) -> None:
            message = decode_message(data)
            if message is None:
                return
            for name, rdtype in table.absorb(message):
                send(name, rdtype)

        try:
            transport, protocol = await _open_endpoint(on_datagram)
        except OSError as e:
            self._log_debug(f"mDNS socket unavailable: {e}")
            return {}

        try:
            send(SERVICES_NAME, dns.rdatatype.PTR)
            await asyncio.sleep(self.timeout)
        except OSError as e:
            self._log_debug(f"mDNS service browse stopped early: {e}")
        finally:
            transport.close()

        if protocol.error is not None:
            self._log_debug(f"mDNS socket error: {protocol.error}")

        services = table.as_dict()
        self._log_debug(f"mDNS browse found services on {len(services)} hosts")
        return services


class MdnsReverseResolver(BaseProbe):
    """PTR lookup of an address over multicast DNS."""

    probe_name = "mdns"

    def __init__(self, logger: Optional[Logger] = None, group: Tuple[str, int] = MDNS_GROUP):
        super().__init__(logger)
        self.group = group

    async def reverse(self, ip: str, timeout: float) -> str:
        """
        Ask the multicast group for the PTR of ip.

        Returns:
            str: Raw hostname without the trailing dot, or "" when nobody
            answered in time
        """
        return await self._guarded(ip, self._lookup(ip), timeout, "")

    async def _lookup(self, ip: str) -> str:
        reverse_name = dns.reversename.from_address(ip)
        loop = asyncio.get_running_loop()
        answer: asyncio.Future = loop.create_future()

        def on_datagram(data: bytes, addr: Tuple[str, int]) -> None:
            message = decode_message(data)
            if message is None or answer.done():
                return
            for rrset in _records(message.answer, dns.rdatatype.PTR):
                if rrset.name == reverse_name:
                    for rdata in rrset:
                        answer.set_result(_text(rdata.target))
                        return

        transport, _ = await _open_endpoint(on_datagram)
        try:
            transport.sendto(build_query(reverse_name.to_text(), dns.rdatatype.PTR), self.group)
            return await answer
        finally:
            transport.close()
