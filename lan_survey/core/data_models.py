"""
Core data models and enums for the LAN survey.

This module defines the data structures used throughout a survey cycle,
including parsed segments, per-cycle host records, persisted inventory
entries and the column layouts of the CSV outputs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class NamingSource(str, Enum):
    """Enumeration of the methods that can produce a host name."""
    MANUAL = "manual"
    RDNS = "rdns"
    MDNS = "mdns"
    NETBIOS = "netbios"
    HTTP = "http"
    CERT = "cert"
    SSH = "ssh"
    NONE = "none"


# Fields filled by probing; shared by HostRecord and InventoryEntry
ENRICHMENT_FIELDS: List[str] = [
    "auto_name",
    "mac",
    "os_guess",
    "ssh_banner",
    "smb_banner",
    "cert_cn",
    "cert_san",
    "http_server",
    "http_powered_by",
    "http_www_auth",
    "favicon_hash",
    "mdns_services",
    "ssdp_server",
    "ssdp_usn",
    "snmp_sysname",
    "snmp_sysdescr",
]

INVENTORY_COLUMNS: List[str] = ["ip", "segments", "name"] + ENRICHMENT_FIELDS

CYCLE_COLUMNS: List[str] = ["segment"] + INVENTORY_COLUMNS + ["source"]


@dataclass(frozen=True)
class Segment:
    """
    A named IPv4 range to survey.

    Attributes:
        name: Segment label from the segment list
        cidr: CIDR text as written
        network_address: Address masked by the prefix, as an integer
        prefix_length: Prefix length (0-32)
    """
    name: str
    cidr: str
    network_address: int
    prefix_length: int


@dataclass
class InventoryEntry:
    """
    Persisted knowledge about one IP address.

    Attributes:
        ip: Dotted-quad address, the inventory key
        segments: Operator-facing segment label
        name: Display name; a non-empty value is never replaced automatically
    """
    ip: str
    segments: str = ""
    name: str = ""
    auto_name: str = ""
    mac: str = ""
    os_guess: str = ""
    ssh_banner: str = ""
    smb_banner: str = ""
    cert_cn: str = ""
    cert_san: str = ""
    http_server: str = ""
    http_powered_by: str = ""
    http_www_auth: str = ""
    favicon_hash: str = ""
    mdns_services: str = ""
    ssdp_server: str = ""
    ssdp_usn: str = ""
    snmp_sysname: str = ""
    snmp_sysdescr: str = ""

    def to_row(self) -> List[str]:
        """Return the values in INVENTORY_COLUMNS order."""
        return [getattr(self, column) for column in INVENTORY_COLUMNS]


@dataclass
class HostRecord:
    """
    Everything learned about one alive host during one cycle.

    The record is owned by the task processing it; probes write their
    results into it and the naming resolver sets auto_name and source.

    Attributes:
        segment: Name of the segment the host was found in
        ip: Dotted-quad address
        segments: Segment label seeded from the inventory
        name: Display name seeded from the inventory, later finalized
        source: Method that produced auto_name, or manual
        ttl: TTL of the ping reply, when one was parsed
        mdns_host: Raw hostname returned by the mDNS reverse lookup
        http_name: Name derived from the HTTP(S) title or Server header
    """
    segment: str
    ip: str
    segments: str = ""
    name: str = ""
    auto_name: str = ""
    mac: str = ""
    os_guess: str = ""
    ssh_banner: str = ""
    smb_banner: str = ""
    cert_cn: str = ""
    cert_san: str = ""
    http_server: str = ""
    http_powered_by: str = ""
    http_www_auth: str = ""
    favicon_hash: str = ""
    mdns_services: str = ""
    ssdp_server: str = ""
    ssdp_usn: str = ""
    snmp_sysname: str = ""
    snmp_sysdescr: str = ""
    source: NamingSource = NamingSource.NONE

    ttl: Optional[int] = None
    mdns_host: str = ""
    http_name: str = ""

    @classmethod
    def seeded(
        cls,
        segment: str,
        ip: str,
        entry: Optional[InventoryEntry] = None,
        neighbor_mac: str = "",
        ttl: Optional[int] = None,
    ) -> "HostRecord":
        """
        Create a record pre-filled with the persisted values for its IP.

        auto_name is never seeded; mac falls back to the neighbor table.
        """
        record = cls(segment=segment, ip=ip, ttl=ttl)
        if entry is not None:
            record.segments = entry.segments
            record.name = entry.name
            for name in ENRICHMENT_FIELDS:
                if name != "auto_name":
                    setattr(record, name, getattr(entry, name))
        if not record.mac:
            record.mac = neighbor_mac
        return record

    def to_row(self) -> List[str]:
        """Return the values in CYCLE_COLUMNS order."""
        row = []
        for column in CYCLE_COLUMNS:
            value = getattr(self, column)
            row.append(value.value if isinstance(value, NamingSource) else value)
        return row


@dataclass(frozen=True)
class SSDPInfo:
    """Header values from one SSDP response."""
    server: str = ""
    usn: str = ""
    search_target: str = ""

    def is_empty(self) -> bool:
        return not (self.server or self.usn or self.search_target)


@dataclass(frozen=True)
class CertificateInfo:
    """Subject common name and rendered subjectAltName of a peer certificate."""
    cn: str = ""
    san: str = ""


@dataclass(frozen=True)
class HttpInfo:
    """Result of the HTTP(S) probe."""
    name: str = ""
    server: str = ""
    powered_by: str = ""
    www_authenticate: str = ""

    def has_content(self) -> bool:
        return bool(self.name or self.server or self.powered_by or self.www_authenticate)


@dataclass(frozen=True)
class SNMPInfo:
    """sysName and sysDescr returned by an SNMP agent."""
    sys_name: str = ""
    sys_descr: str = ""


@dataclass
class CycleResult:
    """
    Outcome of one survey cycle.

    Attributes:
        records: Emitted records keyed by IP, in emission order
        inventory: Reconciled inventory keyed by IP
        inventory_written: Whether the inventory file was rewritten
    """
    records: Dict[str, HostRecord] = field(default_factory=dict)
    inventory: Dict[str, InventoryEntry] = field(default_factory=dict)
    inventory_written: bool = False

    @property
    def alive_count(self) -> int:
        return len(self.records)
