"""
Probe modules for the LAN survey.

This package contains the shared probe base and every network-facing
probe: liveness, neighbor table, name lookups, banners, TLS, HTTP,
SNMP, SSDP and mDNS.
"""

from .base_scanner import BaseProbe, run_bounded
from .ping_scanner import LivenessChecker, PingChecker, LivenessProber
from .neighbor_table import NeighborTableReader, SystemNeighborTable
from .name_lookup import NameLookups, SystemNameLookups
from .banner_scanner import BannerScanner
from .tls_scanner import TLSScanner
from .http_scanner import HTTPScanner
from .snmp_scanner import SNMPScanner
from .ssdp_scanner import SSDPDiscoverer
from .mdns_scanner import MdnsServiceBrowser, MdnsReverseResolver

__all__ = [
    'BaseProbe',
    'run_bounded',
    'LivenessChecker',
    'PingChecker',
    'LivenessProber',
    'NeighborTableReader',
    'SystemNeighborTable',
    'NameLookups',
    'SystemNameLookups',
    'BannerScanner',
    'TLSScanner',
    'HTTPScanner',
    'SNMPScanner',
    'SSDPDiscoverer',
    'MdnsServiceBrowser',
    'MdnsReverseResolver',
]
