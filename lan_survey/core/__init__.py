"""
Core components of the LAN survey.
"""

from .data_models import (
    NamingSource,
    Segment,
    InventoryEntry,
    HostRecord,
    SSDPInfo,
    CertificateInfo,
    HttpInfo,
    SNMPInfo,
    CycleResult,
)
from .inventory_schema import InventorySchema, detect_schema, normalize_header

__all__ = [
    'NamingSource',
    'Segment',
    'InventoryEntry',
    'HostRecord',
    'SSDPInfo',
    'CertificateInfo',
    'HttpInfo',
    'SNMPInfo',
    'CycleResult',
    'InventorySchema',
    'detect_schema',
    'normalize_header',
]
