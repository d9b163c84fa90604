"""
Inventory reconciler.

Merges one cycle's host records into the persisted inventory and
renders the result. Names and enrichment fields follow opposite rules:
a persisted name is kept, while fresh enrichment values replace
persisted ones.
"""

from typing import Dict, Iterable, Mapping

from .data_models import ENRICHMENT_FIELDS, INVENTORY_COLUMNS, HostRecord, InventoryEntry
from ..utils.csv_reporter import render_rows
from ..utils.network_utils import ip_to_int


def _merge_existing(
    existing: InventoryEntry, record: HostRecord, overwrite_segments: bool
) -> InventoryEntry:
    merged = InventoryEntry(
        ip=existing.ip,
        segments=record.segment if overwrite_segments and record.segment else existing.segments,
        name=existing.name or record.name or record.auto_name,
    )
    for field_name in ENRICHMENT_FIELDS:
        setattr(merged, field_name, getattr(record, field_name) or getattr(existing, field_name))
    return merged


def _new_entry(record: HostRecord, overwrite_segments: bool) -> InventoryEntry:
    entry = InventoryEntry(
        ip=record.ip,
        segments=record.segment if overwrite_segments and record.segment else record.segments,
        name=record.name or record.auto_name,
    )
    for field_name in ENRICHMENT_FIELDS:
        setattr(entry, field_name, getattr(record, field_name))
    return entry


def reconcile(
    inventory: Mapping[str, InventoryEntry],
    records: Iterable[HostRecord],
    overwrite_segments: bool,
) -> Dict[str, InventoryEntry]:
    """
    Merge observed records into the inventory.

    Args:
        inventory: Persisted entries keyed by IP; left unmodified
        records: Records observed this cycle
        overwrite_segments: Replace the segment label with the segment
            the host was found in

    Returns:
        Dict[str, InventoryEntry]: Merged entries keyed by IP, including
        every persisted IP that was not observed
    """
    merged: Dict[str, InventoryEntry] = dict(inventory)
    for record in records:
        existing = merged.get(record.ip)
        if existing is not None:
            merged[record.ip] = _merge_existing(existing, record, overwrite_segments)
        else:
            merged[record.ip] = _new_entry(record, overwrite_segments)
    return merged


def render_inventory(entries: Mapping[str, InventoryEntry]) -> str:
    """Render entries as inventory CSV text, sorted by address."""
    ordered = sorted(entries.values(), key=lambda entry: ip_to_int(entry.ip))
    return render_rows(INVENTORY_COLUMNS, (entry.to_row() for entry in ordered))
