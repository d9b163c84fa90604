from lan_survey.core.data_models import HostRecord, InventoryEntry, NamingSource
from lan_survey.core.inventory_reconciler import reconcile, render_inventory
from lan_survey.core.naming_resolver import finalize_name
from lan_survey.utils.csv_reporter import parse_inventory


def observed(ip="192.168.1.1", segment="office", **fields):
    record = HostRecord(segment=segment, ip=ip)
    for name, value in fields.items():
        setattr(record, name, value)
    return record


def test_persisted_name_wins_over_auto_name():
    inventory = {"192.168.1.1": InventoryEntry(ip="192.168.1.1", segments="office", name="Router1")}
    record = HostRecord.seeded("office", "192.168.1.1", inventory["192.168.1.1"])
    record.auto_name = "unknown-host"
    record.source = NamingSource.RDNS

    finalize_name(record)
    merged = reconcile(inventory, [record], overwrite_segments=True)

    assert record.name == "Router1"
    assert record.source is NamingSource.MANUAL
    assert merged["192.168.1.1"].name == "Router1"
    assert merged["192.168.1.1"].auto_name == "unknown-host"


def test_fresh_enrichment_values_replace_persisted_ones():
    inventory = {
        "192.168.1.1": InventoryEntry(
            ip="192.168.1.1", segments="office", name="Router1",
            http_server="old/1.0", mac="aa:aa:aa:aa:aa:aa",
        )
    }
    record = observed(http_server="new/2.0", name="Router1")

    merged = reconcile(inventory, [record], overwrite_segments=True)["192.168.1.1"]

    assert merged.http_server == "new/2.0"
    # Empty fresh values keep what was stored
    assert merged.mac == "aa:aa:aa:aa:aa:aa"


def test_empty_persisted_name_takes_the_derived_one():
    inventory = {"192.168.1.5": InventoryEntry(ip="192.168.1.5", segments="office")}
    record = observed(ip="192.168.1.5", auto_name="nas")
    finalize_name(record)

    merged = reconcile(inventory, [record], overwrite_segments=True)

    assert merged["192.168.1.5"].name == "nas"


def test_unobserved_addresses_are_kept():
    inventory = {
        "10.9.9.9": InventoryEntry(ip="10.9.9.9", segments="lab", name="Printer"),
    }

    merged = reconcile(inventory, [observed(auto_name="gw", name="gw")], overwrite_segments=True)

    assert set(merged) == {"10.9.9.9", "192.168.1.1"}
    assert merged["10.9.9.9"].name == "Printer"
    assert "10.9.9.9" in inventory and len(inventory) == 1


def test_segment_overwrite_toggle():
    inventory = {"192.168.1.1": InventoryEntry(ip="192.168.1.1", segments="old-label")}
    record = observed(segment="office")

    assert reconcile(inventory, [record], overwrite_segments=True)["192.168.1.1"].segments == "office"
    assert reconcile(inventory, [record], overwrite_segments=False)["192.168.1.1"].segments == "old-label"

    fresh = observed(ip="192.168.1.7", segment="office")
    assert reconcile({}, [fresh], overwrite_segments=True)["192.168.1.7"].segments == "office"
    assert reconcile({}, [fresh], overwrite_segments=False)["192.168.1.7"].segments == ""


def test_render_inventory_sorts_numerically():
    entries = {
        ip: InventoryEntry(ip=ip)
        for ip in ("192.168.1.10", "192.168.1.9", "10.0.0.1")
    }

    lines = render_inventory(entries).splitlines()

    assert [line.split(",")[0] for line in lines[1:]] == ["10.0.0.1", "192.168.1.9", "192.168.1.10"]


def test_reconciling_twice_is_byte_identical():
    inventory = parse_inventory(
        "ip,segments,name\n192.168.1.1,office,Router1\n10.9.9.9,lab,\"Printer, 2nd floor\"\n"
    )
    records = [
        observed(auto_name="router", name="Router1", ssh_banner="SSH-2.0-dropbear"),
        observed(ip="192.168.1.20", auto_name="nas", name="nas", mac="aa:bb:cc:dd:ee:ff"),
    ]

    first = render_inventory(reconcile(inventory, records, overwrite_segments=True))
    second = render_inventory(
        reconcile(parse_inventory(first), records, overwrite_segments=True)
    )

    assert first == second
