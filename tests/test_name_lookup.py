import asyncio

import dns.asyncresolver
import dns.rdata
import dns.resolver
import pytest

from lan_survey.config.config_loader import NamingConfig
from lan_survey.scanners.name_lookup import SystemNameLookups, parse_netbios_name

NBTSTAT_OUTPUT = """
Local Area Connection:
Node IpAddress: [10.0.0.2] Scope Id: []

           NetBIOS Remote Machine Name Table

       Name               Type         Status
    ---------------------------------------------
    WORKGROUP      <00>  GROUP       Registered
    OFFICE-PC      <00>  UNIQUE      Registered
    OFFICE-PC      <20>  UNIQUE      Registered
"""


@pytest.fixture()
def lookups():
    return SystemNameLookups(NamingConfig(dns_timeout=0.2, netbios_timeout=0.2))


def test_reverse_dns_returns_first_ptr(lookups, monkeypatch):
    async def resolve_address(ip, lifetime=None):
        return [dns.rdata.from_text("IN", "PTR", "nas.lan.")]

    monkeypatch.setattr(dns.asyncresolver, "resolve_address", resolve_address)

    assert asyncio.run(lookups.reverse_dns("10.0.0.5")) == "nas.lan"


def test_reverse_dns_timeout_is_empty(lookups, monkeypatch):
    async def resolve_address(ip, lifetime=None):
        await asyncio.sleep(5)

    monkeypatch.setattr(dns.asyncresolver, "resolve_address", resolve_address)

    assert asyncio.run(lookups.reverse_dns("10.0.0.5")) == ""


def test_reverse_dns_without_record_is_empty(lookups, monkeypatch):
    async def resolve_address(ip, lifetime=None):
        raise dns.resolver.NXDOMAIN()

    monkeypatch.setattr(dns.asyncresolver, "resolve_address", resolve_address)

    assert asyncio.run(lookups.reverse_dns("10.0.0.5")) == ""


def test_netbios_is_empty_off_windows(lookups, monkeypatch):
    async def must_not_run(*args, **kwargs):
        raise AssertionError("nbtstat started")

    monkeypatch.setattr(asyncio, "create_subprocess_exec", must_not_run)
    lookups.is_windows = False

    assert asyncio.run(lookups.netbios("10.0.0.2")) == ""


def test_parse_netbios_name_picks_unique_workstation_name():
    assert parse_netbios_name(NBTSTAT_OUTPUT) == "OFFICE-PC"
    assert parse_netbios_name("Host not found.") == ""
