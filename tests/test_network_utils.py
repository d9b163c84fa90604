import pytest

from lan_survey.utils.error_handler import ValidationError
from lan_survey.utils.network_utils import (
    enumerate_hosts,
    int_to_ip,
    ip_to_int,
    is_valid_ip,
    normalize_name,
    parse_cidr,
    reverse_pointer_name,
)


def hosts(cidr):
    address, prefix = parse_cidr(cidr)
    return [int_to_ip(value) for value in enumerate_hosts(address, prefix)]


def test_slash_24_excludes_network_and_broadcast():
    result = hosts("192.168.1.0/24")
    assert len(result) == 254
    assert result[0] == "192.168.1.1"
    assert result[-1] == "192.168.1.254"


def test_short_prefix_masks_address_before_enumerating():
    result = hosts("10.0.1.77/23")
    assert result[0] == "10.0.0.1"
    assert result[-1] == "10.0.1.254"
    assert len(result) == 510


def test_prefixes_longer_than_24_are_enumerated_in_full():
    assert hosts("192.168.1.0/30") == [
        "192.168.1.0",
        "192.168.1.1",
        "192.168.1.2",
        "192.168.1.3",
    ]
    assert len(hosts("192.168.1.128/25")) == 128


def test_slash_31_yields_both_addresses():
    assert hosts("10.0.0.0/31") == ["10.0.0.0", "10.0.0.1"]


def test_slash_32_yields_the_address_itself():
    assert hosts("10.0.0.5/32") == ["10.0.0.5"]


@pytest.mark.parametrize(
    "cidr",
    ["10.0.0.0", "10.0.0.0/33", "10.0.0/24", "256.0.0.0/8", "10.00.0.0/8", "ten/8", "10.0.0.0/ 8"],
)
def test_parse_cidr_rejects_malformed_ranges(cidr):
    with pytest.raises(ValidationError):
        parse_cidr(cidr)


def test_ip_conversions():
    assert ip_to_int("192.168.1.10") == 0xC0A8010A
    assert int_to_ip(0xC0A8010A) == "192.168.1.10"
    assert is_valid_ip("0.0.0.0")
    assert not is_valid_ip("1.2.3")
    assert not is_valid_ip("01.2.3.4")
    with pytest.raises(ValidationError):
        ip_to_int("1.2.3.999")


def test_reverse_pointer_name():
    assert reverse_pointer_name("192.168.1.10") == "10.1.168.192.in-addr.arpa"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  nas.local. ", "nas"),
        ("DNS:router.lan, DNS:alt.lan", "router.lan"),
        ("IP Address:10.0.0.1", "10.0.0.1"),
        ("printer.", "printer"),
        ("SSH-2.0-OpenSSH_9.6", "SSH-2.0-OpenSSH_9.6"),
        ("", ""),
        (None, ""),
        ("   ", ""),
    ],
)
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected
