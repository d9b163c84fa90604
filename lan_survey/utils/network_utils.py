"""
Network and naming utility functions.

This module provides the address enumerator: dotted-quad validation and
conversion to and from 32-bit integers, CIDR parsing and the expansion
of a CIDR range into the host addresses to probe. It also holds the
normalization of raw host names into their display form.
"""

import re
from typing import Optional, Sequence, Tuple

from .error_handler import ValidationError

CIDR_PATTERN = re.compile(r"^([0-9.]+)/(\d{1,2})$")
OCTET_PATTERN = re.compile(r"^(0|[1-9]\d{0,2})$")
SAN_PREFIX_PATTERN = re.compile(r"^(DNS:|IP Address:)", re.IGNORECASE)
LOCAL_SUFFIX_PATTERN = re.compile(r"\.local$", re.IGNORECASE)

MAX_ADDRESS = 0xFFFFFFFF


def is_valid_ip(ip_address: str) -> bool:
    """
    Check if a string is a strict dotted-quad IPv4 address.

    Octets must be decimal numbers between 0 and 255 without leading zeros.

    Args:
        ip_address: String to validate as IPv4 address

    Returns:
        bool: True if valid IPv4 address, False otherwise
    """
    parts = ip_address.split(".")
    if len(parts) != 4:
        return False
    return all(OCTET_PATTERN.match(part) and int(part) <= 255 for part in parts)


def ip_to_int(ip_address: str) -> int:
    """
    Convert a dotted-quad address to its unsigned 32-bit integer value.

    Raises:
        ValidationError: If the address is not a valid dotted quad
    """
    if not is_valid_ip(ip_address):
        raise ValidationError(f"Invalid IPv4 address: {ip_address}")
    value = 0
    for part in ip_address.split("."):
        value = (value << 8) | int(part)
    return value


def int_to_ip(value: int) -> str:
    """Convert an unsigned 32-bit integer to dotted-quad text."""
    return ".".join(str((value >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def mask_from_prefix(prefix: int) -> int:
    """Return the network mask for a prefix length as an integer."""
    if prefix == 0:
        return 0
    return (MAX_ADDRESS << (32 - prefix)) & MAX_ADDRESS


def parse_cidr(cidr: str) -> Tuple[int, int]:
    """
    Parse CIDR text into (address integer, prefix length).

    The address is returned as written; callers mask it when they need
    the network address.

    Args:
        cidr: CIDR notation such as "192.168.1.0/24"

    Returns:
        Tuple[int, int]: Address integer and prefix length

    Raises:
        ValidationError: If the syntax, prefix or address is invalid
    """
    match = CIDR_PATTERN.match(cidr)
    if not match:
        raise ValidationError(f"Invalid CIDR: {cidr}")
    address, prefix_text = match.groups()
    prefix = int(prefix_text)
    if not 0 <= prefix <= 32:
        raise ValidationError(f"Invalid CIDR prefix length: {cidr}")
    if not is_valid_ip(address):
        raise ValidationError(f"Invalid IP address in CIDR: {cidr}")
    return ip_to_int(address), prefix


def enumerate_hosts(address: int, prefix: int) -> Sequence[int]:
    """
    Expand a network into the host addresses to probe, ascending.

    /32 yields the address itself and /31 both addresses. For prefixes of
    24 and shorter the network and broadcast addresses are dropped;
    prefixes 25 to 30 are enumerated in full.

    Args:
        address: Any address inside the network, as an integer
        prefix: Prefix length (0-32)

    Returns:
        Sequence[int]: Host addresses in ascending order, produced lazily
    """
    if prefix == 32:
        return range(address, address + 1)

    mask = mask_from_prefix(prefix)
    network = address & mask
    broadcast = network | (~mask & MAX_ADDRESS)

    if prefix == 31:
        return range(network, broadcast + 1)

    start, end = network, broadcast
    if prefix <= 24:
        start, end = network + 1, broadcast - 1

    return range(start, end + 1)


def reverse_pointer_name(ip_address: str) -> str:
    """Return the in-addr.arpa name for a dotted-quad address."""
    return ".".join(reversed(ip_address.split("."))) + ".in-addr.arpa"


def normalize_name(name: Optional[str]) -> str:
    """
    Reduce a raw host name to its display form.

    Trims, keeps the first comma-separated part, drops a leading "DNS:"
    or "IP Address:", one trailing dot and a trailing ".local".
    """
    if not name:
        return ""
    trimmed = str(name).strip()
    if not trimmed:
        return ""
    first_part = trimmed.split(",")[0].strip()
    cleaned = SAN_PREFIX_PATTERN.sub("", first_part).strip()
    if cleaned.endswith("."):
        cleaned = cleaned[:-1]
    return LOCAL_SUFFIX_PATTERN.sub("", cleaned)
