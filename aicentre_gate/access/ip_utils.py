"""
IP Utility Functions
====================
Client IP extraction and IPv4 CIDR matching for the allowlist policy.

IPv6 ranges are not supported; IPv6 candidates never match.
"""

from typing import Iterable, Mapping, Optional, Tuple

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1"})
DEFAULT_CLIENT_IP = "127.0.0.1"

_UINT32 = 0xFFFFFFFF


def ip_to_int(ip: str) -> int:
    """
    Pack a dotted-quad IPv4 address into an unsigned 32-bit integer (big-endian).

    Raises:
        ValueError: If ``ip`` is not a dotted-quad IPv4 address
    """
    octets = ip.strip().split(".")
    if len(octets) != 4:
        raise ValueError(f"not an IPv4 address: {ip!r}")

    value = 0
    for octet in octets:
        if not octet.isascii() or not octet.isdigit():
            raise ValueError(f"not an IPv4 address: {ip!r}")
        number = int(octet)
        if number > 255:
            raise ValueError(f"octet out of range in {ip!r}")
        value = (value << 8) | number
    return value & _UINT32


def prefix_to_mask(prefix_length: int) -> int:
    """Network mask for a prefix length, i.e. ``~(2**(32 - prefix) - 1)`` as uint32."""
    if not 0 <= prefix_length <= 32:
        raise ValueError(f"prefix length out of range: {prefix_length}")
    return ~((1 << (32 - prefix_length)) - 1) & _UINT32


def parse_cidr(cidr: str) -> Tuple[int, int]:
    """
    Parse ``ip/prefixLength`` into a ``(base, mask)`` pair.

    A bare address is treated as a /32.

    Raises:
        ValueError: On a malformed address or prefix
    """
    range_ip, separator, bits = cidr.strip().partition("/")
    if not separator:
        bits = "32"
    if not bits.isascii() or not bits.isdigit():
        raise ValueError(f"invalid prefix length in {cidr!r}")
    return ip_to_int(range_ip), prefix_to_mask(int(bits))


def is_ip_in_range(ip: str, cidr_range: Tuple[int, int]) -> bool:
    """Check membership of ``ip`` in a parsed ``(base, mask)`` range."""
    base, mask = cidr_range
    try:
        candidate = ip_to_int(ip)
    except ValueError:
        return False
    return (candidate & mask) == (base & mask)


def is_ip_in_cidr(ip: str, cidr: str) -> bool:
    """Check membership of ``ip`` in a CIDR string such as ``10.0.0.0/24``."""
    return is_ip_in_range(ip, parse_cidr(cidr))


def is_ip_allowed(ip: str, ranges: Iterable[Tuple[int, int]]) -> bool:
    """Check if ``ip`` belongs to any of the parsed ranges."""
    return any(is_ip_in_range(ip, cidr_range) for cidr_range in ranges)


def is_loopback(ip: Optional[str]) -> bool:
    """Check if ``ip`` is a loopback address (local development)."""
    return bool(ip) and ip in LOOPBACK_ADDRESSES


def get_client_ip(headers: Mapping[str, str]) -> str:
    """
    Extract the client IP from proxy headers.

    Uses the first ``X-Forwarded-For`` entry, then ``X-Real-IP``, and falls
    back to loopback when neither is present.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return DEFAULT_CLIENT_IP
