"""Parsing of the address held by a PTR query name."""

from __future__ import annotations

import ipaddress
from typing import Tuple, Union

IP4_ARPA = ".in-addr.arpa."
IP6_ARPA = ".ip6.arpa."

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class NotPTRDomainError(ValueError):
    """The name does not end in a reverse-lookup suffix."""

    def __init__(self) -> None:
        super().__init__("domain does not have a ptr suffix")


def parse_ptr_qname(fqdn: str) -> Address:
    """Return the address that a PTR query name encodes."""
    if fqdn.endswith(IP4_ARPA):
        return reverse4(fqdn[: -len(IP4_ARPA)])
    if fqdn.endswith(IP6_ARPA):
        return reverse6(fqdn[: -len(IP6_ARPA)])
    raise NotPTRDomainError()


def _prev_label(s: str, offset: int) -> Tuple[str, int]:
    """Return the label ending at offset (skipping empty ones) and its dot index."""
    while True:
        s = s[:offset]
        n = s.rfind(".")
        label = s[n + 1 : offset]
        if n != -1 and not label:
            offset = n
            continue
        return label, n


def reverse4(s: str) -> ipaddress.IPv4Address:
    """Parse reversed IPv4 labels such as "4.4.8.8" into 8.8.4.4.

    Labels to the left of the last four are ignored.
    """
    octets = []
    offset = len(s)
    while offset > 0 and len(octets) < 4:
        label, offset = _prev_label(s, offset)
        if not (label.isascii() and label.isdigit()) or int(label) > 255:
            raise ValueError(f"invalid label {label!r}")
        octets.append(int(label))
    if len(octets) < 4:
        raise ValueError(f"expect at least 4 labels, got {len(octets)}")
    return ipaddress.IPv4Address(bytes(octets))


def _hex_nibble(c: int) -> int:
    if 0x30 <= c <= 0x39:
        return c - 0x30
    lower = c | 0x20
    if ord("a") <= lower <= ord("z"):
        return lower - ord("a") + 10
    raise ValueError(f"invalid bit {c}")


def reverse6(s: str) -> ipaddress.IPv6Address:
    """Parse reversed IPv6 nibble labels into an address.

    Labels to the left of the last 32 are ignored.
    """
    out = bytearray()
    high = 0
    tail = False
    offset = len(s)
    while offset > 0 and len(out) < 16:
        label, offset = _prev_label(s, offset)
        raw = label.encode()
        if len(raw) != 1:
            raise ValueError(f"invalid label {label!r}")
        n = _hex_nibble(raw[0])
        if tail:
            out.append(((high << 4) + n) & 0xFF)
            tail = False
        else:
            high = n
            tail = True
    if len(out) < 16:
        raise ValueError(f"expect at least 16 bytes, got {len(out)}")
    return ipaddress.IPv6Address(bytes(out))