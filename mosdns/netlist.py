"""A sorted list of IP prefixes searched by binary search.

IPv4 prefixes are stored as IPv4-mapped IPv6 prefixes, so one list can hold
both families. Call ``sort`` after modifying the list and before lookups.
"""

from __future__ import annotations

import bisect
import ipaddress
from typing import Iterable, List, NamedTuple, Protocol, Union

_V4_MAPPED = 0xFFFF << 32
_ADDR_BITS = 128

AddressLike = Union[str, int, ipaddress.IPv4Address, ipaddress.IPv6Address]
NetworkLike = Union[
    str,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
]


class AddrMatcher(Protocol):
    """Anything that can tell whether it holds an address."""

    def match(self, addr: AddressLike) -> bool:
        ...


class _Prefix(NamedTuple):
    start: int
    bits: int

    def contains(self, addr: int) -> bool:
        shift = _ADDR_BITS - self.bits
        return (addr >> shift) == (self.start >> shift)


def _addr_to_int(addr: AddressLike) -> int:
    ip = addr if isinstance(addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)) else ipaddress.ip_address(addr)
    if ip.version == 4:
        return int(ip) | _V4_MAPPED
    return int(ip)


def _to_prefix(net: NetworkLike) -> _Prefix:
    n = ipaddress.ip_network(net, strict=False)
    start = int(n.network_address)
    bits = n.prefixlen
    if n.version == 4:
        start |= _V4_MAPPED
        bits += 96
    return _Prefix(start, bits)


class NetList:
    """A list of IP prefixes, suitable for large static CIDR lookups."""

    def __init__(self) -> None:
        self._entries: List[_Prefix] = []
        self._starts: List[int] = []
        self._sorted = False

    def append(self, *args: NetworkLike) -> None:
        """Add prefixes. Host bits are masked off. The list becomes unsorted."""
        self._entries.extend(_to_prefix(n) for n in args)
        self._sorted = False

    def sort(self) -> None:
        """Sort the list and merge prefixes covered by others."""
        if self._sorted:
            return
        self._entries.sort()
        out: List[_Prefix] = []
        for n in self._entries:
            if not out:
                out.append(n)
                continue
            last = out[-1]
            if n.start == last.start:
                if n.bits < last.bits:
                    out[-1] = n
            elif not last.contains(n.start):
                out.append(n)
        self._entries = out
        self._starts = [p.start for p in out]
        self._sorted = True

    def __len__(self) -> int:
        return len(self._entries)

    def match(self, addr: AddressLike) -> bool:
        return self.contains(addr)

    def contains(self, addr: AddressLike) -> bool:
        """Report whether addr falls into one of the prefixes.

        Raises RuntimeError if the list has not been sorted.
        """
        if not self._sorted:
            raise RuntimeError("list is not sorted")
        a = _addr_to_int(addr)
        i = bisect.bisect_right(self._starts, a)
        if i == 0:
            return False
        return self._entries[i - 1].contains(a)


def load_from_text(net_list: NetList, s: str) -> None:
    """Add one address or CIDR prefix. Raises ValueError if s is invalid."""
    if "/" in s:
        net_list.append(ipaddress.ip_network(s, strict=False))
        return
    net_list.append(ipaddress.ip_address(s))


def load_from_reader(net_list: NetList, reader: Iterable[str]) -> None:
    """Load one entry per line; text after '#' or the first space is ignored."""
    for line_no, line in enumerate(reader, 1):
        s = line.strip()
        s = s.split("#", 1)[0]
        s = s.split(" ", 1)[0]
        if not s:
            continue
        try:
            load_from_text(net_list, s)
        except ValueError as exc:
            raise ValueError(f"invalid data at line #{line_no}: {exc}") from exc