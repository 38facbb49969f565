"""The per-query context passed through plugins."""

from __future__ import annotations

import copy
import ipaddress
import itertools
import threading
import time
from typing import Any, Dict, Optional, Set, Union

import dns.message

_UINT32_MASK = 0xFFFFFFFF

_key_lock = threading.Lock()
_key_ids = itertools.count(1)

_uid_lock = threading.Lock()
_context_uids = itertools.count(1)

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def reg_key() -> int:
    """Return a new unique key for Context.store_value and Context.get_value."""
    with _key_lock:
        i = next(_key_ids)
    if i > _UINT32_MASK:
        raise OverflowError("key id overflowed")
    return i


def _next_uid() -> int:
    with _uid_lock:
        return next(_context_uids) & _UINT32_MASK


class Context:
    """A query, its response and values attached by plugins.

    Not safe for concurrent use.
    """

    def __init__(self, q: dns.message.Message) -> None:
        if q is None:
            raise ValueError("query msg is None")
        self.q = q
        self.r: Optional[dns.message.Message] = None
        self.id = _next_uid()
        self.start_time = time.time()
        self._kv: Dict[int, Any] = {}
        self._marks: Set[int] = set()

    def copy(self) -> "Context":
        """Copy this context. Messages are deep-copied; stored values are not."""
        new = Context.__new__(Context)
        new.q = copy.deepcopy(self.q)
        new.r = copy.deepcopy(self.r) if self.r is not None else None
        new.id = self.id
        new.start_time = self.start_time
        new._kv = dict(self._kv)
        new._marks = set(self._marks)
        return new

    def store_value(self, k: int, v: Any) -> None:
        self._kv[k] = v

    def get_value(self, k: int) -> Any:
        """Return the value stored under k. Raises KeyError if absent."""
        return self._kv[k]

    def delete_value(self, k: int) -> None:
        self._kv.pop(k, None)

    def set_mark(self, m: int) -> None:
        self._marks.add(m)

    def has_mark(self, m: int) -> bool:
        return m in self._marks

    def delete_mark(self, m: int) -> None:
        self._marks.discard(m)

    def summary(self) -> Dict[str, Any]:
        """A brief description of this context, for logging."""
        out: Dict[str, Any] = {"uqid": self.id}
        addr = get_client_addr(self)
        if addr is not None:
            out["client"] = str(addr)
        if len(self.q.question) != 1:
            out["odd_question"] = True
        else:
            question = self.q.question[0]
            out["qname"] = question.name.to_text()
            out["qtype"] = int(question.rdtype)
            out["qclass"] = int(question.rdclass)
        if self.r is not None:
            out["rcode"] = int(self.r.rcode())
        out["elapsed"] = time.time() - self.start_time
        return out


_CLIENT_ADDR_KEY = reg_key()


def set_client_addr(ctx: Context, addr: Optional[Union[str, Address]]) -> None:
    """Record the client address of the query."""
    if addr is not None and not isinstance(addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        addr = ipaddress.ip_address(addr)
    ctx.store_value(_CLIENT_ADDR_KEY, addr)


def get_client_addr(ctx: Context) -> Optional[Address]:
    """Return the client address of the query, or None if unknown."""
    try:
        return ctx.get_value(_CLIENT_ADDR_KEY)
    except KeyError:
        return None