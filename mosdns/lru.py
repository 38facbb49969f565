"""A size-bounded least-recently-used map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from mosdns.linked_list import Elem, LinkedList

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _Entry(Generic[K, V]):
    key: K
    v: V


class LRU(Generic[K, V]):
    """An LRU map. Not safe for concurrent use.

    on_evict, if given, is called with (key, value) whenever an entry is
    evicted because of overflow or removed by delete or clean.
    """

    def __init__(self, max_size: int, on_evict: Optional[Callable[[K, V], Any]] = None) -> None:
        if max_size <= 0:
            raise ValueError(f"LRU: invalid max size: {max_size}")
        self._max_size = max_size
        self._on_evict = on_evict
        self._list: LinkedList[_Entry[K, V]] = LinkedList()
        self._map: Dict[K, Elem[_Entry[K, V]]] = {}

    def add(self, key: K, v: V) -> None:
        e = self._map.get(key)
        if e is not None:
            e.value.v = v
            self._list.push_back(self._list.pop_elem(e))
            return

        for _ in range(len(self) - self._max_size + 1):
            old_key, old_v = self.pop_oldest()
            if self._on_evict is not None:
                self._on_evict(old_key, old_v)

        e = Elem(_Entry(key, v))
        self._map[key] = e
        self._list.push_back(e)

    def delete(self, key: K) -> None:
        e = self._map.get(key)
        if e is not None:
            self._del_elem(e)

    def _del_elem(self, e: Elem[_Entry[K, V]]) -> None:
        key, v = e.value.key, e.value.v
        self._list.pop_elem(e)
        del self._map[key]
        if self._on_evict is not None:
            self._on_evict(key, v)

    def pop_oldest(self) -> Tuple[K, V]:
        """Remove and return the oldest (key, value). Raises KeyError if empty."""
        e = self._list.front
        if e is None:
            raise KeyError("pop_oldest(): LRU is empty")
        self._list.pop_elem(e)
        del self._map[e.value.key]
        return e.value.key, e.value.v

    def clean(self, f: Callable[[K, V], bool]) -> int:
        """Remove every entry for which f(key, value) is true; return the count."""
        removed = 0
        for e in self._list:
            if f(e.value.key, e.value.v):
                self._del_elem(e)
                removed += 1
        return removed

    def flush(self) -> None:
        self._list = LinkedList()
        self._map = {}

    def get(self, key: K) -> V:
        """Return the value of key and mark it recently used. Raises KeyError."""
        e = self._map[key]
        self._list.push_back(self._list.pop_elem(e))
        return e.value.v

    def __len__(self) -> int:
        return len(self._list)