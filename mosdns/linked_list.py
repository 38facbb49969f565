"""A doubly linked list whose elements can be moved between positions in O(1)."""

from __future__ import annotations

from typing import Generic, Iterator, List, Optional, TypeVar

V = TypeVar("V")


class Elem(Generic[V]):
    """A list element holding a value and its links."""

    __slots__ = ("value", "_prev", "_next", "_list")

    def __init__(self, value: V) -> None:
        self.value = value
        self._prev: Optional[Elem[V]] = None
        self._next: Optional[Elem[V]] = None
        self._list: Optional[LinkedList[V]] = None

    @property
    def prev(self) -> Optional["Elem[V]"]:
        return self._prev

    @property
    def next(self) -> Optional["Elem[V]"]:
        return self._next

    def _is_free(self) -> bool:
        return self._prev is None and self._next is None and self._list is None

    def __repr__(self) -> str:
        return f"Elem({self.value!r})"


class LinkedList(Generic[V]):
    """A doubly linked list of Elem objects."""

    def __init__(self) -> None:
        self._front: Optional[Elem[V]] = None
        self._back: Optional[Elem[V]] = None
        self._length = 0

    @property
    def front(self) -> Optional[Elem[V]]:
        return self._front

    @property
    def back(self) -> Optional[Elem[V]]:
        return self._back

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Elem[V]]:
        e = self._front
        while e is not None:
            nxt = e._next
            yield e
            e = nxt

    def values(self) -> List[V]:
        """Return all values from front to back."""
        return [e.value for e in self]

    @staticmethod
    def _must_be_free(e: Elem[V]) -> None:
        if not e._is_free():
            raise ValueError("element is in use")

    def push_front(self, e: Elem[V]) -> Elem[V]:
        self._must_be_free(e)
        self._length += 1
        e._list = self
        if self._front is None:
            self._front = e
            self._back = e
        else:
            e._next = self._front
            self._front._prev = e
            self._front = e
        return e

    def push_back(self, e: Elem[V]) -> Elem[V]:
        self._must_be_free(e)
        self._length += 1
        e._list = self
        if self._back is None:
            self._front = e
            self._back = e
        else:
            e._prev = self._back
            self._back._next = e
            self._back = e
        return e

    def pop_elem(self, e: Elem[V]) -> Elem[V]:
        """Unlink e from this list and return it."""
        if e._list is not self:
            raise ValueError("element does not belong to this list")
        self._length -= 1
        if e._prev is not None:
            e._prev._next = e._next
        if e._next is not None:
            e._next._prev = e._prev
        if e is self._front:
            self._front = e._next
        if e is self._back:
            self._back = e._prev
        e._prev = e._next = None
        e._list = None
        return e