import pytest

from mosdns.linked_list import Elem, LinkedList


def check_link_pointers(lst):
    e = lst.front
    while e is not None:
        assert e.next is None or e.next.prev is e
        assert e.prev is None or e.prev.next is e
        e = e.next


def test_push_back():
    lst = LinkedList()
    lst.push_back(Elem(1))
    lst.push_back(Elem(2))
    assert lst.values() == [1, 2]
    assert len(lst) == 2
    check_link_pointers(lst)


def test_push_front():
    lst = LinkedList()
    lst.push_front(Elem(1))
    lst.push_front(Elem(2))
    assert lst.values() == [2, 1]
    assert lst.front.value == 2
    assert lst.back.value == 1
    check_link_pointers(lst)


@pytest.mark.parametrize(
    "values, pop, want, want_list",
    [
        ([0, 1, 2], 0, 0, [1, 2]),
        ([0, 1, 2], 1, 1, [0, 2]),
        ([0, 1, 2], 2, 2, [0, 1]),
    ],
    ids=["pop front", "pop mid", "pop back"],
)
def test_pop_elem(values, pop, want, want_list):
    lst = LinkedList()
    elems = [Elem(v) for v in values]
    for e in elems:
        lst.push_back(e)
    check_link_pointers(lst)

    got = lst.pop_elem(elems[pop])
    check_link_pointers(lst)

    assert got.value == want
    assert lst.values() == want_list
    assert len(lst) == len(want_list)
    assert got.prev is None and got.next is None


def test_pop_only_elem_empties_list():
    lst = LinkedList()
    e = lst.push_back(Elem("x"))
    lst.pop_elem(e)
    assert lst.front is None
    assert lst.back is None
    assert len(lst) == 0


def test_push_in_use_elem_raises():
    lst = LinkedList()
    e = lst.push_back(Elem(1))
    with pytest.raises(ValueError):
        lst.push_back(e)
    with pytest.raises(ValueError):
        LinkedList().push_front(e)


def test_pop_foreign_elem_raises():
    a = LinkedList()
    b = LinkedList()
    e = a.push_back(Elem(1))
    with pytest.raises(ValueError):
        b.pop_elem(e)


def test_popped_elem_can_be_reused():
    lst = LinkedList()
    e = lst.push_back(Elem(1))
    lst.push_back(Elem(2))
    lst.push_back(lst.pop_elem(e))
    assert lst.values() == [2, 1]
    check_link_pointers(lst)


def test_iter_allows_removal():
    lst = LinkedList()
    for v in range(5):
        lst.push_back(Elem(v))
    for e in lst:
        if e.value % 2 == 0:
            lst.pop_elem(e)
    assert lst.values() == [1, 3]