import dns.edns
import dns.message
import pytest

from mosdns.edns0 import (
    add_ecs,
    get_edns0_option,
    get_msg_ecs,
    new_edns0_subnet,
    pad_to_minimum,
    remove_edns0,
    remove_edns0_option,
    remove_msg_ecs,
    upgrade_edns0,
)

PADDING = dns.edns.OptionType.PADDING


def _query():
    return dns.message.make_query(".", "A")


def _query_edns0():
    q = _query()
    upgrade_edns0(q)
    return q


def _query_padded():
    q = _query()
    q.use_edns(0, 0, 512, options=[dns.edns.GenericOption(PADDING, bytes(16))])
    return q


def _query_large():
    return dns.message.make_query("a." * 100, "A")


@pytest.mark.parametrize(
    "make, min_len, want_len, want_upgraded, want_new_padding",
    [
        (_query, 128, 128, True, True),
        (_query_large, 128, None, False, False),
        (_query_edns0, 128, 128, False, True),
        (_query_padded, 128, 128, False, False),
    ],
)
def test_pad_to_minimum(make, min_len, want_len, want_upgraded, want_new_padding):
    q = make()
    if want_len is None:
        want_len = len(q.to_wire())
    upgraded, new_padding = pad_to_minimum(q, min_len)
    assert upgraded == want_upgraded
    assert new_padding == want_new_padding
    assert len(q.to_wire()) == want_len


def test_padded_message_survives_wire_round_trip():
    q = _query()
    pad_to_minimum(q, 128)
    parsed = dns.message.from_wire(q.to_wire())
    assert len(parsed.to_wire()) == 128
    assert get_edns0_option(parsed, PADDING) is not None


def test_upgrade_edns0_sets_payload_and_version():
    q = _query()
    upgrade_edns0(q)
    assert q.edns == 0
    assert q.payload == 512
    assert list(q.options) == []


def test_upgrade_edns0_twice_raises():
    q = _query_edns0()
    with pytest.raises(ValueError):
        upgrade_edns0(q)


def test_remove_edns0():
    q = _query_edns0()
    remove_edns0(q)
    assert q.edns == -1
    remove_edns0(q)
    assert q.edns == -1


def test_get_and_remove_option():
    q = _query_padded()
    assert get_edns0_option(q, PADDING).otype == PADDING
    remove_edns0_option(q, PADDING)
    assert get_edns0_option(q, PADDING) is None
    assert q.edns == 0


def test_get_option_without_edns_is_none():
    assert get_edns0_option(_query(), PADDING) is None


def test_new_edns0_subnet_v4_and_v6():
    v4 = new_edns0_subnet("1.2.3.4", 24)
    assert v4.family == 1
    assert v4.srclen == 24
    assert v4.scopelen == 0
    v6 = new_edns0_subnet("2001:db8::1", 48)
    assert v6.family == 2
    assert v6.srclen == 48


def test_add_get_remove_ecs():
    q = _query_edns0()
    ecs = new_edns0_subnet("1.2.3.4", 24)
    assert add_ecs(q, ecs, False) is True
    assert get_msg_ecs(q).srclen == 24

    other = new_edns0_subnet("5.6.7.8", 16)
    assert add_ecs(q, other, False) is False
    assert get_msg_ecs(q).srclen == 24

    assert add_ecs(q, other, True) is False
    assert get_msg_ecs(q).srclen == 16

    remove_msg_ecs(q)
    assert get_msg_ecs(q) is None


def test_ecs_round_trip_on_wire():
    q = _query_edns0()
    add_ecs(q, new_edns0_subnet("10.0.0.0", 8), False)
    parsed = dns.message.from_wire(q.to_wire())
    ecs = get_msg_ecs(parsed)
    assert ecs.srclen == 8
    assert ecs.family == 1


def test_add_ecs_without_edns_raises():
    with pytest.raises(ValueError):
        add_ecs(_query(), new_edns0_subnet("1.2.3.4", 24), False)


def test_ecs_helpers_without_edns():
    q = _query()
    assert get_msg_ecs(q) is None
    remove_msg_ecs(q)
    assert q.edns == -1