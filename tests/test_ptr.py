import ipaddress

import pytest

from mosdns.ptr import NotPTRDomainError, parse_ptr_qname, reverse4, reverse6

V6_LABELS = "b.a.9.8.7.6.5.0.0.0.0.0.0.0.0.0.0.0.0.0.0.0.0.0.8.b.d.0.1.0.0.2"


@pytest.mark.parametrize(
    "s, want",
    [
        ("4.4.8.8", "8.8.4.4"),
        ("prefix.4.4.8.8", "8.8.4.4"),
    ],
)
def test_reverse4(s, want):
    assert reverse4(s) == ipaddress.ip_address(want)


@pytest.mark.parametrize("s", ["123114123", "12..311..4123..", "...", "4.8.8"])
def test_reverse4_errors(s):
    with pytest.raises(ValueError):
        reverse4(s)


@pytest.mark.parametrize(
    "s, want",
    [
        (V6_LABELS, "2001:db8::567:89ab"),
        ("prefix." + V6_LABELS, "2001:db8::567:89ab"),
    ],
)
def test_reverse6(s, want):
    assert reverse6(s) == ipaddress.ip_address(want)


@pytest.mark.parametrize(
    "s", ["123114123", "..123...", "0.0.0.0.0.0.8.b.d.0.1.0.0.2"]
)
def test_reverse6_errors(s):
    with pytest.raises(ValueError):
        reverse6(s)


def test_parse_ptr_qname_v4():
    assert parse_ptr_qname("4.4.8.8.in-addr.arpa.") == ipaddress.ip_address("8.8.4.4")


def test_parse_ptr_qname_v6():
    got = parse_ptr_qname(V6_LABELS + ".ip6.arpa.")
    assert got == ipaddress.ip_address("2001:db8::567:89ab")


def test_parse_ptr_qname_uppercase_hex():
    got = parse_ptr_qname(V6_LABELS.upper() + ".ip6.arpa.")
    assert got == ipaddress.ip_address("2001:db8::567:89ab")


def test_parse_ptr_qname_not_ptr():
    with pytest.raises(NotPTRDomainError):
        parse_ptr_qname("example.com.")


def test_not_ptr_error_is_value_error():
    with pytest.raises(ValueError):
        parse_ptr_qname("in-addr.arpa")