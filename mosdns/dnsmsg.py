"""TTL manipulation and small builders for DNS messages."""

from __future__ import annotations

from typing import Iterator, Union

import dns.message
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.rrset

FAKE_SOA_TTL = 300
_FAKE_SOA_RDATA = (
    "fake-ns.mosdns.fake.root. fake-mbox.mosdns.fake.root. "
    "2021110400 1800 900 604800 86400"
)


def _rrsets(m: dns.message.Message) -> Iterator[dns.rrset.RRset]:
    """Yield every record set of m except OPT, whose TTL field is not a TTL."""
    for section in (m.answer, m.authority, m.additional):
        for rrset in section:
            if rrset.rdtype != dns.rdatatype.OPT:
                yield rrset


def get_minimal_ttl(m: dns.message.Message) -> int:
    """Return the smallest TTL in m, or 0 if m holds no record."""
    return min((rrset.ttl for rrset in _rrsets(m)), default=0)


def set_ttl(m: dns.message.Message, ttl: int) -> None:
    """Set the TTL of every record in m."""
    for rrset in _rrsets(m):
        rrset.ttl = ttl


def apply_maximum_ttl(m: dns.message.Message, ttl: int) -> None:
    """Lower every TTL above ttl to ttl."""
    for rrset in _rrsets(m):
        if rrset.ttl > ttl:
            rrset.ttl = ttl


def apply_minimal_ttl(m: dns.message.Message, ttl: int) -> None:
    """Raise every TTL below ttl to ttl."""
    for rrset in _rrsets(m):
        if rrset.ttl < ttl:
            rrset.ttl = ttl


def subtract_ttl(m: dns.message.Message, delta: int) -> bool:
    """Subtract delta from every TTL in m.

    A TTL not greater than delta becomes 1; returns True if that happened.
    """
    overflowed = False
    for rrset in _rrsets(m):
        if rrset.ttl > delta:
            rrset.ttl = rrset.ttl - delta
        else:
            rrset.ttl = 1
            overflowed = True
    return overflowed


def qclass_to_string(u: int) -> str:
    """Return the mnemonic of a class, or its number if it has none."""
    text = dns.rdataclass.to_text(u)
    return str(u) if text == f"CLASS{u}" else text


def qtype_to_string(u: int) -> str:
    """Return the mnemonic of a type, or its number if it has none."""
    text = dns.rdatatype.to_text(u)
    return str(u) if text == f"TYPE{u}" else text


def gen_empty_reply(q: dns.message.Message, rcode: int) -> dns.message.Message:
    """Build a reply to q with this rcode, no answer and a fake SOA record."""
    r = dns.message.make_response(q)
    r.use_edns(False)
    r.question = list(r.question[:1])
    r.set_rcode(rcode)
    name = q.question[0].name if len(q.question) > 1 else dns.name.root
    r.authority = [fake_soa(name)]
    return r


def fake_soa(name: Union[str, dns.name.Name]) -> dns.rrset.RRset:
    """Return a placeholder SOA record set for name."""
    return dns.rrset.from_text(name, FAKE_SOA_TTL, "IN", "SOA", _FAKE_SOA_RDATA)