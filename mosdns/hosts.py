"""A hosts table: answers A and AAAA queries from a domain matcher."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import dns.message
import dns.rdataclass
import dns.rdatatype
import dns.rrset

from mosdns.dnsmsg import fake_soa
from mosdns.domain_matcher import Matcher

HOSTS_TTL = 10


@dataclass
class IPs:
    """The addresses of one host entry."""

    ipv4: List[ipaddress.IPv4Address] = field(default_factory=list)
    ipv6: List[ipaddress.IPv6Address] = field(default_factory=list)


def parse_ips(s: str) -> Tuple[str, IPs]:
    """Parse "pattern ip [ip...]" into the pattern and its addresses."""
    fields = s.split()
    if not fields:
        raise ValueError("empty string")
    v = IPs()
    for ip_str in fields[1:]:
        try:
            ip = ipaddress.ip_address(ip_str)
        except ValueError as exc:
            raise ValueError(f"invalid ip addr {ip_str}, {exc}") from exc
        if ip.version == 4:
            v.ipv4.append(ip)
        else:
            v.ipv6.append(ip)
    return fields[0], v


class Hosts:
    """Looks up host addresses in a matcher whose values are IPs."""

    def __init__(self, matcher: Matcher[IPs]) -> None:
        self._matcher = matcher

    def lookup(self, fqdn: str) -> Tuple[List[ipaddress.IPv4Address], List[ipaddress.IPv6Address]]:
        """Return (ipv4, ipv6) for fqdn; both empty if the host is unknown."""
        try:
            ips = self._matcher.match(fqdn)
        except KeyError:
            return [], []
        return list(ips.ipv4), list(ips.ipv6)

    def lookup_msg(self, m: dns.message.Message) -> Optional[dns.message.Message]:
        """Build a reply to an A/AAAA query, or None if the hosts cannot answer.

        A known host without addresses of the queried type gets an empty
        reply with a fake SOA record.
        """
        if len(m.question) != 1:
            return None
        q = m.question[0]
        typ = q.rdtype
        if q.rdclass != dns.rdataclass.IN or typ not in (dns.rdatatype.A, dns.rdatatype.AAAA):
            return None

        ipv4, ipv6 = self.lookup(q.name.to_text())
        if not ipv4 and not ipv6:
            return None

        r = dns.message.make_response(m)
        r.use_edns(False)
        if typ == dns.rdatatype.A and ipv4:
            r.answer.append(
                dns.rrset.from_text_list(q.name, HOSTS_TTL, "IN", "A", [str(ip) for ip in ipv4])
            )
        elif typ == dns.rdatatype.AAAA and ipv6:
            r.answer.append(
                dns.rrset.from_text_list(q.name, HOSTS_TTL, "IN", "AAAA", [str(ip) for ip in ipv6])
            )

        if not r.answer:
            r.authority = [fake_soa(q.name)]
        return r