# mosdns

Building blocks for a DNS forwarder, built on `dnspython`: domain and IP
matchers, a hosts table that answers A/AAAA queries, LRU maps, EDNS0 and TTL
helpers for DNS messages, a per-query context, coordinated shutdown of worker
threads, logger construction and a configuration file loader.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Modules

| Module | What it provides |
| --- | --- |
| `mosdns.domain_matcher` | `FullMatcher`, `SubDomainMatcher`, `KeywordMatcher`, `RegexMatcher`, `MixMatcher`, `load`, `load_from_text_reader`, `new_domain_mix_matcher`, `normalize_domain`, `ReverseDomainScanner` |
| `mosdns.netlist` | `NetList`, a sorted CIDR list; `load_from_reader`, `load_from_text` |
| `mosdns.hosts` | `Hosts` answering A/AAAA queries from a matcher; `IPs`, `parse_ips` |
| `mosdns.lru` | `LRU`, a size-bounded least-recently-used map |
| `mosdns.concurrent_lru` | `ConcurrentLRU` (locked) and `ShardedLRU` (sharded by key hash) |
| `mosdns.linked_list` | `LinkedList` and `Elem`, a doubly linked list |
| `mosdns.edns0` | `upgrade_edns0`, `remove_edns0`, option lookup and removal, client subnet (`new_edns0_subnet`, `add_ecs`, `get_msg_ecs`, `remove_msg_ecs`), `pad_to_minimum` |
| `mosdns.dnsmsg` | `get_minimal_ttl`, `set_ttl`, `apply_maximum_ttl`, `apply_minimal_ttl`, `subtract_ttl`, `qtype_to_string`, `qclass_to_string`, `gen_empty_reply`, `fake_soa` |
| `mosdns.ptr` | `parse_ptr_qname` for `in-addr.arpa.` and `ip6.arpa.` names |
| `mosdns.query_context` | `Context` carried through query handling; `reg_key`, `set_client_addr`, `get_client_addr` |
| `mosdns.safe_close` | `SafeClose`, shutdown that waits for attached worker threads |
| `mosdns.mlog` | `LogConfig`, `new_logger`, the process-wide `logger()`, `set_level`, `nop()` |
| `mosdns.config` | `Config`, `PluginConfig`, `APIConfig`, `load_config` |

## Domain matchers

All matchers are case-insensitive and ignore a trailing dot. `match` returns
the value stored with the matching rule and raises `KeyError` when nothing
matches.

- `FullMatcher` matches a name exactly.
- `SubDomainMatcher` matches a name and all its sub-domains; the deepest rule wins.
- `KeywordMatcher` matches names that contain the keyword.
- `RegexMatcher` searches the lower-case, dot-trimmed name with a regular
  expression; an invalid expression raises `ValueError`.
- `MixMatcher` takes rules of the form `type:pattern` (`full`, `domain`,
  `regexp`, `keyword`). Rules without a type use the type given to
  `set_default_matcher`, or raise `NoDefaultMatcherError`. Lookups try full,
  domain, regexp and keyword rules in that order.

`load_from_text_reader` reads one rule per line from any iterable of strings,
skipping blank lines and text after `#`. Without a parse function each line
must be a bare pattern.

## A hosts table

```python
import io

import dns.message

from mosdns.domain_matcher import MixMatcher, load_from_text_reader
from mosdns.hosts import Hosts, parse_ips

table = """
dns.google 8.8.8.8 8.8.4.4 2001:4860:4860::8888
regexp:^internal 10.0.0.1   # patterns may carry a matcher type
"""

matcher = MixMatcher()
matcher.set_default_matcher("domain")
load_from_text_reader(matcher, io.StringIO(table), parse_ips)

hosts = Hosts(matcher)
ipv4, ipv6 = hosts.lookup("dns.google.")

reply = hosts.lookup_msg(dns.message.make_query("dns.google.", "A"))
```

`lookup` returns two empty lists for an unknown name. `lookup_msg` returns
`None` for anything but a single IN-class A or AAAA question, or for an unknown
name; answers carry a TTL of 10. A known name with no address of the queried
type gets an empty reply with a placeholder SOA record.

## An IP list

```python
import io

from mosdns.netlist import NetList, load_from_reader

nets = NetList()
load_from_reader(nets, io.StringIO("192.168.0.0/16\n2001:db8::/32\n"))
nets.sort()                     # required before lookups
nets.contains("192.168.1.1")    # True
```

Text after `#` or after the first space on a line is ignored. `sort` merges
networks covered by others; calling `contains` on an unsorted list raises
`RuntimeError`.

## DNS message helpers

```python
import dns.message

from mosdns.dnsmsg import apply_maximum_ttl, get_minimal_ttl
from mosdns.edns0 import pad_to_minimum
from mosdns.ptr import parse_ptr_qname

q = dns.message.make_query("example.com.", "A", use_edns=False)
upgraded, new_padding = pad_to_minimum(q, 128)   # (True, True): OPT and padding added

parse_ptr_qname("4.4.8.8.in-addr.arpa.")         # IPv4Address('8.8.4.4')
```

TTL helpers skip OPT records. `get_minimal_ttl` returns 0 for a message with no
records; `subtract_ttl` sets TTLs not above the delta to 1 and returns `True`
when that happened. `parse_ptr_qname` raises `NotPTRDomainError` for names
without a reverse suffix and `ValueError` for malformed labels.

## Caches

`LRU(max_size, on_evict=None)` evicts the oldest entry on overflow and calls
`on_evict(key, value)` for evicted, deleted and cleaned entries. `get` marks
an entry as recently used and raises `KeyError` if it is missing; `pop_oldest`
raises `KeyError` on an empty map. `ConcurrentLRU` adds a lock;
`ShardedLRU(shard_num, max_size_per_shard)` spreads keys over several locked
shards.

## Query context and shutdown

`Context(q)` holds a query, its response `r`, a running id and start time,
values stored under keys from `reg_key()`, and integer marks. `copy` deep-copies
the messages but not stored values. `summary()` returns a dict for logging.

`SafeClose.attach(f)` runs `f(done, close_signal)` in a thread; `f` must call
`done` when finished. `send_close_signal(err)` sets the signal (only the first
call counts) and `wait_closed()` blocks until every attached worker is done,
re-raising `err` if one was given.

## Configuration files

`load_config(path)` reads a `.yaml`, `.yml` or `.json` file; with an empty
path it looks for `config.json`, `config.yaml` or `config.yml` in the current
directory. It returns `(Config, path_used)`.

```yaml
log:
  level: info          # debug, info, warn, error, dpanic, panic, fatal
  file: ""             # empty writes to stderr
  production: false    # true writes JSON lines

include:
  - extra.yaml

plugins:
  - tag: my_hosts
    type: hosts
    args: {}

api:
  http: "127.0.0.1:8080"
```

Keys are matched case-insensitively and scalar values are converted loosely
(for example `"true"` to a boolean); unknown keys raise `ValueError`.
`mlog.new_logger(config.log)` builds a logger from the `log` section.

## What this package does not do

It is a library only. It has no command-line program and no server: it does
not listen for or forward DNS queries, does not serve an HTTP API, and does not
register or start plugins. `load_config` parses the file into `Config`
objects, but the `include`, `plugins` and `api` sections are only read, not
acted on. There is no expiring-entry cache, no thread-safe general map and no
reading or writing of messages over TCP or UDP streams.