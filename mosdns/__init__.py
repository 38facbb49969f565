"""DNS forwarder building blocks: domain and IP matchers, hosts tables, LRU maps, EDNS0 and TTL helpers, query contexts, shutdown coordination, logging and config loading."""

__version__ = "0.1.0"