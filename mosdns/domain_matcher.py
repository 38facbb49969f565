"""Domain name matchers: full, sub-domain, keyword, regexp and mixed.

All matchers are case-insensitive and treat "example.com" and
"example.com." alike. ``match`` returns the value stored for the matching
rule and raises KeyError when no rule matches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import (
    Callable,
    Dict,
    Generic,
    Iterable,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    Union,
)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

MATCHER_FULL = "full"
MATCHER_DOMAIN = "domain"
MATCHER_REGEXP = "regexp"
MATCHER_KEYWORD = "keyword"

_MISSING = object()

ParseStringFunc = Callable[[str], Tuple[str, T]]


class Matcher(Protocol[T_co]):
    """Anything that can look up a domain."""

    def match(self, s: str) -> T_co:
        """Return the value of the rule matching s; raise KeyError if none."""
        ...


class WriteableMatcher(Protocol[T]):
    """A matcher that rules can be added to."""

    def match(self, s: str) -> T:
        """Return the value of the rule matching s; raise KeyError if none."""
        ...

    def add(self, pattern: str, v: T) -> None:
        """Add a rule with its value."""
        ...


class NoDefaultMatcherError(ValueError):
    """A rule has no type prefix and no default matcher type is set."""

    def __init__(self) -> None:
        super().__init__("default matcher is not set")


def trim_dot(s: str) -> str:
    """Remove one trailing '.' from s."""
    return s[:-1] if s.endswith(".") else s


def normalize_domain(s: str) -> str:
    """Lower-case s and drop its trailing dot: "GOOGLE.com." -> "google.com"."""
    return trim_dot(s).lower()


class ReverseDomainScanner:
    """Walks the labels of a domain from right to left."""

    def __init__(self, s: str) -> None:
        self._s = trim_dot(s)
        self._p = len(self._s)
        self._t = len(self._s)

    def scan(self) -> bool:
        """Advance to the next label on the left; False when none is left."""
        if self._p <= 0:
            return False
        self._t = self._p
        self._p = self._s.rfind(".", 0, self._p)
        return True

    def next_label_offset(self) -> int:
        """Offset of the current label in the (dot-trimmed) domain."""
        return self._p + 1

    def next_label(self) -> str:
        """The current label."""
        return self._s[self._p + 1 : self._t]


class _LabelNode(Generic[T]):
    __slots__ = ("children", "value", "has_value")

    def __init__(self) -> None:
        self.children: Optional[Dict[str, _LabelNode[T]]] = None
        self.value: object = None
        self.has_value = False

    def child(self, label: str) -> Optional["_LabelNode[T]"]:
        return self.children.get(label) if self.children else None

    def new_child(self, label: str) -> "_LabelNode[T]":
        if self.children is None:
            self.children = {}
        node: _LabelNode[T] = _LabelNode()
        self.children[label] = node
        return node

    def count(self) -> int:
        total = 0
        stack = [self]
        while stack:
            node = stack.pop()
            for c in (node.children or {}).values():
                if c.has_value:
                    total += 1
                stack.append(c)
        return total


class SubDomainMatcher(Generic[T]):
    """Matches a domain and all of its sub-domains; the deepest rule wins."""

    def __init__(self) -> None:
        self._root: _LabelNode[T] = _LabelNode()

    def add(self, pattern: str, v: T) -> None:
        scanner = ReverseDomainScanner(normalize_domain(pattern))
        node = self._root
        while scanner.scan():
            label = scanner.next_label()
            node = node.child(label) or node.new_child(label)
        node.value = v
        node.has_value = True

    def match(self, s: str) -> T:
        scanner = ReverseDomainScanner(normalize_domain(s))
        node: Optional[_LabelNode[T]] = self._root
        result: object = _MISSING
        while scanner.scan():
            node = node.child(scanner.next_label())
            if node is None:
                break
            if node.has_value:
                result = node.value
        if result is _MISSING:
            raise KeyError(s)
        return result  # type: ignore[return-value]

    def __len__(self) -> int:
        return self._root.count()


class FullMatcher(Generic[T]):
    """Matches a domain exactly."""

    def __init__(self) -> None:
        self._m: Dict[str, T] = {}

    def add(self, pattern: str, v: T) -> None:
        self._m[normalize_domain(pattern)] = v

    def match(self, s: str) -> T:
        try:
            return self._m[normalize_domain(s)]
        except KeyError:
            raise KeyError(s) from None

    def __len__(self) -> int:
        return len(self._m)


class KeywordMatcher(Generic[T]):
    """Matches domains that contain a keyword."""

    def __init__(self) -> None:
        self._kws: Dict[str, T] = {}

    def add(self, pattern: str, v: T) -> None:
        self._kws[normalize_domain(pattern)] = v

    def match(self, s: str) -> T:
        s_norm = normalize_domain(s)
        for keyword, v in self._kws.items():
            if keyword in s_norm:
                return v
        raise KeyError(s)

    def __len__(self) -> int:
        return len(self._kws)


@dataclass
class _RegElem(Generic[T]):
    reg: "re.Pattern[str]"
    v: T


class RegexMatcher(Generic[T]):
    """Matches domains against regular expressions.

    Expressions are searched in the lower-case, dot-trimmed domain.
    """

    def __init__(self) -> None:
        self._regs: Dict[str, _RegElem[T]] = {}

    def add(self, pattern: str, v: T) -> None:
        existing = self._regs.get(pattern)
        if existing is not None:
            existing.v = v
            return
        try:
            reg = re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"invalid regexp {pattern!r}: {exc}") from exc
        self._regs[pattern] = _RegElem(reg, v)

    def match(self, s: str) -> T:
        s_norm = normalize_domain(s)
        for e in self._regs.values():
            if e.reg.search(s_norm):
                return e.v
        raise KeyError(s)

    def __len__(self) -> int:
        return len(self._regs)


SubMatcher = Union[FullMatcher[T], SubDomainMatcher[T], RegexMatcher[T], KeywordMatcher[T]]


class MixMatcher(Generic[T]):
    """Dispatches "type:pattern" rules to full, domain, regexp or keyword matchers.

    Lookups try full, domain, regexp and keyword rules in that order.
    """

    def __init__(self) -> None:
        self._default_matcher = ""
        self._full: FullMatcher[T] = FullMatcher()
        self._domain: SubDomainMatcher[T] = SubDomainMatcher()
        self._regex: RegexMatcher[T] = RegexMatcher()
        self._keyword: KeywordMatcher[T] = KeywordMatcher()

    def set_default_matcher(self, s: str) -> None:
        """Set the matcher type used for rules without a type prefix."""
        self._default_matcher = s

    def get_sub_matcher(self, typ: str) -> Optional[SubMatcher[T]]:
        """Return the sub-matcher of this type, or None if unknown."""
        return {
            MATCHER_FULL: self._full,
            MATCHER_DOMAIN: self._domain,
            MATCHER_REGEXP: self._regex,
            MATCHER_KEYWORD: self._keyword,
        }.get(typ)

    def add(self, pattern: str, v: T) -> None:
        typ, sep, rule = pattern.partition(":")
        if not sep:
            typ, rule = "", pattern
        if not typ:
            if not self._default_matcher:
                raise NoDefaultMatcherError()
            typ = self._default_matcher
        sub = self.get_sub_matcher(typ)
        if sub is None:
            raise ValueError(f"unsupported match type [{typ}]")
        sub.add(rule, v)

    def match(self, s: str) -> T:
        for sub in (self._full, self._domain, self._regex, self._keyword):
            try:
                return sub.match(s)
            except KeyError:
                continue
        raise KeyError(s)

    def __len__(self) -> int:
        return len(self._full) + len(self._domain) + len(self._regex) + len(self._keyword)


def _pattern_only(s: str) -> Tuple[str, None]:
    if any(c.isspace() for c in s):
        raise ValueError("rule string has more than one section")
    return s, None


def load(m: WriteableMatcher[T], s: str, parse_string: Optional[ParseStringFunc] = None) -> None:
    """Parse one rule string and add it to m.

    Without parse_string the string must be a bare pattern with no spaces.
    """
    parse = parse_string or _pattern_only
    pattern, v = parse(s)
    m.add(pattern, v)


def load_from_text_reader(
    m: WriteableMatcher[T],
    reader: Iterable[str],
    parse_string: Optional[ParseStringFunc] = None,
) -> None:
    """Load one rule per line, skipping blank lines and '#' comments."""
    for line_no, line in enumerate(reader, 1):
        s = line.split("#", 1)[0].strip()
        if not s:
            continue
        try:
            load(m, s, parse_string)
        except ValueError as exc:
            raise ValueError(f"line {line_no}: {exc}") from exc


def new_domain_mix_matcher() -> MixMatcher[None]:
    """Return a MixMatcher whose untyped rules are sub-domain rules."""
    m: MixMatcher[None] = MixMatcher()
    m.set_default_matcher(MATCHER_DOMAIN)
    return m