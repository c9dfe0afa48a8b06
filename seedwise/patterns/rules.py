"""
Declarative pattern rule records.

Rules are plain frozen data: the analyzer in ``seedwise.analyzers`` walks a
context and scores each rule, but nothing here knows how a schema is read.
New domains or frameworks are added by writing more rules, not more code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional


def name_matches(name: str, pattern: str, exact: bool = False) -> bool:
    """
    Case-insensitive name test.

    Non-exact patterns are searched as regular expressions, so a plain word
    behaves like a substring test and ``organization.*member`` spans words.
    """
    if exact:
        return name.lower() == pattern.lower()
    return re.search(pattern, name, re.IGNORECASE) is not None


@dataclass(frozen=True)
class Matcher:
    """
    Name predicate over one kind of schema fact.

    Attributes:
        patterns: Names or regular expressions to look for
        factor: Contribution per matched item (or for a full ratio)
        min_count: Rule fails unless at least this many items match
        max_count: Rule fails if more than this many items match. Such
            matchers only constrain and never count toward minimum_matches.
        label: Short name used in reasoning and supporting data
        exact: Compare names for equality instead of searching
        scope: For column matchers, only look at tables whose names contain
            one of these fragments
        ratio: Contribute ``factor * min(1, matched / len(patterns))``
            instead of ``factor * matched``
    """

    patterns: tuple[str, ...]
    factor: float = 0.0
    min_count: Optional[int] = None
    max_count: Optional[int] = None
    label: str = ""
    exact: bool = False
    scope: tuple[str, ...] = ()
    ratio: bool = False

    @property
    def counts_toward_total(self) -> bool:
        return self.max_count is None

    def matches(self, name: str) -> bool:
        return any(name_matches(name, pattern, self.exact) for pattern in self.patterns)

    def in_scope(self, table: str) -> bool:
        return not self.scope or any(fragment in table.lower() for fragment in self.scope)

    def contribution(self, count: int) -> float:
        if self.ratio:
            return self.factor * min(1.0, count / max(len(self.patterns), 1))
        return self.factor * count

    def within_bounds(self, count: int) -> bool:
        if self.min_count is not None and count < self.min_count:
            return False
        if self.max_count is not None and count > self.max_count:
            return False
        return True


@dataclass(frozen=True)
class RelationshipMatcher:
    """
    Predicate over foreign key edges.

    An edge matches when its source table matches ``from_patterns``, its
    target table matches ``to_patterns`` and its column is one of
    ``column_patterns``. Empty pattern lists match anything. A bidirectional
    matcher also accepts the edge read in reverse.
    """

    from_patterns: tuple[str, ...] = ()
    to_patterns: tuple[str, ...] = ()
    column_patterns: tuple[str, ...] = ()
    bidirectional: bool = False
    factor: float = 0.0
    min_count: Optional[int] = None
    max_count: Optional[int] = None
    label: str = ""

    @property
    def counts_toward_total(self) -> bool:
        return self.max_count is None

    def _side(self, table: str, patterns: tuple[str, ...]) -> bool:
        return not patterns or any(name_matches(table, p) for p in patterns)

    def matches(self, from_table: str, from_column: str, to_table: str) -> bool:
        if self.column_patterns and from_column.lower() not in self.column_patterns:
            return False
        forward = self._side(from_table, self.from_patterns) and self._side(
            to_table, self.to_patterns
        )
        if forward or not self.bidirectional:
            return forward
        return self._side(to_table, self.from_patterns) and self._side(
            from_table, self.to_patterns
        )

    def contribution(self, count: int) -> float:
        return self.factor * count

    def within_bounds(self, count: int) -> bool:
        if self.min_count is not None and count < self.min_count:
            return False
        if self.max_count is not None and count > self.max_count:
            return False
        return True


@dataclass(frozen=True)
class PatternRule:
    """
    A structural signature and the classes it points to.

    ``scoring`` selects how match counts become a confidence:

    - ``linear``: ``base + sum(matcher contributions)``, clamped
    - ``ratio``: per-kind match ratios weighted by the caller (domain rules)
    - ``presence``: 1.0 when the rule matches at all (framework features)
    - any other value names a scorer registered in ``seedwise.analyzers``

    ``params`` carries scorer-specific constants as (name, value) pairs so the
    rule stays hashable.
    """

    id: str
    name: str
    indicated_classes: tuple[str, ...]
    confidence_weight: float
    table_matchers: tuple[Matcher, ...] = ()
    column_matchers: tuple[Matcher, ...] = ()
    constraint_matchers: tuple[Matcher, ...] = ()
    relationship_matchers: tuple[RelationshipMatcher, ...] = ()
    function_matchers: tuple[Matcher, ...] = ()
    minimum_matches: int = 1
    exclusive: bool = False
    priority: int = 1
    scoring: str = "linear"
    base: float = 0.0
    floor: float = 0.0
    description: str = ""
    params: tuple[tuple[str, Any], ...] = field(default=())

    def param(self, name: str, default: Any = None) -> Any:
        for key, value in self.params:
            if key == name:
                return value
        return default

    @property
    def indicated_class(self) -> str:
        return self.indicated_classes[0]
