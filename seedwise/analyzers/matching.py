"""
Pattern analyzers.

Pure functions that evaluate PatternRules against a DetectionAnalysisContext.
Nothing here writes shared state, so analyzers for different questions can
run concurrently over the same context.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Optional, Union

from seedwise.core.models import DetectionAnalysisContext, MatchDetails, PatternAnalysisResult
from seedwise.core.scoring import balance, clamp
from seedwise.patterns.architecture import ARCHITECTURE_RULES
from seedwise.patterns.domain import (
    DOMAIN_CONFIDENCE_WEIGHTS,
    DOMAIN_RULES,
    EXCLUSIVE_BOOST,
    EXCLUSIVE_BOOST_THRESHOLD,
)
from seedwise.patterns.rules import Matcher, PatternRule, RelationshipMatcher

# Domain rule results at or below this confidence are treated as noise
DOMAIN_MATCH_FLOOR = 0.1

AnyMatcher = Union[Matcher, RelationshipMatcher]


@dataclass
class MatchCounts:
    """How many items each matcher of a rule found."""

    tables: list[tuple[Matcher, int]] = field(default_factory=list)
    columns: list[tuple[Matcher, int]] = field(default_factory=list)
    constraints: list[tuple[Matcher, int]] = field(default_factory=list)
    relationships: list[tuple[RelationshipMatcher, int]] = field(default_factory=list)
    functions: list[tuple[Matcher, int]] = field(default_factory=list)

    def pairs(self) -> list[tuple[AnyMatcher, int]]:
        return [
            *self.tables,
            *self.columns,
            *self.constraints,
            *self.relationships,
            *self.functions,
        ]

    def by_label(self, label: str) -> int:
        return sum(count for matcher, count in self.pairs() if matcher.label == label)

    @property
    def total(self) -> int:
        return sum(count for matcher, count in self.pairs() if matcher.counts_toward_total)

    def within_bounds(self) -> bool:
        return all(matcher.within_bounds(count) for matcher, count in self.pairs())


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def collect_matches(
    rule: PatternRule, context: DetectionAnalysisContext
) -> tuple[MatchCounts, MatchDetails]:
    """Run every matcher of a rule against the context."""
    counts = MatchCounts()
    details = MatchDetails()

    for matcher in rule.table_matchers:
        found = [name for name in context.table_names if matcher.matches(name)]
        counts.tables.append((matcher, len(found)))
        details.tables = _unique(details.tables + found)

    for matcher in rule.column_matchers:
        found = [
            (table, column)
            for table, column in context.iter_columns()
            if matcher.in_scope(table) and matcher.matches(column)
        ]
        counts.columns.append((matcher, len(_unique(column for _, column in found))))
        details.columns = _unique(details.columns + [f"{t}.{c}" for t, c in found])

    for matcher in rule.constraint_matchers:
        found = _unique(c.name for c in context.constraints if matcher.matches(c.name))
        counts.constraints.append((matcher, len(found)))
        details.constraints = _unique(details.constraints + found)

    for rel_matcher in rule.relationship_matchers:
        found = [
            r.label
            for r in context.relationships
            if rel_matcher.matches(r.from_table, r.from_column, r.to_table)
        ]
        counts.relationships.append((rel_matcher, len(found)))
        details.relationships = _unique(details.relationships + found)

    if rule.function_matchers:
        if rule.param("function_source") == "triggers":
            names = [trigger.name for trigger in context.triggers]
        else:
            names = context.business_logic_names()
        for matcher in rule.function_matchers:
            found = _unique(name for name in names if matcher.matches(name))
            counts.functions.append((matcher, len(found)))
            details.functions = _unique(details.functions + found)

    return counts, details


# Named scorers: (rule, counts, details, context, prior results) -> (matched, confidence)
Scorer = Callable[
    [PatternRule, MatchCounts, MatchDetails, DetectionAnalysisContext, list[PatternAnalysisResult]],
    tuple[bool, float],
]


def _score_simple_accounts(rule, counts, details, context, prior):
    accounts = counts.by_label("account_tables")
    if accounts == 0 or not counts.within_bounds():
        return False, 0.0
    team_penalty = sum(m.contribution(c) for m, c in counts.tables)
    personal_bonus = sum(m.contribution(c) for m, c in counts.constraints)
    return True, max(rule.base + team_penalty, rule.floor) + personal_bonus


def _score_ownership_ratio(rule, counts, details, context, prior):
    direct = counts.by_label("direct")
    mediated = counts.by_label("mediated")
    ratio = 1.0 if mediated == 0 else direct / (direct + mediated)
    if direct < rule.minimum_matches or ratio <= rule.param("minimum_ratio", 0.7):
        return False, 0.0
    direct_matcher = rule.relationship_matchers[0]
    return True, direct_matcher.contribution(direct) + ratio * rule.param("ratio_factor", 0.8)


def _score_mixed_ownership(rule, counts, details, context, prior):
    user_matcher, team_matcher = rule.relationship_matchers
    mixed = []
    for table in context.table_names:
        outgoing = [r for r in context.relationships if r.from_table == table]
        has_user = any(user_matcher.matches(r.from_table, r.from_column, r.to_table) for r in outgoing)
        has_team = any(team_matcher.matches(r.from_table, r.from_column, r.to_table) for r in outgoing)
        if has_user and has_team:
            mixed.append(table)
    details.tables = mixed
    if not mixed:
        return False, 0.0
    return True, len(mixed) * rule.param("per_table", 0.5)


def _mean_confidence(results: list[PatternAnalysisResult], label: str) -> float:
    scores = [r.match_confidence for r in results if r.matched and label in r.class_indication]
    return sum(scores) / len(scores) if scores else 0.0


def _score_coexisting(rule, counts, details, context, prior):
    individual = _mean_confidence(prior, "individual")
    team = _mean_confidence(prior, "team")
    even = balance(individual, team)
    minimum = rule.param("minimum_score", 0.3)
    if individual <= minimum or team <= minimum or even <= rule.param("minimum_balance", 0.4):
        return False, 0.0
    return True, even * 0.5 + min(individual, team) * 0.5


SCORERS: dict[str, Scorer] = {
    "simple_accounts": _score_simple_accounts,
    "ownership_ratio": _score_ownership_ratio,
    "mixed_ownership": _score_mixed_ownership,
    "coexisting": _score_coexisting,
}

# Scorers that read other rules' results and therefore run last
DEFERRED_SCORERS = frozenset({"coexisting"})


def _score_linear(rule: PatternRule, counts: MatchCounts) -> tuple[bool, float]:
    if not counts.within_bounds() or counts.total < rule.minimum_matches:
        return False, 0.0
    raw = rule.base + sum(matcher.contribution(count) for matcher, count in counts.pairs())
    return True, max(raw, rule.floor)


def _ratio(pairs: list[tuple[Matcher, int]]) -> float:
    patterns = sum(len(matcher.patterns) for matcher, _ in pairs)
    if patterns == 0:
        return 0.0
    return min(1.0, sum(count for _, count in pairs) / patterns)


def _score_ratio(
    rule: PatternRule, counts: MatchCounts, weights: Mapping[str, float]
) -> tuple[bool, float]:
    if counts.total < rule.minimum_matches:
        return False, 0.0

    relationship_ratio = 0.0
    if counts.relationships:
        matched = sum(count for _, count in counts.relationships)
        relationship_ratio = min(1.0, matched / len(counts.relationships))

    confidence = (
        _ratio(counts.tables) * weights["tables"]
        + _ratio(counts.columns) * weights["columns"]
        + relationship_ratio * weights["relationships"]
        + _ratio(counts.functions) * weights["business_logic"]
    )
    confidence *= rule.confidence_weight
    if rule.exclusive and confidence > EXCLUSIVE_BOOST_THRESHOLD:
        confidence *= EXCLUSIVE_BOOST
    return confidence > 0, confidence


def match_rule(
    rule: PatternRule,
    context: DetectionAnalysisContext,
    prior: Optional[list[PatternAnalysisResult]] = None,
    weights: Mapping[str, float] = DOMAIN_CONFIDENCE_WEIGHTS,
) -> PatternAnalysisResult:
    """
    Evaluate one rule against a context.

    Args:
        rule: Rule to evaluate
        context: Schema facts
        prior: Results of rules evaluated earlier (used by deferred scorers)
        weights: Per-kind weights for ratio-scored rules

    Returns:
        PatternAnalysisResult; unmatched rules carry confidence 0
    """
    counts, details = collect_matches(rule, context)

    if rule.scoring == "linear":
        matched, confidence = _score_linear(rule, counts)
    elif rule.scoring == "ratio":
        matched, confidence = _score_ratio(rule, counts, weights)
    elif rule.scoring == "presence":
        matched = counts.within_bounds() and counts.total >= rule.minimum_matches
        confidence = 1.0 if matched else 0.0
    else:
        scorer = SCORERS[rule.scoring]
        matched, confidence = scorer(rule, counts, details, context, list(prior or []))

    return PatternAnalysisResult(
        rule=rule,
        matched=matched,
        match_confidence=clamp(confidence) if matched else 0.0,
        match_details=details,
    )


def evaluate_rules(
    rules: Iterable[PatternRule], context: DetectionAnalysisContext
) -> list[PatternAnalysisResult]:
    """Evaluate every rule, matched or not. Deferred scorers see all earlier results."""
    rules = list(rules)
    immediate = [r for r in rules if r.scoring not in DEFERRED_SCORERS]
    deferred = [r for r in rules if r.scoring in DEFERRED_SCORERS]

    results = {rule.id: match_rule(rule, context) for rule in immediate}
    earlier = list(results.values())
    for rule in deferred:
        results[rule.id] = match_rule(rule, context, prior=earlier)

    # Declaration order, independent of evaluation order
    return [results[rule.id] for rule in rules]


def analyze_rules(
    rules: Iterable[PatternRule], context: DetectionAnalysisContext
) -> list[PatternAnalysisResult]:
    """Evaluate rules and keep only the ones that matched."""
    return [result for result in evaluate_rules(rules, context) if result.matched]


def analyze_architecture(
    context: DetectionAnalysisContext,
    rules: Iterable[PatternRule] = ARCHITECTURE_RULES,
) -> dict[str, list[PatternAnalysisResult]]:
    """
    Matched architecture rules grouped by the class they indicate.

    Returns:
        Mapping of individual/team/hybrid to matched results (possibly empty)
    """
    grouped: dict[str, list[PatternAnalysisResult]] = {
        "individual": [],
        "team": [],
        "hybrid": [],
    }
    for result in analyze_rules(rules, context):
        grouped.setdefault(result.rule.indicated_class, []).append(result)
    return grouped


def analyze_domain(
    context: DetectionAnalysisContext,
    rules: Optional[Mapping[str, Iterable[PatternRule]]] = None,
    weights: Mapping[str, float] = DOMAIN_CONFIDENCE_WEIGHTS,
) -> dict[str, list[PatternAnalysisResult]]:
    """
    Matched domain rules per domain, ignoring matches at or below 0.1.

    Returns:
        Mapping of every domain to its matched results (possibly empty)
    """
    rules = DOMAIN_RULES if rules is None else rules
    grouped: dict[str, list[PatternAnalysisResult]] = {}
    for domain, domain_rules in rules.items():
        results = [match_rule(rule, context, weights=weights) for rule in domain_rules]
        grouped[domain] = [
            r for r in results if r.matched and r.match_confidence > DOMAIN_MATCH_FLOOR
        ]
    return grouped
