"""Pattern analyzers: evaluate pattern rules against an analysis context."""

from seedwise.analyzers.matching import (
    MatchCounts,
    analyze_architecture,
    analyze_domain,
    analyze_rules,
    collect_matches,
    evaluate_rules,
    match_rule,
)

__all__ = [
    "MatchCounts",
    "analyze_architecture",
    "analyze_domain",
    "analyze_rules",
    "collect_matches",
    "evaluate_rules",
    "match_rule",
]
