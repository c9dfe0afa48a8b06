"""Pattern library: declarative rules for architecture, domain and framework detection."""

from seedwise.patterns.architecture import ARCHITECTURE_RULES
from seedwise.patterns.domain import DOMAIN_CONFIDENCE_WEIGHTS, DOMAIN_RULES
from seedwise.patterns.framework import EXPECTED_FEATURES, MAKERKIT_FEATURES, VERSION_LADDER
from seedwise.patterns.rules import Matcher, PatternRule, RelationshipMatcher

# Bump whenever rule data changes; cached results keyed on an older version are discarded.
PATTERN_LIBRARY_VERSION = "1.0.0"

__all__ = [
    "ARCHITECTURE_RULES",
    "DOMAIN_CONFIDENCE_WEIGHTS",
    "DOMAIN_RULES",
    "EXPECTED_FEATURES",
    "MAKERKIT_FEATURES",
    "PATTERN_LIBRARY_VERSION",
    "VERSION_LADDER",
    "Matcher",
    "PatternRule",
    "RelationshipMatcher",
]
