"""Tests for pattern rules and analyzers."""

import pytest

from seedwise.analyzers import analyze_architecture, analyze_domain, evaluate_rules, match_rule
from seedwise.core.models import DetectionAnalysisContext
from seedwise.patterns.rules import Matcher, PatternRule, RelationshipMatcher, name_matches


def _rule(**kwargs) -> PatternRule:
    defaults = {
        "id": "test_rule",
        "name": "Test rule",
        "indicated_classes": ("team",),
        "confidence_weight": 0.5,
    }
    defaults.update(kwargs)
    return PatternRule(**defaults)


class TestNameMatches:
    """Tests for name_matches()."""

    def test_search_is_case_insensitive(self) -> None:
        """Test non-exact patterns search anywhere in the name."""
        assert name_matches("Team_Members", "member")
        assert name_matches("organization_team_member", "organization.*member")

    def test_exact(self) -> None:
        """Test exact patterns compare whole names."""
        assert name_matches("Roles", "roles", exact=True)
        assert not name_matches("user_roles", "roles", exact=True)


class TestMatchRule:
    """Tests for match_rule()."""

    def test_linear_scoring(self) -> None:
        """Test linear rules sum base and matcher contributions."""
        context = DetectionAnalysisContext.from_dict({"tables": ["teams", "team_members"]})
        rule = _rule(table_matchers=(Matcher(("team",), factor=0.2),), base=0.3)

        result = match_rule(rule, context)

        assert result.matched
        assert result.match_confidence == pytest.approx(0.7)
        assert result.match_details.tables == ["teams", "team_members"]

    def test_minimum_matches(self) -> None:
        """Test rules below minimum_matches do not match."""
        context = DetectionAnalysisContext.from_dict({"tables": ["teams"]})
        rule = _rule(table_matchers=(Matcher(("team",), factor=0.2),), minimum_matches=2)

        result = match_rule(rule, context)

        assert not result.matched
        assert result.match_confidence == 0.0

    def test_max_count_constrains(self) -> None:
        """Test a max_count matcher vetoes the rule when exceeded."""
        context = DetectionAnalysisContext.from_dict(
            {"tables": ["users", "organizations", "organization_members"]}
        )
        rule = _rule(
            table_matchers=(
                Matcher(("users",), factor=0.5, exact=True),
                Matcher(("organization",), max_count=0),
            )
        )

        assert not match_rule(rule, context).matched

    def test_scoped_column_matcher(self) -> None:
        """Test column matchers only look at tables in scope."""
        context = DetectionAnalysisContext.from_dict(
            {"tables": {"accounts": ["slug"], "posts": ["slug"]}}
        )
        rule = _rule(column_matchers=(Matcher(("slug",), factor=0.5, scope=("accounts",)),))

        result = match_rule(rule, context)

        assert result.match_details.columns == ["accounts.slug"]
        assert result.match_confidence == pytest.approx(0.5)

    def test_relationship_matcher(self) -> None:
        """Test relationship matchers filter by column and direction."""
        context = DetectionAnalysisContext.from_dict(
            {
                "tables": ["users", "posts"],
                "relationships": [
                    {"from_table": "posts", "from_column": "user_id", "to_table": "users"}
                ],
            }
        )
        forward = _rule(
            relationship_matchers=(
                RelationshipMatcher(to_patterns=("users",), column_patterns=("user_id",), factor=0.4),
            )
        )
        reversed_only = _rule(
            relationship_matchers=(RelationshipMatcher(from_patterns=("users",), factor=0.4),)
        )

        assert match_rule(forward, context).match_details.relationships == ["posts.user_id->users"]
        assert not match_rule(reversed_only, context).matched

    def test_presence_scoring(self) -> None:
        """Test presence rules score 1.0 when matched."""
        context = DetectionAnalysisContext.from_dict({"tables": ["roles"]})
        rule = _rule(table_matchers=(Matcher(("roles",), exact=True),), scoring="presence")

        assert match_rule(rule, context).match_confidence == 1.0

    def test_confidence_clamped(self) -> None:
        """Test rule confidence never exceeds 1."""
        context = DetectionAnalysisContext.from_dict({"tables": ["t1", "t2", "t3"]})
        rule = _rule(table_matchers=(Matcher(("t",), factor=0.6),))

        assert match_rule(rule, context).match_confidence == 1.0


class TestEvaluateRules:
    """Tests for evaluate_rules()."""

    def test_declaration_order(self) -> None:
        """Test results come back in declaration order, matched or not."""
        context = DetectionAnalysisContext.from_dict({"tables": ["teams"]})
        rules = [
            _rule(id="a", table_matchers=(Matcher(("nothing",), factor=1.0),)),
            _rule(id="b", table_matchers=(Matcher(("team",), factor=1.0),)),
        ]

        results = evaluate_rules(rules, context)

        assert [r.rule.id for r in results] == ["a", "b"]
        assert [r.matched for r in results] == [False, True]

    def test_pure(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test repeated evaluation gives identical results."""
        first = analyze_architecture(user_posts_context)
        second = analyze_architecture(user_posts_context)

        assert first == second


class TestBuiltinRules:
    """Tests for the built-in rule libraries."""

    def test_user_posts_architecture(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test user-owned content matches individual rules only."""
        grouped = analyze_architecture(user_posts_context)

        assert "individual_user_centric" in [r.rule.id for r in grouped["individual"]]
        assert grouped["team"] == []

    def test_empty_context(self, empty_context: DetectionAnalysisContext) -> None:
        """Test an empty schema matches nothing."""
        assert not any(analyze_architecture(empty_context).values())
        assert not any(analyze_domain(empty_context).values())

    def test_domain_floor(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test domain matches at or below 0.1 are dropped."""
        grouped = analyze_domain(outdoor_context)

        assert grouped["outdoor"]
        for results in grouped.values():
            assert all(r.match_confidence > 0.1 for r in results)
