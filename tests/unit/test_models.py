"""Tests for core data models."""

import logging

from seedwise.core.models import (
    ClassificationResult,
    ConstraintInfo,
    DetectionAnalysisContext,
    Evidence,
    FrameworkClassification,
    RelationshipInfo,
)


class TestDetectionAnalysisContext:
    """Tests for DetectionAnalysisContext."""

    def test_from_dict_with_columns(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test tables given as a mapping keep their columns."""
        assert user_posts_context.table_names == ("users", "posts")
        assert user_posts_context.columns_of("posts") == ("id", "user_id", "title")
        assert user_posts_context.relationships[0].label == "posts.user_id->users"

    def test_from_dict_table_list(self) -> None:
        """Test tables given as a list have no columns."""
        context = DetectionAnalysisContext.from_dict({"tables": ["accounts", "roles"]})

        assert context.has_table("roles")
        assert context.columns_of("accounts") == ()

    def test_lookups_are_case_insensitive(
        self, user_posts_context: DetectionAnalysisContext
    ) -> None:
        """Test table and column lookups ignore case."""
        assert user_posts_context.has_table("USERS")
        assert user_posts_context.has_column("Users", "EMAIL")
        assert not user_posts_context.has_column("users", "password")

    def test_restricted_to(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test exclusion drops the table and the relationships touching it."""
        restricted = user_posts_context.restricted_to(exclude_tables=["users"])

        assert restricted.table_names == ("posts",)
        assert restricted.relationships == ()
        # Original snapshot is untouched
        assert len(user_posts_context.tables) == 2

    def test_restricted_to_without_filters(
        self, user_posts_context: DetectionAnalysisContext
    ) -> None:
        """Test no filters returns the same snapshot."""
        assert user_posts_context.restricted_to() is user_posts_context

    def test_constraints_for(self) -> None:
        """Test constraints are selected by exact table name."""
        context = DetectionAnalysisContext(
            constraints=(
                ConstraintInfo(table="accounts", name="a", type="check"),
                ConstraintInfo(table="accounts_memberships", name="b", type="unique"),
            )
        )

        assert [c.name for c in context.constraints_for("accounts")] == ["a"]

    def test_business_logic_names(self) -> None:
        """Test functions, triggers, trigger functions and hints are all collected."""
        context = DetectionAnalysisContext.from_dict(
            {
                "functions": [{"name": "setup_new_user"}],
                "triggers": [{"name": "on_auth_user_created", "table": "users", "function": "f"}],
                "business_logic_hints": ["billing"],
            }
        )

        assert context.business_logic_names() == [
            "setup_new_user",
            "on_auth_user_created",
            "f",
            "billing",
        ]

    def test_to_dict_roundtrip(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test a context survives to_dict/from_dict unchanged."""
        assert DetectionAnalysisContext.from_dict(outdoor_context.to_dict()) == outdoor_context

    def test_get_logger(self) -> None:
        """Test a per-context logger takes precedence over the default."""
        custom = logging.getLogger("seedwise.test.custom")
        default = logging.getLogger("seedwise.test.default")

        assert DetectionAnalysisContext(logger=custom).get_logger(default) is custom
        assert DetectionAnalysisContext().get_logger(default) is default


class TestSchemaFacts:
    """Tests for fact records."""

    def test_constraint_from_dict_defaults(self) -> None:
        """Test missing constraint fields take defaults."""
        constraint = ConstraintInfo.from_dict({"table": "accounts", "name": "c"})

        assert constraint.type == "check"
        assert constraint.columns == ()

    def test_relationship_default_target_column(self) -> None:
        """Test relationships point at id unless told otherwise."""
        relationship = RelationshipInfo.from_dict(
            {"from_table": "posts", "from_column": "user_id", "to_table": "users"}
        )

        assert relationship.to_column == "id"


class TestClassificationResult:
    """Tests for ClassificationResult."""

    def test_confidence_clamped_and_levelled(self) -> None:
        """Test confidence is clamped and its level derived."""
        result = ClassificationResult(primary_label="team", confidence=1.4)

        assert result.confidence == 1.0
        assert result.confidence_level == "very_high"

    def test_evidence_clamped(self) -> None:
        """Test evidence scores are clamped."""
        evidence = Evidence(
            type="pattern",
            description="d",
            confidence=-1,
            weight=3,
            class_strengths={"team": 2.0},
        )

        assert evidence.confidence == 0.0
        assert evidence.weight == 1.0
        assert evidence.class_strengths == {"team": 1.0}

    def test_roundtrip(self) -> None:
        """Test from_dict(to_dict()) preserves the result."""
        result = ClassificationResult(
            primary_label="individual",
            confidence=0.72,
            evidence=[Evidence(type="t", description="d", confidence=0.5, weight=0.4)],
            reasoning_trace=["a", "b"],
            warnings=["w"],
        )

        assert ClassificationResult.from_dict(result.to_dict()) == result

    def test_framework_roundtrip(self) -> None:
        """Test framework fields survive serialization."""
        result = FrameworkClassification(
            primary_label="v2",
            confidence=0.8,
            framework="makerkit",
            version="v2",
            is_makerkit=True,
            detected_features=["roles_table"],
        )
        restored = FrameworkClassification.from_dict(result.to_dict())

        assert restored.version == "v2"
        assert restored.is_makerkit
        assert restored.detected_features == ["roles_table"]
