"""Generic fallback seeding strategy."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from seedwise.constraints.handlers import ConstraintFix, ConstraintHandlingResult
from seedwise.core.models import (
    ClassificationResult,
    DetectionAnalysisContext,
    DetectionMetrics,
    Evidence,
)
from seedwise.strategies.base import SeedingStrategy

BASE_CONFIDENCE = 0.1
USER_TABLE_CONFIDENCE = 0.2
USER_TABLES = ("users", "accounts", "profiles")

SUPPORTED_FEATURES = frozenset(
    {
        "basic_user_creation",
        "direct_insertion",
        "fallback_behavior",
        "constraint_basic_handling",
        "multi_table_attempts",
        "constraint_discovery",
    }
)


class GenericStrategy(SeedingStrategy):
    """Basic compatibility with any schema; never more than weakly confident."""

    name = "generic"

    def get_priority(self) -> int:
        return 1

    def detect(self, context: DetectionAnalysisContext) -> ClassificationResult:
        confidence = BASE_CONFIDENCE
        evidence = []
        features = []
        recommendations = []

        user_tables = [t for t in USER_TABLES if context.has_table(t)]
        if user_tables:
            confidence = USER_TABLE_CONFIDENCE
            features.append("basic_user_tables")
            evidence.append(
                Evidence(
                    type="table_pattern",
                    description=f"Basic user tables: {', '.join(user_tables)}",
                    confidence=1.0,
                    weight=USER_TABLE_CONFIDENCE,
                    supporting_data={"tables": user_tables},
                    class_strengths={self.name: 1.0},
                )
            )

        if any(t.table == "users" or "auth" in t.function for t in context.triggers):
            features.append("auth_integration")
            recommendations.append("Consider auth-based user creation for better integration")

        if context.constraints:
            features.append("has_constraints")
            recommendations.append("Enable constraint discovery for better seeding reliability")

        recommendations.append(
            "Using generic strategy - consider framework-specific strategy if available"
        )
        recommendations.append("Enable constraint validation for safer operations")
        if confidence < 0.3:
            recommendations.append("Low framework detection - consider manual configuration")

        return ClassificationResult(
            primary_label=self.name,
            confidence=confidence,
            evidence=evidence,
            reasoning_trace=[f"Generic strategy fit {confidence:.2f}"]
            + [f"Detected {feature}" for feature in features],
            recommendations=recommendations,
            metrics=DetectionMetrics(
                evidence_count=len(evidence),
                tables_analyzed=len(context.tables),
                strategy_used=self.name,
            ),
            metadata={"detected_features": features},
        )

    def get_recommendations(self) -> list[str]:
        return [
            "Generic strategy provides basic compatibility with any schema",
            "Consider using a framework-specific strategy for better integration",
            "Enable constraint discovery to improve data integrity",
            "Test seeding with small data sets first to identify schema-specific issues",
        ]

    def supports_feature(self, feature: str) -> bool:
        return feature in SUPPORTED_FEATURES

    def handle_constraints(self, table: str, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = ConstraintHandlingResult.passthrough(row, f"{self.name}_strategy")
        data = result.modified_data
        now = datetime.now(timezone.utc).isoformat()

        if not data.get("created_at"):
            result.set_field("created_at", now, "Set default created_at timestamp", 0.9)
        if not data.get("updated_at"):
            result.set_field(
                "updated_at", data["created_at"], "Set default updated_at timestamp", 0.9
            )

        if table == "accounts" and "slug" not in data:
            result.set_field("slug", None, "Default slug to null for compatibility", 0.8)

        # None values would be written as explicit NULLs
        for key in [k for k, v in data.items() if v is None and k != "slug"]:
            del data[key]
            result.applied_fixes.append(
                ConstraintFix(
                    type="remove_field",
                    field=key,
                    reason="Remove empty value to prevent insertion errors",
                    confidence=0.95,
                )
            )

        if data.get("avatar_url") and not data.get("avatar"):
            data["avatar"] = data["avatar_url"]
        elif data.get("avatar") and not data.get("avatar_url"):
            data["avatar_url"] = data["avatar"]

        return result
