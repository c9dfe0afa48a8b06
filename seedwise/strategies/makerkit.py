"""MakerKit seeding strategy."""

from __future__ import annotations

import logging
from typing import Any, Optional

from seedwise.constraints.handlers import ConstraintHandlingResult
from seedwise.core.models import DetectionAnalysisContext, FrameworkClassification
from seedwise.detection.framework import detect_framework
from seedwise.strategies.base import SeedingStrategy

logger = logging.getLogger(__name__)

# Tables whose rows belong to an account and need account_id set
TENANT_SCOPED_TABLES = (
    "setups",
    "gear_items",
    "trips",
    "modifications",
    "reviews",
    "media_attachments",
)

SUPPORTED_FEATURES = frozenset(
    {
        "auth_trigger_user_creation",
        "constraint_auto_fix",
        "personal_account_handling",
        "tenant_scoped_data",
        "rls_compliance",
        "business_logic_respect",
        "constraint_discovery",
        "framework_specific_handlers",
    }
)


class MakerKitStrategy(SeedingStrategy):
    """Seed MakerKit schemas through their account and trigger conventions."""

    name = "makerkit"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.last_detection: Optional[FrameworkClassification] = None

    def get_priority(self) -> int:
        return 100

    def detect(self, context: DetectionAnalysisContext) -> FrameworkClassification:
        detection = detect_framework(context, self.logger)
        self.last_detection = detection
        return detection

    def get_recommendations(self) -> list[str]:
        recommendations = [
            "Use auth.admin.createUser() for user creation to trigger MakerKit flows",
            "Ensure personal accounts have slug=null to satisfy constraints",
            "Let MakerKit triggers handle account and profile creation when possible",
            "Respect tenant boundaries with proper account_id foreign keys",
        ]
        detection = self.last_detection
        if detection is not None:
            if detection.version == "v3":
                recommendations.append("MakerKit v3 detected - use latest API patterns")
            if "personal_account_constraint" in detection.detected_features:
                recommendations.append("Personal account constraint detected - auto-fix enabled")
        return recommendations

    def supports_feature(self, feature: str) -> bool:
        return feature in SUPPORTED_FEATURES

    def handle_constraints(self, table: str, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = ConstraintHandlingResult.passthrough(row, f"{self.name}_strategy")

        if table == "accounts":
            if result.modified_data.get("is_personal_account") is True and (
                result.modified_data.get("slug") is not None
            ):
                result.set_field(
                    "slug", None, "Personal accounts must have null slug (MakerKit constraint)", 0.95
                )

            if "is_personal_account" not in result.modified_data:
                result.set_field(
                    "is_personal_account", True, "Default to personal account for user profiles", 0.9
                )
                result.modified_data["slug"] = None

            if not result.modified_data.get("id") and result.modified_data.get("user_id"):
                result.modified_data["id"] = result.modified_data["user_id"]

        elif table == "profiles":
            if not result.modified_data.get("name") and result.modified_data.get("display_name"):
                result.set_field(
                    "name", result.modified_data["display_name"], "Map display_name to name field", 0.8
                )

        if table in TENANT_SCOPED_TABLES and not result.modified_data.get("account_id"):
            result.warnings.append("Tenant-scoped table requires account_id - ensure proper context")

        return result
