"""Pytest configuration and shared fixtures."""

import json

import pytest

from seedwise.core.models import DetectionAnalysisContext

MAKERKIT_V3_SCHEMA = {
    "tables": {
        "accounts": [
            "id",
            "name",
            "slug",
            "is_personal_account",
            "primary_owner_user_id",
            "public_data",
        ],
        "memberships": ["account_id", "user_id", "account_role"],
        "subscriptions": ["id", "account_id", "status"],
        "roles": ["name", "hierarchy_level"],
        "invitations": ["id", "email", "account_id"],
        "notifications": ["id", "account_id", "body"],
        "role_permissions": ["role", "permission"],
        "billing_customers": ["id", "account_id", "customer_id"],
    },
}

USER_POSTS_SCHEMA = {
    "tables": {
        "users": ["id", "email", "name"],
        "posts": ["id", "user_id", "title"],
    },
    "relationships": [
        {"from_table": "posts", "from_column": "user_id", "to_table": "users"},
    ],
}

OUTDOOR_SCHEMA = {
    "tables": {
        "gear_items": ["id", "make", "model", "weight", "type"],
        "setups": ["id", "user_id", "name"],
        "base_templates": ["id"],
        "setup_gear_items": ["setup_id", "gear_item_id"],
    },
    "relationships": [
        {"from_table": "setups", "from_column": "gear_item_id", "to_table": "gear_items"},
        {"from_table": "setups", "from_column": "template_id", "to_table": "base_templates"},
    ],
}


@pytest.fixture
def makerkit_v3_context() -> DetectionAnalysisContext:
    """Full MakerKit v3 table set with the v3 account columns."""
    return DetectionAnalysisContext.from_dict(MAKERKIT_V3_SCHEMA)


@pytest.fixture
def makerkit_v1_context() -> DetectionAnalysisContext:
    """Only accounts and memberships: the bottom rung of the version ladder."""
    return DetectionAnalysisContext.from_dict(
        {"tables": {"accounts": ["id", "name"], "memberships": ["account_id", "user_id"]}}
    )


@pytest.fixture
def empty_context() -> DetectionAnalysisContext:
    return DetectionAnalysisContext()


@pytest.fixture
def user_posts_context() -> DetectionAnalysisContext:
    """Single-owner content: posts belong to users."""
    return DetectionAnalysisContext.from_dict(USER_POSTS_SCHEMA)


@pytest.fixture
def outdoor_context() -> DetectionAnalysisContext:
    """Gear catalogue with user setups."""
    return DetectionAnalysisContext.from_dict(OUTDOOR_SCHEMA)


@pytest.fixture
def accounts_constraints() -> list[dict]:
    """Constraints on a MakerKit accounts table, as plain dicts."""
    return [
        {
            "name": "accounts_slug_null_if_personal_account_true",
            "type": "check",
            "definition": "CHECK (is_personal_account = false OR slug IS NULL)",
            "columns": ["is_personal_account", "slug"],
        },
        {
            "name": "accounts_name_length",
            "type": "check",
            "definition": "CHECK (length(name) < 255)",
            "columns": ["name"],
        },
    ]


@pytest.fixture
def makerkit_schema_file(tmp_path) -> str:
    """MakerKit v3 facts with accounts constraints, written as a JSON facts file."""
    facts = dict(MAKERKIT_V3_SCHEMA)
    facts["constraints"] = [
        {
            "table": "accounts",
            "name": "accounts_slug_null_if_personal_account_true",
            "type": "check",
            "definition": "CHECK (is_personal_account = false OR slug IS NULL)",
            "columns": ["is_personal_account", "slug"],
        },
    ]
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(facts))
    return str(path)
