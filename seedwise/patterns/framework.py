"""
MakerKit framework feature library and version ladder.

Every feature is a PatternRule whose ``confidence_weight`` is its additive
contribution to framework confidence. Feature ids double as the names used
in missing-feature reports.
"""

from dataclasses import dataclass

from seedwise.patterns.rules import Matcher, PatternRule

MAKERKIT = "makerkit"

# Additive feature sums are scaled by this factor and capped at 1
DIMINISHING_FACTOR = 0.8
MAKERKIT_THRESHOLD = 0.3


def _feature(id: str, name: str, weight: float, **matchers) -> PatternRule:
    return PatternRule(
        id=id,
        name=name,
        indicated_classes=(MAKERKIT,),
        confidence_weight=weight,
        minimum_matches=1,
        scoring="presence",
        **matchers,
    )


def _table(id: str, table: str, weight: float) -> PatternRule:
    return _feature(
        id,
        f"{table} table",
        weight,
        table_matchers=(Matcher((table,), exact=True, label=table),),
    )


def _account_column(id: str, patterns: tuple[str, ...], weight: float, exact: bool = True):
    return _feature(
        id,
        f"accounts.{patterns[0]} column",
        weight,
        column_matchers=(
            Matcher(patterns, exact=exact, scope=("accounts",), label=patterns[0]),
        ),
    )


def _function(id: str, function: str, weight: float) -> PatternRule:
    return _feature(
        id,
        f"{function}() function",
        weight,
        function_matchers=(Matcher((function,), label=function),),
    )


def _constraint(id: str, pattern: str, weight: float) -> PatternRule:
    return _feature(
        id,
        f"{pattern} constraint",
        weight,
        constraint_matchers=(Matcher((pattern,), label=pattern),),
    )


MAKERKIT_FEATURES: tuple[PatternRule, ...] = (
    # Auth and account bootstrap functions
    _function("setup_new_user_function", "setup_new_user", 0.4),
    _function("handle_new_user_function", "handle_new_user", 0.3),
    _function("create_profile_function", "create_profile_for_user", 0.2),
    _function("validate_personal_account_function", "validate_personal_account", 0.2),
    # Account-level fields
    _account_column("personal_account_column", ("is_personal_account",), 0.3),
    _account_column("account_slug_column", ("slug",), 0.1),
    _account_column("workspace_columns", ("^workspace_", "^team_"), 0.2, exact=False),
    _account_column("primary_owner_column", ("primary_owner_user_id",), 0.15),
    _account_column("public_data_column", ("public_data",), 0.1),
    # Companion tables
    _table("subscriptions_table", "subscriptions", 0.15),
    _table("organizations_table", "organizations", 0.15),
    _table("organization_members_table", "organization_members", 0.15),
    _table("invitations_table", "invitations", 0.15),
    _table("memberships_table", "memberships", 0.15),
    _table("roles_table", "roles", 0.1),
    _table("role_permissions_table", "role_permissions", 0.1),
    _table("billing_customers_table", "billing_customers", 0.1),
    _table("notifications_table", "notifications", 0.1),
    # Constraints
    _constraint("personal_account_constraint", "accounts_slug_null_if_personal_account", 0.4),
    _constraint("organization_member_constraint", "organization.*member", 0.1),
    _constraint("subscription_status_constraint", "subscription.*status", 0.1),
    _constraint("invitation_email_constraint", "invitation.*email", 0.1),
    # Triggers only; function names are not consulted here
    PatternRule(
        id="auth_user_trigger",
        name="user/auth trigger",
        indicated_classes=(MAKERKIT,),
        confidence_weight=0.3,
        scoring="presence",
        function_matchers=(Matcher(("user", "auth"), label="auth_triggers"),),
        params=(("function_source", "triggers"),),
    ),
)


@dataclass(frozen=True)
class VersionRequirement:
    """Structural requirements for one rung of the version ladder."""

    version: str
    tables: tuple[str, ...]
    any_of_tables: tuple[str, ...] = ()
    account_columns: tuple[str, ...] = ()


# Checked top to bottom; the first rung whose requirements hold wins.
VERSION_LADDER: tuple[VersionRequirement, ...] = (
    VersionRequirement(
        version="v3",
        tables=(
            "accounts",
            "memberships",
            "subscriptions",
            "roles",
            "invitations",
            "notifications",
            "role_permissions",
            "billing_customers",
        ),
        account_columns=("primary_owner_user_id", "slug", "is_personal_account", "public_data"),
    ),
    VersionRequirement(
        version="v2",
        tables=("accounts", "memberships", "subscriptions", "roles"),
        any_of_tables=("role_permissions", "invitations"),
        account_columns=("primary_owner_user_id", "is_personal_account"),
    ),
    VersionRequirement(version="v1", tables=("accounts", "memberships")),
)

VERSION_NONE = "none"
VERSION_CUSTOM = "custom"

_BASE_FEATURES = (
    "personal_account_column",
    "account_slug_column",
    "personal_account_constraint",
)
_V1_FEATURES = _BASE_FEATURES + ("memberships_table",)
_V2_FEATURES = _V1_FEATURES + (
    "setup_new_user_function",
    "handle_new_user_function",
    "subscriptions_table",
    "roles_table",
)
_V3_FEATURES = _V2_FEATURES + (
    "role_permissions_table",
    "billing_customers_table",
    "notifications_table",
    "invitations_table",
    "primary_owner_column",
    "public_data_column",
)

EXPECTED_FEATURES: dict[str, tuple[str, ...]] = {
    VERSION_NONE: (),
    VERSION_CUSTOM: _BASE_FEATURES,
    "v1": _V1_FEATURES,
    "v2": _V2_FEATURES,
    "v3": _V3_FEATURES,
}
