"""Tests for constraint handlers and the handler registry."""

from typing import Any

from seedwise.constraints.handlers import (
    ConstraintHandler,
    ConstraintHandlingResult,
    GenericCheckHandler,
    GenericForeignKeyHandler,
    GenericNotNullHandler,
    GenericUniqueHandler,
    HandlerRegistry,
    PersonalAccountSlugHandler,
    SubscriptionStatusHandler,
)
from seedwise.core.models import ConstraintInfo


def _check(name: str, definition: str, table: str = "accounts") -> ConstraintInfo:
    return ConstraintInfo(table=table, name=name, type="check", definition=definition)


SLUG_CONSTRAINT = _check(
    "accounts_slug_null_if_personal_account_true",
    "CHECK (((is_personal_account = true AND slug IS NULL) OR "
    "(is_personal_account = false AND slug IS NOT NULL)))",
)
STATUS_CONSTRAINT = _check(
    "subscription_status_check",
    "CHECK (status IN ('active', 'canceled'))",
    table="subscriptions",
)


class UppercaseNameHandler(ConstraintHandler):
    id = "uppercase_name"
    type = "check"
    priority = 200

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return "name" in constraint.name

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)
        result.set_field("name", str(row.get("name", "")).upper(), "Uppercase names", 1.0)
        return result


class TestPersonalAccountSlugHandler:
    """Tests for PersonalAccountSlugHandler.handle()."""

    def test_clears_slug(self) -> None:
        """Test a personal account with a slug has it removed."""
        row = {"id": "a1", "is_personal_account": True, "slug": "ada"}

        result = PersonalAccountSlugHandler().handle(SLUG_CONSTRAINT, row)

        assert result.success
        assert result.modified_data["slug"] is None
        assert result.applied_fixes[0].old_value == "ada"
        assert result.applied_fixes[0].confidence == 0.95
        assert row["slug"] == "ada"

    def test_defaults_personal_account(self) -> None:
        """Test a missing flag defaults to a personal account without slug."""
        result = PersonalAccountSlugHandler().handle(SLUG_CONSTRAINT, {"id": "a1"})

        assert result.modified_data == {"id": "a1", "is_personal_account": True, "slug": None}
        assert [fix.field for fix in result.applied_fixes] == ["is_personal_account", "slug"]

    def test_team_account_untouched(self) -> None:
        """Test team accounts keep their slug."""
        row = {"is_personal_account": False, "slug": "acme"}

        result = PersonalAccountSlugHandler().handle(SLUG_CONSTRAINT, row)

        assert result.modified_data == row
        assert result.applied_fixes == []


class TestSubscriptionStatusHandler:
    """Tests for SubscriptionStatusHandler.handle()."""

    def test_missing_status(self) -> None:
        """Test a missing status becomes active."""
        result = SubscriptionStatusHandler().handle(STATUS_CONSTRAINT, {"id": "s1"})

        assert result.modified_data["status"] == "active"
        assert result.applied_fixes[0].confidence == 0.9

    def test_invalid_status(self) -> None:
        """Test an unknown status is reset to active."""
        result = SubscriptionStatusHandler().handle(STATUS_CONSTRAINT, {"status": "unknown"})

        assert result.modified_data["status"] == "active"
        assert result.applied_fixes[0].confidence == 0.8

    def test_valid_status(self) -> None:
        """Test a valid status is kept."""
        result = SubscriptionStatusHandler().handle(STATUS_CONSTRAINT, {"status": "canceled"})

        assert result.modified_data["status"] == "canceled"
        assert result.applied_fixes == []


class TestGenericHandlers:
    """Tests for the generic per-type handlers."""

    def test_check_length(self) -> None:
        """Test length checks are flagged for manual validation."""
        result = GenericCheckHandler().handle(
            _check("accounts_name_length", "CHECK ((length(name) >= 1))"), {"name": "Ada"}
        )

        assert result.warnings == [
            "Length constraint detected: accounts_name_length - manual validation recommended"
        ]

    def test_check_not_null(self) -> None:
        """Test not-null checks name the offending field."""
        result = GenericCheckHandler().handle(
            _check("email_present", "CHECK (email IS NOT NULL)"), {"email": None}
        )

        assert result.warnings == [
            "Field email should not be null according to constraint email_present"
        ]

    def test_check_enum(self) -> None:
        """Test enum checks are recognised."""
        result = GenericCheckHandler().handle(
            _check("role_values", "CHECK (role IN ('owner', 'member'))"), {"role": "owner"}
        )

        assert result.warnings[0].startswith("Enum constraint detected: role_values")

    def test_check_complex(self) -> None:
        """Test anything else asks for manual review."""
        result = GenericCheckHandler().handle(_check("price_positive", "CHECK (price > 0)"), {})

        assert result.warnings == [
            "Complex check constraint may require manual review: price_positive"
        ]

    def test_foreign_key(self) -> None:
        """Test foreign keys report their target."""
        constraint = ConstraintInfo(
            table="posts",
            name="posts_user_id_fkey",
            type="foreign_key",
            columns=("user_id",),
            referenced_table="users",
        )

        present = GenericForeignKeyHandler().handle(constraint, {"user_id": "u1"})
        missing = GenericForeignKeyHandler().handle(constraint, {})

        assert present.warnings == [
            "Foreign key user_id references users.id - ensure target exists"
        ]
        assert missing.warnings == [
            "Foreign key user_id is null - ensure referenced record exists"
        ]

    def test_unique_missing_values(self) -> None:
        """Test unique constraints list columns without values."""
        constraint = ConstraintInfo(
            table="memberships",
            name="memberships_account_user_key",
            type="unique",
            columns=("account_id", "user_id"),
        )

        result = GenericUniqueHandler().handle(constraint, {"account_id": "a1"})

        assert result.warnings == [
            "Unique constraint memberships_account_user_key requires values for: user_id"
        ]

    def test_not_null_failure(self) -> None:
        """Test a null value fails the not-null handler."""
        constraint = ConstraintInfo(
            table="users", name="users_email_not_null", type="not_null", columns=("email",)
        )

        failed = GenericNotNullHandler().handle(constraint, {"email": None})
        passed = GenericNotNullHandler().handle(constraint, {"email": "ada@example.test"})

        assert not failed.success
        assert failed.errors == ["Field email cannot be null"]
        assert passed.success


class TestHandlerRegistry:
    """Tests for HandlerRegistry."""

    def test_specific_handler_wins(self) -> None:
        """Test the highest-priority handler claiming a constraint is used."""
        registry = HandlerRegistry()

        assert registry.find(SLUG_CONSTRAINT).id == "makerkit_personal_account_slug"
        assert registry.find(STATUS_CONSTRAINT).id == "makerkit_subscription_status"
        assert registry.find(_check("price_positive", "CHECK (price > 0)")).id == "generic_check"

    def test_organization_member_by_columns(self) -> None:
        """Test membership uniqueness is recognised from its columns."""
        constraint = ConstraintInfo(
            table="memberships",
            name="memberships_pkey2",
            type="unique",
            columns=("organization_id", "user_id"),
        )

        result = HandlerRegistry().handle(constraint, {"organization_id": None, "user_id": "u1"})

        assert result.handler_id == "makerkit_organization_member"
        assert result.warnings == [
            "Organization member requires both organization_id and user_id"
        ]

    def test_bypass_without_handler(self) -> None:
        """Test constraint types without handlers require a bypass."""
        constraint = ConstraintInfo(
            table="accounts", name="accounts_pkey", type="primary_key", columns=("id",)
        )

        result = HandlerRegistry().handle(constraint, {"id": "a1"})

        assert not result.success
        assert result.bypass_required
        assert result.handler_id is None
        assert result.warnings == ["No handler found for primary_key constraint"]

    def test_register_custom_handler(self) -> None:
        """Test a registered handler outranks the built-ins it claims."""
        registry = HandlerRegistry()
        registry.register(UppercaseNameHandler())

        result = registry.handle(
            _check("accounts_name_length", "CHECK ((length(name) >= 1))"), {"name": "ada"}
        )

        assert result.handler_id == "uppercase_name"
        assert result.modified_data["name"] == "ADA"

    def test_empty_registry(self) -> None:
        """Test an empty registry bypasses everything."""
        result = HandlerRegistry([]).handle(SLUG_CONSTRAINT, {})

        assert result.bypass_required
