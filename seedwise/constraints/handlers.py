"""
Constraint handlers.

A handler inspects one row against one constraint and returns the row with
whatever fixes it could apply. Handlers are looked up by constraint type and
priority: the most specific handler that claims a constraint wins, and the
generic handler for that type catches the rest. Constraint types without any
handler are bypassed.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from seedwise.core.models import ConstraintInfo

VALID_SUBSCRIPTION_STATUSES = ("active", "canceled", "past_due", "trialing", "incomplete")
DEFAULT_SUBSCRIPTION_STATUS = "active"

_NOT_NULL_FIELD = re.compile(r"(\w+)\s+(?:IS\s+)?NOT\s+NULL", re.IGNORECASE)


@dataclass
class ConstraintFix:
    """A single change a handler made to a row."""

    type: str  # set_field | remove_field | transform_value | add_dependency
    field: str
    old_value: Any = None
    new_value: Any = None
    reason: str = ""
    confidence: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "reason": self.reason,
            "confidence": self.confidence,
        }


@dataclass
class ConstraintHandlingResult:
    """Outcome of running one handler over one row."""

    success: bool
    original_data: dict[str, Any]
    modified_data: dict[str, Any]
    applied_fixes: list[ConstraintFix] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    bypass_required: bool = False
    handler_id: Optional[str] = None

    @classmethod
    def passthrough(cls, row: dict[str, Any], handler_id: Optional[str] = None):
        return cls(
            success=True,
            original_data=dict(row),
            modified_data=dict(row),
            handler_id=handler_id,
        )

    def set_field(self, name: str, value: Any, reason: str, confidence: float) -> None:
        """Set a field on the modified row and record the fix."""
        self.applied_fixes.append(
            ConstraintFix(
                type="set_field",
                field=name,
                old_value=self.modified_data.get(name),
                new_value=value,
                reason=reason,
                confidence=confidence,
            )
        )
        self.modified_data[name] = value

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "original_data": self.original_data,
            "modified_data": self.modified_data,
            "applied_fixes": [fix.to_dict() for fix in self.applied_fixes],
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "bypass_required": self.bypass_required,
            "handler_id": self.handler_id,
        }


class ConstraintHandler(ABC):
    """Base class for constraint handlers."""

    id: str = ""
    type: str = ""
    priority: int = 0
    description: str = ""

    @abstractmethod
    def can_handle(self, constraint: ConstraintInfo) -> bool:
        """Check if this handler understands the constraint."""
        pass

    @abstractmethod
    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        """Apply the constraint to a row.

        Args:
            constraint: Constraint being enforced
            row: Candidate row (never mutated)

        Returns:
            Handling result with the modified row and the fixes applied
        """
        pass

    def _result(self, row: dict[str, Any]) -> ConstraintHandlingResult:
        return ConstraintHandlingResult.passthrough(row, self.id)


def _mentions(constraint: ConstraintInfo, *words: str) -> bool:
    definition = constraint.definition.lower()
    return all(word in definition for word in words)


class PersonalAccountSlugHandler(ConstraintHandler):
    """Personal accounts must have a null slug."""

    id = "makerkit_personal_account_slug"
    type = "check"
    priority = 100
    description = "Handles the MakerKit personal account slug constraint"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return "accounts_slug_null_if_personal" in constraint.name.lower() or _mentions(
            constraint, "is_personal_account", "slug"
        )

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)

        if row.get("is_personal_account") is True and row.get("slug") is not None:
            result.set_field(
                "slug", None, "Personal accounts must have null slug (MakerKit constraint)", 0.95
            )

        if "is_personal_account" not in row:
            result.set_field(
                "is_personal_account",
                True,
                "Default to personal account for profile compatibility",
                0.85,
            )
            result.set_field("slug", None, "Set slug to null for personal account", 0.95)

        return result


class OrganizationMemberHandler(ConstraintHandler):
    """Organization membership is unique per (organization, user)."""

    id = "makerkit_organization_member"
    type = "unique"
    priority = 90
    description = "Handles MakerKit organization member uniqueness"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        columns = set(constraint.columns)
        return "organization_member" in constraint.name.lower() or {
            "organization_id",
            "user_id",
        } <= columns

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)
        if not row.get("organization_id") or not row.get("user_id"):
            result.warnings.append("Organization member requires both organization_id and user_id")
        return result


class SubscriptionStatusHandler(ConstraintHandler):
    """Subscription status must be one of the billing provider states."""

    id = "makerkit_subscription_status"
    type = "check"
    priority = 85
    description = "Handles MakerKit subscription status validation"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return "subscription_status" in constraint.name.lower() or _mentions(
            constraint, "status", "active"
        )

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)
        status = row.get("status")

        if not status:
            result.set_field(
                "status", DEFAULT_SUBSCRIPTION_STATUS, "Set default subscription status", 0.9
            )
        elif status not in VALID_SUBSCRIPTION_STATUSES:
            result.set_field(
                "status",
                DEFAULT_SUBSCRIPTION_STATUS,
                "Invalid subscription status, defaulting to active",
                0.8,
            )

        return result


class GenericCheckHandler(ConstraintHandler):
    id = "generic_check"
    type = "check"
    priority = 10
    description = "Generic handler for check constraints"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return True

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)
        clause = constraint.definition.lower()

        if "not null" in clause:
            match = _NOT_NULL_FIELD.search(constraint.definition)
            if match and row.get(match.group(1)) is None:
                result.warnings.append(
                    f"Field {match.group(1)} should not be null according to "
                    f"constraint {constraint.name}"
                )
        elif "length(" in clause:
            result.warnings.append(
                f"Length constraint detected: {constraint.name} - manual validation recommended"
            )
        elif " in (" in clause or "= any" in clause:
            result.warnings.append(
                f"Enum constraint detected: {constraint.name} - validate against allowed values"
            )
        else:
            result.warnings.append(
                f"Complex check constraint may require manual review: {constraint.name}"
            )

        return result


class GenericForeignKeyHandler(ConstraintHandler):
    id = "generic_foreign_key"
    type = "foreign_key"
    priority = 10
    description = "Generic handler for foreign key constraints"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return True

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)
        column = constraint.columns[0] if constraint.columns else ""
        target = f"{constraint.referenced_table}.{constraint.referenced_column or 'id'}"

        if row.get(column) is None:
            result.warnings.append(f"Foreign key {column} is null - ensure referenced record exists")
        else:
            result.warnings.append(f"Foreign key {column} references {target} - ensure target exists")

        return result


class GenericUniqueHandler(ConstraintHandler):
    id = "generic_unique"
    type = "unique"
    priority = 10
    description = "Generic handler for unique constraints"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return True

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)
        missing = [column for column in constraint.columns if row.get(column) is None]

        if missing:
            result.warnings.append(
                f"Unique constraint {constraint.name} requires values for: {', '.join(missing)}"
            )
        else:
            result.warnings.append(
                f"Unique constraint {constraint.name} - ensure values are unique across: "
                f"{', '.join(constraint.columns)}"
            )

        return result


class GenericNotNullHandler(ConstraintHandler):
    id = "generic_not_null"
    type = "not_null"
    priority = 10
    description = "Generic handler for not null constraints"

    def can_handle(self, constraint: ConstraintInfo) -> bool:
        return True

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        result = self._result(row)

        if constraint.columns:
            column = constraint.columns[0]
        else:
            match = _NOT_NULL_FIELD.search(constraint.definition)
            column = match.group(1) if match else ""

        if row.get(column) is None:
            result.errors.append(f"Field {column} cannot be null")
            result.success = False

        return result


DEFAULT_HANDLERS: tuple[type[ConstraintHandler], ...] = (
    PersonalAccountSlugHandler,
    OrganizationMemberHandler,
    SubscriptionStatusHandler,
    GenericCheckHandler,
    GenericForeignKeyHandler,
    GenericUniqueHandler,
    GenericNotNullHandler,
)


class HandlerRegistry:
    """Registry of constraint handlers, ordered by priority within each type."""

    def __init__(self, handlers: Optional[list[ConstraintHandler]] = None) -> None:
        """Initialize registry with the given handlers or the built-in set."""
        self._handlers: dict[str, ConstraintHandler] = {}
        for handler in handlers if handlers is not None else [h() for h in DEFAULT_HANDLERS]:
            self.register(handler)

    def register(self, handler: ConstraintHandler) -> None:
        """Register a handler, replacing any handler with the same id."""
        self._handlers[handler.id] = handler

    @property
    def handlers(self) -> list[ConstraintHandler]:
        return list(self._handlers.values())

    def find(self, constraint: ConstraintInfo) -> Optional[ConstraintHandler]:
        """
        Find the handler for a constraint.

        Returns:
            Highest-priority handler of the constraint's type that claims it,
            or None when no handler covers that type
        """
        candidates = sorted(
            (h for h in self._handlers.values() if h.type == constraint.type),
            key=lambda h: h.priority,
            reverse=True,
        )
        for handler in candidates:
            if handler.can_handle(constraint):
                return handler
        return None

    def handle(self, constraint: ConstraintInfo, row: dict[str, Any]) -> ConstraintHandlingResult:
        """
        Run the matching handler over a row.

        A missing handler is not an error: the result is marked as requiring
        a bypass. Exceptions raised by a handler propagate to the caller.
        """
        handler = self.find(constraint)
        if handler is None:
            result = ConstraintHandlingResult.passthrough(row)
            result.success = False
            result.bypass_required = True
            result.warnings.append(f"No handler found for {constraint.type} constraint")
            return result
        return handler.handle(constraint, row)
