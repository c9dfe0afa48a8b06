"""Tests for schema introspection and context building."""

import asyncio
import json

import psycopg
import pytest

from seedwise.config import Config, IntrospectionConfig
from seedwise.core.models import ConstraintInfo, RelationshipInfo
from seedwise.exceptions import IntrospectionConnectionError
from seedwise.introspection import (
    PostgresIntrospector,
    StaticIntrospector,
    build_context,
    build_context_sync,
)


def _config(**introspection) -> Config:
    return Config(introspection=IntrospectionConfig(**introspection))


class SlowColumnsIntrospector(StaticIntrospector):
    """Introspector whose column listing takes longer than any test timeout."""

    async def list_columns(self, table: str) -> list[str]:
        await asyncio.sleep(1.0)
        return await super().list_columns(table)


class FailingFunctionsIntrospector(StaticIntrospector):
    async def list_functions(self):
        raise RuntimeError("permission denied for pg_proc")


class RejectingIntrospector(StaticIntrospector):
    async def list_tables(self) -> list[str]:
        raise IntrospectionConnectionError("password authentication failed")


class HiddenAccountColumnsIntrospector(StaticIntrospector):
    """Column listing comes back empty, point checks still work."""

    async def list_columns(self, table: str) -> list[str]:
        return []


class CountingIntrospector(StaticIntrospector):
    """Records the peak number of column listings running at once."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.active = 0
        self.peak = 0

    async def list_columns(self, table: str) -> list[str]:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return await super().list_columns(table)


class DeadConnection:
    """Connection whose server has gone away."""

    def cursor(self):
        raise psycopg.OperationalError("server closed the connection unexpectedly")


class ClosedCursor:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, query, params=()):
        raise psycopg.InterfaceError("the connection is closed")


class ClosedConnection:
    def cursor(self):
        return ClosedCursor()


class TestStaticIntrospector:
    """Tests for StaticIntrospector."""

    def test_from_dict(self) -> None:
        """Test facts are parsed into typed records."""
        introspector = StaticIntrospector.from_dict(
            {
                "tables": {"accounts": ["id", "slug"]},
                "constraints": [{"table": "accounts", "name": "c", "type": "unique"}],
                "relationships": [
                    {"from_table": "posts", "from_column": "account_id", "to_table": "accounts"}
                ],
            }
        )

        assert introspector.tables == {"accounts": ["id", "slug"]}
        assert introspector.constraints == [ConstraintInfo(table="accounts", name="c", type="unique")]
        assert introspector.relationships[0] == RelationshipInfo("posts", "account_id", "accounts")

    def test_from_json(self, tmp_path) -> None:
        """Test facts load from a JSON file."""
        path = tmp_path / "facts.json"
        path.write_text(json.dumps({"tables": ["users"]}))

        introspector = StaticIntrospector.from_json(path)

        assert asyncio.run(introspector.table_exists("users"))
        assert not asyncio.run(introspector.table_exists("accounts"))


class TestBuildContext:
    """Tests for build_context()."""

    def test_builds_context(self) -> None:
        """Test tables, columns, constraints and relationships are gathered."""
        introspector = StaticIntrospector(
            tables={"users": ["id", "email"], "posts": ["id", "user_id"]},
            constraints=[ConstraintInfo(table="posts", name="posts_user_fk", type="foreign_key")],
            relationships=[RelationshipInfo("posts", "user_id", "users")],
        )

        context = build_context_sync(introspector)

        assert set(context.table_names) == {"users", "posts"}
        assert context.columns_of("users") == ("id", "email")
        assert [c.name for c in context.constraints] == ["posts_user_fk"]
        assert len(context.relationships) == 1
        assert context.warnings == ()

    def test_hints_and_framework_hint(self) -> None:
        """Test caller hints are carried onto the context."""
        context = asyncio.run(
            build_context(
                StaticIntrospector(tables={"accounts": ["id"]}),
                hints=["billing"],
                framework_hint="makerkit",
            )
        )

        assert context.business_logic_hints == ("billing",)
        assert context.framework_hint == "makerkit"

    def test_account_columns_point_checked(self) -> None:
        """Test account fields missing from the listing are found by point checks."""
        introspector = HiddenAccountColumnsIntrospector(
            tables={"accounts": ["id", "slug", "is_personal_account", "internal_note"]}
        )

        context = build_context_sync(introspector)

        assert context.columns_of("accounts") == ("id", "slug", "is_personal_account")

    def test_failed_lookup_is_absent(self) -> None:
        """Test a failing lookup leaves a warning and an empty fact."""
        introspector = FailingFunctionsIntrospector(tables={"users": ["id"]})

        context = build_context_sync(introspector)

        assert context.functions == ()
        assert "Lookup failed: list_functions" in context.warnings
        assert context.has_table("users")

    def test_lookup_timeout_is_absent(self) -> None:
        """Test a lookup exceeding query_timeout counts as absent."""
        introspector = SlowColumnsIntrospector(tables={"users": ["id", "email"]})

        context = build_context_sync(introspector, _config(query_timeout=0.05))

        assert context.has_table("users")
        assert context.columns_of("users") == ()
        assert "Lookup timed out: list_columns(users)" in context.warnings

    def test_global_deadline(self) -> None:
        """Test lookups still running at max_execution_time yield defaults."""
        introspector = SlowColumnsIntrospector(tables={"users": ["id"]})

        context = build_context_sync(
            introspector, _config(query_timeout=5.0, max_execution_time=0.1)
        )

        assert context.columns_of("users") == ()
        assert any("exceeded max_execution_time" in w for w in context.warnings)

    def test_connection_error_propagates(self) -> None:
        """Test connection failures are fatal, not treated as absence."""
        with pytest.raises(IntrospectionConnectionError):
            build_context_sync(RejectingIntrospector())

    def test_concurrency_bounded(self) -> None:
        """Test no more than max_concurrent_queries lookups run at once."""
        introspector = CountingIntrospector(
            tables={f"table_{i}": ["id"] for i in range(6)}
        )

        context = build_context_sync(introspector, _config(max_concurrent_queries=2))

        assert introspector.peak <= 2
        assert all(context.columns_of(f"table_{i}") == ("id",) for i in range(6))

    def test_single_query_at_a_time(self) -> None:
        """Test max_concurrent_queries=1 runs lookups one after another."""
        introspector = CountingIntrospector(tables={"users": ["id"], "posts": ["id"]})

        context = build_context_sync(introspector, _config(max_concurrent_queries=1))

        assert introspector.peak == 1
        assert context.warnings == ()


class TestPostgresIntrospector:
    """Tests for PostgresIntrospector error handling."""

    def test_lost_connection(self) -> None:
        """Test an OperationalError mid-session becomes a connection error."""
        introspector = PostgresIntrospector(DeadConnection())

        with pytest.raises(IntrospectionConnectionError, match="server closed the connection"):
            asyncio.run(introspector.table_exists("accounts"))

    def test_closed_connection(self) -> None:
        """Test an InterfaceError from execute becomes a connection error."""
        introspector = PostgresIntrospector(ClosedConnection())

        with pytest.raises(IntrospectionConnectionError, match="the connection is closed"):
            asyncio.run(introspector.list_columns("accounts"))

    def test_lost_connection_is_fatal_for_context(self) -> None:
        """Test a dropped connection aborts build_context instead of reading as absent."""
        with pytest.raises(IntrospectionConnectionError):
            asyncio.run(build_context(PostgresIntrospector(DeadConnection()), _config()))
