"""PostgreSQL schema introspection over information_schema."""

from __future__ import annotations

import logging
from typing import Any

import psycopg
from psycopg import AsyncConnection

from seedwise.core.models import (
    ConstraintInfo,
    FunctionInfo,
    RelationshipInfo,
    TriggerInfo,
)
from seedwise.exceptions import IntrospectionConnectionError, SchemaNotFoundError

logger = logging.getLogger(__name__)

CONSTRAINT_TYPES = {
    "CHECK": "check",
    "FOREIGN KEY": "foreign_key",
    "UNIQUE": "unique",
    "PRIMARY KEY": "primary_key",
}


class PostgresIntrospector:
    """
    Answer schema questions for one PostgreSQL schema.

    All queries go through a single ``AsyncConnection``, which executes them
    one at a time: concurrent lookups queue on the connection rather than run
    in parallel on the server.
    """

    def __init__(self, conn: AsyncConnection, schema: str = "public"):
        self.conn = conn
        self.schema = schema

    @classmethod
    async def connect(cls, url: str, schema: str = "public") -> PostgresIntrospector:
        """
        Open a connection and validate the schema.

        Raises:
            IntrospectionConnectionError: If the server rejects the connection
            SchemaNotFoundError: If the schema does not exist
        """
        try:
            conn = await AsyncConnection.connect(url, autocommit=True)
        except psycopg.OperationalError as e:
            raise IntrospectionConnectionError(str(e).strip()) from e

        introspector = cls(conn, schema)
        await introspector.validate_schema()
        return introspector

    async def close(self) -> None:
        await self.conn.close()

    async def _fetch(self, query: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        """
        Run a query and return all rows.

        Raises:
            IntrospectionConnectionError: If the connection is lost or unusable
        """
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()
        except (psycopg.OperationalError, psycopg.InterfaceError) as e:
            raise IntrospectionConnectionError(str(e).strip()) from e

    async def validate_schema(self) -> None:
        """Validate that schema exists in database."""
        rows = await self._fetch(
            "SELECT EXISTS(SELECT 1 FROM information_schema.schemata WHERE schema_name = %s)",
            (self.schema,),
        )
        if not rows or not rows[0][0]:
            raise SchemaNotFoundError(self.schema)

    async def table_exists(self, table: str) -> bool:
        rows = await self._fetch(
            """
            SELECT EXISTS(
                SELECT 1 FROM information_schema.tables
                WHERE table_schema = %s AND table_name = %s
            )
            """,
            (self.schema, table),
        )
        return bool(rows and rows[0][0])

    async def column_exists(self, table: str, column: str) -> bool:
        rows = await self._fetch(
            """
            SELECT EXISTS(
                SELECT 1 FROM information_schema.columns
                WHERE table_schema = %s AND table_name = %s AND column_name = %s
            )
            """,
            (self.schema, table, column),
        )
        return bool(rows and rows[0][0])

    async def list_tables(self) -> list[str]:
        rows = await self._fetch(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            (self.schema,),
        )
        return [row[0] for row in rows]

    async def list_columns(self, table: str) -> list[str]:
        rows = await self._fetch(
            """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = %s AND table_name = %s
            ORDER BY ordinal_position
            """,
            (self.schema, table),
        )
        return [row[0] for row in rows]

    async def list_constraints(self, table: str) -> list[ConstraintInfo]:
        rows = await self._fetch(
            """
            SELECT
                tc.constraint_name,
                tc.constraint_type,
                COALESCE(pg_get_constraintdef(pgc.oid), '') AS definition,
                COALESCE(
                    array_agg(kcu.column_name ORDER BY kcu.ordinal_position)
                        FILTER (WHERE kcu.column_name IS NOT NULL),
                    ARRAY[]::text[]
                ) AS columns
            FROM information_schema.table_constraints tc
            LEFT JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
              AND tc.table_schema = kcu.table_schema
            LEFT JOIN pg_constraint pgc
              ON pgc.conname = tc.constraint_name
              AND pgc.connamespace = (
                  SELECT oid FROM pg_namespace WHERE nspname = tc.table_schema
              )
            WHERE tc.table_schema = %s
              AND tc.table_name = %s
            GROUP BY tc.constraint_name, tc.constraint_type, pgc.oid
            ORDER BY tc.constraint_name
            """,
            (self.schema, table),
        )

        constraints = []
        for name, constraint_type, definition, columns in rows:
            kind = CONSTRAINT_TYPES.get(constraint_type, constraint_type.lower())
            # NOT NULL is reported as a CHECK named "<oid>_not_null"
            if kind == "check" and name.endswith("_not_null"):
                kind = "not_null"
            constraints.append(
                ConstraintInfo(
                    table=table,
                    name=name,
                    type=kind,
                    definition=definition,
                    columns=tuple(columns),
                )
            )
        return constraints

    async def list_relationships(self) -> list[RelationshipInfo]:
        rows = await self._fetch(
            """
            SELECT
                tc.table_name,
                kcu.column_name,
                ccu.table_name AS foreign_table_name,
                ccu.column_name AS foreign_column_name
            FROM information_schema.table_constraints AS tc
            JOIN information_schema.key_column_usage AS kcu
              ON tc.constraint_name = kcu.constraint_name
              AND tc.table_schema = kcu.table_schema
            JOIN information_schema.constraint_column_usage AS ccu
              ON ccu.constraint_name = tc.constraint_name
              AND ccu.table_schema = tc.table_schema
            WHERE tc.constraint_type = 'FOREIGN KEY'
              AND tc.table_schema = %s
            ORDER BY tc.table_name, kcu.column_name
            """,
            (self.schema,),
        )
        return [
            RelationshipInfo(from_table=row[0], from_column=row[1], to_table=row[2], to_column=row[3])
            for row in rows
        ]

    async def list_functions(self) -> list[FunctionInfo]:
        rows = await self._fetch(
            """
            SELECT
                n.nspname,
                p.proname,
                COALESCE(pg_get_function_identity_arguments(p.oid), ''),
                pg_get_function_result(p.oid)
            FROM pg_proc p
            JOIN pg_namespace n ON n.oid = p.pronamespace
            WHERE n.nspname NOT IN ('pg_catalog', 'information_schema')
              AND n.nspname NOT LIKE 'pg_toast%%'
            ORDER BY n.nspname, p.proname
            """
        )
        return [
            FunctionInfo(
                schema=row[0],
                name=row[1],
                args=tuple(a.strip() for a in row[2].split(",") if a.strip()),
                return_type=row[3] or "",
            )
            for row in rows
        ]

    async def list_triggers(self) -> list[TriggerInfo]:
        rows = await self._fetch(
            """
            SELECT trigger_name, event_object_table, event_manipulation, action_statement
            FROM information_schema.triggers
            WHERE trigger_schema = %s
            ORDER BY trigger_name
            """,
            (self.schema,),
        )

        triggers = []
        for name, table, event, action in rows:
            # action_statement looks like "EXECUTE FUNCTION kit.setup_new_user()"
            function = action.rsplit(" ", 1)[-1].split("(", 1)[0] if action else ""
            triggers.append(TriggerInfo(name=name, table=table, event=event, function=function))
        logger.debug(f"Found {len(triggers)} triggers in schema {self.schema}")
        return triggers
