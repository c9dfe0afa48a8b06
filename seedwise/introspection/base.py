"""Schema introspector capability interface and an in-memory implementation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from seedwise.core.models import (
    ConstraintInfo,
    FunctionInfo,
    RelationshipInfo,
    TriggerInfo,
)


@runtime_checkable
class SchemaIntrospector(Protocol):
    """
    Minimal set of schema questions the detection layer asks.

    Analyzers never see a database client; they only see facts gathered
    through this interface by ``build_context``.
    """

    async def table_exists(self, table: str) -> bool: ...

    async def column_exists(self, table: str, column: str) -> bool: ...

    async def list_tables(self) -> list[str]: ...

    async def list_columns(self, table: str) -> list[str]: ...

    async def list_constraints(self, table: str) -> list[ConstraintInfo]: ...

    async def list_relationships(self) -> list[RelationshipInfo]: ...

    async def list_functions(self) -> list[FunctionInfo]: ...

    async def list_triggers(self) -> list[TriggerInfo]: ...


class StaticIntrospector:
    """
    Introspector over facts held in memory.

    Used for offline detection from a JSON facts file and throughout the
    test suite. The JSON shape matches ``DetectionAnalysisContext.to_dict``.
    """

    def __init__(
        self,
        tables: dict[str, list[str]] | None = None,
        constraints: list[ConstraintInfo] | None = None,
        relationships: list[RelationshipInfo] | None = None,
        functions: list[FunctionInfo] | None = None,
        triggers: list[TriggerInfo] | None = None,
    ):
        self.tables = {name: list(columns) for name, columns in (tables or {}).items()}
        self.constraints = list(constraints or [])
        self.relationships = list(relationships or [])
        self.functions = list(functions or [])
        self.triggers = list(triggers or [])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StaticIntrospector:
        raw_tables = data.get("tables", {})
        if not isinstance(raw_tables, dict):
            raw_tables = {name: [] for name in raw_tables}
        return cls(
            tables={name: list(columns or []) for name, columns in raw_tables.items()},
            constraints=[ConstraintInfo.from_dict(c) for c in data.get("constraints", [])],
            relationships=[RelationshipInfo.from_dict(r) for r in data.get("relationships", [])],
            functions=[FunctionInfo.from_dict(f) for f in data.get("functions", [])],
            triggers=[TriggerInfo.from_dict(t) for t in data.get("triggers", [])],
        )

    @classmethod
    def from_json(cls, path: Path | str) -> StaticIntrospector:
        """Load facts from a JSON file."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    async def table_exists(self, table: str) -> bool:
        return table in self.tables

    async def column_exists(self, table: str, column: str) -> bool:
        return column in self.tables.get(table, [])

    async def list_tables(self) -> list[str]:
        return sorted(self.tables)

    async def list_columns(self, table: str) -> list[str]:
        return list(self.tables.get(table, []))

    async def list_constraints(self, table: str) -> list[ConstraintInfo]:
        return [c for c in self.constraints if c.table == table]

    async def list_relationships(self) -> list[RelationshipInfo]:
        return list(self.relationships)

    async def list_functions(self) -> list[FunctionInfo]:
        return list(self.functions)

    async def list_triggers(self) -> list[TriggerInfo]:
        return list(self.triggers)
