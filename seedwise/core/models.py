"""
Core data models for seedwise.

Defines the schema facts gathered by introspection, the immutable analysis
context they are folded into, and the evidence/classification records that
every detector produces.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from seedwise.core.scoring import clamp, confidence_level

ARCHITECTURE_LABELS = ("individual", "team", "hybrid")
DOMAIN_LABELS = ("outdoor", "saas", "ecommerce", "social", "generic")


@dataclass(frozen=True)
class ConstraintInfo:
    """A table constraint as reported by the database."""

    table: str
    name: str
    type: str  # check | foreign_key | unique | primary_key | not_null
    definition: str = ""
    columns: tuple[str, ...] = ()
    referenced_table: Optional[str] = None
    referenced_column: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "name": self.name,
            "type": self.type,
            "definition": self.definition,
            "columns": list(self.columns),
            "referenced_table": self.referenced_table,
            "referenced_column": self.referenced_column,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConstraintInfo:
        return cls(
            table=data["table"],
            name=data["name"],
            type=data.get("type", "check"),
            definition=data.get("definition", ""),
            columns=tuple(data.get("columns", ())),
            referenced_table=data.get("referenced_table"),
            referenced_column=data.get("referenced_column"),
        )


@dataclass(frozen=True)
class RelationshipInfo:
    """A foreign key edge: from_table.from_column references to_table.to_column."""

    from_table: str
    from_column: str
    to_table: str
    to_column: str = "id"
    kind: str = "foreign_key"

    @property
    def label(self) -> str:
        """Short human-readable form (e.g., posts.user_id->users)."""
        return f"{self.from_table}.{self.from_column}->{self.to_table}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_table": self.to_table,
            "to_column": self.to_column,
            "kind": self.kind,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelationshipInfo:
        return cls(
            from_table=data["from_table"],
            from_column=data["from_column"],
            to_table=data["to_table"],
            to_column=data.get("to_column", "id"),
            kind=data.get("kind", "foreign_key"),
        )


@dataclass(frozen=True)
class FunctionInfo:
    """A stored function visible to the seeding role."""

    schema: str
    name: str
    args: tuple[str, ...] = ()
    return_type: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "name": self.name,
            "args": list(self.args),
            "return_type": self.return_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionInfo:
        return cls(
            schema=data.get("schema", "public"),
            name=data["name"],
            args=tuple(data.get("args", ())),
            return_type=data.get("return_type", ""),
        )


@dataclass(frozen=True)
class TriggerInfo:
    """A table trigger and the function it fires."""

    name: str
    table: str
    event: str
    function: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "table": self.table,
            "event": self.event,
            "function": self.function,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TriggerInfo:
        return cls(
            name=data["name"],
            table=data["table"],
            event=data.get("event", "INSERT"),
            function=data.get("function", ""),
        )


@dataclass(frozen=True)
class TableFact:
    """A table known to exist, with the columns that were confirmed on it."""

    name: str
    columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class DetectionAnalysisContext:
    """
    Immutable snapshot of schema facts for one detection run.

    Every analyzer and detector reads from this object only. It is built once
    by ``build_context`` (or ``from_dict`` for offline facts) and never
    mutated; ``restricted_to`` returns a new snapshot.

    The optional ``logger``/``verbose`` pair lets callers route diagnostics
    for a single run without touching process-wide logging configuration.
    """

    tables: tuple[TableFact, ...] = ()
    constraints: tuple[ConstraintInfo, ...] = ()
    relationships: tuple[RelationshipInfo, ...] = ()
    functions: tuple[FunctionInfo, ...] = ()
    triggers: tuple[TriggerInfo, ...] = ()
    framework_hint: Optional[str] = None
    business_logic_hints: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    verbose: bool = False
    logger: Optional[logging.Logger] = field(default=None, compare=False, repr=False)

    @property
    def table_names(self) -> tuple[str, ...]:
        return tuple(table.name for table in self.tables)

    def has_table(self, name: str) -> bool:
        """Check if a table with this exact name exists (case-insensitive)."""
        wanted = name.lower()
        return any(table.name.lower() == wanted for table in self.tables)

    def columns_of(self, table_name: str) -> tuple[str, ...]:
        wanted = table_name.lower()
        for table in self.tables:
            if table.name.lower() == wanted:
                return table.columns
        return ()

    def has_column(self, table_name: str, column: str) -> bool:
        return column.lower() in (c.lower() for c in self.columns_of(table_name))

    def iter_columns(self) -> list[tuple[str, str]]:
        """All (table, column) pairs in declaration order."""
        return [(table.name, column) for table in self.tables for column in table.columns]

    def constraints_for(self, table_name: str) -> list[ConstraintInfo]:
        return [c for c in self.constraints if c.table == table_name]

    def business_logic_names(self) -> list[str]:
        """Names that carry business-logic signal: functions, triggers and hints."""
        names = [fn.name for fn in self.functions]
        names.extend(trigger.name for trigger in self.triggers)
        names.extend(trigger.function for trigger in self.triggers if trigger.function)
        names.extend(self.business_logic_hints)
        return names

    def get_logger(self, default: logging.Logger) -> logging.Logger:
        return self.logger if self.logger is not None else default

    def restricted_to(
        self,
        focus_tables: Optional[list[str]] = None,
        exclude_tables: Optional[list[str]] = None,
    ) -> DetectionAnalysisContext:
        """Return a new context limited to focus tables and without excluded ones."""
        if not focus_tables and not exclude_tables:
            return self

        keep = {t.name for t in self.tables}
        if focus_tables:
            keep &= set(focus_tables)
        if exclude_tables:
            keep -= set(exclude_tables)

        return DetectionAnalysisContext(
            tables=tuple(t for t in self.tables if t.name in keep),
            constraints=tuple(c for c in self.constraints if c.table in keep),
            relationships=tuple(
                r for r in self.relationships if r.from_table in keep and r.to_table in keep
            ),
            functions=self.functions,
            triggers=tuple(t for t in self.triggers if t.table in keep),
            framework_hint=self.framework_hint,
            business_logic_hints=self.business_logic_hints,
            warnings=self.warnings,
            verbose=self.verbose,
            logger=self.logger,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tables": {table.name: list(table.columns) for table in self.tables},
            "constraints": [c.to_dict() for c in self.constraints],
            "relationships": [r.to_dict() for r in self.relationships],
            "functions": [f.to_dict() for f in self.functions],
            "triggers": [t.to_dict() for t in self.triggers],
            "framework_hint": self.framework_hint,
            "business_logic_hints": list(self.business_logic_hints),
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        logger: Optional[logging.Logger] = None,
        verbose: bool = False,
    ) -> DetectionAnalysisContext:
        """
        Build a context from plain facts.

        ``tables`` may be a mapping of table name to column list, or a list of
        table names when no column information is available.
        """
        raw_tables = data.get("tables", {})
        if isinstance(raw_tables, dict):
            tables = tuple(
                TableFact(name=name, columns=tuple(columns or ()))
                for name, columns in raw_tables.items()
            )
        else:
            tables = tuple(TableFact(name=name) for name in raw_tables)

        return cls(
            tables=tables,
            constraints=tuple(ConstraintInfo.from_dict(c) for c in data.get("constraints", ())),
            relationships=tuple(
                RelationshipInfo.from_dict(r) for r in data.get("relationships", ())
            ),
            functions=tuple(FunctionInfo.from_dict(f) for f in data.get("functions", ())),
            triggers=tuple(TriggerInfo.from_dict(t) for t in data.get("triggers", ())),
            framework_hint=data.get("framework_hint"),
            business_logic_hints=tuple(data.get("business_logic_hints", ())),
            warnings=tuple(data.get("warnings", ())),
            verbose=verbose,
            logger=logger,
        )


@dataclass
class Evidence:
    """A single weighted observation supporting one or more classes."""

    type: str
    description: str
    confidence: float
    weight: float
    supporting_data: dict[str, Any] = field(default_factory=dict)
    class_strengths: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.confidence = clamp(self.confidence)
        self.weight = clamp(self.weight)
        self.class_strengths = {k: clamp(v) for k, v in self.class_strengths.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "confidence": self.confidence,
            "weight": self.weight,
            "supporting_data": self.supporting_data,
            "class_strengths": self.class_strengths,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Evidence:
        return cls(
            type=data["type"],
            description=data["description"],
            confidence=data["confidence"],
            weight=data["weight"],
            supporting_data=dict(data.get("supporting_data", {})),
            class_strengths=dict(data.get("class_strengths", {})),
        )


@dataclass
class Alternative:
    """A ranked runner-up label."""

    label: str
    confidence: float
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "confidence": self.confidence, "reasoning": self.reasoning}


@dataclass
class DetectionMetrics:
    """Run metrics. Execution time is excluded from equality."""

    execution_time_ms: float = field(default=0.0, compare=False)
    evidence_count: int = 0
    tables_analyzed: int = 0
    strategy_used: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_time_ms": self.execution_time_ms,
            "evidence_count": self.evidence_count,
            "tables_analyzed": self.tables_analyzed,
            "strategy_used": self.strategy_used,
        }


@dataclass
class ClassificationResult:
    """
    Outcome of one classification question (architecture, domain, framework).

    ``confidence`` is clamped to [0, 1] and ``confidence_level`` is always
    derived from it. ``reasoning_trace`` is built in the order signals were
    folded in and is part of the result, not a debug side-channel.
    """

    primary_label: str
    confidence: float
    evidence: list[Evidence] = field(default_factory=list)
    alternatives: list[Alternative] = field(default_factory=list)
    reasoning_trace: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    metrics: DetectionMetrics = field(default_factory=DetectionMetrics)
    metadata: dict[str, Any] = field(default_factory=dict)
    confidence_level: str = field(init=False)

    def __post_init__(self) -> None:
        self.confidence = clamp(self.confidence)
        self.confidence_level = confidence_level(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_label": self.primary_label,
            "confidence": self.confidence,
            "confidence_level": self.confidence_level,
            "evidence": [e.to_dict() for e in self.evidence],
            "alternatives": [a.to_dict() for a in self.alternatives],
            "reasoning_trace": list(self.reasoning_trace),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "recommendations": list(self.recommendations),
            "metrics": self.metrics.to_dict(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassificationResult:
        return ClassificationResult(
            primary_label=data["primary_label"],
            confidence=data["confidence"],
            evidence=[Evidence.from_dict(e) for e in data.get("evidence", [])],
            alternatives=[Alternative(**a) for a in data.get("alternatives", [])],
            reasoning_trace=list(data.get("reasoning_trace", [])),
            warnings=list(data.get("warnings", [])),
            errors=list(data.get("errors", [])),
            recommendations=list(data.get("recommendations", [])),
            metrics=DetectionMetrics(**data.get("metrics", {})),
            metadata=dict(data.get("metadata", {})),
        )


@dataclass
class FrameworkClassification(ClassificationResult):
    """Framework family classification with a resolved version label."""

    framework: str = "generic"
    version: str = "none"
    is_makerkit: bool = False
    detected_features: list[str] = field(default_factory=list)
    missing_features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "framework": self.framework,
                "version": self.version,
                "is_makerkit": self.is_makerkit,
                "detected_features": list(self.detected_features),
                "missing_features": list(self.missing_features),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FrameworkClassification:
        base = ClassificationResult.from_dict(data)
        return cls(
            primary_label=base.primary_label,
            confidence=base.confidence,
            evidence=base.evidence,
            alternatives=base.alternatives,
            reasoning_trace=base.reasoning_trace,
            warnings=base.warnings,
            errors=base.errors,
            recommendations=base.recommendations,
            metrics=base.metrics,
            metadata=base.metadata,
            framework=data.get("framework", "generic"),
            version=data.get("version", base.primary_label),
            is_makerkit=data.get("is_makerkit", False),
            detected_features=list(data.get("detected_features", [])),
            missing_features=list(data.get("missing_features", [])),
        )


@dataclass
class MatchDetails:
    """What a single pattern rule matched in the context."""

    tables: list[str] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)
    relationships: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return (
            len(self.tables)
            + len(self.columns)
            + len(self.constraints)
            + len(self.relationships)
            + len(self.functions)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tables": list(self.tables),
            "columns": list(self.columns),
            "constraints": list(self.constraints),
            "relationships": list(self.relationships),
            "functions": list(self.functions),
        }


@dataclass
class PatternAnalysisResult:
    """Evaluation of one PatternRule against one context."""

    rule: Any  # PatternRule; typed loosely to keep models free of pattern imports
    matched: bool
    match_confidence: float
    match_details: MatchDetails = field(default_factory=MatchDetails)

    def __post_init__(self) -> None:
        self.match_confidence = clamp(self.match_confidence)

    @property
    def class_indication(self) -> tuple[str, ...]:
        return self.rule.indicated_classes
