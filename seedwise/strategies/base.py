"""Base seeding strategy interface and selection records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from seedwise.constraints.handlers import ConstraintHandlingResult
from seedwise.core.models import ClassificationResult, DetectionAnalysisContext


class SeedingStrategy(ABC):
    """Base class for framework-specific seeding strategies."""

    name: str = ""

    @abstractmethod
    def get_priority(self) -> int:
        """Priority of this strategy (higher = more specific)."""
        pass

    @abstractmethod
    def detect(self, context: DetectionAnalysisContext) -> ClassificationResult:
        """Report how well this strategy fits a schema.

        Args:
            context: Schema facts

        Returns:
            ClassificationResult whose confidence is the fit
        """
        pass

    @abstractmethod
    def get_recommendations(self) -> list[str]:
        pass

    @abstractmethod
    def supports_feature(self, feature: str) -> bool:
        pass

    @abstractmethod
    def handle_constraints(self, table: str, row: dict[str, Any]) -> ConstraintHandlingResult:
        """Adjust a row so it satisfies the framework's constraints.

        Args:
            table: Target table
            row: Candidate row (never mutated)

        Returns:
            Handling result with the modified row and the fixes applied
        """
        pass


@dataclass
class StrategySelection:
    """Chosen strategy, the detection behind the choice and why it was made."""

    strategy: SeedingStrategy
    classification: ClassificationResult
    reason: str  # manual_override | high_confidence | fallback
    warnings: list[str] = field(default_factory=list)

    @property
    def strategy_name(self) -> str:
        return self.strategy.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy_name": self.strategy_name,
            "reason": self.reason,
            "warnings": list(self.warnings),
            "classification": self.classification.to_dict(),
        }


@dataclass
class StrategyValidation:
    valid: bool
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }
