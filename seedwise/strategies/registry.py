"""Seeding strategy registry and selection."""

from __future__ import annotations

import logging
from typing import Optional

from seedwise.config import StrategyConfig
from seedwise.core.models import ClassificationResult, DetectionAnalysisContext
from seedwise.exceptions import SeedwiseError, UnknownStrategyError
from seedwise.strategies.base import SeedingStrategy, StrategySelection, StrategyValidation
from seedwise.strategies.generic import GenericStrategy
from seedwise.strategies.makerkit import MakerKitStrategy

# Confidence gap below which strategy priority decides the ranking
PRIORITY_TIE_GAP = 0.1


def _rank(
    results: list[tuple[SeedingStrategy, ClassificationResult]],
) -> list[tuple[SeedingStrategy, ClassificationResult]]:
    """
    Order detections by confidence, letting priority decide near-ties.

    A pairwise "within the gap" test is not transitive, so ranking walks
    bands instead: every strategy within PRIORITY_TIE_GAP of the best
    remaining confidence joins the band, the band is ordered by priority,
    and the walk repeats on what is left. Name breaks exact ties.
    """
    remaining = sorted(results, key=lambda r: (-r[1].confidence, r[0].name))
    ranked = []
    while remaining:
        floor = remaining[0][1].confidence - PRIORITY_TIE_GAP
        band = [r for r in remaining if r[1].confidence >= floor]
        remaining = [r for r in remaining if r[1].confidence < floor]
        band.sort(key=lambda r: (-r[0].get_priority(), -r[1].confidence, r[0].name))
        ranked.extend(band)
    return ranked


class StrategyRegistry:
    """
    Named seeding strategies and the rules for choosing between them.

    Selection order:
        1. A caller override naming a registered strategy (reason ``manual_override``)
        2. The best-ranked strategy at or above ``minimum_confidence`` (``high_confidence``)
        3. The generic strategy (``fallback``)

    Ranking is by confidence, with priority breaking near-ties.
    """

    def __init__(
        self,
        strategies: Optional[list[SeedingStrategy]] = None,
        minimum_confidence: float = 0.3,
        enable_fallback: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize registry with the given strategies or the built-in ones."""
        self.minimum_confidence = minimum_confidence
        self.enable_fallback = enable_fallback
        self.logger = logger or logging.getLogger(__name__)
        self._strategies: dict[str, SeedingStrategy] = {}
        if strategies is None:
            strategies = [MakerKitStrategy(), GenericStrategy()]
        for strategy in strategies:
            self.register(strategy)

    @classmethod
    def from_config(cls, config: StrategyConfig) -> StrategyRegistry:
        return cls(
            minimum_confidence=config.minimum_confidence,
            enable_fallback=config.enable_fallback,
        )

    def register(self, strategy: SeedingStrategy) -> None:
        self._strategies[strategy.name] = strategy
        self.logger.debug(f"Registered strategy: {strategy.name}")

    def unregister(self, name: str) -> None:
        self._strategies.pop(name, None)

    @property
    def names(self) -> list[str]:
        return list(self._strategies)

    def get(self, name: str) -> SeedingStrategy:
        """
        Get a strategy by name.

        Raises:
            UnknownStrategyError: If no strategy has that name
        """
        if name not in self._strategies:
            raise UnknownStrategyError(name, self.names)
        return self._strategies[name]

    def _detect_all(
        self, context: DetectionAnalysisContext
    ) -> list[tuple[SeedingStrategy, ClassificationResult]]:
        results = []
        for strategy in self._strategies.values():
            try:
                detection = strategy.detect(context)
            except Exception as e:
                self.logger.warning(f"Strategy {strategy.name} detection failed: {e}")
                continue
            self.logger.debug(f"Strategy {strategy.name} confidence: {detection.confidence:.2f}")
            results.append((strategy, detection))
        return _rank(results)

    def _find_fallback(self) -> Optional[SeedingStrategy]:
        for name, strategy in self._strategies.items():
            if "generic" in name.lower():
                return strategy
        if not self._strategies:
            return None
        return min(self._strategies.values(), key=lambda s: s.get_priority())

    def select_strategy(
        self,
        context: DetectionAnalysisContext,
        override: Optional[str] = None,
    ) -> StrategySelection:
        """
        Choose the seeding strategy for a schema.

        Args:
            context: Schema facts
            override: Strategy name forced by the caller

        Returns:
            StrategySelection with the reason for the choice. Conflicts between
            an override and the evidence are reported in ``warnings``.
        """
        if not self._strategies:
            raise SeedwiseError("No seeding strategies registered")

        warnings: list[str] = []
        ranked = self._detect_all(context)

        if override:
            if override in self._strategies:
                strategy = self._strategies[override]
                detection = strategy.detect(context)
                if detection.confidence < self.minimum_confidence:
                    warnings.append(
                        f"Override strategy '{override}' has low confidence "
                        f"({detection.confidence:.2f}) for this schema"
                    )
                if ranked and ranked[0][0].name != override:
                    best, best_detection = ranked[0]
                    if best_detection.confidence >= self.minimum_confidence:
                        warnings.append(
                            f"Auto-detection prefers '{best.name}' "
                            f"({best_detection.confidence:.2f}) over override '{override}'"
                        )
                return StrategySelection(strategy, detection, "manual_override", warnings)

            message = f"Override strategy '{override}' not found, falling back to auto-detection"
            self.logger.warning(message)
            warnings.append(message)

        if ranked and ranked[0][1].confidence >= self.minimum_confidence:
            strategy, detection = ranked[0]
            self.logger.info(f"Selected strategy {strategy.name} ({detection.confidence:.2f})")
            return StrategySelection(strategy, detection, "high_confidence", warnings)

        best_confidence = ranked[0][1].confidence if ranked else 0.0
        fallback = self._find_fallback() if self.enable_fallback else None
        if fallback is None:
            # Nothing qualifies and fallback is off: keep the best candidate, flagged
            if not ranked:
                fallback = next(iter(self._strategies.values()))
                detection = fallback.detect(context)
            else:
                fallback, detection = ranked[0]
            warnings.append(
                f"No strategy meets minimum confidence threshold ({self.minimum_confidence})"
            )
            return StrategySelection(fallback, detection, "fallback", warnings)

        self.logger.warning(f"Low confidence ({best_confidence:.2f}), using fallback strategy")
        warnings.append(
            f"Low confidence ({best_confidence:.2f}), using {fallback.name} fallback strategy"
        )
        detection = next((d for s, d in ranked if s is fallback), None)
        if detection is None:
            detection = fallback.detect(context)
        return StrategySelection(fallback, detection, "fallback", warnings)

    def get_all_detection_results(
        self, context: DetectionAnalysisContext
    ) -> dict[str, ClassificationResult]:
        """Run every strategy's detection; failures are reported at confidence 0."""
        results = {}
        for strategy in self._strategies.values():
            try:
                results[strategy.name] = strategy.detect(context)
            except Exception as e:
                self.logger.warning(f"Detection failed for strategy {strategy.name}: {e}")
                results[strategy.name] = ClassificationResult(
                    primary_label=strategy.name,
                    confidence=0.0,
                    errors=[str(e)],
                    recommendations=[f"Detection failed: {e}"],
                )
        return results

    def validate_strategy(
        self, name: str, context: DetectionAnalysisContext
    ) -> StrategyValidation:
        """
        Check that a strategy fits a schema. Never raises.

        Invalid strategies stay selectable; the result only flags them.
        """
        strategy = self._strategies.get(name)
        if strategy is None:
            return StrategyValidation(
                valid=False,
                issues=[f"Strategy '{name}' not found"],
                recommendations=["Register the strategy first"],
            )

        try:
            detection = strategy.detect(context)
        except Exception as e:
            return StrategyValidation(
                valid=False,
                issues=[f"Strategy validation failed: {e}"],
                recommendations=["Check strategy implementation and schema compatibility"],
            )

        issues = []
        if detection.confidence == 0:
            issues.append("Strategy not compatible with schema")
        elif detection.confidence < self.minimum_confidence:
            issues.append(
                f"Confidence {detection.confidence:.2f} is below the selection threshold "
                f"{self.minimum_confidence}"
            )
        issues.extend(detection.errors)

        return StrategyValidation(
            valid=detection.confidence > 0 and not detection.errors,
            issues=issues,
            recommendations=strategy.get_recommendations(),
        )


def select_strategy(
    context: DetectionAnalysisContext,
    override: Optional[str] = None,
    config: Optional[StrategyConfig] = None,
) -> StrategySelection:
    """Select a strategy with the built-in registry."""
    config = config or StrategyConfig()
    registry = StrategyRegistry.from_config(config)
    return registry.select_strategy(context, override or config.override)
