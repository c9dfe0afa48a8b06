"""
Platform architecture detection (individual / team / hybrid).

Pattern matches, schema structure, relationship balance and constraints are
turned into Evidence. Each class score is the evidence-weighted average of
per-class strengths; the detection strategy then decides how the scores
become a label.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from seedwise.analyzers import analyze_architecture
from seedwise.config import DetectionConfig
from seedwise.core.models import (
    ARCHITECTURE_LABELS,
    Alternative,
    ClassificationResult,
    DetectionAnalysisContext,
    DetectionMetrics,
    Evidence,
    PatternAnalysisResult,
)
from seedwise.core.scoring import balance, weighted_average
from seedwise.detection.base import DetectorStatistics
from seedwise.patterns.architecture import ORG_OWNER_COLUMNS, USER_OWNER_COLUMNS

logger = logging.getLogger(__name__)

NEUTRAL_LABEL = "hybrid"
OVERRIDE_CONFIDENCE = 0.95
FALLBACK_CONFIDENCE = 0.5
PATTERN_EVIDENCE_MIN = 0.3
ALTERNATIVE_MIN = 0.2
HIGH_CONFIDENCE_EVIDENCE = 0.7

RECOMMENDATIONS = {
    "individual": (
        "Configure individual creator user archetypes",
        "Use content-focused seeding patterns",
    ),
    "team": (
        "Configure team collaboration features",
        "Use organization-based seeding patterns",
    ),
    "hybrid": (
        "Configure flexible user archetypes for both individual and team use",
        "Use adaptive seeding patterns based on account type",
    ),
}


def pattern_evidence(grouped: dict[str, list[PatternAnalysisResult]]) -> list[Evidence]:
    evidence = []
    for label in ARCHITECTURE_LABELS:
        for result in grouped.get(label, []):
            if result.match_confidence <= PATTERN_EVIDENCE_MIN:
                continue
            evidence.append(
                Evidence(
                    type="table_pattern",
                    description=f"{result.rule.name} ({result.match_confidence:.2f})",
                    confidence=result.match_confidence,
                    weight=result.rule.confidence_weight,
                    supporting_data={
                        "pattern": result.rule.id,
                        **result.match_details.to_dict(),
                    },
                    class_strengths={
                        other: result.match_confidence if other == label else 0.0
                        for other in ARCHITECTURE_LABELS
                    },
                )
            )
    return evidence


def structural_evidence(context: DetectionAnalysisContext) -> list[Evidence]:
    tables = len(context.tables)
    relationships = len(context.relationships)
    evidence = []
    if tables <= 10 and relationships <= 15:
        evidence.append(
            Evidence(
                type="data_pattern",
                description=f"Simple schema structure ({tables} tables, {relationships} relationships)",
                confidence=0.7,
                weight=0.6,
                supporting_data={"tables": tables, "relationships": relationships},
                class_strengths={"individual": 0.8, "team": 0.2, "hybrid": 0.4},
            )
        )
    if tables >= 15 and relationships >= 25:
        evidence.append(
            Evidence(
                type="data_pattern",
                description=f"Complex schema structure ({tables} tables, {relationships} relationships)",
                confidence=0.8,
                weight=0.7,
                supporting_data={"tables": tables, "relationships": relationships},
                class_strengths={"individual": 0.1, "team": 0.9, "hybrid": 0.6},
            )
        )
    return evidence


def relationship_evidence(context: DetectionAnalysisContext) -> list[Evidence]:
    user_links = [r.label for r in context.relationships if r.from_column.lower() in USER_OWNER_COLUMNS]
    org_links = [r.label for r in context.relationships if r.from_column.lower() in ORG_OWNER_COLUMNS]
    users, orgs = len(user_links), len(org_links)
    evidence = []

    if users > orgs * 2:
        evidence.append(
            Evidence(
                type="relationship_pattern",
                description=f"Strong user-centric relationships ({users} user vs {orgs} org)",
                confidence=0.8,
                weight=0.8,
                supporting_data={"relationships": user_links},
                class_strengths={"individual": 0.9, "team": 0.1, "hybrid": 0.3},
            )
        )
    if orgs > users:
        evidence.append(
            Evidence(
                type="relationship_pattern",
                description=f"Strong organization-centric relationships ({orgs} org vs {users} user)",
                confidence=0.8,
                weight=0.8,
                supporting_data={"relationships": org_links},
                class_strengths={"individual": 0.1, "team": 0.9, "hybrid": 0.4},
            )
        )

    ratio = users / max(orgs, 1)
    if 0.5 < ratio < 2.0 and users > 2 and orgs > 2:
        evidence.append(
            Evidence(
                type="relationship_pattern",
                description=f"Balanced user/organization relationships (ratio: {ratio:.2f})",
                confidence=0.7,
                weight=0.9,
                supporting_data={"relationships": user_links + org_links},
                class_strengths={"individual": 0.3, "team": 0.3, "hybrid": 0.8},
            )
        )
    return evidence


def constraint_evidence(context: DetectionAnalysisContext) -> list[Evidence]:
    personal = [
        c.name
        for c in context.constraints
        if "personal_account" in c.name.lower() or "is_personal" in c.name.lower()
    ]
    if not personal:
        return []
    return [
        Evidence(
            type="constraint_pattern",
            description=f"Personal account constraints detected ({len(personal)})",
            confidence=0.9,
            weight=0.8,
            supporting_data={"constraints": personal},
            class_strengths={"individual": 0.4, "team": 0.4, "hybrid": 0.9},
        )
    ]


def class_scores(evidence: list[Evidence]) -> dict[str, float]:
    """Evidence-weighted score per class: sum(strength * conf * weight) / sum(conf * weight)."""
    return {
        label: weighted_average(
            (item.class_strengths.get(label, 0.0), item.confidence * item.weight)
            for item in evidence
        )
        for label in ARCHITECTURE_LABELS
    }


def schema_complexity(context: DetectionAnalysisContext) -> float:
    return (
        min(len(context.tables) / 50, 1.0)
        + min(len(context.relationships) / 100, 1.0)
        + min(len(context.constraints) / 50, 1.0)
    ) / 3


class ArchitectureDetector:
    """Detect whether a schema serves individuals, teams or both."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.stats = DetectorStatistics()

    def detect(
        self,
        context: DetectionAnalysisContext,
        config: Optional[DetectionConfig] = None,
    ) -> ClassificationResult:
        """
        Classify the platform architecture.

        Never raises: internal failures produce a hybrid result at 0.5 with
        the error recorded in ``errors``.
        """
        config = config or DetectionConfig()
        log = context.get_logger(self.logger)
        start = time.perf_counter()

        try:
            if config.manual_override:
                result = self._detect_with_override(context, config)
            else:
                result = self._detect(context, config, log)
        except Exception as e:
            log.error(f"Architecture detection failed: {e}")
            result = ClassificationResult(
                primary_label=NEUTRAL_LABEL,
                confidence=FALLBACK_CONFIDENCE,
                reasoning_trace=["Detection failed, using fallback hybrid classification"],
                warnings=["Architecture detection failed; using hybrid fallback"],
                errors=[str(e)],
                metrics=DetectionMetrics(strategy_used="fallback"),
            )

        result.metrics.execution_time_ms = (time.perf_counter() - start) * 1000
        self.stats.record(result)
        log.debug(
            f"Architecture: {result.primary_label} ({result.confidence:.2f}) "
            f"via {result.metrics.strategy_used}"
        )
        return result

    def _detect_with_override(
        self, context: DetectionAnalysisContext, config: DetectionConfig
    ) -> ClassificationResult:
        override = config.manual_override
        detected = self._detect(
            context,
            config.model_copy(update={"manual_override": None}),
            context.get_logger(self.logger),
        )
        warnings = []
        if detected.primary_label != override and detected.confidence > 0:
            warnings.append(
                f"Manual override '{override}' conflicts with detected architecture "
                f"'{detected.primary_label}' ({detected.confidence:.2f})"
            )
        return ClassificationResult(
            primary_label=override,
            confidence=OVERRIDE_CONFIDENCE,
            evidence=detected.evidence,
            alternatives=[
                Alternative(
                    label=detected.primary_label,
                    confidence=detected.confidence,
                    reasoning="Automatic detection result before override",
                )
            ]
            if detected.primary_label != override
            else [],
            reasoning_trace=[f"Manual override applied: {override}"] + detected.reasoning_trace,
            warnings=warnings,
            recommendations=list(RECOMMENDATIONS[override]),
            metrics=DetectionMetrics(
                evidence_count=len(detected.evidence),
                tables_analyzed=len(context.tables),
                strategy_used="manual_override",
            ),
            metadata=detected.metadata,
        )

    def _detect(
        self,
        context: DetectionAnalysisContext,
        config: DetectionConfig,
        log: logging.Logger,
    ) -> ClassificationResult:
        scoped = context.restricted_to(config.focus_tables, config.exclude_tables)
        strategy = config.strategy
        trace = [
            f"Analyzed {len(scoped.tables)} tables, {len(scoped.relationships)} relationships, "
            f"{len(scoped.constraints)} constraints"
        ]

        grouped = analyze_architecture(scoped)
        pattern_scores = {
            label: weighted_average(
                (r.match_confidence, r.rule.confidence_weight) for r in grouped[label]
            )
            for label in ARCHITECTURE_LABELS
        }
        trace.append(
            "Pattern analysis: "
            + ", ".join(f"{label}={pattern_scores[label]:.2f}" for label in ARCHITECTURE_LABELS)
        )
        metadata = {
            "pattern_scores": pattern_scores,
            "matched_patterns": {
                label: [r.rule.id for r in grouped[label]] for label in ARCHITECTURE_LABELS
            },
            "schema_complexity": schema_complexity(scoped),
        }
        metrics = DetectionMetrics(tables_analyzed=len(scoped.tables), strategy_used=strategy)

        if not any(grouped.values()):
            log.debug("No architecture patterns matched; evidence gap")
            trace.append(f"No architecture patterns matched, defaulting to {NEUTRAL_LABEL}")
            return ClassificationResult(
                primary_label=NEUTRAL_LABEL,
                confidence=0.0,
                reasoning_trace=trace,
                warnings=["No architecture patterns matched; result is a neutral default"],
                recommendations=["Low confidence detection - consider manual verification"],
                metrics=metrics,
                metadata=metadata,
            )

        evidence = (
            pattern_evidence(grouped)
            + structural_evidence(scoped)
            + relationship_evidence(scoped)
            + constraint_evidence(scoped)
        )
        if strategy in ("fast", "conservative"):
            evidence = [e for e in evidence if e.confidence >= HIGH_CONFIDENCE_EVIDENCE]
        evidence.sort(key=lambda e: e.confidence * e.weight, reverse=True)
        for item in evidence[:3]:
            trace.append(f"Evidence: {item.description}")

        scores = class_scores(evidence)
        metadata["class_scores"] = scores
        trace.append(
            "Class scores: "
            + ", ".join(f"{label}={scores[label]:.2f}" for label in ARCHITECTURE_LABELS)
        )

        # Ties go to the neutral label
        ranked = sorted(
            ARCHITECTURE_LABELS,
            key=lambda label: (scores[label], label == NEUTRAL_LABEL),
            reverse=True,
        )
        top, second = ranked[0], ranked[1]
        label, confidence = top, scores[top]
        warnings: list[str] = []

        if strategy == "comprehensive":
            if (
                {top, second} == {"individual", "team"}
                and scores[top] > 0.3
                and scores[second] > 0.3
                and balance(scores[top], scores[second]) > 0.8
            ):
                label = "hybrid"
                confidence = max(scores["hybrid"], min(scores[top], scores[second]))
                warnings.append(
                    f"Individual and team signals are balanced "
                    f"({scores['individual']:.2f} vs {scores['team']:.2f}); preferring hybrid"
                )
                trace.append("Balanced individual/team scores, preferring hybrid")
        elif strategy == "fast":
            confidence = min(confidence * 0.9, 0.95)
            warnings.append("Fast detection mode - some patterns may not be fully analyzed")
        elif strategy == "conservative":
            margin = scores[top] - scores[second]
            trace.append(f"Conservative analysis with margin {margin:.2f}")
            if scores[top] > 0.8 and margin > 0.3:
                confidence = scores[top] * 0.95
            else:
                label = "hybrid"
                confidence = max(scores["hybrid"], 0.6)
            warnings.append("Conservative mode - may classify ambiguous cases as hybrid")
        elif strategy == "aggressive":
            confidence = min(confidence * 1.1, 0.99)
            warnings.append("Aggressive mode - results may include false positives")

        trace.append(f"Selected {label} ({confidence:.2f}) using {strategy} strategy")
        if confidence < config.confidence_threshold:
            warnings.append(
                f"Confidence {confidence:.2f} is below threshold {config.confidence_threshold:.2f}"
            )

        alternatives = [
            Alternative(
                label=other,
                confidence=scores[other],
                reasoning=f"Alternative based on {other} pattern analysis",
            )
            for other in ranked
            if other != label and scores[other] > ALTERNATIVE_MIN
        ]

        recommendations = []
        if confidence < 0.6:
            recommendations.append("Low confidence detection - consider manual verification")
            recommendations.append("Review schema patterns and add more distinguishing features")
        elif confidence > 0.9:
            recommendations.append("High confidence detection - proceed with detected architecture")
        recommendations.extend(RECOMMENDATIONS[label])

        metrics.evidence_count = len(evidence)
        return ClassificationResult(
            primary_label=label,
            confidence=confidence,
            evidence=evidence,
            alternatives=alternatives,
            reasoning_trace=trace,
            warnings=warnings,
            recommendations=recommendations,
            metrics=metrics,
            metadata=metadata,
        )


def detect_architecture(
    context: DetectionAnalysisContext,
    config: Optional[DetectionConfig] = None,
) -> ClassificationResult:
    """Classify a schema's architecture with a fresh detector."""
    return ArchitectureDetector().detect(context, config)
