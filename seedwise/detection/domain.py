"""Content domain detection (outdoor / saas / ecommerce / social / generic)."""

from __future__ import annotations

import logging
import time
from typing import Optional

from seedwise.analyzers import analyze_domain
from seedwise.config import DomainDetectionConfig
from seedwise.core.models import (
    DOMAIN_LABELS,
    Alternative,
    ClassificationResult,
    DetectionAnalysisContext,
    DetectionMetrics,
    Evidence,
    PatternAnalysisResult,
)
from seedwise.core.scoring import weighted_average
from seedwise.detection.base import DetectorStatistics
from seedwise.patterns.domain import DOMAIN_RECOMMENDATIONS, DOMAIN_RULES

logger = logging.getLogger(__name__)

NEUTRAL_DOMAIN = "generic"
OVERRIDE_CONFIDENCE = 0.95
FALLBACK_CONFIDENCE = 0.3
SECONDARY_THRESHOLD = 0.5
MAX_SECONDARY_DOMAINS = 3
HIGH_CONFIDENCE = 0.7
CLOSE_RACE_GAP = 0.2

# Evidence weight per match kind, relative to the rule weight
EVIDENCE_KIND_WEIGHTS = (
    ("tables", "table_pattern", 1.0),
    ("columns", "column_pattern", 0.8),
    ("relationships", "relationship_pattern", 0.9),
    ("functions", "business_logic", 0.7),
)


def domain_score(results: list[PatternAnalysisResult]) -> float:
    """Priority-weighted average of a domain's matched rule confidences."""
    return weighted_average((r.match_confidence, r.rule.priority) for r in results)


def domain_evidence(domain: str, results: list[PatternAnalysisResult]) -> list[Evidence]:
    evidence = []
    for result in results:
        details = result.match_details.to_dict()
        for kind, evidence_type, factor in EVIDENCE_KIND_WEIGHTS:
            matched = details[kind]
            if not matched:
                continue
            evidence.append(
                Evidence(
                    type=evidence_type,
                    description=f"{result.rule.name}: {len(matched)} {kind} matched",
                    confidence=result.match_confidence,
                    weight=result.rule.confidence_weight * factor,
                    supporting_data={"pattern": result.rule.id, kind: matched},
                    class_strengths={domain: result.match_confidence},
                )
            )
    return evidence


def domain_recommendations(domain: str, confidence: float) -> list[str]:
    recommendations = []
    if confidence < 0.5:
        recommendations.append("Consider manual domain verification due to low confidence")
    elif confidence < 0.7:
        recommendations.append(
            "Review domain detection results and verify against expected schema patterns"
        )
    recommendations.extend(DOMAIN_RECOMMENDATIONS[domain])
    return recommendations


class DomainDetector:
    """Detect which content domain a schema belongs to."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.stats = DetectorStatistics()

    def detect(
        self,
        context: DetectionAnalysisContext,
        config: Optional[DomainDetectionConfig] = None,
    ) -> ClassificationResult:
        """
        Classify the content domain.

        Never raises: internal failures produce ``generic`` at 0.3 with the
        error recorded in ``errors``.
        """
        config = config or DomainDetectionConfig()
        log = context.get_logger(self.logger)
        start = time.perf_counter()

        try:
            result = self._detect(context, config, log)
            if config.manual_override:
                result = self._apply_override(result, config.manual_override)
        except Exception as e:
            log.error(f"Domain detection failed: {e}")
            result = ClassificationResult(
                primary_label=NEUTRAL_DOMAIN,
                confidence=FALLBACK_CONFIDENCE,
                reasoning_trace=["Domain detection failed, using generic fallback"],
                warnings=["Domain detection failed; using generic fallback"],
                errors=[str(e)],
                recommendations=domain_recommendations(NEUTRAL_DOMAIN, FALLBACK_CONFIDENCE),
                metrics=DetectionMetrics(strategy_used="fallback"),
            )

        result.metrics.execution_time_ms = (time.perf_counter() - start) * 1000
        self.stats.record(result)
        log.debug(f"Domain: {result.primary_label} ({result.confidence:.2f})")
        return result

    def _apply_override(self, detected: ClassificationResult, override: str) -> ClassificationResult:
        warnings = list(detected.warnings)
        if detected.primary_label != override and detected.confidence > 0:
            warnings.append(
                f"Manual override '{override}' conflicts with detected domain "
                f"'{detected.primary_label}' ({detected.confidence:.2f})"
            )
        alternatives = [a for a in detected.alternatives if a.label != override]
        if detected.primary_label != override:
            alternatives.insert(
                0,
                Alternative(
                    label=detected.primary_label,
                    confidence=detected.confidence,
                    reasoning="Automatic detection result before override",
                ),
            )
        return ClassificationResult(
            primary_label=override,
            confidence=OVERRIDE_CONFIDENCE,
            evidence=detected.evidence,
            alternatives=alternatives,
            reasoning_trace=[f"Manual override applied: {override}"] + detected.reasoning_trace,
            warnings=warnings,
            recommendations=domain_recommendations(override, OVERRIDE_CONFIDENCE),
            metrics=DetectionMetrics(
                evidence_count=detected.metrics.evidence_count,
                tables_analyzed=detected.metrics.tables_analyzed,
                strategy_used="manual_override",
            ),
            metadata=detected.metadata,
        )

    def _detect(
        self,
        context: DetectionAnalysisContext,
        config: DomainDetectionConfig,
        log: logging.Logger,
    ) -> ClassificationResult:
        strategy = config.strategy
        rules = {
            domain: rules
            for domain, rules in DOMAIN_RULES.items()
            if domain not in config.exclude_domains or domain == NEUTRAL_DOMAIN
        }
        grouped = analyze_domain(context, rules)
        scores = {domain: domain_score(grouped.get(domain, [])) for domain in DOMAIN_LABELS}
        metrics = DetectionMetrics(tables_analyzed=len(context.tables), strategy_used=strategy)

        trace = []
        for domain in DOMAIN_LABELS:
            if domain not in rules:
                continue
            trace.append(f"{domain.upper()} domain analysis: {scores[domain]:.2f} confidence")
            for result in grouped[domain]:
                if result.match_confidence > 0.5:
                    trace.append(
                        f"{result.rule.name}: {result.match_confidence:.2f} confidence "
                        f"({result.match_details.total_matches} matches)"
                    )

        metadata = {
            "domain_scores": scores,
            "matched_patterns": {
                domain: [r.rule.id for r in grouped.get(domain, [])] for domain in DOMAIN_LABELS
            },
        }

        if not any(grouped.values()):
            log.debug("No domain patterns matched; evidence gap")
            trace.append(f"No domain patterns matched, defaulting to {NEUTRAL_DOMAIN}")
            return ClassificationResult(
                primary_label=NEUTRAL_DOMAIN,
                confidence=0.0,
                reasoning_trace=trace,
                warnings=["No domain patterns matched; result is a neutral default"],
                recommendations=domain_recommendations(NEUTRAL_DOMAIN, 0.0),
                metrics=metrics,
                metadata=metadata,
            )

        evidence = []
        for domain in DOMAIN_LABELS:
            evidence.extend(domain_evidence(domain, grouped.get(domain, [])))
        evidence.sort(key=lambda e: e.confidence * e.weight, reverse=True)
        metrics.evidence_count = len(evidence)

        # Ties go to the neutral domain
        ranked = sorted(
            DOMAIN_LABELS,
            key=lambda domain: (scores[domain], domain == NEUTRAL_DOMAIN),
            reverse=True,
        )
        top, second = ranked[0], ranked[1]
        label, confidence = top, scores[top]

        warnings = []
        if scores[top] < 0.5:
            warnings.append(f"Low confidence domain detection ({scores[top]:.2f})")
        if scores[second] > 0 and scores[top] - scores[second] < CLOSE_RACE_GAP:
            warnings.append(f"Close competition between {top} and {second} domains")
        if scores[top] <= HIGH_CONFIDENCE:
            warnings.append(
                f"No domain reached high confidence threshold ({HIGH_CONFIDENCE}); "
                f"best was {top} at {scores[top]:.2f}"
            )

        if strategy == "fast":
            confidence *= 0.95
        elif strategy == "conservative":
            if confidence < HIGH_CONFIDENCE:
                trace.append(
                    f"Conservative mode: {top} below {HIGH_CONFIDENCE}, falling back to generic"
                )
                label = NEUTRAL_DOMAIN
                confidence = max(scores[NEUTRAL_DOMAIN], 0.6)
            confidence *= 0.9
        elif strategy == "aggressive":
            confidence = min(confidence * 1.1, 0.99)
        trace.append(f"Selected {label} ({confidence:.2f}) using {strategy} strategy")

        if confidence < config.confidence_threshold:
            warnings.append(
                f"Confidence {confidence:.2f} is below threshold {config.confidence_threshold:.2f}"
            )

        above = [d for d in ranked if scores[d] > SECONDARY_THRESHOLD]
        if config.detect_secondary_domains:
            metadata["secondary_domains"] = [d for d in above if d != label][
                :MAX_SECONDARY_DOMAINS
            ]
        metadata["hybrid_capabilities"] = len(above) >= 2
        if len(above) >= 2:
            trace.append(f"Hybrid domain capabilities: {', '.join(above)}")

        alternatives = [
            Alternative(
                label=domain,
                confidence=scores[domain],
                reasoning=f"{len(grouped.get(domain, []))} {domain} patterns matched",
            )
            for domain in ranked
            if domain != label and scores[domain] > 0
        ]

        return ClassificationResult(
            primary_label=label,
            confidence=confidence,
            evidence=evidence,
            alternatives=alternatives,
            reasoning_trace=trace,
            warnings=warnings,
            recommendations=domain_recommendations(label, confidence),
            metrics=metrics,
            metadata=metadata,
        )


def detect_domain(
    context: DetectionAnalysisContext,
    config: Optional[DomainDetectionConfig] = None,
) -> ClassificationResult:
    """Classify a schema's content domain with a fresh detector."""
    return DomainDetector().detect(context, config)
