"""
MakerKit framework and version classification.

Feature weights are summed and capped with a diminishing-return factor.
The version is resolved separately by walking the version ladder from the
most specific rung down, so confidence and version can disagree: a schema
can look strongly like MakerKit while matching no published version.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from seedwise.analyzers import match_rule
from seedwise.core.models import (
    DetectionAnalysisContext,
    DetectionMetrics,
    Evidence,
    FrameworkClassification,
)
from seedwise.core.scoring import diminishing_cap
from seedwise.patterns.framework import (
    DIMINISHING_FACTOR,
    EXPECTED_FEATURES,
    MAKERKIT,
    MAKERKIT_FEATURES,
    MAKERKIT_THRESHOLD,
    VERSION_CUSTOM,
    VERSION_LADDER,
    VERSION_NONE,
)

logger = logging.getLogger(__name__)


def resolve_version(context: DetectionAnalysisContext) -> str:
    """Walk the version ladder and return the first rung the schema satisfies."""
    if not context.has_table("accounts"):
        return VERSION_NONE

    for rung in VERSION_LADDER:
        if not all(context.has_table(table) for table in rung.tables):
            continue
        if rung.any_of_tables and not any(context.has_table(t) for t in rung.any_of_tables):
            continue
        if not all(context.has_column("accounts", column) for column in rung.account_columns):
            continue
        return rung.version

    return VERSION_CUSTOM


def framework_recommendations(confidence: float, version: str) -> list[str]:
    if confidence > 0.7:
        recommendations = [
            "Strong MakerKit signal - use the makerkit seeding strategy",
            "Create users through auth.admin.createUser so setup triggers run",
            "Seed personal accounts with is_personal_account=true and slug=null",
            "Respect existing triggers and business-logic functions when inserting rows",
        ]
        if version == "v3":
            recommendations.append("Include role_permissions and billing_customers in seed data")
        return recommendations
    if confidence > 0.4:
        return [
            "Moderate MakerKit signal - verify framework compatibility before seeding",
            "Run seedwise debug-constraints against the accounts table",
        ]
    if confidence > 0.1:
        return [
            "Weak MakerKit signal - consider a manual strategy override",
            "Generic seeding will be used unless the makerkit strategy is forced",
        ]
    return []


def detect_framework(
    context: DetectionAnalysisContext,
    logger: Optional[logging.Logger] = None,
) -> FrameworkClassification:
    """
    Classify the framework family and version behind a schema.

    Returns:
        FrameworkClassification whose ``primary_label`` is the version
        (v1/v2/v3/custom/none) and whose ``framework`` is makerkit or generic
    """
    log = context.get_logger(logger or logging.getLogger(__name__))
    start = time.perf_counter()

    try:
        results = [match_rule(feature, context) for feature in MAKERKIT_FEATURES]
        matched = [r for r in results if r.matched]
        total = sum(r.rule.confidence_weight for r in matched)
        confidence = diminishing_cap(total, DIMINISHING_FACTOR)
        is_makerkit = confidence > MAKERKIT_THRESHOLD
        version = resolve_version(context)

        trace = [f"Matched {len(matched)} of {len(MAKERKIT_FEATURES)} MakerKit features"]
        for result in matched:
            trace.append(f"+{result.rule.confidence_weight:.2f} {result.rule.name}")
        trace.append(
            f"Feature sum {total:.2f} x {DIMINISHING_FACTOR} capped at 1.0 = {confidence:.2f}"
        )
        trace.append(f"Version ladder resolved {version}")
        if context.framework_hint:
            trace.append(f"Caller framework hint: {context.framework_hint}")

        detected = [r.rule.id for r in matched]
        missing = [f for f in EXPECTED_FEATURES[version] if f not in detected]

        warnings = []
        if context.framework_hint == MAKERKIT and not is_makerkit:
            warnings.append("Framework hint says makerkit but schema evidence is weak")
        if missing and is_makerkit:
            warnings.append(f"{len(missing)} expected {version} features are missing")

        evidence = [
            Evidence(
                type="framework_feature",
                description=result.rule.name,
                confidence=1.0,
                weight=result.rule.confidence_weight,
                supporting_data={"feature": result.rule.id, **result.match_details.to_dict()},
                class_strengths={MAKERKIT: 1.0},
            )
            for result in matched
        ]

        classification = FrameworkClassification(
            primary_label=version,
            confidence=confidence,
            evidence=evidence,
            reasoning_trace=trace,
            warnings=warnings,
            recommendations=framework_recommendations(confidence, version),
            metrics=DetectionMetrics(
                evidence_count=len(evidence),
                tables_analyzed=len(context.tables),
                strategy_used="feature_ladder",
            ),
            metadata={"feature_sum": total},
            framework=MAKERKIT if is_makerkit else "generic",
            version=version,
            is_makerkit=is_makerkit,
            detected_features=detected,
            missing_features=missing,
        )
    except Exception as e:
        log.error(f"Framework detection failed: {e}")
        classification = FrameworkClassification(
            primary_label=VERSION_NONE,
            confidence=0.0,
            reasoning_trace=["Framework detection failed"],
            errors=[str(e)],
            metrics=DetectionMetrics(strategy_used="fallback"),
        )

    classification.metrics.execution_time_ms = (time.perf_counter() - start) * 1000
    log.debug(
        f"Framework: {classification.framework} {classification.version} "
        f"({classification.confidence:.2f})"
    )
    return classification
