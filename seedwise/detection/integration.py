"""
Unified detection: architecture, domain and framework over one context,
plus cross-validation of how well the three answers agree.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from seedwise.config import Config
from seedwise.core.models import (
    ClassificationResult,
    DetectionAnalysisContext,
    FrameworkClassification,
)
from seedwise.detection.architecture import ArchitectureDetector
from seedwise.detection.cache import DetectionCache
from seedwise.detection.domain import DomainDetector
from seedwise.detection.framework import detect_framework

logger = logging.getLogger(__name__)

AGREE = 1.0
NEUTRAL = 0.5
DISAGREE = 0.0

# Architectures each domain typically runs on; domains not listed are neutral
DOMAIN_ARCHITECTURES = {
    "saas": ("team", "hybrid"),
    "social": ("individual", "hybrid"),
    "outdoor": ("individual", "hybrid"),
    "ecommerce": ("individual", "team", "hybrid"),
}


@dataclass
class CrossValidation:
    """Agreement between the three classification answers."""

    overall_agreement: float
    agreements: list[str] = field(default_factory=list)
    disagreements: list[str] = field(default_factory=list)
    checks: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_agreement": self.overall_agreement,
            "agreements": list(self.agreements),
            "disagreements": list(self.disagreements),
            "checks": dict(self.checks),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CrossValidation:
        return cls(
            overall_agreement=data["overall_agreement"],
            agreements=list(data.get("agreements", [])),
            disagreements=list(data.get("disagreements", [])),
            checks=dict(data.get("checks", {})),
        )


@dataclass
class UnifiedDetectionResult:
    architecture: ClassificationResult
    domain: ClassificationResult
    framework: FrameworkClassification
    overall_confidence: float
    cross_validation: CrossValidation
    execution_time_ms: float = field(default=0.0, compare=False)

    @property
    def confidence(self) -> float:
        return self.overall_confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "architecture": self.architecture.to_dict(),
            "domain": self.domain.to_dict(),
            "framework": self.framework.to_dict(),
            "overall_confidence": self.overall_confidence,
            "cross_validation": self.cross_validation.to_dict(),
            "execution_time_ms": self.execution_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UnifiedDetectionResult:
        return cls(
            architecture=ClassificationResult.from_dict(data["architecture"]),
            domain=ClassificationResult.from_dict(data["domain"]),
            framework=FrameworkClassification.from_dict(data["framework"]),
            overall_confidence=data["overall_confidence"],
            cross_validation=CrossValidation.from_dict(data["cross_validation"]),
            execution_time_ms=data.get("execution_time_ms", 0.0),
        )


def cross_validate(
    architecture: ClassificationResult,
    domain: ClassificationResult,
    framework: FrameworkClassification,
) -> CrossValidation:
    """
    Score three pairwise consistency checks as agree (1), neutral (0.5) or
    disagree (0). Overall agreement is their mean.
    """
    arch = architecture.primary_label
    agreements: list[str] = []
    disagreements: list[str] = []
    checks: dict[str, float] = {}

    # Framework vs architecture: MakerKit ships team accounts
    if framework.is_makerkit:
        if arch in ("team", "hybrid"):
            checks["framework_architecture"] = AGREE
            agreements.append(f"MakerKit framework is consistent with {arch} architecture")
        else:
            checks["framework_architecture"] = DISAGREE
            disagreements.append(f"MakerKit framework usually implies team accounts, not {arch}")
    else:
        checks["framework_architecture"] = NEUTRAL

    # Domain vs architecture
    expected = DOMAIN_ARCHITECTURES.get(domain.primary_label)
    if expected is None:
        checks["domain_architecture"] = NEUTRAL
    elif arch in expected:
        checks["domain_architecture"] = AGREE
        agreements.append(f"{domain.primary_label} domain is consistent with {arch} architecture")
    else:
        checks["domain_architecture"] = DISAGREE
        disagreements.append(
            f"{domain.primary_label} domain rarely runs on {arch} architecture"
        )

    # Framework version vs domain: the full v3 billing stack points at SaaS
    if framework.version == "v3" and domain.primary_label == "saas":
        checks["version_domain"] = AGREE
        agreements.append("MakerKit v3 billing tables are consistent with the saas domain")
    else:
        checks["version_domain"] = NEUTRAL

    overall = sum(checks.values()) / len(checks)
    return CrossValidation(
        overall_agreement=overall,
        agreements=agreements,
        disagreements=disagreements,
        checks=checks,
    )


def _run_detection(context: DetectionAnalysisContext, config: Config) -> UnifiedDetectionResult:
    start = time.perf_counter()
    log = context.get_logger(logger)

    architecture = ArchitectureDetector(log).detect(context, config.detection)
    domain = DomainDetector(log).detect(context, config.domain)
    framework = detect_framework(context, log)

    confidences = [architecture.confidence, domain.confidence]
    if framework.is_makerkit:
        confidences.append(framework.confidence)
    overall = sum(confidences) / len(confidences)

    validation = cross_validate(architecture, domain, framework)
    for disagreement in validation.disagreements:
        log.info(f"Cross-validation: {disagreement}")

    return UnifiedDetectionResult(
        architecture=architecture,
        domain=domain,
        framework=framework,
        overall_confidence=overall,
        cross_validation=validation,
        execution_time_ms=(time.perf_counter() - start) * 1000,
    )


def detect_all(
    context: DetectionAnalysisContext,
    config: Optional[Config] = None,
    cache: Optional[DetectionCache] = None,
) -> UnifiedDetectionResult:
    """
    Run every detector over one context.

    Args:
        context: Schema facts
        config: Configuration (defaults apply when omitted)
        cache: Result cache, consulted when detection caching is enabled

    Returns:
        UnifiedDetectionResult with overall confidence and cross-validation
    """
    config = config or Config()

    if cache is None or not config.detection.use_caching:
        return _run_detection(context, config)

    config_used = {
        "detection": config.detection.model_dump(),
        "domain": config.domain.model_dump(),
    }
    return cache.get_or_compute(
        context,
        lambda: _run_detection(context, config),
        UnifiedDetectionResult.from_dict,
        config_used=config_used,
    )
