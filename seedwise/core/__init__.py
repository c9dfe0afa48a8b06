"""Core data model and scoring for seedwise."""

from seedwise.core.models import (
    ARCHITECTURE_LABELS,
    DOMAIN_LABELS,
    Alternative,
    ClassificationResult,
    ConstraintInfo,
    DetectionAnalysisContext,
    DetectionMetrics,
    Evidence,
    FrameworkClassification,
    FunctionInfo,
    MatchDetails,
    PatternAnalysisResult,
    RelationshipInfo,
    TableFact,
    TriggerInfo,
)
from seedwise.core.scoring import (
    balance,
    clamp,
    confidence_level,
    diminishing_cap,
    online_average,
    weighted_average,
)

__all__ = [
    "ARCHITECTURE_LABELS",
    "DOMAIN_LABELS",
    "Alternative",
    "ClassificationResult",
    "ConstraintInfo",
    "DetectionAnalysisContext",
    "DetectionMetrics",
    "Evidence",
    "FrameworkClassification",
    "FunctionInfo",
    "MatchDetails",
    "PatternAnalysisResult",
    "RelationshipInfo",
    "TableFact",
    "TriggerInfo",
    "balance",
    "clamp",
    "confidence_level",
    "diminishing_cap",
    "online_average",
    "weighted_average",
]
