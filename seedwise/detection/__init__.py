"""Architecture, domain and framework classification."""

from seedwise.detection.architecture import ArchitectureDetector, detect_architecture
from seedwise.detection.base import DetectorStatistics
from seedwise.detection.cache import DetectionCache, schema_hash
from seedwise.detection.domain import DomainDetector, detect_domain
from seedwise.detection.framework import detect_framework, resolve_version
from seedwise.detection.integration import (
    CrossValidation,
    UnifiedDetectionResult,
    cross_validate,
    detect_all,
)

__all__ = [
    "ArchitectureDetector",
    "CrossValidation",
    "DetectionCache",
    "DetectorStatistics",
    "DomainDetector",
    "UnifiedDetectionResult",
    "cross_validate",
    "detect_all",
    "detect_architecture",
    "detect_domain",
    "detect_framework",
    "resolve_version",
    "schema_hash",
]
