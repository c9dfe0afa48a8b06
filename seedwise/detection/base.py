"""Shared detector bookkeeping."""

from dataclasses import dataclass, field
from typing import Any

from seedwise.core.models import ClassificationResult
from seedwise.core.scoring import online_average


@dataclass
class DetectorStatistics:
    """Running totals across every detection a detector has performed."""

    total_detections: int = 0
    average_execution_time_ms: float = 0.0
    average_confidence: float = 0.0
    results_by_label: dict[str, int] = field(default_factory=dict)

    def record(self, result: ClassificationResult) -> None:
        self.total_detections += 1
        n = self.total_detections
        self.average_execution_time_ms = online_average(
            self.average_execution_time_ms, n, result.metrics.execution_time_ms
        )
        self.average_confidence = online_average(self.average_confidence, n, result.confidence)
        label = result.primary_label
        self.results_by_label[label] = self.results_by_label.get(label, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_detections": self.total_detections,
            "average_execution_time_ms": self.average_execution_time_ms,
            "average_confidence": self.average_confidence,
            "results_by_label": dict(self.results_by_label),
        }
