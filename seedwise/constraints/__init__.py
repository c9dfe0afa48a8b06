"""Constraint handlers, synthetic rows and the debugging engine."""

from seedwise.constraints.debugging import (
    ConstraintDebugger,
    ConstraintPerformanceMetrics,
    ConstraintTestResult,
    DebuggingSession,
    Issue,
    SessionSummary,
)
from seedwise.constraints.handlers import (
    ConstraintFix,
    ConstraintHandler,
    ConstraintHandlingResult,
    HandlerRegistry,
)
from seedwise.constraints.samples import SampleRowFactory

__all__ = [
    "ConstraintDebugger",
    "ConstraintFix",
    "ConstraintHandler",
    "ConstraintHandlingResult",
    "ConstraintPerformanceMetrics",
    "ConstraintTestResult",
    "DebuggingSession",
    "HandlerRegistry",
    "Issue",
    "SampleRowFactory",
    "SessionSummary",
]
