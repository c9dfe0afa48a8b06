"""
Constraint discovery and debugging.

A debugging session runs every constraint of a table against every test row,
records what each handler did, and classifies the outcome into issues and
recommendations. Sessions move from created to running to completed; a
failing (constraint, row) pair is recorded as a critical issue and never
aborts the session. Results are only ever appended until the session is
ended, and reports can be rendered any number of times from the stored
session without re-running tests.
"""

from __future__ import annotations

import html
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union

from seedwise.config import DebuggingConfig
from seedwise.constraints.handlers import ConstraintHandlingResult, HandlerRegistry
from seedwise.constraints.samples import SampleRowFactory
from seedwise.core.models import ConstraintInfo
from seedwise.core.scoring import online_average
from seedwise.exceptions import InvalidReportFormatError, SessionNotFoundError

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("markdown", "json", "html")
MAKERKIT_NAME_MARKERS = ("account", "organization", "subscription", "makerkit")
FIX_RECOMMENDATION_MS = 50.0
MIN_HANDLER_DIVERSITY = 3
DIVERSITY_CONSTRAINT_COUNT = 5

SessionStatus = Literal["created", "running", "completed"]


@dataclass
class Issue:
    severity: str  # critical | high | medium | low
    type: str  # handler_not_found | constraint_violation | performance | data_quality | business_logic
    message: str
    suggested_fix: str
    affected_field: Optional[str] = None
    related_constraints: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "type": self.type,
            "message": self.message,
            "suggested_fix": self.suggested_fix,
            "affected_field": self.affected_field,
            "related_constraints": list(self.related_constraints),
        }


@dataclass
class ConstraintTestResult:
    """One (constraint, row) test."""

    constraint_id: str
    constraint_type: str
    test_data_index: int
    original_data: dict[str, Any]
    result: ConstraintHandlingResult
    handler_used: str
    execution_time_ms: float
    issues: list[Issue] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def bypass_required(self) -> bool:
        return self.result.bypass_required

    @property
    def applied_fixes(self) -> list:
        return self.result.applied_fixes

    def to_dict(self) -> dict[str, Any]:
        return {
            "constraint_id": self.constraint_id,
            "constraint_type": self.constraint_type,
            "test_data_index": self.test_data_index,
            "original_data": self.original_data,
            "handler_used": self.handler_used,
            "execution_time_ms": self.execution_time_ms,
            "success": self.success,
            "bypass_required": self.bypass_required,
            "applied_fixes": [fix.to_dict() for fix in self.applied_fixes],
            "result": self.result.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
            "recommendations": list(self.recommendations),
        }


@dataclass
class ConstraintPerformanceMetrics:
    """Running timing and success statistics for one constraint."""

    constraint_id: str
    handler_name: str
    average_execution_time: float = 0.0
    min_execution_time: float = 0.0
    max_execution_time: float = 0.0
    total_executions: int = 0
    success_rate: float = 0.0

    def record(self, execution_time_ms: float, success: bool) -> None:
        self.total_executions += 1
        n = self.total_executions
        if n == 1:
            self.min_execution_time = self.max_execution_time = execution_time_ms
        else:
            self.min_execution_time = min(self.min_execution_time, execution_time_ms)
            self.max_execution_time = max(self.max_execution_time, execution_time_ms)
        self.average_execution_time = online_average(self.average_execution_time, n, execution_time_ms)
        self.success_rate = online_average(self.success_rate, n, 1.0 if success else 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "constraint_id": self.constraint_id,
            "handler_name": self.handler_name,
            "average_execution_time": self.average_execution_time,
            "min_execution_time": self.min_execution_time,
            "max_execution_time": self.max_execution_time,
            "total_executions": self.total_executions,
            "success_rate": self.success_rate,
        }


@dataclass
class SessionSummary:
    total_constraints: int = 0
    total_tests: int = 0
    successful_handling: int = 0
    failed_handling: int = 0
    bypass_required: int = 0
    average_execution_time: float = 0.0
    issue_distribution: dict[str, int] = field(default_factory=dict)
    handler_usage_stats: dict[str, int] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return self.successful_handling / self.total_tests if self.total_tests else 0.0

    @property
    def bypass_rate(self) -> float:
        return self.bypass_required / self.total_tests if self.total_tests else 0.0

    def record(self, test: ConstraintTestResult) -> None:
        self.total_tests += 1
        if test.success:
            self.successful_handling += 1
        else:
            self.failed_handling += 1
        if test.bypass_required:
            self.bypass_required += 1

        self.handler_usage_stats[test.handler_used] = (
            self.handler_usage_stats.get(test.handler_used, 0) + 1
        )
        for issue in test.issues:
            key = f"{issue.severity}_{issue.type}"
            self.issue_distribution[key] = self.issue_distribution.get(key, 0) + 1

        self.average_execution_time = online_average(
            self.average_execution_time, self.total_tests, test.execution_time_ms
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_constraints": self.total_constraints,
            "total_tests": self.total_tests,
            "successful_handling": self.successful_handling,
            "failed_handling": self.failed_handling,
            "bypass_required": self.bypass_required,
            "success_rate": self.success_rate,
            "bypass_rate": self.bypass_rate,
            "average_execution_time": self.average_execution_time,
            "issue_distribution": dict(self.issue_distribution),
            "handler_usage_stats": dict(self.handler_usage_stats),
            "recommendations": list(self.recommendations),
        }


@dataclass
class DebuggingSession:
    session_id: str
    table_name: str
    constraints: list[ConstraintInfo]
    test_data: list[dict[str, Any]]
    started_at: datetime
    status: SessionStatus = "created"
    completed_at: Optional[datetime] = None
    results: list[ConstraintTestResult] = field(default_factory=list)
    summary: SessionSummary = field(default_factory=SessionSummary)
    performance: dict[str, ConstraintPerformanceMetrics] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "table_name": self.table_name,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "constraints": [c.to_dict() for c in self.constraints],
            "test_data": self.test_data,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
            "performance": {k: m.to_dict() for k, m in self.performance.items()},
        }


def is_makerkit_constraint(constraint: ConstraintInfo) -> bool:
    name = constraint.name.lower()
    return any(marker in name for marker in MAKERKIT_NAME_MARKERS)


class ConstraintDebugger:
    """Run constraint handlers against test rows and diagnose the outcome."""

    def __init__(
        self,
        handlers: Optional[HandlerRegistry] = None,
        config: Optional[DebuggingConfig] = None,
        sample_factory: Optional[SampleRowFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.handlers = handlers or HandlerRegistry()
        self.config = config or DebuggingConfig()
        self.sample_factory = sample_factory or SampleRowFactory()
        self.logger = logger or logging.getLogger(__name__)
        self._sessions: dict[str, DebuggingSession] = {}

    def start_debugging_session(
        self,
        table_name: str,
        constraints: list[Union[ConstraintInfo, dict[str, Any]]],
        test_data: Optional[list[dict[str, Any]]] = None,
    ) -> str:
        """
        Start a debugging session.

        Args:
            table_name: Table the constraints belong to
            constraints: Constraints to test (ConstraintInfo or plain dicts)
            test_data: Rows to test; synthesised with Faker when omitted

        Returns:
            Session id
        """
        parsed = [
            c if isinstance(c, ConstraintInfo) else ConstraintInfo.from_dict({"table": table_name, **c})
            for c in constraints
        ]
        if test_data is None:
            test_data = self.sample_factory.rows_for(table_name, parsed, self.config.sample_rows)

        session_id = f"debug_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
        self._sessions[session_id] = DebuggingSession(
            session_id=session_id,
            table_name=table_name,
            constraints=parsed,
            test_data=[dict(row) for row in test_data],
            started_at=datetime.now(timezone.utc),
            summary=SessionSummary(total_constraints=len(parsed)),
        )
        self.logger.info(f"Started constraint debugging session: {session_id} for table: {table_name}")
        return session_id

    def get_session(self, session_id: str) -> DebuggingSession:
        """
        Raises:
            SessionNotFoundError: If the session is unknown or ended
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_active_sessions(self) -> list[str]:
        return list(self._sessions)

    def end_debugging_session(self, session_id: str) -> None:
        """Remove a session from the active registry."""
        self.get_session(session_id)
        del self._sessions[session_id]
        self.logger.info(f"Ended constraint debugging session: {session_id}")

    def run_constraint_tests(self, session_id: str) -> DebuggingSession:
        """
        Run every constraint against every test row.

        Running a completed session again returns it unchanged.

        Raises:
            SessionNotFoundError: If the session is unknown or ended
        """
        session = self.get_session(session_id)
        if session.status == "completed":
            self.logger.debug(f"Session {session_id} already completed; not re-running")
            return session

        session.status = "running"
        self.logger.info(f"Running constraint tests for session: {session_id}")

        for index, row in enumerate(session.test_data):
            for constraint in session.constraints:
                test = self._run_single(session, constraint, index, row)
                session.results.append(test)
                session.summary.record(test)

        session.summary.recommendations = self._session_recommendations(session.summary)
        session.status = "completed"
        session.completed_at = datetime.now(timezone.utc)
        self.logger.info(
            f"Completed constraint tests for session: {session_id} "
            f"({session.summary.total_tests} tests, {session.summary.success_rate:.0%} success)"
        )
        return session

    def _run_single(
        self,
        session: DebuggingSession,
        constraint: ConstraintInfo,
        index: int,
        row: dict[str, Any],
    ) -> ConstraintTestResult:
        start = time.perf_counter()
        try:
            result = self.handlers.handle(constraint, row)
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.exception(f"Error testing constraint {constraint.name}")
            result = ConstraintHandlingResult.passthrough(row)
            result.success = False
            result.errors.append(str(e))
            self._record_performance(session, constraint.name, "error", elapsed, False)
            return ConstraintTestResult(
                constraint_id=constraint.name,
                constraint_type=constraint.type,
                test_data_index=index,
                original_data=dict(row),
                result=result,
                handler_used="error",
                execution_time_ms=elapsed,
                issues=[
                    Issue(
                        severity="critical",
                        type="constraint_violation",
                        message=f"Error during constraint testing: {e}",
                        suggested_fix="Review constraint configuration and handler implementation",
                        related_constraints=[constraint.name],
                    )
                ],
                recommendations=["Investigate constraint testing error"],
            )

        elapsed = (time.perf_counter() - start) * 1000
        handler_used = result.handler_id or "none_bypass_required"
        metrics = self._record_performance(
            session, constraint.name, handler_used, elapsed, result.success
        )

        return ConstraintTestResult(
            constraint_id=constraint.name,
            constraint_type=constraint.type,
            test_data_index=index,
            original_data=dict(row),
            result=result,
            handler_used=handler_used,
            execution_time_ms=elapsed,
            issues=self._analyze_issues(constraint, result, row, metrics),
            recommendations=self._test_recommendations(constraint, result, row, metrics),
        )

    def _record_performance(
        self,
        session: DebuggingSession,
        constraint_id: str,
        handler: str,
        elapsed: float,
        success: bool,
    ) -> ConstraintPerformanceMetrics:
        metrics = session.performance.setdefault(
            constraint_id, ConstraintPerformanceMetrics(constraint_id, handler)
        )
        metrics.record(elapsed, success)
        return metrics

    def _analyze_issues(
        self,
        constraint: ConstraintInfo,
        result: ConstraintHandlingResult,
        row: dict[str, Any],
        metrics: ConstraintPerformanceMetrics,
    ) -> list[Issue]:
        issues = []
        related = [constraint.name]

        if result.bypass_required:
            issues.append(
                Issue(
                    severity="high",
                    type="handler_not_found",
                    message="No suitable handler found, bypass required",
                    suggested_fix="Implement specific handler for this constraint pattern",
                    related_constraints=related,
                )
            )
        elif not result.success:
            issues.append(
                Issue(
                    severity="critical",
                    type="constraint_violation",
                    message="Constraint handling failed: " + "; ".join(result.errors),
                    suggested_fix="Review constraint logic and data compatibility",
                    related_constraints=related,
                )
            )

        if len(result.applied_fixes) > self.config.max_fixes_before_warning:
            issues.append(
                Issue(
                    severity="medium",
                    type="data_quality",
                    message="Multiple fixes applied - data quality concerns",
                    suggested_fix="Review data generation patterns for better quality",
                    related_constraints=related,
                )
            )

        if is_makerkit_constraint(constraint):
            issues.extend(self._business_logic_issues(constraint, result, row))

        if metrics.average_execution_time > self.config.slow_handler_ms:
            issues.append(
                Issue(
                    severity="medium",
                    type="performance",
                    message="Slow constraint processing detected",
                    suggested_fix="Optimize constraint handler implementation",
                    related_constraints=related,
                )
            )

        return issues

    def _business_logic_issues(
        self,
        constraint: ConstraintInfo,
        result: ConstraintHandlingResult,
        row: dict[str, Any],
    ) -> list[Issue]:
        issues = []
        name = constraint.name.lower()

        if "accounts_slug_null_if_personal" in name:
            if row.get("is_personal_account") is True and row.get("slug") is not None:
                if not any(fix.field == "slug" for fix in result.applied_fixes):
                    issues.append(
                        Issue(
                            severity="high",
                            type="business_logic",
                            message="Personal account slug constraint not properly handled",
                            suggested_fix="Ensure slug is set to null for personal accounts",
                            affected_field="slug",
                        )
                    )

        if "organization_member" in name:
            if row.get("organization_id") and row.get("user_id"):
                if not any(fix.type == "add_dependency" for fix in result.applied_fixes):
                    issues.append(
                        Issue(
                            severity="medium",
                            type="business_logic",
                            message="Organization membership relationship may need validation",
                            suggested_fix="Verify organization membership constraints",
                        )
                    )

        return issues

    def _test_recommendations(
        self,
        constraint: ConstraintInfo,
        result: ConstraintHandlingResult,
        row: dict[str, Any],
        metrics: ConstraintPerformanceMetrics,
    ) -> list[str]:
        recommendations = []

        if result.success and not result.applied_fixes:
            recommendations.append("Constraint handled successfully without modifications")

        fix_types = {fix.type for fix in result.applied_fixes}
        if "set_field" in fix_types:
            recommendations.append("Consider improving data generation to reduce field corrections")
        if "add_dependency" in fix_types:
            recommendations.append("Multi-table dependencies detected - ensure proper creation order")

        if metrics.average_execution_time > FIX_RECOMMENDATION_MS:
            recommendations.append("Consider optimizing constraint handler for better performance")

        if is_makerkit_constraint(constraint):
            if "is_personal_account" in row and row["is_personal_account"] is None:
                recommendations.append("Consider explicitly setting is_personal_account for clarity")
            if row.get("is_personal_account") is False and "slug" in row and not row["slug"]:
                recommendations.append("Team accounts benefit from meaningful slug generation")
            if row.get("organization_id") or row.get("organization_name"):
                recommendations.append("Ensure organization-related constraints are properly validated")

        return recommendations

    def _session_recommendations(self, summary: SessionSummary) -> list[str]:
        recommendations = []
        if summary.total_tests and summary.success_rate < self.config.success_rate_threshold:
            recommendations.append(
                "Low constraint handling success rate - review handler implementations"
            )
        if summary.average_execution_time > self.config.slow_handler_ms:
            recommendations.append("High average execution time - consider performance optimizations")
        if summary.bypass_rate > self.config.bypass_rate_threshold:
            recommendations.append("High bypass rate - implement more specific constraint handlers")

        critical = sum(
            count for key, count in summary.issue_distribution.items() if key.startswith("critical")
        )
        if critical:
            recommendations.append("Critical issues detected - immediate attention required")

        if (
            len(summary.handler_usage_stats) < MIN_HANDLER_DIVERSITY
            and summary.total_constraints > DIVERSITY_CONSTRAINT_COUNT
        ):
            recommendations.append(
                "Limited handler diversity - consider implementing more specific handlers"
            )
        return recommendations

    def generate_debugging_report(self, session_id: str, format: str = "markdown") -> str:
        """
        Render a session report.

        Args:
            session_id: Session to render
            format: markdown, json or html

        Raises:
            SessionNotFoundError: If the session is unknown or ended
            InvalidReportFormatError: If the format is not supported
        """
        if format not in REPORT_FORMATS:
            raise InvalidReportFormatError(format)
        session = self.get_session(session_id)

        if format == "json":
            return json.dumps(session.to_dict(), indent=2, default=str)
        if format == "html":
            return render_html(session)
        return render_markdown(session)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items) or "- None"


def render_markdown(session: DebuggingSession) -> str:
    summary = session.summary
    lines = [
        "# Constraint Debugging Report",
        "",
        "## Session Information",
        f"- **Session ID**: {session.session_id}",
        f"- **Table**: {session.table_name}",
        f"- **Status**: {session.status}",
        f"- **Start Time**: {session.started_at.isoformat()}",
        f"- **Duration**: {session.duration_ms:.0f}ms",
        "",
        "## Summary Statistics",
        f"- **Total Constraints**: {summary.total_constraints}",
        f"- **Total Tests**: {summary.total_tests}",
        f"- **Success Rate**: {summary.success_rate * 100:.1f}%",
        f"- **Average Execution Time**: {summary.average_execution_time:.2f}ms",
        f"- **Bypasses Required**: {summary.bypass_required}",
        "",
        "## Handler Usage Statistics",
        _bullets([f"**{h}**: {n} uses" for h, n in summary.handler_usage_stats.items()]),
        "",
        "## Issue Distribution",
        _bullets([f"**{k}**: {n} occurrences" for k, n in summary.issue_distribution.items()]),
        "",
        "## Recommendations",
        _bullets(summary.recommendations),
        "",
        "## Performance Metrics",
    ]
    for metric in session.performance.values():
        lines.extend(
            [
                "",
                f"### {metric.constraint_id}",
                f"- **Handler**: {metric.handler_name}",
                f"- **Average Time**: {metric.average_execution_time:.2f}ms",
                f"- **Min/Max Time**: {metric.min_execution_time:.2f}ms / "
                f"{metric.max_execution_time:.2f}ms",
                f"- **Success Rate**: {metric.success_rate * 100:.1f}%",
                f"- **Total Executions**: {metric.total_executions}",
            ]
        )

    lines.extend(["", "## Detailed Test Results"])
    for test in session.results:
        if not test.issues and not test.recommendations:
            continue
        lines.extend(
            [
                "",
                f"### {test.constraint_id} (Test {test.test_data_index})",
                f"- **Handler**: {test.handler_used}",
                f"- **Execution Time**: {test.execution_time_ms:.2f}ms",
                f"- **Success**: {str(test.success).lower()}",
                f"- **Fixes Applied**: {len(test.applied_fixes)}",
            ]
        )
        if test.issues:
            lines.extend(["", "**Issues:**"])
            lines.extend(f"- [{i.severity.upper()}] {i.message}" for i in test.issues)
        if test.recommendations:
            lines.extend(["", "**Recommendations:**"])
            lines.extend(f"- {r}" for r in test.recommendations)

    return "\n".join(lines) + "\n"


def render_html(session: DebuggingSession) -> str:
    summary = session.summary
    esc = html.escape

    recommendations = "".join(f"<li>{esc(r)}</li>" for r in summary.recommendations)
    rows = []
    for test in session.results:
        for issue in test.issues:
            rows.append(
                f'<tr class="issue-{issue.severity}">'
                f"<td>{esc(test.constraint_id)}</td><td>{test.test_data_index}</td>"
                f"<td>{esc(issue.severity)}</td><td>{esc(issue.type)}</td>"
                f"<td>{esc(issue.message)}</td><td>{esc(issue.suggested_fix)}</td></tr>"
            )
    handler_rows = "".join(
        f"<tr><td>{esc(h)}</td><td>{n}</td></tr>" for h, n in summary.handler_usage_stats.items()
    )

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Constraint Debugging Report - {esc(session.session_id)}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; }}
        .summary {{ background: #f5f5f5; padding: 15px; border-radius: 5px; }}
        .issue-critical {{ color: #d32f2f; }}
        .issue-high {{ color: #f57c00; }}
        .issue-medium {{ color: #1976d2; }}
        .issue-low {{ color: #388e3c; }}
    </style>
</head>
<body>
    <h1>Constraint Debugging Report</h1>
    <div class="summary">
        <h2>Session: {esc(session.session_id)}</h2>
        <p><strong>Table:</strong> {esc(session.table_name)}</p>
        <p><strong>Total Constraints:</strong> {summary.total_constraints}</p>
        <p><strong>Total Tests:</strong> {summary.total_tests}</p>
        <p><strong>Success Rate:</strong> {summary.success_rate * 100:.1f}%</p>
        <p><strong>Bypasses Required:</strong> {summary.bypass_required}</p>
        <p><strong>Average Execution Time:</strong> {summary.average_execution_time:.2f}ms</p>
    </div>
    <h2>Recommendations</h2>
    <ul>{recommendations}</ul>
    <h2>Handler Usage</h2>
    <table>{handler_rows}</table>
    <h2>Issues</h2>
    <table>
        <tr><th>Constraint</th><th>Test</th><th>Severity</th><th>Type</th><th>Message</th><th>Suggested fix</th></tr>
        {"".join(rows)}
    </table>
</body>
</html>
"""
