"""Tests for architecture, domain and framework detection."""

import logging

import pytest

from seedwise.config import Config, DetectionConfig, DomainDetectionConfig
from seedwise.core.models import (
    ClassificationResult,
    DetectionAnalysisContext,
    FrameworkClassification,
)
from seedwise.detection import (
    ArchitectureDetector,
    DomainDetector,
    cross_validate,
    detect_all,
    detect_architecture,
    detect_domain,
    detect_framework,
    resolve_version,
)
from seedwise.detection import architecture as architecture_module

# Organization-owned boards with members and roles
TEAM_SCHEMA = {
    "tables": {
        "organizations": ["id", "name"],
        "team_members": ["organization_id", "user_id"],
        "roles": ["name"],
        "boards": ["id", "organization_id", "title"],
    },
    "relationships": [
        {"from_table": "team_members", "from_column": "organization_id", "to_table": "organizations"},
        {"from_table": "boards", "from_column": "organization_id", "to_table": "organizations"},
    ],
}

# Team tables alongside records created by individual users
BALANCED_SCHEMA = {
    "tables": {
        "organizations": ["id", "name"],
        "team_members": ["organization_id", "user_id"],
        "roles": ["name"],
        "boards": ["id", "title"],
        "tickets": ["id", "created_by"],
        "notes": ["id", "created_by"],
        "files": ["id", "created_by"],
    },
    "relationships": [
        {"from_table": "tickets", "from_column": "created_by", "to_table": "users"},
        {"from_table": "notes", "from_column": "created_by", "to_table": "users"},
        {"from_table": "files", "from_column": "created_by", "to_table": "users"},
    ],
}


def _without_timing(data: dict) -> dict:
    data = dict(data)
    data["metrics"] = {k: v for k, v in data["metrics"].items() if k != "execution_time_ms"}
    return data


class TestArchitectureDetection:
    """Tests for ArchitectureDetector.detect()."""

    def test_user_owned_content(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test user-owned content is classified as individual."""
        result = detect_architecture(user_posts_context)

        assert result.primary_label == "individual"
        assert result.confidence > 0.5
        assert result.evidence
        assert result.reasoning_trace[0].startswith("Analyzed 2 tables")
        assert result.metrics.strategy_used == "comprehensive"

    def test_no_patterns_is_neutral(self, empty_context: DetectionAnalysisContext) -> None:
        """Test an empty schema yields hybrid at 0 with a warning."""
        result = detect_architecture(empty_context)

        assert result.primary_label == "hybrid"
        assert result.confidence == 0.0
        assert result.confidence_level == "very_low"
        assert "No architecture patterns matched; result is a neutral default" in result.warnings

    def test_manual_override(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test an override wins at 0.95 and records the conflict."""
        result = detect_architecture(user_posts_context, DetectionConfig(manual_override="team"))

        assert result.primary_label == "team"
        assert result.confidence == 0.95
        assert result.metrics.strategy_used == "manual_override"
        assert result.alternatives[0].label == "individual"
        assert any("conflicts with detected architecture" in w for w in result.warnings)

    def test_override_matching_detection(
        self, user_posts_context: DetectionAnalysisContext
    ) -> None:
        """Test an override agreeing with detection carries no conflict."""
        result = detect_architecture(
            user_posts_context, DetectionConfig(manual_override="individual")
        )

        assert result.primary_label == "individual"
        assert result.warnings == []
        assert result.alternatives == []

    @pytest.mark.parametrize("strategy", ["comprehensive", "fast", "conservative", "aggressive"])
    def test_confidence_in_bounds(
        self, strategy: str, user_posts_context: DetectionAnalysisContext
    ) -> None:
        """Test every strategy returns a valid label and bounded confidence."""
        result = detect_architecture(user_posts_context, DetectionConfig(strategy=strategy))

        assert result.primary_label in ("individual", "team", "hybrid")
        assert 0.0 <= result.confidence <= 1.0
        assert result.metrics.strategy_used == strategy

    def test_fast_mode_warns(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test fast mode flags its shortcuts."""
        result = detect_architecture(user_posts_context, DetectionConfig(strategy="fast"))

        assert "Fast detection mode - some patterns may not be fully analyzed" in result.warnings

    def test_organization_owned_content(self) -> None:
        """Test organization-owned tables are classified as team."""
        result = detect_architecture(DetectionAnalysisContext.from_dict(TEAM_SCHEMA))

        # Team evidence 1.584 over a total evidence weight of 2.76
        assert result.primary_label == "team"
        assert result.confidence == pytest.approx(1.584 / 2.76)
        assert result.metadata["class_scores"]["individual"] == pytest.approx(0.4 / 2.76)
        assert "Configure team collaboration features" in result.recommendations
        assert "Selected team (0.57) using comprehensive strategy" in result.reasoning_trace

    def test_team_conservative(self) -> None:
        """Test conservative mode falls back to hybrid when team evidence is thin."""
        result = detect_architecture(
            DetectionAnalysisContext.from_dict(TEAM_SCHEMA),
            DetectionConfig(strategy="conservative"),
        )

        assert result.primary_label == "hybrid"
        assert result.confidence == pytest.approx(0.6)
        assert "Conservative mode - may classify ambiguous cases as hybrid" in result.warnings

    def test_team_aggressive(self) -> None:
        """Test aggressive mode boosts the team score."""
        result = detect_architecture(
            DetectionAnalysisContext.from_dict(TEAM_SCHEMA),
            DetectionConfig(strategy="aggressive"),
        )

        assert result.primary_label == "team"
        assert result.confidence == pytest.approx(1.584 / 2.76 * 1.1)

    def test_balanced_prefers_hybrid(self) -> None:
        """Test evenly matched individual and team scores resolve to hybrid."""
        result = detect_architecture(DetectionAnalysisContext.from_dict(BALANCED_SCHEMA))

        scores = result.metadata["class_scores"]
        assert scores["individual"] == pytest.approx(0.912 / 2.58)
        assert scores["team"] == pytest.approx(0.892 / 2.58)
        assert result.primary_label == "hybrid"
        assert result.confidence == pytest.approx(0.892 / 2.58)
        assert (
            "Individual and team signals are balanced (0.35 vs 0.35); preferring hybrid"
            in result.warnings
        )
        assert "Balanced individual/team scores, preferring hybrid" in result.reasoning_trace
        assert {a.label for a in result.alternatives} == {"individual", "team"}

    def test_balanced_conservative(self) -> None:
        """Test conservative mode keeps only strong evidence and picks individual."""
        result = detect_architecture(
            DetectionAnalysisContext.from_dict(BALANCED_SCHEMA),
            DetectionConfig(strategy="conservative"),
        )

        assert result.primary_label == "individual"
        assert result.confidence == pytest.approx(0.912 / 1.06 * 0.95)
        assert "Conservative analysis with margin 0.72" in result.reasoning_trace

    def test_deterministic(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test repeated runs agree apart from timing."""
        first = detect_architecture(outdoor_context).to_dict()
        second = detect_architecture(outdoor_context).to_dict()

        assert _without_timing(first) == _without_timing(second)

    def test_excluded_tables(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test excluding every table leaves nothing to match."""
        result = detect_architecture(
            user_posts_context, DetectionConfig(exclude_tables=["users", "posts"])
        )

        assert result.confidence == 0.0

    def test_failure_falls_back(self, user_posts_context, monkeypatch) -> None:
        """Test internal errors produce hybrid at 0.5 instead of raising."""

        def broken(context):
            raise RuntimeError("rule library corrupt")

        monkeypatch.setattr(architecture_module, "analyze_architecture", broken)

        result = detect_architecture(user_posts_context)

        assert result.primary_label == "hybrid"
        assert result.confidence == 0.5
        assert result.errors == ["rule library corrupt"]

    def test_statistics(self, user_posts_context, empty_context) -> None:
        """Test the detector keeps running statistics."""
        detector = ArchitectureDetector()
        detector.detect(user_posts_context)
        detector.detect(empty_context)

        assert detector.stats.total_detections == 2
        assert detector.stats.results_by_label == {"individual": 1, "hybrid": 1}

    def test_per_context_logger(self, user_posts_context, caplog) -> None:
        """Test diagnostics go to the logger carried by the context."""
        custom = logging.getLogger("seedwise.test.run")
        context = DetectionAnalysisContext.from_dict(
            user_posts_context.to_dict(), logger=custom
        )

        with caplog.at_level(logging.DEBUG, logger="seedwise.test.run"):
            detect_architecture(context)

        assert any(r.name == "seedwise.test.run" for r in caplog.records)


class TestDomainDetection:
    """Tests for DomainDetector.detect()."""

    def test_outdoor(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test a gear catalogue is classified as outdoor."""
        result = detect_domain(outdoor_context)

        assert result.primary_label == "outdoor"
        assert result.confidence > 0.7
        assert result.reasoning_trace[0].startswith("OUTDOOR domain analysis")

    def test_generic(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test plain user content stays generic with low confidence."""
        result = detect_domain(user_posts_context)

        assert result.primary_label == "generic"
        assert result.confidence < 0.5

    def test_no_patterns(self, empty_context: DetectionAnalysisContext) -> None:
        """Test an empty schema yields generic at 0."""
        result = detect_domain(empty_context)

        assert result.primary_label == "generic"
        assert result.confidence == 0.0
        assert result.warnings == ["No domain patterns matched; result is a neutral default"]

    def test_manual_override(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test an override wins at 0.95 and keeps the detected label as an alternative."""
        result = detect_domain(outdoor_context, DomainDetectionConfig(manual_override="saas"))

        assert result.primary_label == "saas"
        assert result.confidence == 0.95
        assert result.alternatives[0].label == "outdoor"
        assert any("conflicts with detected domain" in w for w in result.warnings)

    def test_conservative_falls_back_to_generic(
        self, user_posts_context: DetectionAnalysisContext
    ) -> None:
        """Test conservative mode refuses low-confidence domains."""
        result = detect_domain(user_posts_context, DomainDetectionConfig(strategy="conservative"))

        assert result.primary_label == "generic"

    def test_excluded_domain(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test excluded domains are never reported."""
        result = detect_domain(outdoor_context, DomainDetectionConfig(exclude_domains=["outdoor"]))

        assert result.primary_label != "outdoor"

    def test_statistics(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test the detector keeps running statistics."""
        detector = DomainDetector()
        detector.detect(outdoor_context)

        assert detector.stats.results_by_label == {"outdoor": 1}


class TestFrameworkDetection:
    """Tests for detect_framework()."""

    def test_full_v3(self, makerkit_v3_context: DetectionAnalysisContext) -> None:
        """Test the complete v3 table set is MakerKit v3 at full confidence."""
        result = detect_framework(makerkit_v3_context)

        assert result.is_makerkit
        assert result.framework == "makerkit"
        assert result.version == "v3"
        assert result.primary_label == "v3"
        assert result.confidence == 1.0
        assert "personal_account_column" in result.detected_features
        assert "setup_new_user_function" in result.missing_features

    def test_accounts_and_memberships(
        self, makerkit_v1_context: DetectionAnalysisContext
    ) -> None:
        """Test a weak schema resolves v1 while staying below the MakerKit threshold."""
        result = detect_framework(makerkit_v1_context)

        assert result.version == "v1"
        assert result.confidence == pytest.approx(0.12)
        assert not result.is_makerkit
        assert result.framework == "generic"

    def test_empty(self, empty_context: DetectionAnalysisContext) -> None:
        """Test an empty schema has no framework."""
        result = detect_framework(empty_context)

        assert result.version == "none"
        assert result.confidence == 0.0
        assert not result.is_makerkit

    def test_functions_and_triggers(self) -> None:
        """Test bootstrap functions and auth triggers count as features."""
        context = DetectionAnalysisContext.from_dict(
            {
                "tables": {"accounts": ["id", "is_personal_account"]},
                "functions": [{"name": "setup_new_user"}],
                "triggers": [
                    {"name": "on_auth_user_created", "table": "users", "function": "x"}
                ],
            }
        )

        result = detect_framework(context)

        assert "setup_new_user_function" in result.detected_features
        assert "auth_user_trigger" in result.detected_features
        # (0.4 + 0.3 + 0.3) * 0.8
        assert result.confidence == pytest.approx(0.8)
        assert result.version == "custom"

    def test_hint_without_evidence(self, empty_context: DetectionAnalysisContext) -> None:
        """Test a makerkit hint with no evidence is flagged."""
        context = DetectionAnalysisContext(framework_hint="makerkit")

        result = detect_framework(context)

        assert "Framework hint says makerkit but schema evidence is weak" in result.warnings

    def test_resolve_version_requires_accounts(self) -> None:
        """Test no accounts table means no version."""
        context = DetectionAnalysisContext.from_dict({"tables": ["memberships", "roles"]})

        assert resolve_version(context) == "none"


class TestCrossValidation:
    """Tests for cross_validate()."""

    def test_makerkit_team_agrees(self) -> None:
        """Test MakerKit with team accounts and SaaS agree on every check."""
        validation = cross_validate(
            ClassificationResult(primary_label="team", confidence=0.9),
            ClassificationResult(primary_label="saas", confidence=0.8),
            FrameworkClassification(
                primary_label="v3", confidence=1.0, version="v3", is_makerkit=True
            ),
        )

        assert validation.overall_agreement == 1.0
        assert validation.disagreements == []

    def test_makerkit_individual_disagrees(self) -> None:
        """Test MakerKit on an individual schema is a disagreement."""
        validation = cross_validate(
            ClassificationResult(primary_label="individual", confidence=0.9),
            ClassificationResult(primary_label="generic", confidence=0.2),
            FrameworkClassification(primary_label="v1", confidence=0.6, is_makerkit=True),
        )

        assert validation.checks["framework_architecture"] == 0.0
        assert validation.checks["domain_architecture"] == 0.5
        assert validation.overall_agreement == pytest.approx(1.0 / 3)

    def test_neutral(self) -> None:
        """Test no framework and a generic domain is neutral throughout."""
        validation = cross_validate(
            ClassificationResult(primary_label="hybrid", confidence=0.0),
            ClassificationResult(primary_label="generic", confidence=0.0),
            FrameworkClassification(primary_label="none", confidence=0.0),
        )

        assert validation.overall_agreement == 0.5


class TestDetectAll:
    """Tests for detect_all()."""

    def test_overall_confidence(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test overall confidence averages architecture and domain without MakerKit."""
        result = detect_all(outdoor_context)

        expected = (result.architecture.confidence + result.domain.confidence) / 2
        assert result.overall_confidence == pytest.approx(expected)
        assert result.confidence == result.overall_confidence

    def test_includes_framework_when_makerkit(
        self, makerkit_v3_context: DetectionAnalysisContext
    ) -> None:
        """Test MakerKit framework confidence joins the average."""
        result = detect_all(makerkit_v3_context)

        expected = (
            result.architecture.confidence + result.domain.confidence + result.framework.confidence
        ) / 3
        assert result.framework.is_makerkit
        assert result.overall_confidence == pytest.approx(expected)

    def test_config_is_applied(self, user_posts_context: DetectionAnalysisContext) -> None:
        """Test section configs reach each detector."""
        config = Config(
            detection=DetectionConfig(manual_override="hybrid"),
            domain=DomainDetectionConfig(manual_override="social"),
        )

        result = detect_all(user_posts_context, config)

        assert result.architecture.primary_label == "hybrid"
        assert result.domain.primary_label == "social"
        assert result.cross_validation.checks["domain_architecture"] == 1.0

    def test_roundtrip(self, outdoor_context: DetectionAnalysisContext) -> None:
        """Test unified results survive serialization."""
        from seedwise.detection import UnifiedDetectionResult

        result = detect_all(outdoor_context)
        restored = UnifiedDetectionResult.from_dict(result.to_dict())

        assert restored.architecture.primary_label == result.architecture.primary_label
        assert restored.domain.confidence == result.domain.confidence
        assert restored.framework.version == result.framework.version
        assert restored.cross_validation == result.cross_validation
