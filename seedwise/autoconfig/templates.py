"""Configuration templates for known architecture/domain combinations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from seedwise.detection.integration import UnifiedDetectionResult

ANY = "any"


def _always(detection: UnifiedDetectionResult) -> bool:
    return True


@dataclass(frozen=True)
class ConfigurationTemplate:
    """
    Settings layered onto a generated configuration when a detection matches.

    A template applies when the overall detection confidence reaches
    ``minimum_confidence``, both labels match (``any`` matches everything)
    and ``should_apply`` agrees. ``generate`` replaces the static
    ``overrides`` when a template needs to look at the configuration built so far.
    """

    id: str
    name: str
    architecture: str = ANY
    domain: str = ANY
    minimum_confidence: float = 0.0
    priority: int = 0
    overrides: dict[str, Any] = field(default_factory=dict)
    should_apply: Callable[[UnifiedDetectionResult], bool] = _always
    generate: Optional[
        Callable[[UnifiedDetectionResult, dict[str, Any]], dict[str, Any]]
    ] = None
    description: str = ""

    def applies_to(self, detection: UnifiedDetectionResult, minimum: float = 0.0) -> bool:
        if detection.overall_confidence < max(self.minimum_confidence, minimum):
            return False
        if self.architecture != ANY and self.architecture != detection.architecture.primary_label:
            return False
        if self.domain != ANY and self.domain != detection.domain.primary_label:
            return False
        return bool(self.should_apply(detection))

    def settings_for(
        self, detection: UnifiedDetectionResult, current: dict[str, Any]
    ) -> dict[str, Any]:
        if self.generate is not None:
            return self.generate(detection, dict(current))
        return dict(self.overrides)


def applicable_templates(
    templates: list[ConfigurationTemplate],
    detection: UnifiedDetectionResult,
    minimum: float = 0.0,
) -> list[ConfigurationTemplate]:
    """Templates matching a detection, highest priority first; ties keep list order."""
    matching = [t for t in templates if t.applies_to(detection, minimum)]
    return sorted(matching, key=lambda t: t.priority, reverse=True)


BUILTIN_TEMPLATES: tuple[ConfigurationTemplate, ...] = (
    ConfigurationTemplate(
        id="outdoor_individual",
        name="Outdoor Individual Creator",
        description="Individual outdoor gear platforms",
        architecture="individual",
        domain="outdoor",
        minimum_confidence=0.7,
        priority=10,
        overrides={
            "user_count": 4,
            "setups_per_user": 3,
            "images_per_setup": 3,
            "enable_real_images": True,
            "email_domain": "wildernest.test",
        },
    ),
    ConfigurationTemplate(
        id="saas_team",
        name="SaaS Team Platform",
        description="Team-based SaaS platforms",
        architecture="team",
        domain="saas",
        minimum_confidence=0.7,
        priority=10,
        overrides={
            "user_count": 8,
            "setups_per_user": 1,
            "images_per_setup": 1,
            "enable_real_images": False,
            "create_team_accounts": True,
            "email_domain": "saas.test",
        },
    ),
    ConfigurationTemplate(
        id="ecommerce_hybrid",
        name="E-commerce Hybrid Platform",
        description="Hybrid e-commerce platforms",
        architecture="hybrid",
        domain="ecommerce",
        minimum_confidence=0.6,
        priority=8,
        overrides={
            "user_count": 10,
            "setups_per_user": 3,
            "images_per_setup": 4,
            "enable_real_images": True,
            "create_team_accounts": True,
            "email_domain": "ecommerce.test",
        },
    ),
    ConfigurationTemplate(
        id="generic_high_confidence",
        name="High-Confidence Generic Platform",
        description="Well-detected generic platforms",
        architecture=ANY,
        domain="generic",
        minimum_confidence=0.8,
        priority=5,
        overrides={
            "user_count": 6,
            "setups_per_user": 2,
            "images_per_setup": 1,
            "enable_real_images": False,
        },
        should_apply=lambda detection: detection.overall_confidence > 0.8,
    ),
)
