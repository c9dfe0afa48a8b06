"""
Seed configuration generation from detection results.

Settings are layered as plain dictionaries (architecture defaults, domain
defaults, templates, caller overrides; later layers win) and validated into
a ``SeedConfiguration`` at the end.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from seedwise.autoconfig.defaults import (
    ARCHITECTURE_REASONING,
    DOMAIN_REASONING,
    DOMAIN_WARNINGS,
    FALLBACK_CONFIGURATION,
    architecture_defaults,
    domain_defaults,
    essential_settings,
    optimized_volumes,
)
from seedwise.autoconfig.templates import (
    BUILTIN_TEMPLATES,
    ConfigurationTemplate,
    applicable_templates,
)
from seedwise.config import AutoConfigOptions
from seedwise.core.scoring import confidence_level
from seedwise.detection.integration import UnifiedDetectionResult
from seedwise.strategies.base import StrategySelection

ESSENTIAL_FIELDS = ("user_count", "setups_per_user", "domain", "multi_tenant", "storage")

# Confidence an individual analyzer needs before conservative mode trusts it
CONSERVATIVE_THRESHOLD = 0.8
CONSERVATIVE_CAP = 0.9
MINIMAL_FACTOR = 0.9
FALLBACK_CONFIDENCE = 0.3

DomainName = Literal["outdoor", "saas", "ecommerce", "social", "generic"]


class MultiTenantSettings(BaseModel):
    """Tenant partitioning of generated data."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    tenant_column: str = "user_id"
    strict_isolation: bool = False
    allow_shared_resources: bool = True
    generate_personal_accounts: bool = True
    generate_team_accounts: bool = False
    personal_account_ratio: float = Field(default=1.0, ge=0, le=1)
    shared_tables: list[str] = Field(default_factory=list)


class StorageSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    buckets: dict[str, str] = Field(default_factory=dict)


class MakerKitFrameworkSettings(BaseModel):
    """Seeding switches for MakerKit schemas."""

    model_config = ConfigDict(extra="forbid")

    family: Literal["makerkit"] = "makerkit"
    version: str = "none"
    use_auth_trigger_user_creation: bool = True
    personal_account_slug_null: bool = True
    enable_constraint_handling: bool = True
    enable_rls_compliance: bool = False


class GenericFrameworkSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    family: Literal["generic"] = "generic"
    enable_constraint_handling: bool = False


FrameworkSettings = Annotated[
    Union[MakerKitFrameworkSettings, GenericFrameworkSettings],
    Field(discriminator="family"),
]


class SeedConfiguration(BaseModel):
    """Configuration consumed by the seeding pipeline."""

    model_config = ConfigDict(extra="forbid")

    user_count: int = Field(default=5, ge=1, description="Users to create")
    setups_per_user: int = Field(default=2, ge=0, description="Content items per user")
    images_per_setup: int = Field(default=1, ge=0, description="Images per content item")
    domain: DomainName = Field(default="generic", description="Content domain")
    enable_real_images: bool = Field(default=False, description="Fetch real images")
    create_team_accounts: bool = Field(default=False, description="Create team accounts")
    email_domain: str = Field(default="example.test", description="Domain for seeded emails")
    multi_tenant: Optional[MultiTenantSettings] = None
    storage: Optional[StorageSettings] = None
    framework: FrameworkSettings = Field(default_factory=GenericFrameworkSettings)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)


@dataclass
class GenerationMetrics:
    execution_time_ms: float = field(default=0.0, compare=False)
    templates_applied: int = 0
    template_ids: list[str] = field(default_factory=list)
    strategy_used: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_time_ms": self.execution_time_ms,
            "templates_applied": self.templates_applied,
            "template_ids": list(self.template_ids),
            "strategy_used": self.strategy_used,
        }


@dataclass
class AutoConfigurationResult:
    configuration: SeedConfiguration
    confidence: float
    reasoning: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metrics: GenerationMetrics = field(default_factory=GenerationMetrics)
    confidence_level: str = field(init=False)

    def __post_init__(self) -> None:
        self.confidence_level = confidence_level(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "configuration": self.configuration.to_dict(),
            "confidence": self.confidence,
            "confidence_level": self.confidence_level,
            "reasoning": list(self.reasoning),
            "warnings": list(self.warnings),
            "metrics": self.metrics.to_dict(),
        }


@dataclass
class _Draft:
    settings: dict[str, Any]
    reasoning: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    template_ids: list[str] = field(default_factory=list)


def completeness(settings: dict[str, Any]) -> float:
    """Share of essential fields populated; 0.5 when none are."""
    populated = sum(1 for name in ESSENTIAL_FIELDS if settings.get(name) is not None)
    if populated == 0:
        return 0.5
    return populated / len(ESSENTIAL_FIELDS)


def configuration_confidence(detection: UnifiedDetectionResult, settings: dict[str, Any]) -> float:
    """Detection confidence scaled by completeness, nudged ±10% by analyzer agreement."""
    confidence = detection.overall_confidence * completeness(settings)
    agreement = detection.cross_validation.overall_agreement
    if agreement > 0.8:
        confidence *= 1.1
    elif agreement < 0.5:
        confidence *= 0.9
    return min(confidence, 1.0)


class AutoConfigurator:
    """
    Generate seed configurations in one of four modes.

    Modes:
        comprehensive: architecture defaults, domain defaults, matching templates
        minimal: only the team account switch and the domain label
        conservative: only analyzers and templates trusted above 0.8
        optimized: comprehensive plus fixed per-architecture/per-domain volumes

    Caller overrides are merged last in every mode. Generation never raises:
    any failure yields the fallback configuration at confidence 0.3.
    """

    def __init__(
        self,
        templates: Optional[list[ConfigurationTemplate]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.templates = list(templates) if templates is not None else list(BUILTIN_TEMPLATES)
        self.logger = logger or logging.getLogger(__name__)

    def add_template(self, template: ConfigurationTemplate) -> None:
        self.templates.append(template)

    def generate_configuration(
        self,
        detection: UnifiedDetectionResult,
        options: Optional[AutoConfigOptions] = None,
        selection: Optional[StrategySelection] = None,
    ) -> AutoConfigurationResult:
        """
        Generate a seed configuration.

        Args:
            detection: Unified detection result
            options: Generation options (defaults apply when omitted)
            selection: Chosen seeding strategy; decides the framework block

        Returns:
            AutoConfigurationResult, the fallback configuration on failure
        """
        options = options or AutoConfigOptions()
        start = time.perf_counter()
        self.logger.info(f"Generating auto-configuration with strategy: {options.strategy}")

        try:
            result = self._generate(detection, options, selection)
        except Exception as e:
            self.logger.warning(f"Auto-configuration generation failed: {e}")
            result = self._fallback(e)

        result.metrics.execution_time_ms = (time.perf_counter() - start) * 1000
        self.logger.info(
            f"Auto-configuration generated with {result.confidence:.2f} confidence"
        )
        return result

    def _generate(
        self,
        detection: UnifiedDetectionResult,
        options: AutoConfigOptions,
        selection: Optional[StrategySelection],
    ) -> AutoConfigurationResult:
        draft = _Draft(settings={"framework": self._framework_settings(detection, selection)})

        mode = options.strategy
        if mode == "minimal":
            self._minimal(detection, draft)
        elif mode == "conservative":
            self._conservative(detection, draft)
        else:
            self._comprehensive(detection, options, draft)
            if mode == "optimized":
                self._optimize(detection, options, draft)

        if options.overrides:
            draft.settings.update(options.overrides)
            draft.reasoning.append("Applied manual configuration overrides")

        confidence = configuration_confidence(detection, draft.settings)
        if mode == "minimal":
            confidence *= MINIMAL_FACTOR
            draft.warnings.append(
                "Minimal configuration mode - some features may not be optimally configured"
            )
        elif mode == "conservative":
            confidence = min(confidence, CONSERVATIVE_CAP)

        if detection.overall_confidence < options.confidence_threshold:
            draft.warnings.append(
                f"Detection confidence {detection.overall_confidence:.2f} is below "
                f"{options.confidence_threshold}; review the generated configuration"
            )

        configuration = SeedConfiguration.model_validate(draft.settings)
        draft.reasoning.append(f"Configuration confidence: {confidence:.2f}")

        return AutoConfigurationResult(
            configuration=configuration,
            confidence=confidence,
            reasoning=draft.reasoning,
            warnings=draft.warnings,
            metrics=GenerationMetrics(
                templates_applied=len(draft.template_ids),
                template_ids=draft.template_ids,
                strategy_used=mode,
            ),
        )

    def _framework_settings(
        self, detection: UnifiedDetectionResult, selection: Optional[StrategySelection]
    ) -> dict[str, Any]:
        if selection is not None:
            makerkit = selection.strategy_name == "makerkit"
        else:
            makerkit = detection.framework.is_makerkit
        if makerkit:
            return {"family": "makerkit", "version": detection.framework.version}
        return {"family": "generic"}

    def _apply_architecture(self, label: str, draft: _Draft) -> None:
        settings = architecture_defaults(label)
        if not settings:
            draft.warnings.append(f"No architecture defaults for '{label}'")
            return
        draft.settings.update(settings)
        draft.reasoning.append(ARCHITECTURE_REASONING[label])

    def _apply_domain(self, label: str, draft: _Draft) -> None:
        settings = domain_defaults(label)
        if not settings:
            draft.warnings.append(f"No domain defaults for '{label}'")
            return
        draft.settings.update(settings)
        draft.reasoning.append(DOMAIN_REASONING[label])
        if label in DOMAIN_WARNINGS:
            draft.warnings.append(DOMAIN_WARNINGS[label])

    def _apply_templates(
        self, detection: UnifiedDetectionResult, draft: _Draft, minimum: float = 0.0
    ) -> None:
        templates = applicable_templates(self.templates, detection, minimum)
        # Lowest priority first so higher-priority settings survive the merge
        for template in reversed(templates):
            draft.settings.update(template.settings_for(detection, draft.settings))
            draft.reasoning.append(
                f"Applied {template.name} template for "
                f"{template.architecture}/{template.domain} platform"
            )
        draft.template_ids.extend(t.id for t in templates)

    def _comprehensive(
        self, detection: UnifiedDetectionResult, options: AutoConfigOptions, draft: _Draft
    ) -> None:
        architecture = detection.architecture.primary_label
        domain = detection.domain.primary_label
        draft.reasoning.append(
            f"Comprehensive configuration generated for {architecture}/{domain} platform"
        )

        self._apply_architecture(architecture, draft)
        if options.enable_domain_extensions:
            self._apply_domain(domain, draft)
        else:
            draft.settings.update(essential_settings(architecture, domain))
        self._apply_templates(detection, draft)

    def _minimal(self, detection: UnifiedDetectionResult, draft: _Draft) -> None:
        architecture = detection.architecture.primary_label
        domain = detection.domain.primary_label
        draft.reasoning.append(
            f"Minimal configuration generated for {architecture}/{domain} platform"
        )
        draft.settings.update(essential_settings(architecture, domain))
        draft.reasoning.append(f"Set domain to {domain}")

    def _conservative(self, detection: UnifiedDetectionResult, draft: _Draft) -> None:
        draft.reasoning.append(
            "Conservative configuration generated with high-confidence requirements"
        )

        if detection.architecture.confidence > CONSERVATIVE_THRESHOLD:
            self._apply_architecture(detection.architecture.primary_label, draft)
        else:
            draft.warnings.append(
                "Architecture confidence too low for automatic configuration - using defaults"
            )

        if detection.domain.confidence > CONSERVATIVE_THRESHOLD:
            self._apply_domain(detection.domain.primary_label, draft)
        else:
            draft.warnings.append(
                "Domain confidence too low for automatic configuration - using generic settings"
            )
            draft.settings.update(domain_defaults("generic"))

        self._apply_templates(detection, draft, minimum=CONSERVATIVE_THRESHOLD)

    def _optimize(
        self, detection: UnifiedDetectionResult, options: AutoConfigOptions, draft: _Draft
    ) -> None:
        draft.reasoning.insert(
            0, "Performance-optimized configuration generated based on platform detection"
        )
        if options.enable_architecture_optimizations:
            architecture = detection.architecture.primary_label
            domain = detection.domain.primary_label
            volumes = optimized_volumes(architecture, domain)
            if draft.settings.get("user_count") != volumes["user_count"]:
                draft.reasoning.append(
                    f"Optimized user count to {volumes['user_count']} "
                    f"for {architecture} architecture"
                )
            draft.settings.update(volumes)
            draft.reasoning.append(f"Optimized seeding parameters for {domain} domain")

        framework = draft.settings.get("framework")
        if framework and framework.get("family") == "makerkit":
            framework["enable_constraint_handling"] = True
            framework["enable_rls_compliance"] = True
            draft.reasoning.append("Enabled framework constraint handling and RLS compliance")

    def _fallback(self, error: Exception) -> AutoConfigurationResult:
        return AutoConfigurationResult(
            configuration=SeedConfiguration.model_validate(FALLBACK_CONFIGURATION),
            confidence=FALLBACK_CONFIDENCE,
            reasoning=["Auto-configuration failed - using fallback settings"],
            warnings=[f"Configuration generation failed - using minimal safe defaults ({error})"],
            metrics=GenerationMetrics(strategy_used="fallback"),
        )


def generate_configuration(
    detection: UnifiedDetectionResult,
    options: Optional[AutoConfigOptions] = None,
    selection: Optional[StrategySelection] = None,
) -> AutoConfigurationResult:
    """Generate a configuration with the built-in templates."""
    return AutoConfigurator().generate_configuration(detection, options, selection)
