"""
Configuration management for seedwise.

Loads and validates configuration from seedwise.toml files using Pydantic.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Literal, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from seedwise.exceptions import ConfigurationError

CONFIG_FILENAME = "seedwise.toml"

DetectionStrategyName = Literal["comprehensive", "fast", "conservative", "aggressive"]
GenerationStrategyName = Literal["comprehensive", "minimal", "conservative", "optimized"]
ReportFormat = Literal["markdown", "json", "html"]


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    url: str = Field(
        default="postgresql://localhost/postgres",
        description="PostgreSQL connection URL",
    )
    schema_name: str = Field(
        default="public", alias="schema", description="Schema to introspect"
    )

    model_config = {"populate_by_name": True}


class IntrospectionConfig(BaseSettings):
    """Bounds for schema introspection."""

    max_concurrent_queries: int = Field(
        default=5, ge=1, description="Maximum in-flight introspection queries"
    )
    query_timeout: float = Field(
        default=5.0, gt=0, description="Per-lookup timeout in seconds"
    )
    max_execution_time: float = Field(
        default=30.0, gt=0, description="Timeout for the whole introspection phase in seconds"
    )


class DetectionConfig(BaseSettings):
    """Architecture detection configuration."""

    strategy: DetectionStrategyName = Field(
        default="comprehensive", description="Detection strategy"
    )
    confidence_threshold: float = Field(
        default=0.6, ge=0, le=1, description="Minimum confidence for a definitive result"
    )
    exclude_tables: list[str] = Field(default_factory=list, description="Tables to ignore")
    focus_tables: list[str] = Field(
        default_factory=list, description="Restrict analysis to these tables"
    )
    manual_override: Optional[Literal["individual", "team", "hybrid"]] = Field(
        default=None, description="Force the architecture label"
    )
    use_caching: bool = Field(default=True, description="Reuse cached detection results")


class DomainDetectionConfig(BaseSettings):
    """Content domain detection configuration."""

    strategy: DetectionStrategyName = Field(
        default="comprehensive", description="Detection strategy"
    )
    confidence_threshold: float = Field(
        default=0.5, ge=0, le=1, description="Minimum confidence for a definitive result"
    )
    detect_secondary_domains: bool = Field(
        default=True, description="Report secondary domains above 0.5"
    )
    exclude_domains: list[str] = Field(
        default_factory=list, description="Domains never to report"
    )
    manual_override: Optional[Literal["outdoor", "saas", "ecommerce", "social", "generic"]] = (
        Field(default=None, description="Force the domain label")
    )


class StrategyConfig(BaseSettings):
    """Seeding strategy selection."""

    minimum_confidence: float = Field(
        default=0.3, ge=0, le=1, description="Confidence a strategy needs to be auto-selected"
    )
    enable_fallback: bool = Field(
        default=True, description="Fall back to the generic strategy when nothing qualifies"
    )
    override: Optional[str] = Field(default=None, description="Force a strategy by name")


class AutoConfigOptions(BaseSettings):
    """Auto-configuration generation options."""

    strategy: GenerationStrategyName = Field(
        default="comprehensive", description="Configuration generation strategy"
    )
    confidence_threshold: float = Field(
        default=0.6, ge=0, le=1, description="Warn when detection confidence is below this"
    )
    enable_domain_extensions: bool = Field(
        default=True, description="Apply domain-specific defaults"
    )
    enable_architecture_optimizations: bool = Field(
        default=True, description="Apply optimized volume tables in optimized mode"
    )
    overrides: dict[str, Any] = Field(
        default_factory=dict, description="Caller overrides, merged last"
    )


class CacheConfig(BaseSettings):
    """Detection result cache configuration."""

    enabled: bool = Field(default=True, description="Enable the JSON file cache")
    cache_dir: str = Field(default=".seedwise-cache", description="Cache directory")
    ttl_seconds: int = Field(default=86_400, ge=1, description="Entry time-to-live")
    min_confidence_to_cache: float = Field(
        default=0.6, ge=0, le=1, description="Results below this confidence are not cached"
    )
    max_entries: int = Field(default=100, ge=1, description="Maximum cache files kept")


class DebuggingConfig(BaseSettings):
    """Constraint debugging thresholds."""

    slow_handler_ms: float = Field(
        default=100.0, description="Average handler time that counts as slow"
    )
    max_fixes_before_warning: int = Field(
        default=3, description="Fixes per test above which data quality is flagged"
    )
    success_rate_threshold: float = Field(
        default=0.8, description="Session success rate below which handlers need review"
    )
    bypass_rate_threshold: float = Field(
        default=0.1, description="Share of bypassed tests that counts as high"
    )
    sample_rows: int = Field(
        default=3, ge=0, description="Synthetic rows generated when none are supplied"
    )
    default_report_format: ReportFormat = Field(
        default="markdown", description="Report format used by the CLI"
    )


class Config(BaseSettings):
    """Main configuration for seedwise."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    introspection: IntrospectionConfig = Field(default_factory=IntrospectionConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    domain: DomainDetectionConfig = Field(default_factory=DomainDetectionConfig)
    strategies: StrategyConfig = Field(default_factory=StrategyConfig)
    autoconfig: AutoConfigOptions = Field(default_factory=AutoConfigOptions)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    debugging: DebuggingConfig = Field(default_factory=DebuggingConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to seedwise.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls(**data)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(str(config_path), str(e)) from e
        except ValidationError as e:
            raise ConfigurationError(str(config_path), str(e)) from e

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from seedwise.toml.

        Searches for seedwise.toml starting from start_dir and walking up
        parent directories until found or reaching filesystem root.

        Raises:
            FileNotFoundError: If no config file found
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return cls.from_toml(config_path)

            parent = current.parent
            if parent == current:
                break
            current = parent

        raise FileNotFoundError(
            f"No {CONFIG_FILENAME} found in {start_dir} or parent directories. "
            f"Run 'seedwise init' to create one."
        )

    @classmethod
    def load_or_default(cls, path: Optional[Path | str] = None) -> Config:
        """Load an explicit file, else search upwards, else use defaults."""
        if path is not None:
            return cls.from_toml(path)
        try:
            return cls.find_and_load()
        except FileNotFoundError:
            return cls()

    def to_toml(self, path: Path | str) -> None:
        """
        Write configuration to TOML file.

        Args:
            path: Path to write seedwise.toml
        """
        config_path = Path(path)

        def _bool(value: bool) -> str:
            return str(value).lower()

        def _list(values: list[str]) -> str:
            return "[" + ", ".join(f'"{v}"' for v in values) + "]"

        detection_override = (
            f'manual_override = "{self.detection.manual_override}"\n'
            if self.detection.manual_override
            else ""
        )
        domain_override = (
            f'manual_override = "{self.domain.manual_override}"\n'
            if self.domain.manual_override
            else ""
        )
        strategy_override = (
            f'override = "{self.strategies.override}"\n' if self.strategies.override else ""
        )

        # Build TOML content manually for better formatting
        toml_content = f"""# seedwise configuration

[database]
url = "{self.database.url}"
schema = "{self.database.schema_name}"

[introspection]
max_concurrent_queries = {self.introspection.max_concurrent_queries}
query_timeout = {self.introspection.query_timeout}
max_execution_time = {self.introspection.max_execution_time}

[detection]
strategy = "{self.detection.strategy}"
confidence_threshold = {self.detection.confidence_threshold}
exclude_tables = {_list(self.detection.exclude_tables)}
focus_tables = {_list(self.detection.focus_tables)}
use_caching = {_bool(self.detection.use_caching)}
{detection_override}
[domain]
strategy = "{self.domain.strategy}"
confidence_threshold = {self.domain.confidence_threshold}
detect_secondary_domains = {_bool(self.domain.detect_secondary_domains)}
exclude_domains = {_list(self.domain.exclude_domains)}
{domain_override}
[strategies]
minimum_confidence = {self.strategies.minimum_confidence}
enable_fallback = {_bool(self.strategies.enable_fallback)}
{strategy_override}
[autoconfig]
strategy = "{self.autoconfig.strategy}"
confidence_threshold = {self.autoconfig.confidence_threshold}
enable_domain_extensions = {_bool(self.autoconfig.enable_domain_extensions)}
enable_architecture_optimizations = {_bool(self.autoconfig.enable_architecture_optimizations)}

[cache]
enabled = {_bool(self.cache.enabled)}
cache_dir = "{self.cache.cache_dir}"
ttl_seconds = {self.cache.ttl_seconds}
min_confidence_to_cache = {self.cache.min_confidence_to_cache}
max_entries = {self.cache.max_entries}

[debugging]
slow_handler_ms = {self.debugging.slow_handler_ms}
max_fixes_before_warning = {self.debugging.max_fixes_before_warning}
success_rate_threshold = {self.debugging.success_rate_threshold}
bypass_rate_threshold = {self.debugging.bypass_rate_threshold}
sample_rows = {self.debugging.sample_rows}
default_report_format = "{self.debugging.default_report_format}"
"""

        config_path.write_text(toml_content)


# Default configuration instance
DEFAULT_CONFIG = Config()
