"""Seed configuration generation."""

from seedwise.autoconfig.configurator import (
    AutoConfigurationResult,
    AutoConfigurator,
    GenericFrameworkSettings,
    MakerKitFrameworkSettings,
    MultiTenantSettings,
    SeedConfiguration,
    StorageSettings,
    generate_configuration,
)
from seedwise.autoconfig.templates import BUILTIN_TEMPLATES, ConfigurationTemplate

__all__ = [
    "BUILTIN_TEMPLATES",
    "AutoConfigurationResult",
    "AutoConfigurator",
    "ConfigurationTemplate",
    "GenericFrameworkSettings",
    "MakerKitFrameworkSettings",
    "MultiTenantSettings",
    "SeedConfiguration",
    "StorageSettings",
    "generate_configuration",
]
