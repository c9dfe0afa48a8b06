"""
seedwise - Schema-aware seeding strategy detection and configuration.

This package provides tools for:
- Classifying a database schema's architecture, content domain and framework version
- Selecting the seeding strategy that fits the schema
- Generating seed configurations from detection results
- Debugging constraint handlers against synthetic rows
"""

__version__ = "0.1.0"

from seedwise.autoconfig import AutoConfigurator, SeedConfiguration, generate_configuration
from seedwise.config import Config
from seedwise.constraints import ConstraintDebugger
from seedwise.core.models import ClassificationResult, DetectionAnalysisContext
from seedwise.detection import detect_all, detect_architecture, detect_domain, detect_framework
from seedwise.strategies import StrategyRegistry, select_strategy

__all__ = [
    "AutoConfigurator",
    "ClassificationResult",
    "Config",
    "ConstraintDebugger",
    "DetectionAnalysisContext",
    "SeedConfiguration",
    "StrategyRegistry",
    "__version__",
    "detect_all",
    "detect_architecture",
    "detect_domain",
    "detect_framework",
    "generate_configuration",
    "select_strategy",
]
