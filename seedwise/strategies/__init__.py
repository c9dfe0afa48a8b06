"""Seeding strategies and strategy selection."""

from seedwise.strategies.base import SeedingStrategy, StrategySelection, StrategyValidation
from seedwise.strategies.generic import GenericStrategy
from seedwise.strategies.makerkit import MakerKitStrategy
from seedwise.strategies.registry import StrategyRegistry, select_strategy

__all__ = [
    "GenericStrategy",
    "MakerKitStrategy",
    "SeedingStrategy",
    "StrategyRegistry",
    "StrategySelection",
    "StrategyValidation",
    "select_strategy",
]
