"""Confidence arithmetic shared by every detector."""

from collections.abc import Iterable

CONFIDENCE_LEVELS = (
    (0.9, "very_high"),
    (0.7, "high"),
    (0.5, "medium"),
    (0.3, "low"),
)


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, float(value)))


def confidence_level(confidence: float) -> str:
    """
    Bucket a confidence score into a human-readable tier.

    Args:
        confidence: Score in [0, 1]

    Returns:
        One of very_high, high, medium, low, very_low
    """
    for threshold, level in CONFIDENCE_LEVELS:
        if confidence >= threshold:
            return level
    return "very_low"


def weighted_average(pairs: Iterable[tuple[float, float]]) -> float:
    """
    Weight-normalized average of (value, weight) pairs.

    Returns 0 when the total weight is 0. The result always lies in [0, 1]
    because every value is clamped before it is weighted.

    Example:
        >>> weighted_average([(1.0, 0.8), (0.6, 0.7)])
        0.8133333333333334
    """
    total = 0.0
    total_weight = 0.0
    for value, weight in pairs:
        if weight <= 0:
            continue
        total += clamp(value) * weight
        total_weight += weight
    if total_weight <= 0:
        return 0.0
    return clamp(total / total_weight)


def balance(score_a: float, score_b: float) -> float:
    """How evenly two scores are matched: 1 - |a - b|."""
    return clamp(1.0 - abs(score_a - score_b))


def diminishing_cap(total: float, factor: float = 0.8) -> float:
    """Cap an additive feature sum with a diminishing-return factor: min(1, total * factor)."""
    return clamp(total * factor)


def online_average(current: float, count: int, value: float) -> float:
    """Fold one more observation into a running mean of ``count`` observations."""
    if count <= 1:
        return float(value)
    return (current * (count - 1) + value) / count
