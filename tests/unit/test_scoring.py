"""Tests for confidence arithmetic."""

import pytest

from seedwise.core.scoring import (
    balance,
    clamp,
    confidence_level,
    diminishing_cap,
    online_average,
    weighted_average,
)


class TestClamp:
    """Tests for clamp()."""

    def test_clamp_within_bounds(self) -> None:
        """Test values inside [0, 1] are unchanged."""
        assert clamp(0.42) == 0.42

    def test_clamp_out_of_bounds(self) -> None:
        """Test values are pulled into [0, 1]."""
        assert clamp(1.7) == 1.0
        assert clamp(-0.3) == 0.0


class TestConfidenceLevel:
    """Tests for confidence_level()."""

    @pytest.mark.parametrize(
        ("confidence", "level"),
        [
            (0.95, "very_high"),
            (0.9, "very_high"),
            (0.75, "high"),
            (0.5, "medium"),
            (0.3, "low"),
            (0.29, "very_low"),
            (0.0, "very_low"),
        ],
    )
    def test_buckets(self, confidence: float, level: str) -> None:
        """Test thresholds are inclusive lower bounds."""
        assert confidence_level(confidence) == level


class TestWeightedAverage:
    """Tests for weighted_average()."""

    def test_weighted_average(self) -> None:
        """Test weight-normalized average."""
        assert weighted_average([(1.0, 0.8), (0.6, 0.7)]) == pytest.approx(0.81333, rel=1e-4)

    def test_empty_is_zero(self) -> None:
        """Test no pairs gives 0 rather than dividing by zero."""
        assert weighted_average([]) == 0.0

    def test_non_positive_weights_ignored(self) -> None:
        """Test pairs with weight <= 0 do not contribute."""
        assert weighted_average([(0.2, 0.0), (0.8, 1.0), (1.0, -1.0)]) == pytest.approx(0.8)

    def test_values_clamped(self) -> None:
        """Test out-of-range values cannot push the result past 1."""
        assert weighted_average([(5.0, 1.0)]) == 1.0


class TestDiminishingCap:
    """Tests for diminishing_cap()."""

    def test_scaled(self) -> None:
        """Test sums are scaled by the factor."""
        assert diminishing_cap(0.5) == pytest.approx(0.4)

    def test_capped(self) -> None:
        """Test large sums cap at 1."""
        assert diminishing_cap(1.65) == 1.0


class TestBalanceAndOnlineAverage:
    """Tests for balance() and online_average()."""

    def test_balance(self) -> None:
        """Test equal scores are perfectly balanced."""
        assert balance(0.6, 0.6) == 1.0
        assert balance(0.9, 0.4) == pytest.approx(0.5)

    def test_online_average(self) -> None:
        """Test running mean matches the batch mean."""
        mean = 0.0
        for count, value in enumerate([2.0, 4.0, 9.0], start=1):
            mean = online_average(mean, count, value)

        assert mean == pytest.approx(5.0)
