"""
Unit tests for packaging rounding.
"""

import pytest
from unittest.mock import patch

from services.rounding import (
    NO_ROUNDING,
    RoundingMode,
    RoundingPolicy,
    resolve_rounding_policy,
)


class TestRoundingPolicy:
    """Tests for RoundingPolicy.apply."""

    def test_no_granularity_keeps_value(self):
        assert NO_ROUNDING.apply(123.456) == 123.456

    @pytest.mark.parametrize("mode,expected", [
        (RoundingMode.NEAREST, 125),
        (RoundingMode.UP, 125),
        (RoundingMode.DOWN, 100),
    ])
    def test_modes(self, mode, expected):
        assert RoundingPolicy(granularity=25, mode=mode).apply(113) == expected

    def test_nearest_rounds_half_up(self):
        assert RoundingPolicy(granularity=10).apply(15) == 20
        assert RoundingPolicy(granularity=10).apply(25) == 30

    def test_exact_multiples_stay_put(self):
        """Float noise must not push an exact multiple up a whole step."""
        policy = RoundingPolicy(granularity=0.1, mode=RoundingMode.UP)

        assert policy.apply(0.3) == 0.3

    def test_fractional_granularity(self):
        assert RoundingPolicy(granularity=0.5).apply(2.26) == 2.5

    @pytest.mark.parametrize("value", [0, -5])
    def test_never_negative(self, value):
        assert RoundingPolicy(granularity=10, mode=RoundingMode.DOWN).apply(value) == 0


class TestApplyWithin:
    """Tests for RoundingPolicy.apply_within."""

    def test_total_already_within_budget(self):
        policy = RoundingPolicy(granularity=10)

        assert policy.apply_within([33.3, 66.7], 100) == [30, 70]

    def test_steps_back_until_within_budget(self):
        policy = RoundingPolicy(granularity=1)

        assert policy.apply_within([11 / 3] * 3, 11) == [3, 4, 4]

    def test_largest_upward_adjustment_steps_back_first(self):
        policy = RoundingPolicy(granularity=1)

        assert policy.apply_within([3.6, 3.9, 3.5], 11) == [4, 4, 3]

    def test_minimums_step_back_last(self):
        policy = RoundingPolicy(granularity=1)

        assert policy.apply_within([3.6, 3.6, 3.8], 11, [4, 0, 0]) == [4, 3, 4]

    def test_no_granularity_keeps_values(self):
        assert NO_ROUNDING.apply_within([1.5, 2.5], 3) == [1.5, 2.5]


class TestResolveRoundingPolicy:
    """Tests for picking a family's policy."""

    def test_family_granularity_wins(self):
        with patch("services.rounding.settings") as mock_settings:
            mock_settings.batch_default_granularity = 5
            mock_settings.batch_default_rounding_mode = "down"

            policy = resolve_rounding_policy(25)

        assert policy == RoundingPolicy(granularity=25, mode=RoundingMode.DOWN)

    def test_falls_back_to_configured_default(self):
        with patch("services.rounding.settings") as mock_settings:
            mock_settings.batch_default_granularity = 5
            mock_settings.batch_default_rounding_mode = "nearest"

            policy = resolve_rounding_policy(None)

        assert policy.granularity == 5

    def test_no_unit_anywhere_means_no_rounding(self):
        with patch("services.rounding.settings") as mock_settings:
            mock_settings.batch_default_granularity = None

            assert resolve_rounding_policy(None) is NO_ROUNDING
