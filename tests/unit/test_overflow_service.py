"""
Unit tests for overflow detection.
"""

import pytest

from services.overflow_service import detect_overflow


class TestDetectOverflow:
    """Tests for detect_overflow."""

    def test_exactly_full_is_not_overflow(self):
        report = detect_overflow(300, 250, [50])

        assert report.overflow_percentage == 100.0
        assert report.is_overflow is False
        assert report.deficit == 0

    def test_above_capacity(self):
        report = detect_overflow(300, 350, [0, 0])

        assert report.is_overflow is True
        assert report.total_quantity == 350
        assert report.deficit == 50
        assert report.overflow_percentage == pytest.approx(116.6667)

    def test_under_capacity(self):
        report = detect_overflow(1000, 0, [200, 300])

        assert report.overflow_percentage == 50.0
        assert report.is_overflow is False

    def test_percentage_has_four_decimals(self):
        report = detect_overflow(3, 0, [1])

        assert report.overflow_percentage == 33.3333

    def test_float_noise_at_boundary_is_not_overflow(self):
        """0.1 + 0.2 is a hair above 0.3 in binary; still exactly full."""
        report = detect_overflow(0.3, 0.1, [0.2])

        assert report.is_overflow is False
        assert report.overflow_percentage == 100.0

    @pytest.mark.parametrize("capacity", [0, -10])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            detect_overflow(capacity, 0, [])
