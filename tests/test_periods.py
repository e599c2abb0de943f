"""
Tests for dashboard periods and chart bucketing.
"""
from datetime import date

import pytest

from lapin_ops.metrics.periods import (
    resolve_period, monthly_series, bucket_quarterly, bucket_yearly,
    share_percentages, percent_change, month_over_month,
)


class TestResolvePeriod:
    """Inclusive ISO ranges for the period selector."""

    def test_quarter(self):
        """今四半期 on 2025-05-15 is April through June."""
        assert resolve_period("今四半期", date(2025, 5, 15)) == ("2025-04-01", "2025-06-30")

    def test_month_leap_february(self):
        """今月 ends on the last calendar day."""
        assert resolve_period("今月", date(2024, 2, 10)) == ("2024-02-01", "2024-02-29")

    def test_year(self):
        """今年 spans the calendar year."""
        assert resolve_period("今年", date(2025, 11, 3)) == ("2025-01-01", "2025-12-31")

    def test_unknown_token_is_month(self):
        """Unknown tokens fall back to the current month."""
        assert resolve_period("先月", date(2025, 12, 31)) == ("2025-12-01", "2025-12-31")

    def test_fourth_quarter(self):
        """December belongs to October through December."""
        assert resolve_period("今四半期", date(2025, 12, 1)) == ("2025-10-01", "2025-12-31")


class TestBuckets:
    """Monthly values regrouped for the sales chart."""

    def test_quarterly(self):
        """1..12 sums to [6, 15, 24, 33]."""
        assert bucket_quarterly(list(range(1, 13))) == [6, 15, 24, 33]

    def test_yearly(self):
        """Year bucket is the single total."""
        assert bucket_yearly(list(range(1, 13))) == [78]

    def test_monthly_series_label_shapes(self):
        """Months parse from ISO, Japanese and integer labels; gaps are 0."""
        slots = monthly_series([
            {"month": "2025-04", "amount": 100},
            {"month": "5月", "amount": 50},
            {"month": 12, "amount": "25"},
            {"month": "??", "amount": 999},
        ])

        assert slots[3] == 100
        assert slots[4] == 50
        assert slots[11] == 25
        assert sum(slots) == 175


class TestShares:
    """Donut percentages and deltas."""

    def test_share_percentages(self):
        """Slices are shares of the total."""
        assert share_percentages([1, 3]) == [25.0, 75.0]

    def test_share_of_zero_total(self):
        """All-zero counts give all-zero shares."""
        assert share_percentages([0, 0]) == [0.0, 0.0]

    def test_percent_change(self):
        """Change is relative to the absolute previous value."""
        assert percent_change(150, 100) == pytest.approx(50.0)
        assert percent_change(-50, -100) == pytest.approx(50.0)

    def test_percent_change_without_previous(self):
        """No previous value hides the delta."""
        assert percent_change(100, 0) is None
        assert percent_change(100, None) is None

    def test_month_over_month(self):
        """Current month is compared with the one before it."""
        monthly = [100, 150, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0]

        assert month_over_month(monthly, 2) == pytest.approx(50.0)
        assert month_over_month(monthly, 1) is None
        assert month_over_month(monthly, 4) is None
