"""
Tests for bonus presentation helpers.
"""
import pandas as pd
import pytest

from lapin_ops.metrics.bonus import (
    achievement_rate, breakeven_position, surplus, achievement_color, achievement_label,
    bonus_table, summary_from_payload, NEUTRAL_COLOR,
)
from lapin_ops.ui.formatting import fmt_percent


class TestAchievementRate:
    """Progress toward target."""

    def test_clamped_to_100(self):
        """150 of 100 shows as 100."""
        assert achievement_rate(150, 100) == 100

    def test_negative_clamped_to_0(self):
        """Losses do not go below 0."""
        assert achievement_rate(-20, 100) == 0

    def test_no_target(self):
        """A zero target is None and renders as a dash."""
        assert achievement_rate(50, 0) is None
        assert fmt_percent(achievement_rate(50, 0)) == "—"

    def test_partial(self):
        """Plain percentage within range."""
        assert achievement_rate(25, 200) == pytest.approx(12.5)


class TestBreakevenAndSurplus:
    """Marker position and gross-minus-fixed."""

    def test_breakeven_position(self):
        """Fixed cost as a share of target."""
        assert breakeven_position(50, 200) == 25
        assert breakeven_position(500, 200) == 100
        assert breakeven_position(50, 0) is None

    def test_reported_surplus_wins(self):
        """A server value takes precedence over the derived one."""
        assert surplus(300, 100) == 200
        assert surplus(300, 100, reported=150) == 150

    def test_null_surplus_is_derived(self):
        """A payload carrying surplus: null falls back to gross minus fixed."""
        bonus = {"gross_profit": 300, "fixed_cost": 500, "surplus": None}

        assert surplus(bonus["gross_profit"], bonus["fixed_cost"], bonus.get("surplus")) == -200


class TestAchievementTier:
    """Backend tier mapped for display, never re-derived."""

    def test_known_tiers(self):
        """Each tier has a label and colour."""
        assert achievement_label("achieved") == "達成"
        assert achievement_label("barely") == "あと少し"
        assert achievement_label("not_achieved") == "未達"
        assert achievement_color("achieved") != NEUTRAL_COLOR

    def test_unknown_tier_is_neutral(self):
        """Missing tier renders neutral."""
        assert achievement_color(None) == NEUTRAL_COLOR
        assert achievement_label("") == "—"


class TestBonusTable:
    """Per-employee display table."""

    def test_sorted_with_display_columns(self):
        """Highest gross profit first, progress None without target."""
        df = pd.DataFrame({
            "user_id": ["1", "2"],
            "gross_profit": [100.0, 300.0],
            "target_amount": [0.0, 200.0],
            "achievement": ["not_achieved", "achieved"],
        })

        table = bonus_table(df)

        assert list(table["user_id"]) == ["2", "1"]
        assert table.loc[0, "progress_pct"] == 100
        assert pd.isna(table.loc[1, "progress_pct"])
        assert table.loc[0, "achievement_label"] == "達成"

    def test_empty(self):
        """An empty frame keeps the display columns."""
        table = bonus_table(pd.DataFrame(columns=["gross_profit", "target_amount", "achievement"]))

        assert "progress_pct" in table.columns
        assert len(table) == 0

    def test_summary_falls_back_to_totals(self):
        """Missing summary fields are summed from the rows."""
        df = pd.DataFrame({
            "contract_count": [2, 3],
            "gross_profit": [100.0, 50.0],
            "bonus_estimate": [10.0, 5.0],
        })

        summary = summary_from_payload({"total_employees": 9}, df)

        assert summary == {
            "total_employees": 9,
            "total_contract_count": 5,
            "total_gross_profit": 150.0,
            "total_bonus": 15.0,
        }
