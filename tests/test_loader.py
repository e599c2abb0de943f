"""
Tests for envelope-to-DataFrame loading.
"""
import pandas as pd

from lapin_ops.api.envelope import ApiResult
from lapin_ops.data.loader import (
    extract_list, records_to_frame, load_projects, load_expenses, load_employees,
    load_bonus_employees, PROJECT_COLUMNS,
)


class TestExtractList:
    """Lists under a key or at the top level."""

    def test_shapes(self):
        """Keyed, bare and failed results."""
        assert extract_list(ApiResult.ok({"projects": [{"id": 1}]}), "projects") == [{"id": 1}]
        assert extract_list(ApiResult.ok([{"id": 2}, "junk"])) == [{"id": 2}]
        assert extract_list(ApiResult.fail("network_error", "down"), "projects") == []
        assert extract_list(ApiResult.ok({"projects": None}), "projects") == []


class TestRecordsToFrame:
    """Stable columns and numeric coercion."""

    def test_missing_columns_added(self):
        """Absent columns appear; extras are kept at the end."""
        df = records_to_frame([{"b": "2", "x": 1}], columns=["a", "b"], numeric=["b"])

        assert list(df.columns) == ["a", "b", "x"]
        assert df.loc[0, "b"] == 2

    def test_bad_numbers_become_zero(self):
        """Unparseable numerics coerce to 0."""
        df = records_to_frame([{"amount": "n/a"}], numeric=["amount"])

        assert df.loc[0, "amount"] == 0


class TestLoaders:
    """Per-entity loaders."""

    def test_projects_empty(self):
        """An empty list still has every column."""
        df = load_projects(ApiResult.ok({"projects": []}))

        assert list(df.columns) == PROJECT_COLUMNS
        assert len(df) == 0

    def test_projects_coordinates_stay_missing(self):
        """Blank coordinates are NaN, not 0."""
        df = load_projects(ApiResult.ok({"projects": [{"id": "1", "lat": "", "lng": "139.4"}]}))

        assert pd.isna(df.loc[0, "lat"])
        assert df.loc[0, "lng"] == 139.4

    def test_expenses_legacy_fields(self):
        """Older rows send date/memo and string flags."""
        df = load_expenses(ApiResult.ok({"expenses": [
            {"id": "E1", "date": "2025-05-01", "memo": "ガソリン", "amount": "1200", "accounting_imported": "TRUE"},
            {"id": "E2", "expense_date": "2025-05-02", "accounting_imported": None},
        ]}))

        assert df.loc[0, "expense_date"] == "2025-05-01"
        assert df.loc[0, "description"] == "ガソリン"
        assert df.loc[0, "amount"] == 1200
        assert list(df["accounting_imported"]) == [True, False]

    def test_employees_flag(self):
        """is_deleted is normalised to bool."""
        df = load_employees(ApiResult.ok({"employees": [{"id": "1", "is_deleted": "false"}]}))

        assert bool(df.loc[0, "is_deleted"]) is False

    def test_bonus_surplus_stays_missing(self):
        """An omitted surplus is NaN so it can be derived."""
        df = load_bonus_employees(ApiResult.ok({"employees": [{"user_id": "1", "gross_profit": "100"}]}))

        assert pd.isna(df.loc[0, "surplus"])
        assert df.loc[0, "gross_profit"] == 100
