"""
Tests for project filtering, pagination, validation and cost totals.
"""
import pandas as pd
import pytest

from lapin_ops.metrics.projects import (
    ProjectFilter, ValidationError, filter_projects, paginate, total_pages,
    parse_work_types, validate_new_project, cost_summary, status_label,
)


@pytest.fixture
def projects():
    return pd.DataFrame({
        "id": ["1", "2", "3", "4"],
        "project_number": ["R-001", "R-002", "R-013", "R-020"],
        "customer_name": ["田中", "鈴木", "田村", "佐藤"],
        "assigned_to_name": ["山田", "山田", "中山", None],
        "inquiry_date": ["2025-04-02", "2025-05-10", "2024-04-20", None],
        "status": ["contract", "estimate", "completed", "inquiry"],
        "work_type": ["外壁塗装,屋根塗装", "水回り", ["内装リフォーム"], None],
    })


class TestParseWorkTypes:
    """List or comma-joined input."""

    def test_shapes(self):
        """Strings split on commas; lists pass through; blanks dropped."""
        assert parse_work_types("外壁塗装, 屋根塗装,") == ["外壁塗装", "屋根塗装"]
        assert parse_work_types(["水回り", " "]) == ["水回り"]
        assert parse_work_types(None) == []
        assert parse_work_types(float("nan")) == []


class TestFilterProjects:
    """Criteria combine with AND."""

    def test_no_criteria(self, projects):
        """An empty filter keeps everything."""
        assert len(filter_projects(projects, ProjectFilter())) == 4

    def test_text_substring(self, projects):
        """Customer name matches by substring."""
        out = filter_projects(projects, ProjectFilter(customer_name="田"))

        assert list(out["id"]) == ["1", "3"]

    def test_year_and_month(self, projects):
        """Month is compared zero-padded."""
        out = filter_projects(projects, ProjectFilter(year="2025", month="4"))

        assert list(out["id"]) == ["1"]

    def test_status_set(self, projects):
        """Statuses are a set membership test."""
        flt = ProjectFilter()
        flt.toggle_status("estimate")
        flt.toggle_status("completed")

        assert list(filter_projects(projects, flt)["id"]) == ["2", "3"]

    def test_work_type_any_of_substring(self, projects):
        """内装 matches 内装リフォーム; 屋根塗装 matches a joined list."""
        out = filter_projects(projects, ProjectFilter(work_types={"内装", "屋根塗装"}))

        assert list(out["id"]) == ["1", "3"]

    def test_combined(self, projects):
        """Assignee and status both apply."""
        out = filter_projects(projects, ProjectFilter(assigned_name="山田", statuses={"contract"}))

        assert list(out["id"]) == ["1"]

    def test_toggle_twice_and_clear(self):
        """Toggling twice removes the chip; reset clears text."""
        flt = ProjectFilter(customer_name="x", year="2025")
        flt.toggle_work_type("水回り")
        flt.toggle_work_type("水回り")
        flt.reset_search()

        assert flt.work_types == set()
        assert flt.customer_name == "" and flt.year == ""


class TestPagination:
    """Fixed-size pages with clamping."""

    def test_total_pages_never_zero(self):
        """Empty lists still have one page."""
        assert total_pages(0) == 1
        assert total_pages(10) == 1
        assert total_pages(11) == 2

    def test_out_of_range_clamps(self):
        """Pages beyond the end show the last page."""
        df = pd.DataFrame({"id": range(25)})

        assert list(paginate(df, 3)["id"]) == [20, 21, 22, 23, 24]
        assert list(paginate(df, 99)["id"]) == [20, 21, 22, 23, 24]
        assert list(paginate(df, 0)["id"]) == list(range(10))


class TestValidateNewProject:
    """Required fields for createProject."""

    def _form(self, **overrides):
        form = {
            "customer_name": "田中",
            "address": "狭山市1-1",
            "phone": "04-0000-0000",
            "work_type": ["外壁塗装", "屋根塗装"],
            "estimated_amount": "1200000",
            "acquisition_route": "紹介",
            "inquiry_date": "2025-04-01",
            "work_description": "",
        }
        form.update(overrides)
        return form

    def test_valid_payload(self):
        """Work types are joined and the description defaults to them."""
        payload = validate_new_project(self._form())

        assert payload["work_type"] == "外壁塗装,屋根塗装"
        assert payload["work_description"] == "外壁塗装,屋根塗装"
        assert payload["estimated_amount"] == 1200000.0

    def test_missing_fields(self):
        """Blank required fields are reported together."""
        with pytest.raises(ValidationError) as exc:
            validate_new_project(self._form(phone="  ", acquisition_route=None))

        assert str(exc.value) == "必須項目をすべて入力してください"
        assert exc.value.fields == ["phone", "acquisition_route"]


class TestCostSummary:
    """Cost tab totals."""

    def test_from_items(self):
        """Gross profit is contract minus summed items."""
        items = pd.DataFrame({"amount": [300000.0, 200000.0]})

        summary = cost_summary(1000000, items)

        assert summary["total_cost"] == 500000
        assert summary["gross_profit"] == 500000
        assert summary["gross_profit_rate"] == pytest.approx(50.0)

    def test_no_contract(self):
        """No contract amount gives a 0 rate."""
        summary = cost_summary(None, pd.DataFrame({"amount": []}), reported_total=1000)

        assert summary["total_cost"] == 1000
        assert summary["gross_profit_rate"] == 0.0

    def test_status_label(self):
        """Unknown statuses pass through."""
        assert status_label("contract") == "契約"
        assert status_label("weird") == "weird"
        assert status_label(None) == "—"
