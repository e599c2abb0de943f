"""
Tests for map markers and best-effort geocoding.
"""
import pandas as pd
import requests

from lapin_ops.data.geocode import geocode, to_map_customers, resolve_focus, filter_customers, map_center
from lapin_ops.config import config
from conftest import FakeHttp, FakeResponse


def _projects():
    return pd.DataFrame({
        "id": ["1", "2", "3"],
        "customer_name": ["田中", "鈴木", "佐藤"],
        "lat": [35.85, None, 0.0],
        "lng": [139.41, None, 0.0],
        "status": ["completed", "contract", "inquiry"],
        "inquiry_date": ["2025-04-02", "2025-05-01", "2025-06-01"],
        "work_type": ["外壁塗装", "水回り", None],
        "address": ["狭山市1", "入間市2", "狭山市3"],
        "assigned_to": ["10", "11", "10"],
    })


class TestGeocode:
    """Nominatim lookup."""

    def test_first_result(self):
        """The first hit's lat/lon are returned and the request is well-formed."""
        http = FakeHttp().queue("GET", FakeResponse(200, payload=[{"lat": "35.9", "lon": "139.4"}]))

        assert geocode("入間市2", http=http) == (35.9, 139.4)
        _, url, params, headers = http.calls[0]
        assert url == config.geocode_url
        assert params == {"format": "json", "q": "入間市2", "limit": 1}
        assert "User-Agent" in headers

    def test_failures_are_none(self):
        """No hits, HTTP errors and transport errors all give None."""
        assert geocode("x", http=FakeHttp().queue("GET", FakeResponse(200, payload=[]))) is None
        assert geocode("x", http=FakeHttp().queue("GET", FakeResponse(503, text="busy"))) is None
        assert geocode("x", http=FakeHttp().queue("GET", requests.Timeout("slow"))) is None

    def test_error_object_is_none(self):
        """A JSON object instead of a result list gives None."""
        http = FakeHttp().queue("GET", FakeResponse(200, payload={"error": "Unable to geocode"}))

        assert geocode("x", http=http) is None

    def test_blank_address_skips_request(self):
        """Blank addresses never hit the network."""
        http = FakeHttp()

        assert geocode("  ", http=http) is None
        assert http.calls == []


class TestMarkers:
    """Projects to map customers."""

    def test_only_stored_coordinates(self):
        """Missing and zero coordinates are excluded."""
        customers = to_map_customers(_projects())

        assert list(customers["id"]) == ["1"]
        assert customers.loc[0, "last_work"] == "2025-04 外壁塗装"

    def test_focus_existing_marker(self):
        """A located project is focused without geocoding."""
        http = FakeHttp()
        customers = to_map_customers(_projects())

        out, marker = resolve_focus(_projects(), customers, "1", http=http)

        assert marker["name"] == "田中"
        assert len(out) == 1
        assert http.calls == []

    def test_focus_geocodes_and_appends(self):
        """An unlocated project is geocoded and added."""
        http = FakeHttp().queue("GET", FakeResponse(200, payload=[{"lat": "35.8", "lon": "139.3"}]))
        customers = to_map_customers(_projects())

        out, marker = resolve_focus(_projects(), customers, "2", http=http)

        assert (marker["lat"], marker["lng"]) == (35.8, 139.3)
        assert list(out["id"]) == ["1", "2"]

    def test_focus_unknown_project(self):
        """Unknown ids give no marker."""
        out, marker = resolve_focus(_projects(), to_map_customers(_projects()), "99", http=FakeHttp())

        assert marker is None
        assert len(out) == 1

    def test_filter_and_center(self):
        """Search and owner filters narrow the markers; empty maps use the home area."""
        customers = to_map_customers(_projects())

        assert len(filter_customers(customers, "狭山")) == 1
        assert len(filter_customers(customers, only_user_id="11")) == 0
        assert map_center(customers) == (35.85, 139.41)
        assert map_center(customers.iloc[0:0]) == (config.map_center_lat, config.map_center_lng)
