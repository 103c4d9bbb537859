"""
HTTP tests for the FastAPI app. The engine dependency is overridden with a
stubbed fetcher so no request reaches NASA POWER.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import same_day_series
from weatherway.api.endpoints.weather import get_engine
from weatherway.core.config import get_settings
from weatherway.core.exceptions import ConfigurationError, DataUnavailable
from weatherway.main import app
from weatherway.services.climate_engine import ClimateStatisticsEngine

POINT_BODY = {
    "mode": "point",
    "point": {"lat": 14.6, "lon": -90.5},
    "target_date": {"year": 2030, "month": 7, "day": 15},
}
REGION_BODY = {
    "mode": "region",
    "region": {"lat_min": 10, "lat_max": 13, "lon_min": 20, "lon_max": 23},
    "targetYear": 2030,
    "month": 7,
    "day": 15,
}


class StubFetcher:
    def __init__(self, records=None, error=None):
        self.records = records
        self.error = error

    async def fetch_daily_records(self, point):
        if self.error:
            raise self.error
        return self.records

    async def fetch_grid(self, points):
        if self.error:
            raise self.error
        return [self.records for _ in points]


@pytest.fixture()
def client_factory(settings):
    """Build a TestClient whose engine uses the given fetcher."""

    def factory(fetcher, raise_server_exceptions=True):
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_engine] = lambda: ClimateStatisticsEngine(
            fetcher=fetcher, settings=settings
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield factory
    app.dependency_overrides = {}


@pytest.fixture()
def records():
    return same_day_series(lambda year: 20.0 + 5.0 * (year - 1981) / 43, precipitation=lambda year: 1.0)


# ---------------------------------------------------------------------------
# Success paths
# ---------------------------------------------------------------------------

def test_point_request_returns_point_result(client_factory, records):
    response = client_factory(StubFetcher(records)).post("/api/weather", json=POINT_BODY)

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "point"
    assert body["location"] == {"lat": 14.6, "lon": -90.5}
    assert set(body["probabilities"]) == {"very_hot", "very_cold", "very_wet", "very_windy"}
    assert body["trend"]["very_hot_increasing"] is True
    assert body["trend"]["years_fitted"] == 44
    assert body["trend"]["r_squared"] == pytest.approx(1.0)
    assert body["trend"]["p_value"] < 0.05
    assert body["years_analyzed"] == "1981-2024"
    assert body["historical_baseline"]["temp_max_avg"] == 22.5


def test_region_request_accepts_legacy_payload(client_factory, records):
    response = client_factory(StubFetcher(records)).post("/api/weather", json=REGION_BODY)

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "region"
    assert body["grid_points_analyzed"] == 16
    assert len(body["region"]["grid_points"]) == 16
    assert "very_uncomfortable" in body["probabilities"]
    assert body["target_date"] == {"year": 2030, "month": 7, "day": 15}


def test_same_request_gives_identical_bytes(client_factory, records):
    client = client_factory(StubFetcher(records))
    first = client.post("/api/weather", json=REGION_BODY)
    second = client.post("/api/weather", json=REGION_BODY)
    assert first.content == second.content


def test_grid_preview(client_factory):
    response = client_factory(StubFetcher()).get(
        "/api/weather/grid", params={"lat_min": 10, "lat_max": 13, "lon_min": 20, "lon_max": 23}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["steps"] == 4
    assert len(body["points"]) == 16
    assert body["points"][0] == {"lat": 10.0, "lon": 20.0}
    assert body["points"][-1] == {"lat": 13.0, "lon": 23.0}


def test_grid_preview_around_centre_point(client_factory):
    response = client_factory(StubFetcher()).get("/api/weather/grid", params={"lat": 14.5, "lon": -90.5})

    assert response.status_code == 200
    body = response.json()
    assert body["bbox"] == {"lat_min": 14.0, "lat_max": 15.0, "lon_min": -91.0, "lon_max": -90.0}
    assert body["points"][0] == {"lat": 14.0, "lon": -91.0}
    assert body["points"][-1] == {"lat": 15.0, "lon": -90.0}


def test_health_endpoints(client_factory):
    client = client_factory(StubFetcher())
    assert client.get("/api/health").json()["status"] == "healthy"
    assert client.get("/health").status_code == 200
    assert client.get("/").json()["api_base"] == "/api"


def test_health_reflects_injected_settings(client_factory, settings):
    client = client_factory(StubFetcher())
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(
        update={"NASA_BEARER_TOKEN": None, "API_V1_STR": "/v2"}
    )

    health = client.get("/health").json()
    assert health["status"] == "degraded"
    assert health["services"]["nasa_power"] == "missing_credentials"
    assert client.get("/").json()["api_base"] == "/v2"


# ---------------------------------------------------------------------------
# Error paths
# ---------------------------------------------------------------------------

def test_missing_point_is_400(client_factory):
    body = {"mode": "point", "target_date": {"year": 2030, "month": 7, "day": 15}}
    response = client_factory(StubFetcher()).post("/api/weather", json=body)

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_selection"
    assert response.json()["error"] == "Invalid parameters"


def test_malformed_region_is_400(client_factory):
    body = dict(REGION_BODY, region={"lat_min": 13, "lat_max": 10, "lon_min": 20, "lon_max": 23})
    response = client_factory(StubFetcher()).post("/api/weather", json=body)

    assert response.status_code == 400
    assert "lat_min must be <= lat_max" in response.json()["detail"]


def test_inverted_grid_preview_is_400(client_factory):
    response = client_factory(StubFetcher()).get(
        "/api/weather/grid", params={"lat_min": 13, "lat_max": 10, "lon_min": 20, "lon_max": 23}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_selection"


def test_grid_preview_without_box_or_centre_is_400(client_factory):
    response = client_factory(StubFetcher()).get("/api/weather/grid", params={"lat_min": 10, "lat_max": 13})

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_selection"


def test_no_historical_match_is_404(client_factory, records):
    body = dict(POINT_BODY, target_date={"year": 2030, "month": 12, "day": 25})
    response = client_factory(StubFetcher(records)).post("/api/weather", json=body)

    assert response.status_code == 404
    assert response.json()["code"] == "no_historical_match"
    assert response.json()["error"] == "Failed to fetch weather data"


def test_upstream_failure_is_502(client_factory):
    fetcher = StubFetcher(error=DataUnavailable("NASA POWER returned 500", status=500))
    response = client_factory(fetcher).post("/api/weather", json=REGION_BODY)

    assert response.status_code == 502
    assert response.json()["code"] == "data_unavailable"
    assert "returned 500" in response.json()["detail"]


def test_missing_credential_is_503(client_factory):
    fetcher = StubFetcher(error=ConfigurationError("NASA_BEARER_TOKEN is not configured"))
    response = client_factory(fetcher).post("/api/weather", json=POINT_BODY)

    assert response.status_code == 503
    assert response.json()["code"] == "configuration_error"


def test_unexpected_error_is_500(client_factory):
    fetcher = StubFetcher(error=RuntimeError("boom"))
    response = client_factory(fetcher, raise_server_exceptions=False).post("/api/weather", json=POINT_BODY)

    assert response.status_code == 500
    assert response.json()["code"] == "internal_error"
