"""Shared fixtures: settings, synthetic daily series and fake NASA POWER payloads."""

from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

import pytest

from weatherway.core.config import Settings
from weatherway.models.weather import DailyRecord


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        NASA_BEARER_TOKEN="test-token",
        HISTORY_START_YEAR=1981,
        HISTORY_END_YEAR=2024,
        GRID_STEPS=4,
        MAX_RETRIES=2,
        RETRY_BACKOFF_SECONDS=0.0,
    )


def same_day_series(
    temperature: Callable[[int], float],
    precipitation: Callable[[int], float] = lambda year: 0.0,
    wind: Callable[[int], Optional[float]] = lambda year: 4.0,
    month: int = 7,
    day: int = 15,
    start_year: int = 1981,
    end_year: int = 2024,
) -> List[DailyRecord]:
    """One record per year on month/day, plus a neighbouring day that must be filtered out."""
    records = []
    for year in range(start_year, end_year + 1):
        target = date(year, month, day)
        records.append(
            DailyRecord(
                date=target - timedelta(days=1),
                temperature=-50.0,
                precipitation=99.0,
                wind_speed=99.0,
            )
        )
        records.append(
            DailyRecord(
                date=target,
                temperature=temperature(year),
                precipitation=precipitation(year),
                wind_speed=wind(year),
            )
        )
    return records


def power_payload(
    temperature: Dict[str, float],
    precipitation: Optional[Dict[str, float]] = None,
    wind: Optional[Dict[str, float]] = None,
) -> dict:
    """Minimal NASA POWER daily point response."""
    parameter = {
        "T2M": temperature,
        "PRECTOTCORR": precipitation if precipitation is not None else {k: 0.0 for k in temperature},
    }
    if wind is not None:
        parameter["WS2M"] = wind
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [0.0, 0.0, 100.0]},
        "properties": {"parameter": parameter},
    }
