import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from weatherway.core.config import Settings, get_settings
from weatherway.core.exceptions import InvalidSelection
from weatherway.models.weather import (
    BoundingBox,
    ErrorResponse,
    GeoPoint,
    GridPreview,
    WeatherRequest,
    WeatherResult,
)
from weatherway.services.climate_engine import ClimateStatisticsEngine
from weatherway.services.nasa_power import NASAPowerService
from weatherway.utils.grid import build_grid

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid point, region or date"},
    404: {"model": ErrorResponse, "description": "No historical records for the requested day"},
    502: {"model": ErrorResponse, "description": "NASA POWER unavailable"},
    503: {"model": ErrorResponse, "description": "Service misconfigured"},
}


def get_engine(settings: Settings = Depends(get_settings)) -> ClimateStatisticsEngine:
    """Dependency for FastAPI"""
    return ClimateStatisticsEngine(fetcher=NASAPowerService(settings), settings=settings)


@router.post("", response_model=WeatherResult, responses=ERROR_RESPONSES)
async def get_weather_statistics(
    request: WeatherRequest,
    engine: ClimateStatisticsEngine = Depends(get_engine),
):
    """
    Historical baseline, trend and hazard probabilities for a point or a region
    """
    result = await engine.analyze(request)
    logger.info(f"✅ {result.type} analysis complete for target year {request.target_date.year}")
    return result


@router.get("/grid", response_model=GridPreview, responses={400: ERROR_RESPONSES[400]})
async def preview_grid(
    lat_min: Optional[float] = Query(None, ge=-90, le=90),
    lat_max: Optional[float] = Query(None, ge=-90, le=90),
    lon_min: Optional[float] = Query(None, ge=-180, le=180),
    lon_max: Optional[float] = Query(None, ge=-180, le=180),
    lat: Optional[float] = Query(None, ge=-90, le=90, description="Centre latitude"),
    lon: Optional[float] = Query(None, ge=-180, le=180, description="Centre longitude"),
    steps: Optional[int] = Query(None, ge=2, le=10),
    settings: Settings = Depends(get_settings),
):
    """
    Sample points that a region request for this box would fetch.

    Pass either the four box edges or a centre `lat`/`lon`; a centre is
    expanded by REGION_OFFSET_DEGREES on every side.
    """
    edges = (lat_min, lat_max, lon_min, lon_max)
    if all(edge is not None for edge in edges):
        try:
            bbox = BoundingBox(lat_min=lat_min, lat_max=lat_max, lon_min=lon_min, lon_max=lon_max)
        except ValidationError as e:
            raise InvalidSelection(e.errors()[0]["msg"]) from e
    elif lat is not None and lon is not None:
        bbox = BoundingBox.around(GeoPoint(lat=lat, lon=lon), settings.REGION_OFFSET_DEGREES)
    else:
        raise InvalidSelection("Provide lat_min, lat_max, lon_min and lon_max, or a centre lat and lon")

    steps = steps or settings.GRID_STEPS
    return GridPreview(bbox=bbox, steps=steps, points=build_grid(bbox, steps))
