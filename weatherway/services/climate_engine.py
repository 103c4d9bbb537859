import logging
from typing import List, Optional, Sequence, Union

from weatherway.core.config import Settings
from weatherway.core.exceptions import InvalidSelection
from weatherway.models.weather import (
    BoundingBox,
    DailyRecord,
    GeoPoint,
    GridPointDetail,
    HistoricalBaseline,
    PointResult,
    RegionalStats,
    RegionResult,
    RegionSelection,
    TargetDate,
    TemperatureRange,
    TrendSummary,
    WeatherRequest,
)
from weatherway.services.nasa_power import NASAPowerService
from weatherway.services.probability_engine import ProbabilityEngine
from weatherway.services.trend_analyzer import ClimateTrendAnalyzer
from weatherway.utils.grid import build_grid
from weatherway.utils.statistics import round2

logger = logging.getLogger(__name__)


class ClimateStatisticsEngine:
    """
    Fetch -> aggregate -> synthesize, once per request.

    Holds no per-request state; the fetched data flows straight through pure
    builders so the same input always yields the same result.
    """

    def __init__(
        self,
        fetcher: NASAPowerService,
        settings: Settings,
        analyzer: Optional[ClimateTrendAnalyzer] = None,
        synthesizer: Optional[ProbabilityEngine] = None,
    ):
        self.fetcher = fetcher
        self.settings = settings
        self.analyzer = analyzer or ClimateTrendAnalyzer(default_wind_speed=settings.DEFAULT_WIND_SPEED)
        self.synthesizer = synthesizer or ProbabilityEngine()

    async def analyze(self, request: WeatherRequest) -> Union[PointResult, RegionResult]:
        if request.mode == "point":
            if request.point is None:
                raise InvalidSelection("Point mode requires a 'point' selection")
            return await self.analyze_point(request.point, request.target_date)

        if request.region is None:
            raise InvalidSelection("Region mode requires a 'region' bounding box")
        return await self.analyze_region(request.region, request.target_date)

    async def analyze_point(self, point: GeoPoint, target_date: TargetDate) -> PointResult:
        logger.info(f"Processing point request for {point.lat}, {point.lon} -> {target_date.year}")
        records = await self.fetcher.fetch_daily_records(point)
        return self.build_point_result(point, target_date, records)

    async def analyze_region(self, bbox: BoundingBox, target_date: TargetDate) -> RegionResult:
        grid = build_grid(bbox, self.settings.GRID_STEPS)
        logger.info(
            f"Processing region request [{bbox.lat_min}, {bbox.lon_min}] to "
            f"[{bbox.lat_max}, {bbox.lon_max}] with {len(grid)} grid points -> {target_date.year}"
        )
        per_point_records = await self.fetcher.fetch_grid(grid)
        return self.build_region_result(bbox, target_date, grid, per_point_records)

    def build_point_result(
        self, point: GeoPoint, target_date: TargetDate, records: Sequence[DailyRecord]
    ) -> PointResult:
        summary = self.analyzer.summarize_point(
            records,
            target_date,
            self.settings.HISTORY_START_YEAR,
            self.settings.HISTORY_END_YEAR,
        )
        baseline = summary.baseline

        return PointResult(
            location=point,
            target_date=target_date,
            probabilities=self.synthesizer.point_probabilities(baseline, summary.projection),
            trend=TrendSummary.from_model(summary.trend),
            historical_baseline=HistoricalBaseline(
                temp_max_avg=round2(baseline.temperature),
                precipitation_avg=round2(baseline.precipitation),
                wind_speed_avg=round2(baseline.wind_speed),
            ),
            years_analyzed=self.settings.years_analyzed,
        )

    def build_region_result(
        self,
        bbox: BoundingBox,
        target_date: TargetDate,
        grid: List[GeoPoint],
        per_point_records: Sequence[Sequence[DailyRecord]],
    ) -> RegionResult:
        summary = self.analyzer.summarize_region(
            per_point_records,
            target_date,
            self.settings.HISTORY_START_YEAR,
            self.settings.HISTORY_END_YEAR,
        )
        baseline = summary.baseline

        grid_points = [
            GridPointDetail(
                lat=point.lat,
                lon=point.lon,
                temp_avg=round2(point_baseline.temperature),
                precip_avg=round2(point_baseline.precipitation),
            )
            for point, point_baseline in zip(grid, summary.point_baselines)
        ]

        return RegionResult(
            region=RegionSelection(bbox=bbox, grid_points=grid_points),
            target_date=target_date,
            probabilities=self.synthesizer.region_probabilities(baseline, summary.projection),
            regional_stats=RegionalStats(
                temp_max_avg=round2(baseline.temperature),
                temp_max_range=TemperatureRange(
                    min=round2(baseline.temp_min),
                    max=round2(baseline.temp_max),
                ),
                precipitation_avg=round2(baseline.precipitation),
                wind_speed_avg=round2(baseline.wind_speed),
            ),
            trend=TrendSummary.from_model(summary.trend),
            grid_points_analyzed=len(grid),
            years_analyzed=self.settings.years_analyzed,
        )
