import logging
import math
from typing import List, NamedTuple, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from weatherway.core.exceptions import NoHistoricalMatch
from weatherway.models.weather import DailyRecord, TargetDate, TrendModel, YearlyAverage

logger = logging.getLogger(__name__)


class Baseline(NamedTuple):
    """Same-calendar-day statistics for one location, plus the historical envelope"""

    temperature: float
    precipitation: float
    wind_speed: float
    temp_min: float
    temp_max: float
    precip_max: float
    wind_max: float
    samples: int


class PointSummary(NamedTuple):
    baseline: Baseline
    yearly: List[YearlyAverage]
    trend: TrendModel
    projection: float


class RegionSummary(NamedTuple):
    baseline: Baseline
    point_baselines: List[Baseline]
    point_trends: List[TrendModel]
    trend: TrendModel
    projection: float


class ClimateTrendAnalyzer:
    """
    Reduces a raw daily series into a same-day baseline and a year-over-year trend.

    The per-year averages fitted by the trend come from the same-day series (one
    sample per year for a point). Years without a sample are left out of the fit
    rather than counted as 0 degC.
    """

    def __init__(self, default_wind_speed: float = 5.0):
        self.default_wind_speed = default_wind_speed

    def filter_same_day(
        self, records: Sequence[DailyRecord], month: int, day: int
    ) -> List[DailyRecord]:
        return [r for r in records if r.date.month == month and r.date.day == day]

    def baseline(self, samples: Sequence[DailyRecord]) -> Baseline:
        if not samples:
            raise NoHistoricalMatch("No historical data for the specified date")

        temps = np.array([s.temperature for s in samples], dtype=float)
        precs = np.array([s.precipitation for s in samples], dtype=float)
        winds = np.array(
            [
                self.default_wind_speed if s.wind_speed is None else s.wind_speed
                for s in samples
            ],
            dtype=float,
        )

        return Baseline(
            temperature=float(np.mean(temps)),
            precipitation=float(np.mean(precs)),
            wind_speed=float(np.mean(winds)),
            temp_min=float(np.min(temps)),
            temp_max=float(np.max(temps)),
            precip_max=float(np.max(precs)),
            wind_max=float(np.max(winds)),
            samples=len(samples),
        )

    def yearly_averages(
        self, samples: Sequence[DailyRecord], start_year: int, end_year: int
    ) -> List[YearlyAverage]:
        """Mean temperature per year within [start_year, end_year]; empty years are skipped"""
        frame = self._to_frame(samples)
        frame = frame[(frame["year"] >= start_year) & (frame["year"] <= end_year)]
        grouped = frame.groupby("year")["temperature"].mean()

        return [
            YearlyAverage(year=int(year), mean_temperature=float(mean))
            for year, mean in grouped.items()
        ]

    def fit_trend(self, yearly: Sequence[YearlyAverage]) -> TrendModel:
        """
        Ordinary least squares of mean temperature on year.

        A zero x-variance (fewer than two distinct years) or a non-finite fit is a
        degenerate trend and is reported as a flat line at the mean.
        """
        if not yearly:
            return TrendModel()

        x = np.array([y.year for y in yearly], dtype=float)
        y = np.array([y.mean_temperature for y in yearly], dtype=float)

        if len(np.unique(x)) < 2:
            logger.debug("Degenerate trend: fewer than two distinct years, using zero slope")
            return TrendModel(intercept=float(np.mean(y)), years_fitted=len(yearly))

        result = stats.linregress(x, y)
        slope = float(result.slope)
        if not math.isfinite(slope):
            logger.debug("Degenerate trend: non-finite slope, using zero slope")
            return TrendModel(intercept=float(np.mean(y)), years_fitted=len(yearly))

        r_value = float(result.rvalue)
        p_value = float(result.pvalue)
        return TrendModel(
            slope_per_year=slope,
            intercept=float(result.intercept),
            change_per_decade=slope * 10,
            r_squared=r_value ** 2 if math.isfinite(r_value) else 0.0,
            p_value=p_value if math.isfinite(p_value) else 1.0,
            years_fitted=len(yearly),
        )

    def combine_trends(self, trends: Sequence[TrendModel]) -> TrendModel:
        """
        Regional trend as the mean of per-point fits.

        Each point is fitted on its own years, so a point whose record starts
        late or has gaps cannot show up as a step in a pooled series. Points
        with fewer than two fitted years carry no slope and are left out.
        """
        fitted = [t for t in trends if t.years_fitted >= 2]
        if not fitted:
            logger.debug("Degenerate regional trend: no grid point has two distinct years")
            return TrendModel()

        slope = float(np.mean([t.slope_per_year for t in fitted]))
        return TrendModel(
            slope_per_year=slope,
            intercept=float(np.mean([t.intercept for t in fitted])),
            change_per_decade=slope * 10,
            r_squared=float(np.mean([t.r_squared for t in fitted])),
            p_value=float(np.mean([t.p_value for t in fitted])),
            years_fitted=max(t.years_fitted for t in fitted),
        )

    def project(self, baseline_temperature: float, trend: TrendModel, target_year: int, end_year: int) -> float:
        """Extrapolate the same-day baseline to the target year along the fitted slope"""
        return baseline_temperature + trend.slope_per_year * (target_year - end_year)

    def summarize_point(
        self,
        records: Sequence[DailyRecord],
        target_date: TargetDate,
        start_year: int,
        end_year: int,
    ) -> PointSummary:
        samples = self.filter_same_day(records, target_date.month, target_date.day)
        baseline = self.baseline(samples)
        yearly = self.yearly_averages(samples, start_year, end_year)
        trend = self.fit_trend(yearly)
        projection = self.project(baseline.temperature, trend, target_date.year, end_year)

        logger.info(
            f"📊 {baseline.samples} samples for {target_date.month:02d}-{target_date.day:02d}, "
            f"baseline {baseline.temperature:.2f}°C, trend {trend.change_per_decade:+.3f}°C/decade"
        )
        return PointSummary(baseline=baseline, yearly=yearly, trend=trend, projection=projection)

    def summarize_region(
        self,
        per_point_records: Sequence[Sequence[DailyRecord]],
        target_date: TargetDate,
        start_year: int,
        end_year: int,
    ) -> RegionSummary:
        """
        Per-point baselines averaged into a regional baseline, with the envelope
        (min/max) pooled over every grid point's same-day samples.

        Every grid point gets its own trend fit over the years it actually has;
        the regional trend is the mean of those fits.
        """
        per_point_samples = [
            self.filter_same_day(records, target_date.month, target_date.day)
            for records in per_point_records
        ]
        point_baselines = [self.baseline(samples) for samples in per_point_samples]
        pooled = self.baseline([s for samples in per_point_samples for s in samples])

        baseline = Baseline(
            temperature=float(np.mean([b.temperature for b in point_baselines])),
            precipitation=float(np.mean([b.precipitation for b in point_baselines])),
            wind_speed=float(np.mean([b.wind_speed for b in point_baselines])),
            temp_min=pooled.temp_min,
            temp_max=pooled.temp_max,
            precip_max=pooled.precip_max,
            wind_max=pooled.wind_max,
            samples=pooled.samples,
        )

        point_trends = [
            self.fit_trend(self.yearly_averages(samples, start_year, end_year))
            for samples in per_point_samples
        ]
        trend = self.combine_trends(point_trends)
        projection = self.project(baseline.temperature, trend, target_date.year, end_year)

        logger.info(
            f"📊 Region of {len(point_baselines)} points, baseline {baseline.temperature:.2f}°C, "
            f"trend {trend.change_per_decade:+.3f}°C/decade"
        )
        return RegionSummary(
            baseline=baseline,
            point_baselines=point_baselines,
            point_trends=point_trends,
            trend=trend,
            projection=projection,
        )

    @staticmethod
    def _to_frame(samples: Sequence[DailyRecord]) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "year": [s.date.year for s in samples],
                "temperature": [s.temperature for s in samples],
            },
            columns=["year", "temperature"],
        )
