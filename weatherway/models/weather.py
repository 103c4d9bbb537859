import calendar
from datetime import date
from typing import Annotated, Any, List, Literal, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")


class BoundingBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat_min: float = Field(..., ge=-90, le=90)
    lat_max: float = Field(..., ge=-90, le=90)
    lon_min: float = Field(..., ge=-180, le=180)
    lon_max: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_order(self) -> "BoundingBox":
        if self.lat_min > self.lat_max:
            raise ValueError("lat_min must be <= lat_max")
        if self.lon_min > self.lon_max:
            raise ValueError("lon_min must be <= lon_max")
        return self

    @classmethod
    def around(cls, point: GeoPoint, offset: float) -> "BoundingBox":
        """Square box of +/- offset degrees centred on a point, clipped to valid ranges"""
        return cls(
            lat_min=max(-90.0, point.lat - offset),
            lat_max=min(90.0, point.lat + offset),
            lon_min=max(-180.0, point.lon - offset),
            lon_max=min(180.0, point.lon + offset),
        )


class TargetDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1981, le=2200, description="Projection target year")
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)

    @model_validator(mode="after")
    def _check_calendar_day(self) -> "TargetDate":
        # 2000 is a leap year, so Feb 29 is accepted
        days_in_month = calendar.monthrange(2000, self.month)[1]
        if self.day > days_in_month:
            raise ValueError(f"Day {self.day} does not exist in month {self.month}")
        return self


class DailyRecord(NamedTuple):
    date: date
    temperature: float
    precipitation: float
    wind_speed: Optional[float] = None


class YearlyAverage(NamedTuple):
    year: int
    mean_temperature: float


class TrendModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    slope_per_year: float = 0.0
    intercept: float = 0.0
    change_per_decade: float = 0.0
    r_squared: float = 0.0
    p_value: float = 1.0
    years_fitted: int = 0


class ProbabilitySet(BaseModel):
    model_config = ConfigDict(frozen=True)

    very_hot: float = Field(..., ge=0, le=1)
    very_cold: float = Field(..., ge=0, le=1)
    very_wet: float = Field(..., ge=0, le=1)
    very_windy: float = Field(..., ge=0, le=1)


class RegionProbabilitySet(ProbabilitySet):
    very_uncomfortable: float = Field(..., ge=0, le=1)


class TrendSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    very_hot_increasing: bool
    change_per_decade: float
    slope_per_year: float
    intercept: float
    r_squared: float
    p_value: float
    years_fitted: int

    @classmethod
    def from_model(cls, trend: TrendModel) -> "TrendSummary":
        return cls(
            very_hot_increasing=trend.slope_per_year > 0,
            change_per_decade=trend.change_per_decade,
            slope_per_year=trend.slope_per_year,
            intercept=trend.intercept,
            r_squared=trend.r_squared,
            p_value=trend.p_value,
            years_fitted=trend.years_fitted,
        )


class HistoricalBaseline(BaseModel):
    model_config = ConfigDict(frozen=True)

    temp_max_avg: float
    precipitation_avg: float
    wind_speed_avg: float


class TemperatureRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float


class RegionalStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    temp_max_avg: float
    temp_max_range: TemperatureRange
    precipitation_avg: float
    wind_speed_avg: float


class GridPointDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    temp_avg: float
    precip_avg: float


class RegionSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    bbox: BoundingBox
    grid_points: List[GridPointDetail] = []


class PointResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["point"] = "point"
    location: GeoPoint
    target_date: TargetDate
    probabilities: ProbabilitySet
    trend: TrendSummary
    historical_baseline: HistoricalBaseline
    years_analyzed: str


class RegionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["region"] = "region"
    region: RegionSelection
    target_date: TargetDate
    probabilities: RegionProbabilitySet
    regional_stats: RegionalStats
    trend: TrendSummary
    grid_points_analyzed: int
    years_analyzed: str


WeatherResult = Annotated[Union[PointResult, RegionResult], Field(discriminator="type")]


class WeatherRequest(BaseModel):
    mode: Literal["point", "region"]
    point: Optional[GeoPoint] = None
    region: Optional[BoundingBox] = None
    target_date: TargetDate

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_target_date(cls, data: Any) -> Any:
        # The map UI posts {targetYear, month, day} at the top level
        if isinstance(data, dict) and "target_date" not in data and "targetYear" in data:
            data = dict(data)
            data["target_date"] = {
                "year": data.pop("targetYear"),
                "month": data.pop("month", None),
                "day": data.pop("day", None),
            }
        return data


class GridPreview(BaseModel):
    bbox: BoundingBox
    steps: int
    points: List[GeoPoint]


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: Optional[str] = None
