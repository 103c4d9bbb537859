"""
Strict schema for the NASA POWER daily point response.

Only the fields the service reads are modelled. Values are keyed by
``YYYYMMDD`` strings; ``-999`` is the provider's fill value for a
missing observation.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

POWER_FILL_VALUE = -999.0

TEMPERATURE_PARAM = "T2M"
PRECIPITATION_PARAM = "PRECTOTCORR"
WIND_PARAM = "WS2M"


class PowerParameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    temperature: Dict[str, float] = Field(..., alias=TEMPERATURE_PARAM)
    precipitation: Dict[str, float] = Field(..., alias=PRECIPITATION_PARAM)
    wind_speed: Optional[Dict[str, float]] = Field(None, alias=WIND_PARAM)

    @field_validator("temperature", "precipitation", "wind_speed")
    @classmethod
    def _check_date_keys(cls, series: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if series is None:
            return series
        for key in series:
            if len(key) != 8 or not key.isdigit():
                raise ValueError(f"Expected YYYYMMDD date key, got {key!r}")
        return series


class PowerProperties(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parameter: PowerParameters


class PowerResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    properties: PowerProperties


def is_missing(value: Optional[float]) -> bool:
    return value is None or value <= POWER_FILL_VALUE
