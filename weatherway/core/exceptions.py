"""Custom exceptions for the climate statistics service."""

from typing import Optional


class WeatherWayError(Exception):
    """Base exception for this application."""

    code = "internal_error"
    status_code = 500


class ConfigurationError(WeatherWayError):
    """Error related to application configuration (e.g. missing NASA credential)."""

    code = "configuration_error"
    status_code = 503


class InvalidSelection(WeatherWayError, ValueError):
    """Missing or malformed point/region in the request."""

    code = "invalid_selection"
    status_code = 400


class DataUnavailable(WeatherWayError):
    """The upstream provider failed or returned an unusable body for a geo-point."""

    code = "data_unavailable"
    status_code = 502

    def __init__(
        self,
        message: str,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.lat = lat
        self.lon = lon
        self.status = status


class NoHistoricalMatch(WeatherWayError):
    """No historical records exist for the requested calendar day."""

    code = "no_historical_match"
    status_code = 404
