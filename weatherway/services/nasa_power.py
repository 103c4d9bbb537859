import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List

import aiohttp
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from weatherway.core.config import Settings
from weatherway.core.exceptions import ConfigurationError, DataUnavailable
from weatherway.models.power import (
    PRECIPITATION_PARAM,
    TEMPERATURE_PARAM,
    WIND_PARAM,
    PowerResponse,
    is_missing,
)
from weatherway.models.weather import DailyRecord, GeoPoint

logger = logging.getLogger(__name__)


def parse_power_payload(payload: Any, point: GeoPoint) -> List[DailyRecord]:
    """
    Validate a NASA POWER daily point response and turn it into ordered DailyRecords.

    Days with a missing temperature are dropped, missing precipitation counts as
    0 mm and missing wind is left as None for the aggregator's fallback.
    """
    try:
        parameters = PowerResponse.model_validate(payload).properties.parameter
    except ValidationError as e:
        raise DataUnavailable(
            f"Unexpected NASA POWER response structure for {point.lat}, {point.lon}: "
            f"{e.error_count()} validation error(s)",
            lat=point.lat,
            lon=point.lon,
        ) from e

    if not parameters.temperature:
        raise DataUnavailable(
            f"NASA POWER returned no temperature data for {point.lat}, {point.lon}",
            lat=point.lat,
            lon=point.lon,
        )

    winds = parameters.wind_speed or {}
    records = []
    for key in sorted(parameters.temperature):
        temperature = parameters.temperature[key]
        if is_missing(temperature):
            continue

        try:
            day = datetime.strptime(key, "%Y%m%d").date()
        except ValueError as e:
            raise DataUnavailable(
                f"Invalid date key {key!r} in NASA POWER response",
                lat=point.lat,
                lon=point.lon,
            ) from e

        precipitation = parameters.precipitation.get(key)
        wind = winds.get(key)
        records.append(
            DailyRecord(
                date=day,
                temperature=float(temperature),
                precipitation=0.0 if is_missing(precipitation) else float(precipitation),
                wind_speed=None if is_missing(wind) else float(wind),
            )
        )

    if not records:
        raise DataUnavailable(
            f"NASA POWER returned only fill values for {point.lat}, {point.lon}",
            lat=point.lat,
            lon=point.lon,
        )

    return records


class NASAPowerService:
    """Historical daily data fetcher for the NASA POWER point API"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.variable_mapping = {
            "temperature": TEMPERATURE_PARAM,  # 2-meter temperature
            "precipitation": PRECIPITATION_PARAM,  # Bias-corrected total precipitation
            "wind_speed": WIND_PARAM,  # 2-meter wind speed
        }

    def _auth_headers(self) -> Dict[str, str]:
        token = (self.settings.NASA_BEARER_TOKEN or "").strip()
        if not token:
            logger.error("🚨 NASA_BEARER_TOKEN not found in settings")
            raise ConfigurationError("NASA POWER bearer token (NASA_BEARER_TOKEN) is not configured")

        return {
            "Authorization": f"Bearer {token}",
            "User-Agent": f"{self.settings.PROJECT_NAME}/1.0",
        }

    def _build_params(self, point: GeoPoint) -> Dict[str, str]:
        return {
            "parameters": ",".join(self.variable_mapping.values()),
            "community": self.settings.POWER_COMMUNITY,
            "longitude": str(point.lon),
            "latitude": str(point.lat),
            "start": f"{self.settings.HISTORY_START_YEAR}0101",
            "end": f"{self.settings.HISTORY_END_YEAR}1231",
            "format": "JSON",
        }

    def _session(self, headers: Dict[str, str]) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.settings.REQUEST_TIMEOUT_SECONDS)
        return aiohttp.ClientSession(timeout=timeout, headers=headers)

    async def fetch_daily_records(self, point: GeoPoint) -> List[DailyRecord]:
        """
        Fetch the full daily series (temperature, precipitation, wind) for one point
        """
        headers = self._auth_headers()
        async with self._session(headers) as session:
            return await self._fetch_with_retry(session, point)

    async def fetch_grid(self, points: List[GeoPoint]) -> List[List[DailyRecord]]:
        """
        Fetch every grid point concurrently; the first failure cancels the rest.

        Results are returned in the same order as ``points``.
        """
        headers = self._auth_headers()
        semaphore = asyncio.Semaphore(self.settings.MAX_CONCURRENT_REQUESTS)

        async def fetch_one(session: aiohttp.ClientSession, point: GeoPoint) -> List[DailyRecord]:
            async with semaphore:
                return await self._fetch_with_retry(session, point)

        logger.info(f"🛰️ Fetching NASA POWER data for {len(points)} grid points")

        async with self._session(headers) as session:
            tasks = [asyncio.ensure_future(fetch_one(session, point)) for point in points]
            try:
                return list(await asyncio.gather(*tasks))
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

    async def _fetch_with_retry(
        self, session: aiohttp.ClientSession, point: GeoPoint
    ) -> List[DailyRecord]:
        params = self._build_params(point)

        try:
            payload = await self._retry_policy(point)(self._request_json, session, params, point)
        except DataUnavailable as e:
            logger.error(f"NASA POWER fetch failed for {point.lat}, {point.lon}: {e}")
            raise

        records = parse_power_payload(payload, point)
        logger.info(
            f"✅ Got {len(records)} days of NASA POWER data for {point.lat}, {point.lon}"
        )
        return records

    def _retry_policy(self, point: GeoPoint) -> AsyncRetrying:
        """
        Up to MAX_RETRIES extra attempts on transient failures, waiting
        RETRY_BACKOFF_SECONDS * 2**(n - 1) before retry n.
        """
        attempts = self.settings.MAX_RETRIES + 1

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                f"NASA POWER fetch for {point.lat}, {point.lon} failed "
                f"(attempt {retry_state.attempt_number}/{attempts}): "
                f"{retry_state.outcome.exception()}. "
                f"Retrying in {retry_state.next_action.sleep:.1f}s"
            )

        return AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.settings.RETRY_BACKOFF_SECONDS),
            retry=retry_if_exception(self._is_retryable),
            before_sleep=log_retry,
            reraise=True,
        )

    @staticmethod
    def _is_retryable(error: BaseException) -> bool:
        if not isinstance(error, DataUnavailable):
            return False
        # Transport errors and timeouts carry no status
        if error.status is None:
            return True
        return error.status == 429 or error.status >= 500

    async def _request_json(
        self, session: aiohttp.ClientSession, params: Dict[str, str], point: GeoPoint
    ) -> Any:
        """Single GET against the POWER API; every failure becomes DataUnavailable"""
        try:
            async with session.get(self.settings.POWER_API_URL, params=params) as response:
                if response.status != 200:
                    response_text = await response.text()
                    logger.error(f"NASA POWER API error: {response.status} {response_text[:200]}")
                    raise DataUnavailable(
                        f"NASA POWER returned {response.status} for {point.lat}, {point.lon}",
                        lat=point.lat,
                        lon=point.lon,
                        status=response.status,
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise DataUnavailable(
                        f"NASA POWER returned a non-JSON body for {point.lat}, {point.lon}",
                        lat=point.lat,
                        lon=point.lon,
                        status=response.status,
                    ) from e
        except asyncio.TimeoutError as e:
            raise DataUnavailable(
                f"NASA POWER request timed out for {point.lat}, {point.lon}",
                lat=point.lat,
                lon=point.lon,
            ) from e
        except aiohttp.ClientError as e:
            raise DataUnavailable(
                f"NASA POWER request failed for {point.lat}, {point.lon}: {e}",
                lat=point.lat,
                lon=point.lon,
            ) from e
