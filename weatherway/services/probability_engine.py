import logging

from weatherway.models.weather import ProbabilitySet, RegionProbabilitySet
from weatherway.services.trend_analyzer import Baseline
from weatherway.utils.statistics import probability, safe_ratio

logger = logging.getLogger(__name__)

# Share of the discomfort index carried by heat vs. wind
DISCOMFORT_HEAT_WEIGHT = 0.6
DISCOMFORT_WIND_WEIGHT = 0.4


class ProbabilityEngine:
    """
    Maps baseline statistics and the projected temperature onto [0, 1] hazard scores.

    Scores are normalized against the historical envelope of the same calendar day:
    temperature against [temp_min, temp_max], precipitation and wind against their
    historical maxima. These are heuristic indices, not calibrated probabilities.
    """

    # Ratio used when the temperature envelope has zero width
    FLAT_RANGE_RATIO = 0.5
    # Ratio used when a historical maximum is zero
    ZERO_MAX_RATIO = 0.0

    def _heat_ratio(self, projection: float, baseline: Baseline) -> float:
        temp_range = baseline.temp_max - baseline.temp_min
        return safe_ratio(projection - baseline.temp_min, temp_range, self.FLAT_RANGE_RATIO)

    def _cold_ratio(self, projection: float, baseline: Baseline) -> float:
        temp_range = baseline.temp_max - baseline.temp_min
        return safe_ratio(baseline.temp_max - projection, temp_range, self.FLAT_RANGE_RATIO)

    def _wet_ratio(self, baseline: Baseline) -> float:
        return safe_ratio(baseline.precipitation, baseline.precip_max, self.ZERO_MAX_RATIO)

    def _wind_ratio(self, baseline: Baseline) -> float:
        return safe_ratio(baseline.wind_speed, baseline.wind_max, self.ZERO_MAX_RATIO)

    def point_probabilities(self, baseline: Baseline, projection: float) -> ProbabilitySet:
        return ProbabilitySet(
            very_hot=probability(self._heat_ratio(projection, baseline)),
            very_cold=probability(self._cold_ratio(projection, baseline)),
            very_wet=probability(self._wet_ratio(baseline)),
            very_windy=probability(self._wind_ratio(baseline)),
        )

    def region_probabilities(self, baseline: Baseline, projection: float) -> RegionProbabilitySet:
        heat = self._heat_ratio(projection, baseline)
        wind = self._wind_ratio(baseline)
        discomfort = DISCOMFORT_HEAT_WEIGHT * heat + DISCOMFORT_WIND_WEIGHT * wind

        probabilities = RegionProbabilitySet(
            very_hot=probability(heat),
            very_cold=probability(self._cold_ratio(projection, baseline)),
            very_wet=probability(self._wet_ratio(baseline)),
            very_windy=probability(wind),
            very_uncomfortable=probability(discomfort),
        )
        logger.debug(f"Region probabilities: {probabilities.model_dump()}")
        return probabilities
