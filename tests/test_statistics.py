import math

import pytest

from weatherway.utils.statistics import clamp01, probability, round2, safe_ratio


@pytest.mark.parametrize(
    "value, expected",
    [(-3.0, 0.0), (0.0, 0.0), (0.37, 0.37), (1.0, 1.0), (1e9, 1.0), (math.inf, 1.0), (-math.inf, 0.0)],
)
def test_clamp01(value, expected):
    assert clamp01(value) == expected


def test_clamp01_maps_nan_to_zero():
    assert clamp01(math.nan) == 0.0


def test_safe_ratio_uses_fallback_on_zero_denominator():
    assert safe_ratio(3.0, 0.0, 0.5) == 0.5


def test_safe_ratio_divides_normally():
    assert safe_ratio(3.0, 4.0, 0.5) == 0.75


def test_probability_rounds_to_two_decimals():
    assert probability(0.123456) == 0.12
    assert probability(12.0) == 1.0


def test_round2():
    assert round2(20.456) == 20.46
