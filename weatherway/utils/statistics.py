import math


def clamp01(value: float) -> float:
    """
    Clamp a value into [0, 1]; NaN maps to 0
    """
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def safe_ratio(numerator: float, denominator: float, fallback: float) -> float:
    """
    Divide, returning fallback when the denominator is zero or the result is not finite
    """
    if denominator == 0:
        return fallback
    ratio = numerator / denominator
    if not math.isfinite(ratio):
        return fallback
    return ratio


def round2(value: float) -> float:
    return round(float(value), 2)


def probability(value: float) -> float:
    """Clamp to [0, 1] then round to 2 decimals"""
    return round2(clamp01(value))
