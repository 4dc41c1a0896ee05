from __future__ import annotations
import math
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP

from .models import Outlook

PROBABILITY_INCREMENT_PER_DEGREE = 20

# Rounded index -> lowest absolute latitude (degrees) where aurora is expected
MIN_LATITUDE_BY_INDEX = {
    0: 67,
    1: 66,
    2: 65,
    3: 64,
    4: 62,
    5: 60,
    6: 57,
    7: 54,
    8: 51,
}
MIN_LATITUDE_EXTREME = 48  # index 9 and above

# (upper bound inclusive, outlook); 0% is handled separately
OUTLOOK_STEPS = [
    (20, Outlook.LOW),
    (50, Outlook.FAIR),
    (75, Outlook.GOOD),
    (100, Outlook.EXCELLENT),
]


def round_index(value: float) -> int:
    """Nearest integer with ties rounded away from zero (6.5 -> 7)."""
    return int(Decimal(repr(float(value))).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def minimum_latitude(index_value: float) -> int:
    if index_value >= 8.5:
        # anything that rounds to 9 or more, however large
        return MIN_LATITUDE_EXTREME
    return MIN_LATITUDE_BY_INDEX[max(0, round_index(index_value))]


def visibility_probability(latitude: float, min_latitude: int) -> int:
    """Percent chance of seeing aurora at `latitude` for a given threshold.

    Each degree above the threshold adds 20%, truncated and capped at 100.
    The latitude is evaluated as the decimal it was printed as, so
    4.99 degrees above the threshold yields 99 and not 100.
    """
    if math.isnan(latitude):
        return 0
    diff = abs(Decimal(repr(float(latitude)))) - Decimal(min_latitude)
    if diff <= 0:
        return 0
    scaled = min(Decimal(100), diff * PROBABILITY_INCREMENT_PER_DEGREE)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def outlook(probability: int) -> Outlook:
    if probability <= 0:
        return Outlook.NONE
    for upper, category in OUTLOOK_STEPS:
        if probability <= upper:
            return category
    return Outlook.EXCELLENT
