"""Numeric helpers shared by the cost calculators."""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal

logger = logging.getLogger(__name__)


def round_half_away(value: float) -> float:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    if not math.isfinite(value):
        return value
    return float(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_amount(raw: str | float | int | None) -> float | None:
    """
    Parse a billing amount.

    Returns None when the value is missing or is not a finite number.
    """
    if raw is None:
        return None
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount):
        return None
    return amount


def safe_percent(part: float, whole: float) -> float:
    """Rounded percentage of ``part`` in ``whole``; 0 when ``whole`` is 0."""
    if whole == 0:
        return 0.0
    return round_half_away(part / whole * 100.0)
