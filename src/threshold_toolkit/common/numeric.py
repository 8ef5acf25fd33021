"""
Module: common.numeric

Purpose:
    Rounding helpers shared by the aggregator, estimator and UMS
    interpolator. Published percentages are rounded half away from zero
    for positive values (2.45 -> 2.5), not with Python's banker's rounding.

Key Functions:
    - round_half_up(): Round to the nearest integer, ties upwards
    - round_to_tenth(): Round to one decimal place, ties upwards

Used By:
    - estimator.aggregate: Per-year and averaged percentages
    - estimator.calculate: Reported weighted totals and reverse targets
    - estimator.ums: Interpolated UMS marks
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with ties going towards +infinity.

    Example:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return math.floor(value + 0.5)


def round_to_tenth(value: float) -> float:
    """
    Round to one decimal place with ties going upwards.

    Example:
        >>> round_to_tenth(74.25)
        74.3
    """
    return round_half_up(value * 10) / 10
