"""
Module: estimator.ums

Purpose:
    Raw mark -> uniform mark scale conversion by piecewise-linear
    interpolation over a published conversion table.

    No currently configured subject is graded on UMS; the conversion is
    kept so a UMS subject can be added without touching the estimator.

Key Functions:
    - convert_raw_to_ums(): Interpolate one raw mark
"""

from __future__ import annotations

from typing import Sequence, Union

from threshold_toolkit.common.numeric import round_half_up
from threshold_toolkit.core.models.estimates import UmsConversionPoint

Number = Union[int, float]


def convert_raw_to_ums(raw_mark: Number, table: Sequence[UmsConversionPoint]) -> Number:
    """
    Convert a raw mark to a UMS mark.

    The table is sorted by raw mark (stably, so duplicates keep their
    order). Marks at or beyond either end clamp to that end's UMS mark;
    anything else is interpolated between the first bracketing pair and
    rounded half-up to an integer. An empty table returns the raw mark.

    Example:
        >>> table = [UmsConversionPoint(0, 0), UmsConversionPoint(50, 100)]
        >>> convert_raw_to_ums(25, table)
        50
    """
    if not table:
        return raw_mark

    points = sorted(table, key=lambda p: p.raw_mark)

    first, last = points[0], points[-1]
    if raw_mark <= first.raw_mark:
        return first.ums_mark
    if raw_mark >= last.raw_mark:
        return last.ums_mark

    for lower, upper in zip(points, points[1:]):
        if lower.raw_mark <= raw_mark <= upper.raw_mark:
            span = upper.raw_mark - lower.raw_mark
            if span == 0:
                return upper.ums_mark
            fraction = (raw_mark - lower.raw_mark) / span
            return round_half_up(lower.ums_mark + fraction * (upper.ums_mark - lower.ums_mark))

    return raw_mark
