"""
Module: estimator.aggregate

Purpose:
    Threshold aggregator. Converts each stored per-year threshold into a
    percentage of its max mark and summarises every grade over the most
    recent series of a season.

Key Functions:
    - threshold_percentage(): One row's one-decimal percentage
    - average_thresholds(): GradeThresholdSummary per grade

Dependencies:
    - numpy: Mean/min/max over the yearly percentages

Used By:
    - estimator.calculate: estimate_subject()
    - cli: `thresholds` command

Note:
    Pure function of the store contents: no caching and no shared
    mutable state, so concurrent calls for different subjects are safe.
    Fewer series than the window just means fewer years in the summary.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np

from threshold_toolkit.common.numeric import round_half_up
from threshold_toolkit.core.models.estimates import GradeThresholdSummary, YearPercentage
from threshold_toolkit.core.models.grades import THRESHOLD_GRADES, Grade, Season, Tier, tier_label
from .repository import ThresholdRepository, ThresholdRow

logger = logging.getLogger(__name__)

DEFAULT_TRAILING_YEARS = 5


def threshold_percentage(min_mark: float, max_mark: float) -> float:
    """
    Threshold as a percentage of the max mark, rounded half-up to one decimal.

    Raises:
        ValueError: If max_mark is not positive.

    Example:
        >>> threshold_percentage(150, 200)
        75.0
    """
    if max_mark <= 0:
        raise ValueError(f"max_mark must be positive: {max_mark}")
    return round_half_up(min_mark / max_mark * 1000) / 10


def average_thresholds(
    repository: ThresholdRepository,
    subject_id: str,
    tier: Optional[Tier],
    season: Season = Season.FM,
    num_years: int = DEFAULT_TRAILING_YEARS,
) -> List[GradeThresholdSummary]:
    """
    Summarise a subject's thresholds over the most recent series.

    Args:
        repository: Threshold store.
        subject_id: Subject to summarise.
        tier: Tier, or None for untiered rows only.
        season: Season whose series are averaged.
        num_years: Trailing window of series (default 5).

    Returns:
        Summaries in canonical grade order (A* first). Grades with no
        qualifying year are omitted; an empty store yields [].

    Example:
        >>> summaries = average_thresholds(repo, "0580", Tier.EXTENDED)
        >>> summaries[0].grade
        <Grade.A_STAR: 'A*'>
    """
    series = repository.recent_series(season, num_years)
    if not series:
        return []

    year_by_series = {s.series_id: s.year for s in series}
    rows: List[ThresholdRow] = list(
        repository.fetch_thresholds(subject_id, tier, year_by_series.keys())
    )
    if not rows:
        return []

    by_grade: Dict[Grade, List[YearPercentage]] = {}
    for row in rows:
        if row.max_mark <= 0:
            logger.debug(
                f"Rejected {subject_id} {row.series_id} {row.grade}: max_mark={row.max_mark}"
            )
            continue
        by_grade.setdefault(row.grade, []).append(YearPercentage(
            year=year_by_series[row.series_id],
            pct=threshold_percentage(row.min_mark, row.max_mark),
        ))

    summaries: List[GradeThresholdSummary] = []
    for grade in THRESHOLD_GRADES:
        year_data = by_grade.get(grade)
        if not year_data:
            continue
        pcts = np.array([y.pct for y in year_data], dtype=float)
        summaries.append(GradeThresholdSummary(
            grade=grade,
            averaged_pct=round_half_up(float(np.mean(pcts)) * 10) / 10,
            min_pct=float(np.min(pcts)),
            max_pct=float(np.max(pcts)),
            year_data=tuple(sorted(year_data, key=lambda y: y.year)),
        ))

    logger.debug(
        f"Aggregated {subject_id} {tier_label(tier)} {season}: "
        f"{len(summaries)} grades over {len(series)} series"
    )
    return summaries
