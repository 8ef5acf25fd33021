"""
Module: estimator.calculate

Purpose:
    Grade estimation. Combines a student's paper marks into a weighted
    percentage, compares it with the aggregated historical thresholds
    and, in reverse, works out the mark still needed on one paper.

Key Functions:
    - fill_paper_max_marks(): Fill missing paper maxima from the store
    - weighted_total(): Weighted percentage of the entered papers
    - estimate_grade(): Best grade whose average threshold is met
    - estimate_subject(): One SubjectEstimateInput -> SubjectEstimateResult
    - calculate_estimate(): Whole request, subjects in parallel
    - reverse_calculate(): Raw mark needed on one outstanding paper
    - reverse_calculate_for_grade(): Same, targeting a grade's average

Dependencies:
    - concurrent.futures: Per-subject parallelism
    - estimator.aggregate: Historical summaries

Used By:
    - cli: `estimate` and `reverse` commands

Partial entries:
    When the countable papers carry less than the full weight, the
    weighted sum is rescaled as if those papers alone decided the grade.
    This is an approximation and can move the estimate substantially;
    `missing_papers` is set whenever any paper has no mark so consumers
    can flag the result.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from threshold_toolkit.common.numeric import round_half_up, round_to_tenth
from threshold_toolkit.core.models.estimates import (
    EstimateRequest,
    EstimateResult,
    GradeThresholdSummary,
    PaperMarkEntry,
    ReverseTarget,
    SubjectEstimateInput,
    SubjectEstimateResult,
)
from threshold_toolkit.core.models.grades import Grade, Season, tier_label
from .aggregate import average_thresholds
from .config import EstimatorConfig
from .repository import PaperMaxMarkStore, ThresholdRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightedTotal:
    """
    Weighted mark of the countable papers of one subject.

    Attributes:
        raw_sum: Sum of min(raw/max, 1) * weight before rescaling.
        total_weight: Sum of the weights that contributed.
        percentage: raw_sum, rescaled to the full weight when
            0 < total_weight < full weight. Unrounded.
        was_rescaled: True when 0 < total_weight < full weight, even
            if raw_sum is 0.
    """
    raw_sum: float
    total_weight: float
    percentage: float
    was_rescaled: bool = False


def fill_paper_max_marks(request: EstimateRequest, store: PaperMaxMarkStore) -> EstimateRequest:
    """
    Fill papers without a usable max_raw_mark from stored paper maxima.

    Papers are looked up by (subject_id, paper_number). Papers the store
    does not know keep their value and stay out of the weighted total.

    Returns:
        A new request; the given one is unchanged.
    """
    filled = 0
    entries = []
    for entry in request.entries:
        papers = []
        for paper in entry.paper_marks:
            if paper.max_raw_mark <= 0:
                stored = store.paper_max_mark(entry.subject_id, paper.paper_number)
                if stored is not None:
                    paper = dataclasses.replace(paper, max_raw_mark=stored)
                    filled += 1
            papers.append(paper)
        entries.append(dataclasses.replace(entry, paper_marks=tuple(papers)))

    if filled:
        logger.debug(f"Filled {filled} paper max marks from the store")
    return dataclasses.replace(request, entries=tuple(entries))


def weighted_total(
    paper_marks: Iterable[PaperMarkEntry],
    full_weight_pct: float = 100.0,
) -> WeightedTotal:
    """
    Combine paper marks into one weighted percentage.

    Papers without a mark (raw_mark < 0) or without a usable maximum
    (max_raw_mark <= 0) are ignored. Marks above the maximum count as
    full marks.

    Example:
        >>> p1 = PaperMarkEntry("p1", "1", "Paper 1", 80, 100, 50)
        >>> p2 = PaperMarkEntry("p2", "2", "Paper 2", -1, 100, 50)
        >>> weighted_total([p1, p2])
        WeightedTotal(raw_sum=40.0, total_weight=50, percentage=80.0, was_rescaled=True)
    """
    raw_sum = 0.0
    total_weight = 0
    for paper in paper_marks:
        if not paper.is_countable:
            continue
        raw_sum += min(paper.raw_mark / paper.max_raw_mark, 1) * paper.weight_percentage
        total_weight += paper.weight_percentage

    was_rescaled = 0 < total_weight < full_weight_pct
    percentage = raw_sum / total_weight * full_weight_pct if was_rescaled else raw_sum

    return WeightedTotal(
        raw_sum=raw_sum,
        total_weight=total_weight,
        percentage=percentage,
        was_rescaled=was_rescaled,
    )


def estimate_grade(
    summaries: Sequence[GradeThresholdSummary],
    weighted_pct: float,
) -> Optional[Grade]:
    """
    Best grade whose averaged threshold is at or below the weighted total.

    Returns:
        The grade, or None (ungraded) when no threshold is met.

    Example:
        >>> estimate_grade(summaries_80_70_60, 74.0)
        <Grade.A: 'A'>
    """
    for summary in sorted(summaries, key=lambda s: s.grade.rank):
        if summary.averaged_pct <= weighted_pct:
            return summary.grade
    return None


def estimate_subject(
    entry: SubjectEstimateInput,
    repository: ThresholdRepository,
    season: Season = Season.FM,
    config: Optional[EstimatorConfig] = None,
) -> SubjectEstimateResult:
    """
    Estimate the grade of one subject entry.

    The grade is judged on the unrounded weighted total; only the
    reported `weighted_total_pct` is rounded to one decimal.
    """
    config = config or EstimatorConfig()
    total = weighted_total(entry.paper_marks, config.full_weight_pct)
    summaries = average_thresholds(
        repository,
        entry.subject_id,
        entry.tier_selected,
        season,
        config.trailing_years,
    )
    grade = estimate_grade(summaries, total.percentage)

    logger.debug(
        f"Estimated {entry.subject_code or entry.subject_id} {tier_label(entry.tier_selected)}: "
        f"{total.percentage:.1f}% -> {grade.value if grade else 'U'}"
        + (" (rescaled)" if total.was_rescaled else ""),
        extra={"subject_id": entry.subject_id, "season": str(season)},
    )

    return SubjectEstimateResult(
        subject_id=entry.subject_id,
        subject_code=entry.subject_code,
        subject_name=entry.subject_name,
        tier_selected=entry.tier_selected,
        weighted_total_pct=round_to_tenth(total.percentage),
        estimated_grade=grade,
        thresholds=tuple(summaries),
        missing_papers=entry.missing_papers,
    )


def calculate_estimate(
    request: EstimateRequest,
    repository: ThresholdRepository,
    config: Optional[EstimatorConfig] = None,
) -> EstimateResult:
    """
    Estimate every subject of a request.

    Subjects are independent and estimated in parallel; results keep the
    request order. `calculated_at` is the current UTC time in ISO-8601.
    """
    config = config or EstimatorConfig()
    entries = list(request.entries)

    if len(entries) > 1:
        with ThreadPoolExecutor(max_workers=min(config.max_workers, len(entries))) as pool:
            futures = [
                pool.submit(estimate_subject, entry, repository, request.season, config)
                for entry in entries
            ]
            results = tuple(future.result() for future in futures)
    else:
        # Single subject - no thread overhead
        results = tuple(
            estimate_subject(entry, repository, request.season, config) for entry in entries
        )

    return EstimateResult(
        entries=results,
        calculated_at=datetime.now(timezone.utc).isoformat(),
    )


def reverse_calculate(
    target_pct: float,
    current_pct: float,
    paper_weight: float,
    paper_max_mark: float,
) -> ReverseTarget:
    """
    Raw mark needed on one outstanding paper to reach a target.

    Args:
        target_pct: Weighted percentage to reach (a grade's average).
        current_pct: Weighted percentage already secured on other papers.
        paper_weight: Weight percentage of the outstanding paper.
        paper_max_mark: Maximum raw mark of the outstanding paper.

    Returns:
        ReverseTarget. needed_raw and needed_pct are floored at 0; a
        target that is already met needs 0 and is achievable.

    Raises:
        ValueError: If paper_weight or paper_max_mark is not positive.

    Example:
        >>> reverse_calculate(55.0, 30.0, 50.0, 80)
        ReverseTarget(needed_raw=40, needed_pct=50.0, achievable=True)
    """
    if paper_weight <= 0:
        raise ValueError(f"paper_weight must be positive: {paper_weight}")
    if paper_max_mark <= 0:
        raise ValueError(f"paper_max_mark must be positive: {paper_max_mark}")

    needed_fraction = (target_pct - current_pct) / paper_weight
    needed_raw = math.ceil(needed_fraction * paper_max_mark)
    needed_pct = round_half_up(needed_fraction * 1000) / 10

    return ReverseTarget(
        needed_raw=max(0, needed_raw),
        needed_pct=max(0.0, needed_pct),
        achievable=needed_raw <= paper_max_mark and needed_fraction <= 1,
    )


def reverse_calculate_for_grade(
    summaries: Sequence[GradeThresholdSummary],
    grade: Grade,
    current_pct: float,
    paper_weight: float,
    paper_max_mark: float,
) -> Optional[ReverseTarget]:
    """
    reverse_calculate() targeting a grade's averaged threshold.

    Returns:
        None when the grade has no historical data.
    """
    for summary in summaries:
        if summary.grade is grade:
            return reverse_calculate(summary.averaged_pct, current_pct, paper_weight, paper_max_mark)
    return None
