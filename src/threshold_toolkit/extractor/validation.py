"""
Module: extractor.validation

Purpose:
    Post-resolution checks on ParsedThreshold records. A threshold whose
    boundaries rise as the grade worsens can only come from a misread
    table, so it is reported as an invariant violation instead of being
    trusted.

Key Functions:
    - validate_threshold(): Raise ThresholdInvariantError on violation
    - partition_valid(): Split records into valid and violating

Used By:
    - extractor.pipeline: Withholds violating records from output
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from threshold_toolkit.core.models.grades import tier_label
from threshold_toolkit.core.models.thresholds import ParsedThreshold

logger = logging.getLogger(__name__)


class ThresholdInvariantError(ValueError):
    """
    A parsed threshold breaks the non-increasing boundary invariant.

    Attributes:
        threshold: The offending record.
        problems: One description per violating grade pair.
    """

    def __init__(self, threshold: ParsedThreshold, problems: List[str]):
        self.threshold = threshold
        self.problems = problems
        super().__init__(
            f"{threshold.syllabus_code} {threshold.season} {threshold.year} "
            f"{tier_label(threshold.tier)} ({threshold.option_code}): "
            + "; ".join(problems)
        )


def validate_threshold(threshold: ParsedThreshold) -> ParsedThreshold:
    """
    Check that min marks never increase as the grade worsens.

    Returns:
        The same threshold, for chaining.

    Raises:
        ThresholdInvariantError: If any worse grade needs more marks.
    """
    problems = threshold.monotonic_violations()
    if problems:
        raise ThresholdInvariantError(threshold, problems)
    return threshold


def partition_valid(
    thresholds: Iterable[ParsedThreshold],
) -> Tuple[List[ParsedThreshold], List[ThresholdInvariantError]]:
    """
    Split thresholds into valid records and invariant violations.

    Returns:
        (valid, violations) with input order preserved in each.
    """
    valid: List[ParsedThreshold] = []
    violations: List[ThresholdInvariantError] = []
    for threshold in thresholds:
        try:
            valid.append(validate_threshold(threshold))
        except ThresholdInvariantError as e:
            logger.warning(f"Invariant violation: {e}")
            violations.append(e)
    return valid, violations
