"""
Module: estimator

Purpose:
    Estimation engine. Aggregates stored thresholds into per-grade
    historical ranges and turns a student's raw marks into an estimated
    grade, a reverse "mark needed" target or a UMS mark.

Key Functions:
    - average_thresholds(): Per-grade mean/min/max over recent series
    - calculate_estimate(): Estimate every subject of a request
    - reverse_calculate(): Raw mark needed on one outstanding paper
    - convert_raw_to_ums(): Piecewise-linear UMS conversion

Key Classes:
    - EstimatorConfig: Window size, full weight, worker cap
    - ThresholdRepository: Store contract
    - InMemoryThresholdRepository: Dict-backed store

Dependencies:
    - numpy: Per-grade statistics

Used By:
    - threshold_toolkit.cli: `thresholds`, `estimate`, `reverse` commands
"""

from .aggregate import average_thresholds, threshold_percentage
from .calculate import (
    WeightedTotal,
    calculate_estimate,
    estimate_grade,
    estimate_subject,
    fill_paper_max_marks,
    reverse_calculate,
    reverse_calculate_for_grade,
    weighted_total,
)
from .config import EstimatorConfig
from .repository import (
    InMemoryThresholdRepository,
    PaperMaxMarkStore,
    SeedSummary,
    SeriesRecord,
    ThresholdRepository,
    ThresholdRow,
    seed_paper_max_marks,
    seed_thresholds,
)
from .ums import convert_raw_to_ums

__all__ = [
    # aggregate
    "average_thresholds",
    "threshold_percentage",
    # calculate
    "WeightedTotal",
    "weighted_total",
    "fill_paper_max_marks",
    "estimate_grade",
    "estimate_subject",
    "calculate_estimate",
    "reverse_calculate",
    "reverse_calculate_for_grade",
    # config
    "EstimatorConfig",
    # repository
    "InMemoryThresholdRepository",
    "PaperMaxMarkStore",
    "SeedSummary",
    "SeriesRecord",
    "ThresholdRepository",
    "ThresholdRow",
    "seed_paper_max_marks",
    "seed_thresholds",
    # ums
    "convert_raw_to_ums",
]
