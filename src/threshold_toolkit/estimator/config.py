"""
Module: estimator.config

Purpose:
    Configuration dataclass for threshold aggregation and grade
    estimation.

Key Classes:
    - EstimatorConfig: Trailing window, full weight and worker cap

Dependencies:
    - dataclasses (std)
    - common.thresholds: Default values

Used By:
    - estimator.calculate: calculate_estimate(), estimate_subject()
    - cli: `estimate` and `thresholds` commands
"""

from dataclasses import dataclass

from threshold_toolkit.common.thresholds import ESTIMATOR_THRESHOLDS


@dataclass(frozen=True)
class EstimatorConfig:
    """
    Configuration for grade estimation (immutable).

    Attributes:
        trailing_years: Most recent series per season averaged (default 5).
        full_weight_pct: Sum of paper weights for a complete entry. A
            partial entry is rescaled up to this (default 100).
        max_workers: Thread cap when estimating several subjects.
    """
    trailing_years: int = ESTIMATOR_THRESHOLDS.trailing_years
    full_weight_pct: float = ESTIMATOR_THRESHOLDS.full_weight_pct
    max_workers: int = ESTIMATOR_THRESHOLDS.max_parallel_subjects

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.trailing_years < 1:
            raise ValueError(f"trailing_years must be at least 1: {self.trailing_years}")
        if self.full_weight_pct <= 0:
            raise ValueError(f"full_weight_pct must be positive: {self.full_weight_pct}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
