"""
Core Models Package

Immutable, validated data models shared by the parser and the estimator.

**DESIGN RATIONALE:**

All models in this package are frozen dataclasses. This ensures:
1. No accidental mutation while documents are parsed concurrently
2. Safe to pass between worker threads
3. Can be used as dict keys or in sets
4. Easier to reason about the one-way data flow

| Stage | Model | Lifetime |
|-------|-------|----------|
| Extraction | `RawOption` | One parse run |
| Tier resolution | `ParsedThreshold`, `ParsedComponent` | Until upserted into the store |
| Aggregation | `GradeThresholdSummary` | One estimation request |
| Estimation | `SubjectEstimateInput` / `SubjectEstimateResult` | One request |
"""

from .grades import THRESHOLD_GRADES, Grade, Season, Tier, parse_tier, tier_label
from .thresholds import GradeBoundary, ParsedComponent, ParsedThreshold, RawOption
from .estimates import (
    NOT_ENTERED,
    EstimateRequest,
    EstimateResult,
    GradeThresholdSummary,
    PaperMarkEntry,
    ReverseTarget,
    SubjectEstimateInput,
    SubjectEstimateResult,
    UmsConversionPoint,
    YearPercentage,
)

__all__ = [
    # grades
    "Grade",
    "Tier",
    "Season",
    "THRESHOLD_GRADES",
    "parse_tier",
    "tier_label",
    # thresholds
    "RawOption",
    "GradeBoundary",
    "ParsedThreshold",
    "ParsedComponent",
    # estimates
    "NOT_ENTERED",
    "PaperMarkEntry",
    "SubjectEstimateInput",
    "SubjectEstimateResult",
    "EstimateRequest",
    "EstimateResult",
    "GradeThresholdSummary",
    "YearPercentage",
    "UmsConversionPoint",
    "ReverseTarget",
]
