"""
Module: estimates

Purpose:
    Request/response shapes for grade estimation plus the derived
    per-grade threshold summaries the estimator compares against.

Key Classes:
    - PaperMarkEntry: One paper's raw mark, maximum and weight
    - SubjectEstimateInput / SubjectEstimateResult: Per-subject request/response
    - EstimateRequest / EstimateResult: Whole-request envelopes
    - GradeThresholdSummary: Mean/min/max percentage for one grade
    - UmsConversionPoint: One raw -> UMS table point
    - ReverseTarget: Result of the "what mark do I need" calculation

Dependencies:
    - dataclasses (std)
    - .grades: Grade, Tier, Season enums

Used By:
    - estimator.aggregate: Builds GradeThresholdSummary
    - estimator.calculate: Consumes inputs, builds results
    - estimator.ums: UmsConversionPoint tables
    - cli: JSON request/response handling

Note:
    `raw_mark == NOT_ENTERED` (-1) means the student has not entered a mark
    for that paper yet. It is distinct from a genuine mark of 0.
    `max_raw_mark == UNKNOWN_MAX_MARK` (0) means the request left the
    maximum out; estimator.calculate.fill_paper_max_marks() fills it from
    the stored paper max marks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .grades import Grade, Season, Tier, parse_tier

NOT_ENTERED = -1
UNKNOWN_MAX_MARK = 0


@dataclass(frozen=True, slots=True)
class PaperMarkEntry:
    """A student's mark on one paper of a subject."""
    paper_id: str
    paper_number: str
    paper_name: str
    raw_mark: float
    max_raw_mark: float
    weight_percentage: float
    is_ums: bool = False

    @property
    def is_entered(self) -> bool:
        return self.raw_mark >= 0

    @property
    def is_countable(self) -> bool:
        """Entered and with a usable maximum mark."""
        return self.is_entered and self.max_raw_mark > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "paper_id": self.paper_id,
            "paper_number": self.paper_number,
            "paper_name": self.paper_name,
            "raw_mark": self.raw_mark,
            "max_raw_mark": self.max_raw_mark,
            "weight_percentage": self.weight_percentage,
            "is_ums": self.is_ums,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PaperMarkEntry:
        return cls(
            paper_id=str(data.get("paper_id", "")),
            paper_number=str(data.get("paper_number", "")),
            paper_name=str(data.get("paper_name", "")),
            raw_mark=data.get("raw_mark", NOT_ENTERED),
            max_raw_mark=data.get("max_raw_mark", UNKNOWN_MAX_MARK),
            weight_percentage=data["weight_percentage"],
            is_ums=bool(data.get("is_ums", False)),
        )


@dataclass(frozen=True, slots=True)
class SubjectEstimateInput:
    """All paper marks a student entered for one subject."""
    subject_id: str
    subject_code: str
    subject_name: str
    tier_selected: Optional[Tier]
    paper_marks: Tuple[PaperMarkEntry, ...] = ()

    @property
    def missing_papers(self) -> bool:
        return any(not pm.is_entered for pm in self.paper_marks)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubjectEstimateInput:
        return cls(
            subject_id=str(data["subject_id"]),
            subject_code=str(data.get("subject_code", "")),
            subject_name=str(data.get("subject_name", "")),
            tier_selected=parse_tier(data.get("tier_selected")),
            paper_marks=tuple(
                PaperMarkEntry.from_dict(pm) for pm in data.get("paper_marks", [])
            ),
        )


@dataclass(frozen=True, slots=True)
class YearPercentage:
    """One series' threshold expressed as a percentage of the max mark."""
    year: int
    pct: float

    def to_dict(self) -> dict[str, Any]:
        return {"year": self.year, "pct": self.pct}


@dataclass(frozen=True, slots=True)
class GradeThresholdSummary:
    """
    Historical threshold range for one grade.

    Derived on demand from stored per-year rows; never persisted.

    Attributes:
        grade: The grade summarised.
        averaged_pct: Mean of the yearly percentages, one decimal.
        min_pct: Lowest yearly percentage.
        max_pct: Highest yearly percentage.
        year_data: Yearly percentages, oldest first.
    """
    grade: Grade
    averaged_pct: float
    min_pct: float
    max_pct: float
    year_data: Tuple[YearPercentage, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "grade": self.grade.value,
            "averaged_pct": self.averaged_pct,
            "min_pct": self.min_pct,
            "max_pct": self.max_pct,
            "year_data": [y.to_dict() for y in self.year_data],
        }


@dataclass(frozen=True, slots=True)
class SubjectEstimateResult:
    """Estimated grade for one subject plus the thresholds it was judged on."""
    subject_id: str
    subject_code: str
    subject_name: str
    tier_selected: Optional[Tier]
    weighted_total_pct: float
    estimated_grade: Optional[Grade]
    thresholds: Tuple[GradeThresholdSummary, ...]
    missing_papers: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "subject_code": self.subject_code,
            "subject_name": self.subject_name,
            "tier_selected": self.tier_selected.value if self.tier_selected else None,
            "weighted_total_pct": self.weighted_total_pct,
            "estimated_grade": self.estimated_grade.value if self.estimated_grade else None,
            "thresholds": [t.to_dict() for t in self.thresholds],
            "missing_papers": self.missing_papers,
        }


@dataclass(frozen=True, slots=True)
class EstimateRequest:
    """Estimation request as handed over by the serving layer."""
    entries: Tuple[SubjectEstimateInput, ...]
    season: Season = Season.FM

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EstimateRequest:
        return cls(
            entries=tuple(SubjectEstimateInput.from_dict(e) for e in data.get("entries", [])),
            season=Season(data.get("season", Season.FM.value)),
        )


@dataclass(frozen=True, slots=True)
class EstimateResult:
    """Estimation response: one result per requested subject."""
    entries: Tuple[SubjectEstimateResult, ...]
    calculated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "calculated_at": self.calculated_at,
        }


@dataclass(frozen=True, slots=True)
class UmsConversionPoint:
    """One point of a raw mark -> uniform mark scale conversion table."""
    raw_mark: float
    ums_mark: float


@dataclass(frozen=True)
class ReverseTarget:
    """
    Raw mark still needed on one outstanding paper.

    Attributes:
        needed_raw: Raw marks needed, floored at 0.
        needed_pct: Percentage of the paper needed, one decimal, floored at 0.
        achievable: False when the paper's maximum cannot cover the gap.
    """
    needed_raw: int
    needed_pct: float
    achievable: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "needed_raw": self.needed_raw,
            "needed_pct": self.needed_pct,
            "achievable": self.achievable,
        }
