"""
Module: thresholds

Purpose:
    Immutable records produced by the document parser: the raw option rows
    read from a threshold table, the tier-resolved per-grade thresholds,
    and the per-paper component maxima.

Key Classes:
    - RawOption: One unselected option row (code, max mark, grade tokens)
    - GradeBoundary: Minimum mark for one grade
    - ParsedThreshold: Tier-resolved thresholds for one syllabus/series/tier
    - ParsedComponent: Maximum raw mark of one component paper

Dependencies:
    - dataclasses (std)
    - .grades: Grade, Tier, Season enums

Used By:
    - extractor.options: Produces RawOption
    - extractor.tiers: Produces ParsedThreshold
    - extractor.components: Produces ParsedComponent
    - core.utils.serialization: JSON read/write
    - estimator.repository: Seeding the threshold store

Invariants:
    - ParsedThreshold.max_mark > 0
    - grades are a strict subsequence of A*..G, each min_mark > 0
    - min_mark non-increasing as grade worsens is NOT enforced on
      construction: see monotonic_violations() and
      extractor.validation.validate_threshold()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .grades import THRESHOLD_GRADES, Grade, Season, Tier, parse_tier


@dataclass(frozen=True, slots=True)
class RawOption:
    """
    One option row read from an overall threshold table.

    Attributes:
        code: Option code such as "BY" or "FX".
        max_mark: Maximum mark after weighting for this option.
        grades: Grade tokens indexed by grade rank (A* first). `None`
            marks a dash in the table: no threshold published for that
            grade, which is different from a threshold of zero.

    Example:
        >>> RawOption("AY", 200, (160, 140, 120, 100, 80, 60, 40, 20))
    """
    code: str
    max_mark: int
    grades: Tuple[Optional[int], ...]

    def mark_for(self, grade: Grade) -> Optional[int]:
        """Threshold token for a grade, or None if absent or out of range."""
        rank = grade.rank
        if rank >= len(self.grades):
            return None
        return self.grades[rank]


@dataclass(frozen=True, slots=True)
class GradeBoundary:
    """Minimum raw (weighted) mark needed for a grade."""
    grade: Grade
    min_mark: int

    def __post_init__(self) -> None:
        if self.grade is Grade.U:
            raise ValueError("Grade U has no threshold boundary")
        if self.min_mark <= 0:
            raise ValueError(
                f"Boundary for {self.grade} must be positive: {self.min_mark}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {"grade": self.grade.value, "min_mark": self.min_mark}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GradeBoundary:
        return cls(grade=Grade(data["grade"]), min_mark=int(data["min_mark"]))


@dataclass(frozen=True, slots=True)
class ParsedThreshold:
    """
    Tier-resolved grade thresholds for one syllabus in one series.

    Attributes:
        syllabus_code: 4-digit syllabus code (e.g. "0580").
        season: Exam season of the series.
        year: Exam year of the series.
        tier: Core/Extended, or None for untiered syllabuses.
        option_code: The option row these thresholds were read from.
        max_mark: Maximum mark after weighting (always > 0).
        grades: Boundaries in canonical grade order, gaps dropped.
    """
    syllabus_code: str
    season: Season
    year: int
    tier: Optional[Tier]
    option_code: str
    max_mark: int
    grades: Tuple[GradeBoundary, ...]

    def __post_init__(self) -> None:
        if self.max_mark <= 0:
            raise ValueError(
                f"max_mark must be positive for {self.syllabus_code} "
                f"{self.season} {self.year}: {self.max_mark}"
            )
        previous_rank = -1
        for boundary in self.grades:
            rank = boundary.grade.rank
            if rank <= previous_rank:
                raise ValueError(
                    f"Grades out of canonical order in {self.syllabus_code} "
                    f"{self.year}: {[b.grade.value for b in self.grades]}"
                )
            previous_rank = rank

    @classmethod
    def from_option(
        cls,
        option: RawOption,
        *,
        syllabus_code: str,
        season: Season,
        year: int,
        tier: Optional[Tier],
        max_mark: int,
    ) -> ParsedThreshold:
        """
        Build a threshold from an option row.

        Grade tokens that are absent (dash) or zero are dropped; they are
        never stored as a zero boundary.
        """
        boundaries = tuple(
            GradeBoundary(grade, mark)
            for grade in THRESHOLD_GRADES
            if (mark := option.mark_for(grade)) is not None and mark > 0
        )
        return cls(
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            tier=tier,
            option_code=option.code,
            max_mark=max_mark,
            grades=boundaries,
        )

    def boundary_for(self, grade: Grade) -> Optional[GradeBoundary]:
        for boundary in self.grades:
            if boundary.grade is grade:
                return boundary
        return None

    def monotonic_violations(self) -> List[str]:
        """
        Describe every place where a worse grade needs more marks.

        A non-empty result means the parser misread the table.
        """
        problems: List[str] = []
        for better, worse in zip(self.grades, self.grades[1:]):
            if worse.min_mark > better.min_mark:
                problems.append(
                    f"{worse.grade.value}={worse.min_mark} exceeds "
                    f"{better.grade.value}={better.min_mark}"
                )
        return problems

    def to_dict(self) -> dict[str, Any]:
        return {
            "syllabus_code": self.syllabus_code,
            "season": self.season.value,
            "year": self.year,
            "tier": self.tier.value if self.tier is not None else None,
            "option_code": self.option_code,
            "max_mark": self.max_mark,
            "grades": [b.to_dict() for b in self.grades],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParsedThreshold:
        return cls(
            syllabus_code=str(data["syllabus_code"]),
            season=Season(data["season"]),
            year=int(data["year"]),
            tier=parse_tier(data.get("tier")),
            option_code=str(data["option_code"]),
            max_mark=int(data["max_mark"]),
            grades=tuple(GradeBoundary.from_dict(g) for g in data.get("grades", [])),
        )


@dataclass(frozen=True, slots=True)
class ParsedComponent:
    """Maximum raw mark of one component paper, independent of tier."""
    syllabus_code: str
    year: int
    component_code: str
    paper_number: str
    max_mark: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "syllabus_code": self.syllabus_code,
            "year": self.year,
            "component_code": self.component_code,
            "paper_number": self.paper_number,
            "max_mark": self.max_mark,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParsedComponent:
        return cls(
            syllabus_code=str(data["syllabus_code"]),
            year=int(data["year"]),
            component_code=str(data["component_code"]),
            paper_number=str(data["paper_number"]),
            max_mark=int(data["max_mark"]),
        )


def threshold_sort_key(threshold: ParsedThreshold) -> tuple:
    """Deterministic ordering: season, year, syllabus, then Core before Extended."""
    tier_order = -1 if threshold.tier is None else list(Tier).index(threshold.tier)
    return (threshold.season.order, threshold.year, threshold.syllabus_code, tier_order)


def component_sort_key(component: ParsedComponent) -> tuple:
    return (component.year, component.syllabus_code, component.component_code)
