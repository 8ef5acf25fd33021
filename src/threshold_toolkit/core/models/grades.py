"""
Module: grades

Purpose:
    Explicit ordered enumerations for grades, tiers and exam seasons.
    Grade order is fixed: A* is the most favourable grade, U the least.
    Rank lookups are O(1) through a precomputed table rather than a
    linear search over a list of strings.

Key Classes:
    - Grade: A*, A, B, C, D, E, F, G, U with a `rank` property
    - Tier: Core / Extended (absence of a tier is `None`)
    - Season: FM (Feb/March), MJ (May/June), ON (Oct/Nov)

Key Constants:
    - THRESHOLD_GRADES: The eight gradeable letters A*..G, best first

Used By:
    - core.models.thresholds: Grade boundaries within a parsed threshold
    - core.models.estimates: Summaries and estimated grades
    - extractor.tiers: Mapping token positions to grades
    - estimator.aggregate: Ordering summaries
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple


class Grade(str, Enum):
    """Letter grade in canonical order, most favourable first."""
    A_STAR = "A*"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    U = "U"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """Position in canonical order (A* = 0, U = 8)."""
        return _GRADE_RANK[self]

    def is_better_than(self, other: Grade) -> bool:
        return self.rank < other.rank


_GRADE_RANK: Dict[Grade, int] = {grade: index for index, grade in enumerate(Grade)}

# Grades that can carry a published threshold (U never has a boundary)
THRESHOLD_GRADES: Tuple[Grade, ...] = tuple(g for g in Grade if g is not Grade.U)


class Tier(str, Enum):
    """Difficulty variant of a tiered syllabus."""
    CORE = "Core"
    EXTENDED = "Extended"

    def __str__(self) -> str:
        return self.value


class Season(str, Enum):
    """Exam series season."""
    FM = "FM"  # February/March
    MJ = "MJ"  # May/June
    ON = "ON"  # October/November

    def __str__(self) -> str:
        return self.value

    @property
    def order(self) -> int:
        return _SEASON_ORDER[self]


_SEASON_ORDER: Dict[Season, int] = {season: index for index, season in enumerate(Season)}


def parse_tier(value: Optional[str]) -> Optional[Tier]:
    """
    Convert a serialized tier value to a Tier.

    `None`, empty strings and "none" all mean the syllabus is not tiered.

    Raises:
        ValueError: If the value is not a known tier name.
    """
    if value is None:
        return None
    if isinstance(value, Tier):
        return value
    text = str(value).strip()
    if not text or text.lower() == "none":
        return None
    for tier in Tier:
        if tier.value.lower() == text.lower():
            return tier
    raise ValueError(f"Unknown tier: {value!r}")


def tier_label(tier: Optional[Tier]) -> str:
    """Human-readable tier label for logs ("no-tier" when untiered)."""
    return tier.value if tier is not None else "no-tier"
