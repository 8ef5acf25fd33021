"""
Module: extractor.detection.format

Purpose:
    Format detection for grade threshold documents. Locates the overall
    threshold section and classifies its table layout across the
    document revisions seen so far:

    - 2023+ format: "maximum mark after weighting" is a column of the
      option table, so every option row carries its own max mark.
    - 2022 format: the max mark is stated in a prose sentence before the
      table, either once ("is 200") or per tier ("is 200 for the
      Extended option and 160 for the Core option").

    Tables have 8 grade columns (A*-G) or, for syllabuses such as
    Additional Mathematics, 6 (A*-E).

Key Functions:
    - locate_overall_section(): Text from the section marker onwards
    - detect_grade_count(): 6 or 8 grade columns
    - has_embedded_max_mark(): Whether the table embeds the max mark
    - extract_external_max_marks(): Max marks from the prose sentence
    - detect_table_format(): All of the above in one TableFormat

Key Classes:
    - ExternalMaxMarks: Shared and tier-specific prose max marks
    - TableFormat: Detected layout of one document

Used By:
    - extractor.options: Option-table extraction
    - extractor.pipeline: Per-document parsing

Failure semantics:
    Detection never raises. A missing section yields None; a table with
    no identifiable max-mark source yields a TableFormat whose
    `is_usable` is False.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from threshold_toolkit.common.thresholds import PARSER_THRESHOLDS
from threshold_toolkit.core.models.grades import Tier

FULL_GRADE_COUNT = 8  # A*, A, B, C, D, E, F, G
SHORT_GRADE_COUNT = 6  # A*, A, B, C, D, E

GRADE_HEADER_PATTERN = re.compile(
    rf"A\*[\s\S]{{0,{PARSER_THRESHOLDS.grade_header_a_to_f_gap}}}F"
    rf"[\s\S]{{0,{PARSER_THRESHOLDS.grade_header_f_to_g_gap}}}G"
)
EMBEDDED_MAX_MARK_PATTERN = re.compile(r"maximum\s+mark\s+after\s+weighting", re.IGNORECASE)
TWO_VALUE_MAX_MARK_PATTERN = re.compile(
    r"maximum\s+total\s+mark[^.]*?is\s+(\d{2,3})\s+for\s+the\s+(\w+)\s+option"
    r"\s+and\s+(\d{2,3})\s+for\s+the\s+(\w+)\s+option",
    re.IGNORECASE,
)
ONE_VALUE_MAX_MARK_PATTERN = re.compile(
    r"maximum\s+total\s+mark[^.]*?is\s+(\d{2,3})\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ExternalMaxMarks:
    """
    Max marks stated in prose rather than in the option table.

    Attributes:
        default: The single stated value, or the larger of two values.
        core: Core-tier value when the sentence names it.
        extended: Extended-tier value when the sentence names it.
    """
    default: int
    core: Optional[int] = None
    extended: Optional[int] = None

    def for_tier(self, tier: Optional[Tier]) -> Optional[int]:
        """Tier-specific value, None if the sentence did not give one."""
        if tier is Tier.CORE:
            return self.core
        if tier is Tier.EXTENDED:
            return self.extended
        return None


@dataclass(frozen=True)
class TableFormat:
    """
    Detected layout of one document's overall threshold table.

    Attributes:
        grade_count: 6 or 8 grade columns.
        has_embedded_max_mark: True for the 2023+ column layout.
        external_max_marks: Prose max marks (2022 layout), else None.
    """
    grade_count: int
    has_embedded_max_mark: bool
    external_max_marks: Optional[ExternalMaxMarks] = None

    @property
    def is_usable(self) -> bool:
        """A max-mark source was found; without one the table is skipped."""
        return self.has_embedded_max_mark or self.external_max_marks is not None


def locate_overall_section(
    text: str,
    marker: str = PARSER_THRESHOLDS.overall_section_marker,
) -> Optional[str]:
    """
    Return the document text from the overall threshold marker onwards.

    The search is a case-insensitive substring match.

    Returns:
        Section text, or None if the marker does not appear.
    """
    index = text.lower().find(marker.lower())
    if index == -1:
        return None
    return text[index:]


def text_before_section(
    text: str,
    marker: str = PARSER_THRESHOLDS.overall_section_marker,
) -> str:
    """Document text before the overall section (whole text if absent)."""
    index = text.lower().find(marker.lower())
    return text if index == -1 else text[:index]


def detect_grade_count(
    section: str,
    scan_chars: int = PARSER_THRESHOLDS.header_scan_chars,
) -> int:
    """
    Count grade columns from the table header.

    Looks for "A*" followed by "F" then "G" within the first
    `scan_chars` characters of the section.

    Returns:
        8 when the F..G columns are present, else 6.
    """
    head = section[:scan_chars]
    if GRADE_HEADER_PATTERN.search(head):
        return FULL_GRADE_COUNT
    return SHORT_GRADE_COUNT


def has_embedded_max_mark(section: str) -> bool:
    """True when the table has a "maximum mark after weighting" column."""
    return EMBEDDED_MAX_MARK_PATTERN.search(section) is not None


def extract_external_max_marks(text: str) -> Optional[ExternalMaxMarks]:
    """
    Read max marks from the prose sentence used by 2022-era documents.

    Handles "The maximum total mark for this syllabus, after weighting
    has been applied, is 200 for the Extended option and 160 for the
    Core option." as well as the single-value "... is 200."

    Args:
        text: Full document text.

    Returns:
        ExternalMaxMarks, or None if no such sentence exists.

    Example:
        >>> extract_external_max_marks(
        ...     "The maximum total mark for this syllabus is 200 for the Extended option "
        ...     "and 160 for the Core option."
        ... )
        ExternalMaxMarks(default=200, core=160, extended=200)
    """
    two_values = TWO_VALUE_MAX_MARK_PATTERN.search(text)
    if two_values:
        first_mark, first_tier, second_mark, second_tier = two_values.groups()
        core: Optional[int] = None
        extended: Optional[int] = None
        for mark, tier_name in ((first_mark, first_tier), (second_mark, second_tier)):
            name = tier_name.lower()
            if "extended" in name:
                extended = int(mark)
            if "core" in name:
                core = int(mark)
        return ExternalMaxMarks(
            default=max(int(first_mark), int(second_mark)),
            core=core,
            extended=extended,
        )

    one_value = ONE_VALUE_MAX_MARK_PATTERN.search(text)
    if one_value:
        return ExternalMaxMarks(default=int(one_value.group(1)))

    return None


def detect_table_format(
    text: str,
    *,
    marker: str = PARSER_THRESHOLDS.overall_section_marker,
    scan_chars: int = PARSER_THRESHOLDS.header_scan_chars,
) -> Optional[TableFormat]:
    """
    Classify the overall threshold table of a document.

    Args:
        text: Full extracted text of the document.
        marker: Section marker (case-insensitive).
        scan_chars: Header scan window for grade-count detection.

    Returns:
        TableFormat, or None when the document has no overall section.
    """
    section = locate_overall_section(text, marker)
    if section is None:
        return None

    embedded = has_embedded_max_mark(section)
    return TableFormat(
        grade_count=detect_grade_count(section, scan_chars),
        has_embedded_max_mark=embedded,
        external_max_marks=None if embedded else extract_external_max_marks(text),
    )
