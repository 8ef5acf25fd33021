"""
Module: extractor.components

Purpose:
    Reads the per-component table that precedes the overall thresholds
    ("Component 12  80  ...") and folds component rows into the latest
    known max mark per paper.

Key Functions:
    - parse_component_table(): Component rows of one document
    - latest_paper_max_marks(): Most recent max mark per (syllabus, paper)

Used By:
    - extractor.pipeline: Component output of a batch run
    - estimator.repository: Paper max marks when seeding
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Tuple

from threshold_toolkit.common.thresholds import PARSER_THRESHOLDS
from threshold_toolkit.core.models.thresholds import ParsedComponent
from .detection.format import text_before_section

logger = logging.getLogger(__name__)

COMPONENT_LINE_PATTERN = re.compile(r"^Component\s+(\d{2,3})\s+(\d+)")

# Paper "0" is coursework: no written paper to enter a mark for
COURSEWORK_PAPER = "0"


def paper_number_for(component_code: str) -> str:
    """
    Paper number of a component code: its first digit once leading zeros
    are stripped ("12" -> "1", "042" -> "4"), or the first character when
    the code is all zeros.
    """
    stripped = component_code.lstrip("0")
    return stripped[:1] or component_code[:1]


def parse_component_table(
    text: str,
    syllabus_code: str,
    year: int,
    *,
    marker: str = PARSER_THRESHOLDS.overall_section_marker,
) -> List[ParsedComponent]:
    """
    Parse component max marks from the text before the overall section.

    Args:
        text: Full document text.
        syllabus_code: Syllabus the document belongs to.
        year: Exam year of the document.
        marker: Overall section marker; component rows after it are ignored.

    Returns:
        Components in document order.

    Example:
        >>> parse_component_table("Component 12 80 60 50", "0580", 2023)
        [ParsedComponent(syllabus_code='0580', year=2023, component_code='12', paper_number='1', max_mark=80)]
    """
    components: List[ParsedComponent] = []
    for line in text_before_section(text, marker).splitlines():
        match = COMPONENT_LINE_PATTERN.match(line.strip())
        if not match:
            continue
        code, max_mark = match.group(1), int(match.group(2))
        components.append(ParsedComponent(
            syllabus_code=syllabus_code,
            year=year,
            component_code=code,
            paper_number=paper_number_for(code),
            max_mark=max_mark,
        ))
    return components


def latest_paper_max_marks(
    components: Iterable[ParsedComponent],
) -> Dict[Tuple[str, str], int]:
    """
    Keep the most recent year's max mark per (syllabus_code, paper_number).

    Coursework (paper "0") is skipped. Within one year the first row seen
    wins, so variant components of the same paper do not overwrite it.

    Returns:
        {(syllabus_code, paper_number): max_mark}
    """
    latest: Dict[Tuple[str, str], Tuple[int, int]] = {}
    for component in components:
        if component.paper_number == COURSEWORK_PAPER:
            continue
        key = (component.syllabus_code, component.paper_number)
        current = latest.get(key)
        if current is None or component.year > current[0]:
            latest[key] = (component.year, component.max_mark)

    logger.debug(f"Folded components into {len(latest)} paper max marks")
    return {key: max_mark for key, (_, max_mark) in latest.items()}
