"""
Module: extractor.options

Purpose:
    Walks the lines of an overall threshold section and turns every
    recognisable option row into a RawOption. Rows that look like options
    but fail validation are kept as RejectedLine records so the caller
    can report them.

Key Functions:
    - extract_options(): Section text + TableFormat -> OptionTable

Key Classes:
    - RejectionReason: Why a candidate line was not emitted
    - RejectedLine: A rejected candidate with its reason
    - OptionTable: Emitted options plus rejected candidates

Dependencies:
    - extractor.detection.tokens: Line tokenization
    - extractor.detection.format: TableFormat

Used By:
    - extractor.pipeline: Per-document parsing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from threshold_toolkit.common.thresholds import PARSER_THRESHOLDS
from threshold_toolkit.core.models.thresholds import RawOption
from .detection.format import TableFormat
from .detection.tokens import extract_tokens, split_option_code, take_grade_tokens

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    """Reason a candidate option line was rejected."""
    TOO_FEW_TOKENS = "too_few_tokens"
    MAX_MARK_MISSING = "max_mark_missing"
    MAX_MARK_BELOW_FLOOR = "max_mark_below_floor"
    NO_MAX_MARK_SOURCE = "no_max_mark_source"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RejectedLine:
    """A line that started with an option code but was not a valid row."""
    line: str
    option_code: str
    reason: RejectionReason

    def to_dict(self) -> dict:
        return {"line": self.line, "option_code": self.option_code, "reason": self.reason.value}


@dataclass(frozen=True)
class OptionTable:
    """
    Result of walking one overall threshold section.

    Attributes:
        options: Emitted option rows in document order.
        rejected: Candidate rows that failed validation.
    """
    options: Tuple[RawOption, ...] = ()
    rejected: Tuple[RejectedLine, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.options


def extract_options(
    section: str,
    table_format: TableFormat,
    *,
    min_embedded_max_mark: int = PARSER_THRESHOLDS.min_embedded_max_mark,
) -> OptionTable:
    """
    Extract option rows from an overall threshold section.

    A candidate line starts with a 1-3 letter option code. Its remaining
    tokens must number at least `grade_count`; the last `grade_count`
    of them are the grade thresholds. The max mark is the first token
    when the table embeds it (and must be >= `min_embedded_max_mark`,
    which filters out component numbers), else the prose default.

    Args:
        section: Text from the overall threshold marker onwards.
        table_format: Layout detected for this document.
        min_embedded_max_mark: Floor for an embedded max mark.

    Returns:
        OptionTable with options in document order.

    Example:
        >>> fmt = TableFormat(grade_count=6, has_embedded_max_mark=True)
        >>> table = extract_options("AX 100 90 80 70 60 50 40", fmt)
        >>> table.options[0].max_mark
        100
    """
    options: List[RawOption] = []
    rejected: List[RejectedLine] = []

    for line in section.splitlines():
        split = split_option_code(line)
        if split is None:
            continue
        code, remainder = split
        tokens = extract_tokens(remainder)

        reason: Optional[RejectionReason] = None
        max_mark: Optional[int] = None
        grade_tokens = take_grade_tokens(tokens, table_format.grade_count)

        if grade_tokens is None:
            reason = RejectionReason.TOO_FEW_TOKENS
        elif table_format.has_embedded_max_mark:
            first = tokens[0]
            if first is None:
                reason = RejectionReason.MAX_MARK_MISSING
            elif first < min_embedded_max_mark:
                reason = RejectionReason.MAX_MARK_BELOW_FLOOR
            else:
                max_mark = first
        elif table_format.external_max_marks is None:
            reason = RejectionReason.NO_MAX_MARK_SOURCE
        else:
            max_mark = table_format.external_max_marks.default

        if reason is not None or max_mark is None or grade_tokens is None:
            rejected.append(RejectedLine(
                line=line.strip(),
                option_code=code,
                reason=reason or RejectionReason.TOO_FEW_TOKENS,
            ))
            logger.debug(f"Rejected option line ({reason}): {line.strip()!r}")
            continue

        options.append(RawOption(code=code, max_mark=max_mark, grades=grade_tokens))

    return OptionTable(options=tuple(options), rejected=tuple(rejected))
