"""
Module: extractor.detection.tokens

Purpose:
    Line tokenization for overall threshold tables. Splits an option row
    into its option code and a sequence of integer / dash tokens, and
    isolates the "last N tokens are the grade thresholds" heuristic.

Key Functions:
    - extract_tokens(): Integers and dash characters from a string
    - split_option_code(): Leading 1-3 uppercase letter option code
    - take_grade_tokens(): Trailing grade tokens of a row

Used By:
    - extractor.options: Option-table extraction

Note:
    Anchoring on the LAST N tokens rather than fixed column positions
    tolerates the uneven whitespace and wrapped columns produced by
    PDF-to-text extraction. The cost is fragility to trailing noise on a
    row (e.g. a footnote number), so this heuristic stays in one place
    with its own tests for both 6- and 8-grade layouts.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from threshold_toolkit.common.thresholds import PARSER_THRESHOLDS

# A dash (hyphen-minus, en dash or em dash) means "no threshold published"
TOKEN_PATTERN = re.compile(r"\d+|[–—-]")

# 1-3 uppercase letters at the start of a line, optionally followed by a
# parenthetical annotation such as "BY (01, 02)"
OPTION_CODE_PATTERN = re.compile(
    rf"^([A-Z]{{1,{PARSER_THRESHOLDS.max_option_code_letters}}})(?:\s*\([^)]*\))?"
)

Token = Optional[int]


def extract_tokens(text: str) -> List[Token]:
    """
    Extract all integer and dash tokens from a string.

    Dashes become None: an explicit gap, not a zero.

    Example:
        >>> extract_tokens("200 160 – 120")
        [200, 160, None, 120]
    """
    tokens: List[Token] = []
    for match in TOKEN_PATTERN.finditer(text):
        value = match.group(0)
        tokens.append(int(value) if value.isdigit() else None)
    return tokens


def split_option_code(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a candidate table line into option code and remainder.

    Args:
        line: One line of extracted text (surrounding whitespace ignored).

    Returns:
        (code, remainder) or None if the line does not start with an
        uppercase option code.

    Example:
        >>> split_option_code("BY (11, 21, 31) 200 150 120")
        ('BY', '200 150 120')
    """
    trimmed = line.strip()
    match = OPTION_CODE_PATTERN.match(trimmed)
    if not match:
        return None
    return match.group(1), trimmed[match.end():].strip()


def take_grade_tokens(tokens: Sequence[Token], grade_count: int) -> Optional[Tuple[Token, ...]]:
    """
    Take the trailing grade tokens of an option row.

    Args:
        tokens: All tokens on the row after the option code.
        grade_count: Number of grade columns in the table (6 or 8).

    Returns:
        The last `grade_count` tokens, most favourable grade first, or
        None when the row holds fewer tokens than grade columns.

    Example:
        >>> take_grade_tokens([25, 75, 200, 170, 150, 130, 110, 90, 70], 6)
        (170, 150, 130, 110, 90, 70)
    """
    if grade_count <= 0 or len(tokens) < grade_count:
        return None
    return tuple(tokens[-grade_count:])
