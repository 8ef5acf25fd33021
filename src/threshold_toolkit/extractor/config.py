"""
Module: extractor.config

Purpose:
    Configuration dataclass for the threshold document parser. Provides
    immutable settings for section detection, token validation and
    batch behaviour.

Key Classes:
    - ParserConfig: Main configuration for parsing

Dependencies:
    - dataclasses: For frozen dataclass support
    - common.thresholds: Default values

Used By:
    - extractor.detection.format: Section marker and header scan window
    - extractor.options: Embedded max-mark floor
    - extractor.pipeline: Batch settings
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from threshold_toolkit.common.thresholds import PARSER_THRESHOLDS
from threshold_toolkit.core.models.grades import Season


@dataclass(frozen=True)
class ParserConfig:
    """
    Configuration for grade threshold document parsing.

    Attributes:
        section_marker: Case-insensitive text that starts the overall
            threshold section (default "overall threshold").
        header_scan_chars: Characters of the section searched for the
            A*..F..G grade header (default 600).
        min_embedded_max_mark: Smallest first token accepted as an
            embedded max mark (default 10).
        pdf_max_pages: Pages of a PDF to extract text from (default 1).
        component_seasons: Seasons whose documents contribute component
            maxima. FM only by default, to avoid duplicate rows.
        max_workers: Thread count for batch parsing. None lets the
            executor decide.
        record_rejected_lines: Whether rejected candidate lines are
            recorded as diagnostics (they are always logged at DEBUG).
    """
    section_marker: str = PARSER_THRESHOLDS.overall_section_marker
    header_scan_chars: int = PARSER_THRESHOLDS.header_scan_chars
    min_embedded_max_mark: int = PARSER_THRESHOLDS.min_embedded_max_mark
    pdf_max_pages: int = PARSER_THRESHOLDS.pdf_max_pages
    component_seasons: Tuple[Season, ...] = (Season.FM,)
    max_workers: Optional[int] = None
    record_rejected_lines: bool = False

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.section_marker.strip():
            raise ValueError("section_marker must not be empty")
        if self.header_scan_chars <= 0:
            raise ValueError(f"header_scan_chars must be positive: {self.header_scan_chars}")
        if self.pdf_max_pages < 1:
            raise ValueError(f"pdf_max_pages must be at least 1: {self.pdf_max_pages}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
