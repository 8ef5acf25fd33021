"""Centralized threshold and magic number configuration.

This module contains the hardcoded limits, window sizes, and marker strings
used throughout document parsing and grade estimation. Having these in one
place makes tuning easier when a new document revision appears.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DocumentParsingThresholds:
    """Thresholds for locating and reading the overall threshold table."""

    overall_section_marker: str = "overall threshold"  # Case-insensitive section anchor
    header_scan_chars: int = 600  # Chars of the section scanned for the grade header
    grade_header_a_to_f_gap: int = 80  # Max chars between "A*" and "F" in the header
    grade_header_f_to_g_gap: int = 20  # Max chars between "F" and "G" in the header
    min_embedded_max_mark: int = 10  # Floor for the embedded max mark (rejects component numbers)
    max_option_code_letters: int = 3  # Option codes are 1-3 uppercase letters
    pdf_max_pages: int = 1  # Threshold tables sit on the first page


@dataclass
class TierSelectionThresholds:
    """Defaults for picking the representative option per tier."""

    default_prefix: str = "A"  # Preferred option prefix for non-tiered subjects
    preferred_suffix: str = "Y"  # "All compulsory components" option suffix


@dataclass
class EstimationThresholds:
    """Defaults for threshold aggregation and grade estimation."""

    trailing_years: int = 5  # Series per season included in the average
    full_weight_pct: float = 100.0  # Weights of a complete entry sum to this
    max_parallel_subjects: int = 8  # Worker cap for multi-subject estimates


# Global instances for easy import
PARSER_THRESHOLDS = DocumentParsingThresholds()
TIER_THRESHOLDS = TierSelectionThresholds()
ESTIMATOR_THRESHOLDS = EstimationThresholds()
