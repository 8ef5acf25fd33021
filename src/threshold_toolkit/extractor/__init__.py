"""
Module: extractor

Purpose:
    Parsing pipeline for grade threshold documents. Detects the table
    layout of each document, extracts option rows, resolves one option
    per tier and writes the normalised thresholds.json / components.json.

Key Functions:
    - parse_document(): Parse the text of one document
    - run_batch(): Parse a raw directory tree and write the output

Key Classes:
    - ParserConfig: Configuration for parsing settings
    - DocumentParseResult: Output of one document
    - BatchResult: Output of a batch run

Dependencies:
    - fitz (PyMuPDF): PDF text extraction
    - portalocker: Locked output writes
    - threshold_toolkit.core.models: Immutable threshold models

Used By:
    - threshold_toolkit.cli: `parse` command
"""

from .config import ParserConfig
from .pipeline import BatchResult, DocumentParseResult, parse_document, run_batch
from .validation import ThresholdInvariantError, validate_threshold

__all__ = [
    "BatchResult",
    "DocumentParseResult",
    "ParserConfig",
    "ThresholdInvariantError",
    "parse_document",
    "run_batch",
    "validate_threshold",
]
