"""
Module: extractor.utils.pdf

Purpose:
    Document text input. Threshold tables are read from plain text, so
    a PDF is reduced to the text of its first page(s) with PyMuPDF; a
    .txt file is taken as text already extracted elsewhere.

Key Functions:
    - extract_text(): Text of one PDF page, empty string on error
    - extract_pdf_text(): Text of the first N pages of a PDF
    - read_document_text(): Dispatch on file suffix

Dependencies:
    - fitz (PyMuPDF): PDF text extraction

Used By:
    - extractor.pipeline: Reading each document of a batch
"""

from __future__ import annotations

import logging
from pathlib import Path

import fitz

from threshold_toolkit.common.thresholds import PARSER_THRESHOLDS

logger = logging.getLogger(__name__)

PDF_SUFFIX = ".pdf"
TEXT_SUFFIX = ".txt"
SUPPORTED_SUFFIXES = (PDF_SUFFIX, TEXT_SUFFIX)


class UnsupportedDocumentError(ValueError):
    """Raised for a document whose suffix is neither .pdf nor .txt."""


def extract_text(page: fitz.Page) -> str:
    """
    Extract plain text from a PDF page, preserving line breaks.

    Returns:
        Extracted text, empty string on error.
    """
    try:
        return page.get_text("text") or ""
    except (RuntimeError, ValueError) as e:
        logger.warning(f"Failed to extract text from page: {e}")
        return ""


def extract_pdf_text(
    pdf_path: Path,
    max_pages: int = PARSER_THRESHOLDS.pdf_max_pages,
) -> str:
    """
    Extract text from the first `max_pages` pages of a PDF.

    Args:
        pdf_path: PDF file to read.
        max_pages: Pages to read from the start (the overall table sits
            on page one of every revision seen so far).

    Raises:
        fitz.FileDataError: If the file is not a readable PDF.
        FileNotFoundError: If the file does not exist.
    """
    with fitz.open(pdf_path) as doc:
        page_count = min(max_pages, doc.page_count)
        text = "\n".join(extract_text(doc[index]) for index in range(page_count))
    logger.debug(f"Extracted {len(text)} chars from {page_count} page(s) of {pdf_path.name}")
    return text


def read_document_text(
    path: Path,
    max_pages: int = PARSER_THRESHOLDS.pdf_max_pages,
) -> str:
    """
    Read the text of one threshold document.

    Raises:
        UnsupportedDocumentError: If the suffix is not .pdf or .txt.
        OSError: If the file cannot be read.
    """
    suffix = path.suffix.lower()
    if suffix == PDF_SUFFIX:
        return extract_pdf_text(path, max_pages)
    if suffix == TEXT_SUFFIX:
        return path.read_text(encoding="utf-8")
    raise UnsupportedDocumentError(f"Unsupported document type: {path.name}")
