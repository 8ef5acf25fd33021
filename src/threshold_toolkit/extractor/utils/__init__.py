"""
Module: extractor.utils

Purpose:
    Utility subpackage for document input.

Key Modules:
    - pdf: PDF / plain text reading

Dependencies:
    - fitz (PyMuPDF): PDF text extraction

Used By:
    - extractor.pipeline: Reads each document of a batch
"""

from .pdf import SUPPORTED_SUFFIXES, UnsupportedDocumentError, read_document_text

__all__ = ["SUPPORTED_SUFFIXES", "UnsupportedDocumentError", "read_document_text"]
