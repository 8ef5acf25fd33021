"""
Module: extractor.detection

Purpose:
    Detection subpackage for reading the layout of grade threshold
    documents. Contains the line tokenizer and the table-format
    classifier.

Key Modules:
    - tokens: Option-code split, integer/dash tokens, trailing grade tokens
    - format: Section location, grade count, max-mark source

Used By:
    - extractor.options: Option-table extraction
    - extractor.components: Section boundary for component rows
    - extractor.pipeline: Per-document parsing
"""
