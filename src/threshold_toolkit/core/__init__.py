"""
Threshold Toolkit Core Package

Shared data models, schemas and serialization used by both halves of the
toolkit: the document parser (extractor) and the estimation engine
(estimator).

**DESIGN NOTES:**

1. **Immutable Data Models**
   - Frozen dataclasses; a changed value means a new instance

2. **Derived Values Never Stored**
   - Percentages and per-grade summaries are recomputed from stored
     per-year rows on every request

3. **Explicit Grade Order**
   - `Grade` is an ordered enumeration with O(1) rank lookup, not a list
     of strings searched linearly
"""

from .models import (
    Grade,
    GradeThresholdSummary,
    ParsedComponent,
    ParsedThreshold,
    RawOption,
    Season,
    Tier,
)

__all__ = [
    "Grade",
    "Tier",
    "Season",
    "RawOption",
    "ParsedThreshold",
    "ParsedComponent",
    "GradeThresholdSummary",
]
