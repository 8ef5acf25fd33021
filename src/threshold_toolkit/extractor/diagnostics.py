"""
Module: extractor.diagnostics

Captures document-level parse issues during a batch run and generates
a diagnostics report for the operator.

Issue types:
- missing_overall_section: no overall threshold section in the document
- ambiguous_format: no max-mark column and no max-mark sentence
- no_options: section present but no option row survived
- unresolved_tiers: option rows found but none matched a configured tier
- rejected_line: a candidate option row failed validation
- invariant_violation: a resolved threshold has rising boundaries
- read_failure: the document could not be read
- parse_failure: an unexpected error while parsing the document

Skips and invariant violations are counted separately in the report,
since the latter point at a parser bug rather than an unsupported file.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

MISSING_OVERALL_SECTION = "missing_overall_section"
AMBIGUOUS_FORMAT = "ambiguous_format"
NO_OPTIONS = "no_options"
UNRESOLVED_TIERS = "unresolved_tiers"
REJECTED_LINE = "rejected_line"
INVARIANT_VIOLATION = "invariant_violation"
READ_FAILURE = "read_failure"
PARSE_FAILURE = "parse_failure"

SKIP_ISSUE_TYPES = frozenset({MISSING_OVERALL_SECTION, AMBIGUOUS_FORMAT, NO_OPTIONS, UNRESOLVED_TIERS})
FAILURE_ISSUE_TYPES = frozenset({READ_FAILURE, PARSE_FAILURE})


@dataclass
class ParseIssue:
    """
    A single parse issue with diagnostic context.

    Fields:
    - document: Source file name (e.g. "0580.pdf")
    - syllabus_code / season / year: Where the document sits in the batch
    - details: Issue-specific context (rejected line text, reason, etc.)
    """
    issue_type: str
    document: str
    syllabus_code: str
    message: str
    season: str = ""
    year: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "issue_type": self.issue_type,
            "document": self.document,
            "syllabus_code": self.syllabus_code,
            "season": self.season,
            "year": self.year,
            "message": self.message,
        }
        if self.details:
            d["details"] = self.details
        return d


class DiagnosticsCollector:
    """
    Thread-safe collector for parse issues.

    One collector is shared by every worker of a batch run.
    """

    def __init__(self):
        self._issues: List[ParseIssue] = []
        self._lock = threading.Lock()
        self._documents: Set[str] = set()

    def _add(self, issue: ParseIssue) -> None:
        with self._lock:
            self._issues.append(issue)
            self._documents.add(issue.document)

    def add_missing_section(
        self,
        document: str,
        syllabus_code: str,
        season: str = "",
        year: int = 0,
    ) -> None:
        """Record a document without an overall threshold section."""
        self._add(ParseIssue(
            issue_type=MISSING_OVERALL_SECTION,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: no overall threshold section",
        ))

    def add_ambiguous_format(
        self,
        document: str,
        syllabus_code: str,
        season: str = "",
        year: int = 0,
        grade_count: Optional[int] = None,
    ) -> None:
        """Record a table whose max-mark source could not be determined."""
        self._add(ParseIssue(
            issue_type=AMBIGUOUS_FORMAT,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: no max-mark column or max-mark sentence",
            details={"grade_count": grade_count} if grade_count is not None else {},
        ))

    def add_no_options(
        self,
        document: str,
        syllabus_code: str,
        season: str = "",
        year: int = 0,
        rejected_count: int = 0,
    ) -> None:
        """Record an overall section that produced no option rows."""
        self._add(ParseIssue(
            issue_type=NO_OPTIONS,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: no option rows ({rejected_count} candidate lines rejected)",
            details={"rejected_count": rejected_count},
        ))

    def add_unresolved_tiers(
        self,
        document: str,
        syllabus_code: str,
        option_codes: List[str],
        season: str = "",
        year: int = 0,
    ) -> None:
        """Record a tiered document whose option prefixes match no tier."""
        self._add(ParseIssue(
            issue_type=UNRESOLVED_TIERS,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: no option matches a configured tier ({', '.join(option_codes)})",
            details={"option_codes": list(option_codes)},
        ))

    def add_rejected_line(
        self,
        document: str,
        syllabus_code: str,
        line: str,
        reason: str,
        season: str = "",
        year: int = 0,
    ) -> None:
        """Record a candidate option line that failed validation."""
        self._add(ParseIssue(
            issue_type=REJECTED_LINE,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: rejected line ({reason})",
            details={"line": line[:200], "reason": reason},
        ))

    def add_invariant_violation(
        self,
        document: str,
        syllabus_code: str,
        problems: List[str],
        season: str = "",
        year: int = 0,
        tier: str = "",
        option_code: str = "",
    ) -> None:
        """Record a resolved threshold with non-monotonic boundaries."""
        self._add(ParseIssue(
            issue_type=INVARIANT_VIOLATION,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: {tier} {option_code} boundaries rise: {'; '.join(problems)}",
            details={"tier": tier, "option_code": option_code, "problems": list(problems)},
        ))

    def add_failure(
        self,
        issue_type: str,
        document: str,
        syllabus_code: str,
        error: BaseException,
        season: str = "",
        year: int = 0,
    ) -> None:
        """Record a read_failure or parse_failure."""
        if issue_type not in FAILURE_ISSUE_TYPES:
            raise ValueError(f"Not a failure issue type: {issue_type}")
        self._add(ParseIssue(
            issue_type=issue_type,
            document=document,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            message=f"{document}: {type(error).__name__}: {error}",
        ))

    def generate_report(self) -> "ParseDiagnosticsReport":
        with self._lock:
            return ParseDiagnosticsReport.from_issues(list(self._issues), set(self._documents))

    @property
    def issue_count(self) -> int:
        with self._lock:
            return len(self._issues)

    def count(self, issue_type: str) -> int:
        with self._lock:
            return sum(1 for issue in self._issues if issue.issue_type == issue_type)


@dataclass
class ParseDiagnosticsReport:
    """Complete diagnostics report for one batch run."""
    generated_at: str
    source_documents: List[str]
    total_issues: int
    skipped_documents: int
    invariant_violations: int
    summary_by_type: Dict[str, int]
    issues: List[ParseIssue]

    @classmethod
    def from_issues(cls, issues: List[ParseIssue], documents: Set[str]) -> "ParseDiagnosticsReport":
        summary_by_type: Dict[str, int] = {}
        for issue in issues:
            summary_by_type[issue.issue_type] = summary_by_type.get(issue.issue_type, 0) + 1

        return cls(
            generated_at=datetime.now(timezone.utc).isoformat(),
            source_documents=sorted(documents),
            total_issues=len(issues),
            skipped_documents=sum(summary_by_type.get(t, 0) for t in SKIP_ISSUE_TYPES),
            invariant_violations=summary_by_type.get(INVARIANT_VIOLATION, 0),
            summary_by_type=summary_by_type,
            issues=issues,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "source_documents": self.source_documents,
            "total_issues": self.total_issues,
            "skipped_documents": self.skipped_documents,
            "invariant_violations": self.invariant_violations,
            "summary_by_type": self.summary_by_type,
            "issues": [issue.to_dict() for issue in self.issues],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path) -> None:
        from .file_locking import atomic_write_json

        atomic_write_json(path, self.to_dict())
        logger.info(f"Parse diagnostics saved: {path}")
