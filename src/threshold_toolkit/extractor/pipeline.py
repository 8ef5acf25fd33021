"""
Module: extractor.pipeline

Purpose:
    Main pipeline orchestrator for grade threshold documents. Runs format
    detection, option extraction, tier resolution and validation on one
    document, and drives a concurrent batch over a directory tree of
    documents, writing thresholds.json / components.json at the end.

Key Functions:
    - parse_document(): Text of one document -> DocumentParseResult
    - discover_documents(): Find documents under a raw directory tree
    - run_batch(): Parse every document and write the parsed output

Key Classes:
    - DocumentSource: One document and its (syllabus, season, year)
    - DocumentParseResult: Output of one document
    - BatchResult: Output of a batch run

Dependencies:
    - concurrent.futures: Per-document parallelism
    - fitz (PyMuPDF, via extractor.utils.pdf): PDF text

Used By:
    - cli: `parse` command

Directory layout:
    root/{YYYY}/{code}.pdf      February/March series
    root/mj/{YYYY}/{code}.pdf   May/June series
    root/on/{YYYY}/{code}.pdf   October/November series
    (.txt files holding already-extracted text are accepted alongside)
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from threshold_toolkit.common.subjects import TierConfig, load_tier_config
from threshold_toolkit.core.models.grades import Season, tier_label
from threshold_toolkit.core.models.thresholds import (
    ParsedComponent,
    ParsedThreshold,
    component_sort_key,
    threshold_sort_key,
)
from threshold_toolkit.core.utils.serialization import save_parsed_output
from .components import parse_component_table
from .config import ParserConfig
from .detection.format import TableFormat, detect_table_format, locate_overall_section
from .diagnostics import (
    AMBIGUOUS_FORMAT,
    MISSING_OVERALL_SECTION,
    NO_OPTIONS,
    PARSE_FAILURE,
    READ_FAILURE,
    UNRESOLVED_TIERS,
    DiagnosticsCollector,
    ParseDiagnosticsReport,
)
from .options import RejectedLine, extract_options
from .tiers import resolve_thresholds
from .utils.pdf import SUPPORTED_SUFFIXES, read_document_text
from .validation import ThresholdInvariantError, partition_valid

logger = logging.getLogger(__name__)

YEAR_DIR_PATTERN = re.compile(r"^20\d{2}$")
SYLLABUS_CODE_PATTERN = re.compile(r"^\d{4}$")

# Season -> subdirectory of the raw root ("" is the root itself)
SEASON_DIRECTORIES: Dict[Season, str] = {
    Season.FM: "",
    Season.MJ: "mj",
    Season.ON: "on",
}

DIAGNOSTICS_FILENAME = "diagnostics.json"


class DocumentReadError(RuntimeError):
    """Raised when a document's text cannot be obtained."""


@dataclass(frozen=True)
class DocumentSource:
    """One threshold document located in the raw directory tree."""
    path: Path
    syllabus_code: str
    season: Season
    year: int

    @property
    def label(self) -> str:
        """Short name for logs, e.g. "mj/2023/0580.pdf"."""
        directory = SEASON_DIRECTORIES[self.season]
        prefix = f"{directory}/" if directory else ""
        return f"{prefix}{self.year}/{self.path.name}"


@dataclass
class DocumentParseResult:
    """
    Output of parsing one document.

    Attributes:
        document: Label of the source document.
        thresholds: Valid resolved thresholds (violations withheld).
        components: Component max marks (only for component seasons).
        table_format: Detected layout, None if the section is missing.
        rejected: Candidate option lines that failed validation.
        violations: Resolved thresholds withheld for rising boundaries.
        skip_reason: Diagnostic issue type when the document yielded
            no thresholds, else None.
    """
    document: str
    syllabus_code: str
    season: Season
    year: int
    thresholds: List[ParsedThreshold] = field(default_factory=list)
    components: List[ParsedComponent] = field(default_factory=list)
    table_format: Optional[TableFormat] = None
    rejected: Tuple[RejectedLine, ...] = ()
    violations: List[ThresholdInvariantError] = field(default_factory=list)
    skip_reason: Optional[str] = None

    @property
    def was_skipped(self) -> bool:
        return self.skip_reason is not None

    @property
    def was_withheld(self) -> bool:
        """Every resolved threshold broke the monotonic-boundary invariant."""
        return not self.thresholds and bool(self.violations)


def parse_document(
    text: str,
    *,
    syllabus_code: str,
    year: int,
    season: Season = Season.FM,
    tier_config: Optional[TierConfig] = None,
    config: Optional[ParserConfig] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
    document: Optional[str] = None,
) -> DocumentParseResult:
    """
    Parse the extracted text of one grade threshold document.

    Structural problems (no section, no max-mark source, no option rows)
    never raise: the result carries a `skip_reason` and, when a collector
    is given, a diagnostic is recorded.

    Args:
        text: Extracted document text.
        syllabus_code: Syllabus the document belongs to.
        year: Exam year.
        season: Exam season.
        tier_config: Tier prefixes. Defaults to the bundled configuration.
        config: Parser settings. Defaults to ParserConfig().
        diagnostics: Optional shared collector.
        document: Label used in logs and diagnostics.

    Returns:
        DocumentParseResult.

    Raises:
        ValueError: If a resolved record breaks a model invariant
            (e.g. a zero max mark).
    """
    config = config or ParserConfig()
    tier_config = tier_config or load_tier_config()
    document = document or f"{year}/{syllabus_code}"
    context = {"document": document, "syllabus_code": syllabus_code, "season": str(season), "year": year}

    result = DocumentParseResult(document=document, syllabus_code=syllabus_code, season=season, year=year)

    if season in config.component_seasons:
        result.components = parse_component_table(
            text, syllabus_code, year, marker=config.section_marker
        )

    table_format = detect_table_format(
        text, marker=config.section_marker, scan_chars=config.header_scan_chars
    )
    result.table_format = table_format

    if table_format is None:
        logger.warning(f"Skipping {document}: no overall threshold section", extra=context)
        result.skip_reason = MISSING_OVERALL_SECTION
        if diagnostics is not None:
            diagnostics.add_missing_section(document, syllabus_code, str(season), year)
        return result

    if not table_format.is_usable:
        logger.warning(
            f"Skipping {document}: no max-mark column and no max-mark sentence",
            extra=context,
        )
        result.skip_reason = AMBIGUOUS_FORMAT
        if diagnostics is not None:
            diagnostics.add_ambiguous_format(
                document, syllabus_code, str(season), year, table_format.grade_count
            )
        return result

    section = locate_overall_section(text, config.section_marker) or ""
    table = extract_options(section, table_format, min_embedded_max_mark=config.min_embedded_max_mark)
    result.rejected = table.rejected

    if diagnostics is not None and config.record_rejected_lines:
        for rejected in table.rejected:
            diagnostics.add_rejected_line(
                document, syllabus_code, rejected.line, rejected.reason.value, str(season), year
            )

    if table.is_empty:
        logger.warning(
            f"Skipping {document}: no option rows ({len(table.rejected)} rejected)",
            extra=context,
        )
        result.skip_reason = NO_OPTIONS
        if diagnostics is not None:
            diagnostics.add_no_options(document, syllabus_code, str(season), year, len(table.rejected))
        return result

    resolved = resolve_thresholds(
        table.options,
        syllabus_code=syllabus_code,
        year=year,
        tier_config=tier_config,
        season=season,
        external_marks=table_format.external_max_marks,
    )

    if not resolved:
        codes = [o.code for o in table.options]
        logger.warning(
            f"Skipping {document}: no option matches a configured tier ({', '.join(codes)})",
            extra=context,
        )
        result.skip_reason = UNRESOLVED_TIERS
        if diagnostics is not None:
            diagnostics.add_unresolved_tiers(document, syllabus_code, codes, str(season), year)
        return result

    result.thresholds, result.violations = partition_valid(resolved)

    if diagnostics is not None:
        for violation in result.violations:
            diagnostics.add_invariant_violation(
                document,
                syllabus_code,
                violation.problems,
                str(season),
                year,
                tier=tier_label(violation.threshold.tier),
                option_code=violation.threshold.option_code,
            )

    if result.thresholds:
        summary = "+".join(tier_label(t.tier) for t in result.thresholds)
        marks = "/".join(str(t.max_mark) for t in result.thresholds)
        logger.info(f"Parsed {document} ({summary}) max={marks}", extra=context)
    return result


def discover_documents(root: Path) -> List[DocumentSource]:
    """
    Find threshold documents under a raw directory tree.

    Year directories must be 20YY; the file stem is the syllabus
    code and must be four digits too, so stray files such as
    "0580 (1).pdf" or "notes.txt" never reach the output. Missing season
    directories are skipped silently.

    Returns:
        Sources ordered by season, year, then syllabus code.
    """
    sources: List[DocumentSource] = []
    for season, subdirectory in SEASON_DIRECTORIES.items():
        season_dir = root / subdirectory if subdirectory else root
        if not season_dir.is_dir():
            continue
        for year_dir in sorted(season_dir.iterdir()):
            if not year_dir.is_dir() or not YEAR_DIR_PATTERN.match(year_dir.name):
                continue
            for path in sorted(year_dir.iterdir()):
                if not path.is_file() or path.suffix.lower() not in SUPPORTED_SUFFIXES:
                    continue
                if not SYLLABUS_CODE_PATTERN.match(path.stem):
                    logger.debug(f"Ignoring {path}: file name is not a syllabus code")
                    continue
                sources.append(DocumentSource(
                    path=path,
                    syllabus_code=path.stem,
                    season=season,
                    year=int(year_dir.name),
                ))
    logger.debug(f"Discovered {len(sources)} documents under {root}")
    return sources


@dataclass
class BatchResult:
    """Container for batch output."""
    thresholds: List[ParsedThreshold]
    components: List[ParsedComponent]
    documents_total: int
    documents_parsed: int
    documents_skipped: int
    warnings: List[str]
    report: ParseDiagnosticsReport
    documents_withheld: int = 0
    output_paths: Tuple[Path, ...] = ()

    @property
    def failure_count(self) -> int:
        return self.report.summary_by_type.get(READ_FAILURE, 0) + self.report.summary_by_type.get(
            PARSE_FAILURE, 0
        )


def _parse_source(
    source: DocumentSource,
    tier_config: TierConfig,
    config: ParserConfig,
    diagnostics: DiagnosticsCollector,
) -> DocumentParseResult:
    try:
        text = read_document_text(source.path, config.pdf_max_pages)
    except (OSError, RuntimeError, ValueError) as e:
        raise DocumentReadError(f"Cannot read {source.label}: {e}") from e

    return parse_document(
        text,
        syllabus_code=source.syllabus_code,
        year=source.year,
        season=source.season,
        tier_config=tier_config,
        config=config,
        diagnostics=diagnostics,
        document=source.label,
    )


def run_batch(
    root: Path,
    output_dir: Optional[Path] = None,
    *,
    tier_config: Optional[TierConfig] = None,
    config: Optional[ParserConfig] = None,
    write_diagnostics: bool = False,
) -> BatchResult:
    """
    Parse every document under `root` and write the parsed output.

    Documents are parsed concurrently; a failing document is recorded as
    a read_failure / parse_failure diagnostic and never aborts the rest.
    Results are sorted deterministically before output, and the output
    files are only written once every document has been processed.

    Args:
        root: Raw directory tree (see module docstring).
        output_dir: Where thresholds.json / components.json go. None
            parses without writing.
        tier_config: Tier prefixes. Defaults to the bundled configuration.
        config: Parser settings.
        write_diagnostics: Also write diagnostics.json to output_dir.

    Returns:
        BatchResult with sorted thresholds and components.
    """
    config = config or ParserConfig()
    tier_config = tier_config or load_tier_config()
    diagnostics = DiagnosticsCollector()
    sources = discover_documents(root)

    thresholds: List[ParsedThreshold] = []
    components: List[ParsedComponent] = []
    warnings: List[str] = []
    parsed = 0
    skipped = 0
    withheld = 0

    if sources:
        logger.info(f"Processing {len(sources)} documents with {config.max_workers or 'default'} threads")

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        future_to_source = {
            executor.submit(_parse_source, source, tier_config, config, diagnostics): source
            for source in sources
        }

        for future in as_completed(future_to_source):
            source = future_to_source[future]
            context = {
                "document": source.label,
                "syllabus_code": source.syllabus_code,
                "season": str(source.season),
                "year": source.year,
            }
            try:
                result = future.result()
            except DocumentReadError as e:
                logger.error(str(e), extra=context)
                diagnostics.add_failure(
                    READ_FAILURE, source.label, source.syllabus_code,
                    e.__cause__ or e, str(source.season), source.year,
                )
                warnings.append(str(e))
                continue
            except Exception as e:
                logger.error(f"Failed to parse {source.label}: {e}", extra=context)
                diagnostics.add_failure(
                    PARSE_FAILURE, source.label, source.syllabus_code,
                    e, str(source.season), source.year,
                )
                warnings.append(f"{source.label}: {e}")
                continue

            components.extend(result.components)
            if result.thresholds:
                thresholds.extend(result.thresholds)
                parsed += 1
            elif result.was_withheld:
                withheld += 1
                warnings.append(
                    f"{source.label}: all thresholds withheld "
                    f"({len(result.violations)} invariant violations)"
                )
            elif result.was_skipped:
                skipped += 1
                warnings.append(f"{source.label}: skipped ({result.skip_reason})")

    thresholds.sort(key=threshold_sort_key)
    components.sort(key=component_sort_key)
    report = diagnostics.generate_report()

    result = BatchResult(
        thresholds=thresholds,
        components=components,
        documents_total=len(sources),
        documents_parsed=parsed,
        documents_skipped=skipped,
        warnings=warnings,
        report=report,
        documents_withheld=withheld,
    )

    if output_dir is not None:
        if thresholds:
            result.output_paths = save_parsed_output(output_dir, thresholds, components)
        else:
            logger.warning(f"No thresholds parsed from {root}; output files left untouched")
        if write_diagnostics:
            diagnostics_path = output_dir / DIAGNOSTICS_FILENAME
            report.save(diagnostics_path)
            result.output_paths = result.output_paths + (diagnostics_path,)

    logger.info(
        f"Batch complete: {parsed} parsed, {skipped} skipped, {withheld} withheld, "
        f"{result.failure_count} failed, {report.invariant_violations} invariant violations",
        extra={"documents_total": len(sources), "thresholds": len(thresholds)},
    )
    return result
