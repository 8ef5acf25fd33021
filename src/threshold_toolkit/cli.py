"""
Module: cli

Purpose:
    Command-line entry points for the toolkit.

Commands:
    parse       Parse a raw directory tree into thresholds.json / components.json
    thresholds  Print the aggregated threshold summary of one subject
    estimate    Estimate grades for a request JSON file
    reverse     Raw mark still needed on one paper for a target grade

Used By:
    - python -m threshold_toolkit
    - run_pipeline.py launcher
    - `threshold-toolkit` console script
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from threshold_toolkit import __version__
from threshold_toolkit.common.subjects import TierConfigError, load_tier_config
from threshold_toolkit.core.models.estimates import EstimateRequest
from threshold_toolkit.core.models.grades import Grade, Season, parse_tier
from threshold_toolkit.core.schemas.validator import ValidationError
from threshold_toolkit.estimator import (
    EstimatorConfig,
    InMemoryThresholdRepository,
    average_thresholds,
    calculate_estimate,
    fill_paper_max_marks,
    reverse_calculate_for_grade,
)
from threshold_toolkit.extractor import ParserConfig, run_batch

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_DATA = 1
EXIT_ERROR = 2


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _load_repository(args: argparse.Namespace) -> InMemoryThresholdRepository:
    return InMemoryThresholdRepository.from_parsed_file(args.thresholds_file, args.components)


def _cmd_parse(args: argparse.Namespace) -> int:
    tier_config = load_tier_config(args.tier_config)
    config = ParserConfig(
        max_workers=args.workers,
        pdf_max_pages=args.pages,
        record_rejected_lines=args.record_rejected,
    )
    result = run_batch(
        args.root,
        args.output,
        tier_config=tier_config,
        config=config,
        write_diagnostics=args.diagnostics,
    )
    for warning in result.warnings:
        logger.warning(warning)

    print(
        f"Documents: {result.documents_total} "
        f"(parsed {result.documents_parsed}, skipped {result.documents_skipped}, "
        f"withheld {result.documents_withheld}, failed {result.failure_count})"
    )
    print(f"Overall thresholds: {len(result.thresholds)} rows")
    print(f"Component maxima:   {len(result.components)} rows")
    if result.report.invariant_violations:
        print(f"Invariant violations withheld: {result.report.invariant_violations}")
    return EXIT_OK if result.thresholds else EXIT_NO_DATA


def _cmd_thresholds(args: argparse.Namespace) -> int:
    repository = _load_repository(args)
    summaries = average_thresholds(
        repository, args.subject, parse_tier(args.tier), Season(args.season), args.years
    )
    _print_json([s.to_dict() for s in summaries])
    return EXIT_OK if summaries else EXIT_NO_DATA


def _cmd_estimate(args: argparse.Namespace) -> int:
    repository = _load_repository(args)
    if str(args.request) == "-":
        payload = json.load(sys.stdin)
    else:
        payload = json.loads(Path(args.request).read_text(encoding="utf-8"))

    request = fill_paper_max_marks(EstimateRequest.from_dict(payload), repository)
    result = calculate_estimate(request, repository, EstimatorConfig(trailing_years=args.years))
    _print_json(result.to_dict())
    return EXIT_OK


def _cmd_reverse(args: argparse.Namespace) -> int:
    repository = _load_repository(args)
    max_mark = args.max_mark
    if max_mark is None:
        if args.paper is None:
            raise ValueError("reverse needs --max-mark, or --paper with --components")
        max_mark = repository.paper_max_mark(args.subject, args.paper)
        if max_mark is None:
            logger.error(f"No stored max mark for {args.subject} paper {args.paper}")
            return EXIT_NO_DATA

    summaries = average_thresholds(
        repository, args.subject, parse_tier(args.tier), Season(args.season), args.years
    )
    target = reverse_calculate_for_grade(
        summaries, Grade(args.grade), args.current, args.weight, max_mark
    )
    if target is None:
        logger.error(f"No historical threshold for grade {args.grade} of {args.subject}")
        return EXIT_NO_DATA
    _print_json(target.to_dict())
    return EXIT_OK


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("thresholds_file", type=Path, help="thresholds.json from a parse run")
    parser.add_argument(
        "--years", type=int, default=EstimatorConfig().trailing_years,
        help="Most recent series averaged (default: %(default)s)",
    )


def _add_components_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--components", type=Path, default=None,
        help="components.json; supplies paper max marks a request or --paper leaves out",
    )


def _add_subject_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--subject", required=True, help="Syllabus code, e.g. 0580")
    parser.add_argument("--tier", default=None, help="Core or Extended (omit for untiered)")
    parser.add_argument(
        "--season", default=Season.FM.value, choices=[s.value for s in Season],
        help="Exam season (default: %(default)s)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="threshold-toolkit",
        description="IGCSE grade threshold parser and grade estimator",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse threshold documents")
    parse_cmd.add_argument("root", type=Path, help="Raw directory ({YYYY}/, mj/{YYYY}/, on/{YYYY}/)")
    parse_cmd.add_argument("--output", "-o", type=Path, required=True, help="Output directory")
    parse_cmd.add_argument("--tier-config", type=Path, default=None, help="Subject tier JSON override")
    parse_cmd.add_argument("--workers", type=int, default=None, help="Parser threads")
    parse_cmd.add_argument(
        "--pages", type=int, default=ParserConfig().pdf_max_pages,
        help="PDF pages read per document (default: %(default)s)",
    )
    parse_cmd.add_argument("--diagnostics", action="store_true", help="Write diagnostics.json")
    parse_cmd.add_argument(
        "--record-rejected", action="store_true",
        help="Include rejected option lines in diagnostics",
    )
    parse_cmd.set_defaults(handler=_cmd_parse)

    thresholds_cmd = subparsers.add_parser("thresholds", help="Aggregated thresholds of a subject")
    _add_store_arguments(thresholds_cmd)
    _add_subject_arguments(thresholds_cmd)
    thresholds_cmd.set_defaults(handler=_cmd_thresholds, components=None)

    estimate_cmd = subparsers.add_parser("estimate", help="Estimate grades for a request")
    _add_store_arguments(estimate_cmd)
    _add_components_argument(estimate_cmd)
    estimate_cmd.add_argument("request", help="Request JSON file ('-' for stdin)")
    estimate_cmd.set_defaults(handler=_cmd_estimate)

    reverse_cmd = subparsers.add_parser("reverse", help="Mark needed on one paper for a grade")
    _add_store_arguments(reverse_cmd)
    _add_components_argument(reverse_cmd)
    _add_subject_arguments(reverse_cmd)
    reverse_cmd.add_argument("--grade", required=True, choices=[g.value for g in Grade if g is not Grade.U])
    reverse_cmd.add_argument("--current", type=float, required=True, help="Weighted %% already secured")
    reverse_cmd.add_argument("--weight", type=float, required=True, help="Weight %% of the outstanding paper")
    reverse_cmd.add_argument("--max-mark", type=float, default=None, help="Max raw mark of the outstanding paper")
    reverse_cmd.add_argument(
        "--paper", default=None,
        help="Paper number; its max mark is read from --components when --max-mark is omitted",
    )
    reverse_cmd.set_defaults(handler=_cmd_reverse)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except (FileNotFoundError, ValidationError, TierConfigError, json.JSONDecodeError, ValueError) as e:
        logger.error(str(e))
        return EXIT_ERROR
