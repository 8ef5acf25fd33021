"""
Module: estimator.repository

Purpose:
    Narrow interface to the threshold store consumed by the aggregator,
    plus an in-memory implementation and the seeding step that loads
    parsed output into a store.

    The store keeps one row per (subject, series, tier, grade) and a
    registry of exam series. Anything else a real database holds
    (users, saved estimates, papers) lives outside this package.

Key Classes:
    - SeriesRecord: One exam sitting (season + year)
    - ThresholdRow: One stored per-grade threshold
    - ThresholdRepository: Protocol the aggregator and seeder depend on
    - PaperMaxMarkStore: Protocol for the per-paper max mark lookup
    - InMemoryThresholdRepository: Thread-safe dict-backed store
    - SeedSummary: Counts reported by seed_thresholds()

Key Functions:
    - series_key(): Series identifier ("FM_2023")
    - seed_thresholds(): Upsert ParsedThreshold records into a store
    - seed_paper_max_marks(): Upsert latest component max marks

Used By:
    - estimator.aggregate: recent_series(), fetch_thresholds()
    - estimator.calculate: paper_max_mark() for requests without maxima
    - cli: `thresholds`, `estimate` and `reverse` commands
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import (
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from threshold_toolkit.core.models.grades import Grade, Season, Tier
from threshold_toolkit.core.models.thresholds import ParsedComponent, ParsedThreshold
from threshold_toolkit.core.utils.serialization import load_components_json, load_thresholds_json
from threshold_toolkit.extractor.components import latest_paper_max_marks

logger = logging.getLogger(__name__)

RowKey = Tuple[str, str, Optional[Tier], Grade]


def series_key(season: Season, year: int) -> str:
    """Identifier of a series, e.g. series_key(Season.FM, 2023) == "FM_2023"."""
    return f"{season.value}_{year}"


@dataclass(frozen=True, slots=True)
class SeriesRecord:
    """One exam sitting."""
    series_id: str
    year: int
    season: Season


@dataclass(frozen=True, slots=True)
class ThresholdRow:
    """
    One stored threshold: the minimum mark for a grade in one series.

    Attributes:
        max_mark: Max mark of the option the threshold belongs to. Rows
            with max_mark <= 0 may exist in a store but are rejected by
            the aggregator.
    """
    subject_id: str
    series_id: str
    tier: Optional[Tier]
    grade: Grade
    min_mark: int
    max_mark: int

    @property
    def key(self) -> RowKey:
        return (self.subject_id, self.series_id, self.tier, self.grade)


@runtime_checkable
class ThresholdRepository(Protocol):
    """Store contract used by aggregation and seeding."""

    def recent_series(self, season: Season, limit: int) -> Sequence[SeriesRecord]:
        """The `limit` most recent series of a season, newest first."""
        ...

    def fetch_thresholds(
        self,
        subject_id: str,
        tier: Optional[Tier],
        series_ids: Iterable[str],
    ) -> Sequence[ThresholdRow]:
        """Rows of a subject/tier within the given series. tier None matches untiered rows only."""
        ...

    def upsert_series(self, year: int, season: Season) -> SeriesRecord:
        ...

    def upsert_thresholds(self, rows: Iterable[ThresholdRow]) -> int:
        """Insert or replace rows keyed on (subject, series, tier, grade); return the count."""
        ...


@runtime_checkable
class PaperMaxMarkStore(Protocol):
    """Latest max raw mark per paper, as seeded from components.json."""

    def paper_max_mark(self, subject_id: str, paper_number: str) -> Optional[int]:
        ...


class InMemoryThresholdRepository:
    """
    Dict-backed ThresholdRepository.

    Reads return snapshots, so concurrent aggregations never observe a
    half-applied upsert.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._series: Dict[str, SeriesRecord] = {}
        self._rows: Dict[RowKey, ThresholdRow] = {}
        self._paper_max_marks: Dict[Tuple[str, str], int] = {}

    # ── ThresholdRepository ──────────────────────────────────────────────

    def recent_series(self, season: Season, limit: int) -> List[SeriesRecord]:
        if limit <= 0:
            return []
        with self._lock:
            matching = [s for s in self._series.values() if s.season is season]
        matching.sort(key=lambda s: s.year, reverse=True)
        return matching[:limit]

    def fetch_thresholds(
        self,
        subject_id: str,
        tier: Optional[Tier],
        series_ids: Iterable[str],
    ) -> List[ThresholdRow]:
        wanted = set(series_ids)
        with self._lock:
            return [
                row for row in self._rows.values()
                if row.subject_id == subject_id and row.tier is tier and row.series_id in wanted
            ]

    def upsert_series(self, year: int, season: Season) -> SeriesRecord:
        record = SeriesRecord(series_id=series_key(season, year), year=year, season=season)
        with self._lock:
            return self._series.setdefault(record.series_id, record)

    def upsert_thresholds(self, rows: Iterable[ThresholdRow]) -> int:
        count = 0
        with self._lock:
            for row in rows:
                self._rows[row.key] = row
                count += 1
        return count

    # ── Paper max marks ──────────────────────────────────────────────────

    def upsert_paper_max_mark(self, subject_id: str, paper_number: str, max_mark: int) -> None:
        with self._lock:
            self._paper_max_marks[(subject_id, paper_number)] = max_mark

    def paper_max_mark(self, subject_id: str, paper_number: str) -> Optional[int]:
        with self._lock:
            return self._paper_max_marks.get((subject_id, paper_number))

    # ── Introspection ────────────────────────────────────────────────────

    @property
    def row_count(self) -> int:
        with self._lock:
            return len(self._rows)

    @property
    def series_count(self) -> int:
        with self._lock:
            return len(self._series)

    @classmethod
    def from_parsed_file(
        cls,
        thresholds_path: Path,
        components_path: Optional[Path] = None,
        *,
        subject_ids: Optional[Mapping[str, str]] = None,
    ) -> InMemoryThresholdRepository:
        """
        Build a store from parsed output files.

        Args:
            thresholds_path: thresholds.json written by a batch run.
            components_path: Optional components.json for paper max marks.
            subject_ids: Syllabus code -> subject id. None uses the
                syllabus code as the subject id.

        Raises:
            FileNotFoundError: If a given file does not exist.
            ValidationError: If a file fails schema validation.
        """
        repository = cls()
        summary = seed_thresholds(repository, load_thresholds_json(thresholds_path), subject_ids)
        logger.info(
            f"Loaded {summary.rows_upserted} threshold rows across "
            f"{summary.series_upserted} series from {thresholds_path.name}"
        )
        if components_path is not None:
            seed_paper_max_marks(repository, load_components_json(components_path), subject_ids)
        return repository


@dataclass(frozen=True)
class SeedSummary:
    """Outcome of seed_thresholds()."""
    series_upserted: int
    thresholds_seeded: int
    rows_upserted: int
    skipped: int

    def to_dict(self) -> dict:
        return {
            "series_upserted": self.series_upserted,
            "thresholds_seeded": self.thresholds_seeded,
            "rows_upserted": self.rows_upserted,
            "skipped": self.skipped,
        }


def _subject_id_for(syllabus_code: str, subject_ids: Optional[Mapping[str, str]]) -> Optional[str]:
    if subject_ids is None:
        return syllabus_code
    return subject_ids.get(syllabus_code)


def seed_thresholds(
    repository: ThresholdRepository,
    thresholds: Iterable[ParsedThreshold],
    subject_ids: Optional[Mapping[str, str]] = None,
) -> SeedSummary:
    """
    Upsert parsed thresholds into a store.

    Every distinct series is upserted first; each threshold then becomes
    one row per grade, keyed on (subject_id, series_id, tier, grade), so
    seeding the same file twice changes nothing.

    Args:
        repository: Target store.
        thresholds: Parsed records (e.g. from thresholds.json).
        subject_ids: Syllabus code -> subject id. None uses the syllabus
            code itself; with a mapping, unknown syllabuses are skipped.

    Returns:
        SeedSummary with series, record, row and skip counts.
    """
    records = list(thresholds)

    series_ids: Dict[Tuple[Season, int], str] = {}
    for record in records:
        key = (record.season, record.year)
        if key not in series_ids:
            series_ids[key] = repository.upsert_series(record.year, record.season).series_id

    seeded = 0
    skipped = 0
    rows_upserted = 0
    for record in records:
        subject_id = _subject_id_for(record.syllabus_code, subject_ids)
        if subject_id is None:
            skipped += 1
            logger.debug(f"Skipping {record.syllabus_code} {record.year}: subject not registered")
            continue

        series_id = series_ids[(record.season, record.year)]
        rows_upserted += repository.upsert_thresholds(
            ThresholdRow(
                subject_id=subject_id,
                series_id=series_id,
                tier=record.tier,
                grade=boundary.grade,
                min_mark=boundary.min_mark,
                max_mark=record.max_mark,
            )
            for boundary in record.grades
        )
        seeded += 1

    if skipped:
        logger.warning(f"{skipped} threshold records skipped (subject not registered)")

    return SeedSummary(
        series_upserted=len(series_ids),
        thresholds_seeded=seeded,
        rows_upserted=rows_upserted,
        skipped=skipped,
    )


def seed_paper_max_marks(
    repository: InMemoryThresholdRepository,
    components: Iterable[ParsedComponent],
    subject_ids: Optional[Mapping[str, str]] = None,
) -> int:
    """
    Store the latest max mark per paper from parsed components.

    Coursework papers are skipped (see latest_paper_max_marks()).

    Returns:
        Number of paper max marks stored.
    """
    updated = 0
    for (syllabus_code, paper_number), max_mark in latest_paper_max_marks(components).items():
        subject_id = _subject_id_for(syllabus_code, subject_ids)
        if subject_id is None:
            continue
        repository.upsert_paper_max_mark(subject_id, paper_number, max_mark)
        updated += 1
    logger.debug(f"Updated {updated} paper max marks")
    return updated
