"""
Unit tests for estimator.repository.
"""

import pytest

from threshold_toolkit.core.models.grades import Grade, Season, Tier
from threshold_toolkit.core.models.thresholds import GradeBoundary, ParsedComponent, ParsedThreshold
from threshold_toolkit.core.utils.serialization import save_parsed_output
from threshold_toolkit.estimator.repository import (
    InMemoryThresholdRepository,
    ThresholdRepository,
    ThresholdRow,
    seed_paper_max_marks,
    seed_thresholds,
    series_key,
)


def parsed(year=2023, tier=Tier.EXTENDED, season=Season.FM, code="0580") -> ParsedThreshold:
    return ParsedThreshold(
        syllabus_code=code,
        season=season,
        year=year,
        tier=tier,
        option_code="BY",
        max_mark=260,
        grades=(GradeBoundary(Grade.A_STAR, 210), GradeBoundary(Grade.A, 170)),
    )


class TestSeries:
    """Tests for the series registry."""

    def test_series_key(self):
        assert series_key(Season.FM, 2023) == "FM_2023"
        assert series_key(Season.ON, 2019) == "ON_2019"

    def test_upsert_series_is_idempotent(self):
        repository = InMemoryThresholdRepository()

        first = repository.upsert_series(2023, Season.FM)
        second = repository.upsert_series(2023, Season.FM)

        assert first == second
        assert repository.series_count == 1

    def test_recent_series_newest_first_per_season(self, seeded_repository):
        series = seeded_repository.recent_series(Season.FM, 3)

        assert [s.year for s in series] == [2023, 2022, 2021]
        assert [s.series_id for s in seeded_repository.recent_series(Season.MJ, 5)] == ["MJ_2023"]

    def test_recent_series_non_positive_limit(self, seeded_repository):
        assert seeded_repository.recent_series(Season.FM, 0) == []


class TestThresholdRows:
    """Tests for row storage."""

    def test_implements_protocol(self):
        assert isinstance(InMemoryThresholdRepository(), ThresholdRepository)

    def test_upsert_replaces_same_key(self):
        repository = InMemoryThresholdRepository()
        row = ThresholdRow("0580", "FM_2023", Tier.CORE, Grade.C, 115, 200)

        repository.upsert_thresholds([row])
        repository.upsert_thresholds([ThresholdRow("0580", "FM_2023", Tier.CORE, Grade.C, 110, 200)])

        assert repository.row_count == 1
        (stored,) = repository.fetch_thresholds("0580", Tier.CORE, ["FM_2023"])
        assert stored.min_mark == 110

    def test_fetch_none_tier_matches_untiered_only(self, store_year):
        repository = InMemoryThresholdRepository()
        store_year(repository, "0500", 2023, {"A": 80}, 100)
        store_year(repository, "0500", 2023, {"A": 90}, 100, Tier.CORE)

        rows = repository.fetch_thresholds("0500", None, ["FM_2023"])

        assert [r.min_mark for r in rows] == [80]

    def test_fetch_filters_series(self, seeded_repository):
        rows = seeded_repository.fetch_thresholds("0580", Tier.EXTENDED, ["FM_2023"])

        assert {r.grade for r in rows} == {Grade.A_STAR, Grade.A, Grade.B, Grade.C}


class TestSeedThresholds:
    """Tests for seed_thresholds()."""

    def test_seed_summary(self):
        repository = InMemoryThresholdRepository()

        summary = seed_thresholds(repository, [
            parsed(2023), parsed(2023, Tier.CORE), parsed(2022), parsed(2023, season=Season.MJ),
        ])

        assert summary.to_dict() == {
            "series_upserted": 3,
            "thresholds_seeded": 4,
            "rows_upserted": 8,
            "skipped": 0,
        }
        assert repository.row_count == 8

    def test_seeding_twice_changes_nothing(self):
        repository = InMemoryThresholdRepository()
        records = [parsed(2023), parsed(2022)]

        seed_thresholds(repository, records)
        seed_thresholds(repository, records)

        assert repository.row_count == 4
        assert repository.series_count == 2

    def test_subject_id_mapping(self):
        repository = InMemoryThresholdRepository()

        summary = seed_thresholds(
            repository,
            [parsed(code="0580"), parsed(code="0620")],
            subject_ids={"0580": "maths"},
        )

        assert summary.skipped == 1
        assert summary.thresholds_seeded == 1
        assert len(repository.fetch_thresholds("maths", Tier.EXTENDED, ["FM_2023"])) == 2

    def test_rows_carry_option_max_mark(self):
        repository = InMemoryThresholdRepository()

        seed_thresholds(repository, [parsed()])

        rows = repository.fetch_thresholds("0580", Tier.EXTENDED, ["FM_2023"])
        assert {r.max_mark for r in rows} == {260}


class TestPaperMaxMarks:
    """Tests for seed_paper_max_marks()."""

    def test_latest_year_per_paper(self):
        repository = InMemoryThresholdRepository()
        components = [
            ParsedComponent("0580", 2022, "12", "1", 80),
            ParsedComponent("0580", 2023, "12", "1", 100),
            ParsedComponent("0580", 2023, "22", "2", 130),
        ]

        updated = seed_paper_max_marks(repository, components)

        assert updated == 2
        assert repository.paper_max_mark("0580", "1") == 100
        assert repository.paper_max_mark("0580", "2") == 130
        assert repository.paper_max_mark("0580", "3") is None


class TestFromParsedFile:
    """Tests for building a store from batch output."""

    def test_from_parsed_file(self, tmp_path):
        thresholds_path, components_path = save_parsed_output(
            tmp_path,
            [parsed(2023), parsed(2022)],
            [ParsedComponent("0580", 2023, "22", "2", 130)],
        )

        repository = InMemoryThresholdRepository.from_parsed_file(thresholds_path, components_path)

        assert repository.series_count == 2
        assert repository.row_count == 4
        assert repository.paper_max_mark("0580", "2") == 130

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryThresholdRepository.from_parsed_file(tmp_path / "thresholds.json")
