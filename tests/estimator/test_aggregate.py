"""
Unit tests for estimator.aggregate.
"""

import pytest

from threshold_toolkit.core.models.grades import Grade, Season, Tier
from threshold_toolkit.estimator.aggregate import average_thresholds, threshold_percentage
from threshold_toolkit.estimator.repository import InMemoryThresholdRepository, ThresholdRow


class TestThresholdPercentage:
    """Tests for threshold_percentage()."""

    @pytest.mark.parametrize("min_mark, max_mark, expected", [
        (150, 200, 75.0),
        (2, 3, 66.7),
        (1, 3, 33.3),
        (1, 16, 6.3),  # 62.5 per mille rounds up
    ])
    def test_one_decimal_half_up(self, min_mark, max_mark, expected):
        assert threshold_percentage(min_mark, max_mark) == expected

    @pytest.mark.parametrize("max_mark", [0, -10])
    def test_non_positive_max_mark_raises(self, max_mark):
        with pytest.raises(ValueError, match="max_mark must be positive"):
            threshold_percentage(50, max_mark)


class TestAverageThresholds:
    """Tests for average_thresholds()."""

    def test_five_year_summary(self, seeded_repository):
        summaries = average_thresholds(seeded_repository, "0580", Tier.EXTENDED)

        assert [s.grade for s in summaries] == [Grade.A_STAR, Grade.A, Grade.B, Grade.C]
        a_star, a, b, c = summaries
        assert (a_star.averaged_pct, a_star.min_pct, a_star.max_pct) == (75.0, 70.0, 80.0)
        assert [(y.year, y.pct) for y in a_star.year_data] == [(2022, 70.0), (2023, 80.0)]
        assert a.averaged_pct == 64.0
        assert [y.year for y in a.year_data] == [2019, 2020, 2021, 2022, 2023]
        assert b.averaged_pct == 54.0
        assert c.averaged_pct == 44.0

    def test_window_limits_series(self, seeded_repository):
        summaries = average_thresholds(seeded_repository, "0580", Tier.EXTENDED, num_years=2)

        a = summaries[1]
        assert a.grade is Grade.A
        assert a.averaged_pct == 67.5
        assert len(a.year_data) == 2

    def test_season_is_separate(self, seeded_repository):
        summaries = average_thresholds(seeded_repository, "0580", Tier.EXTENDED, Season.MJ)

        assert [(s.grade, s.averaged_pct) for s in summaries] == [
            (Grade.A_STAR, 95.0),
            (Grade.A, 85.0),
        ]

    def test_single_year_mean_equals_min_and_max(self, store_year):
        repository = InMemoryThresholdRepository()
        store_year(repository, "0606", 2023, {"A*": 128, "E": 28}, 160)

        summaries = average_thresholds(repository, "0606", None)

        for summary in summaries:
            assert summary.averaged_pct == summary.min_pct == summary.max_pct
        assert [s.averaged_pct for s in summaries] == [80.0, 17.5]

    def test_bounds_contain_average(self, seeded_repository):
        for summary in average_thresholds(seeded_repository, "0580", Tier.EXTENDED):
            assert summary.min_pct <= summary.averaged_pct <= summary.max_pct

    def test_other_tier_has_no_rows(self, seeded_repository):
        assert average_thresholds(seeded_repository, "0580", Tier.CORE) == []
        assert average_thresholds(seeded_repository, "0580", None) == []

    def test_empty_store(self):
        assert average_thresholds(InMemoryThresholdRepository(), "0580", Tier.EXTENDED) == []

    def test_non_positive_max_mark_rows_are_rejected(self, store_year):
        repository = InMemoryThresholdRepository()
        store_year(repository, "0580", 2023, {"A": 140}, 200, Tier.EXTENDED)
        repository.upsert_thresholds([
            ThresholdRow("0580", "FM_2023", Tier.EXTENDED, Grade.B, 120, 0),
        ])

        summaries = average_thresholds(repository, "0580", Tier.EXTENDED)

        assert [s.grade for s in summaries] == [Grade.A]
