"""
Unit tests for estimator.calculate.
"""

from datetime import datetime

import pytest

from threshold_toolkit.core.models.estimates import (
    NOT_ENTERED,
    EstimateRequest,
    GradeThresholdSummary,
    PaperMarkEntry,
    SubjectEstimateInput,
)
from threshold_toolkit.core.models.grades import Grade, Tier
from threshold_toolkit.estimator import (
    EstimatorConfig,
    InMemoryThresholdRepository,
    average_thresholds,
    calculate_estimate,
    estimate_grade,
    estimate_subject,
    fill_paper_max_marks,
    reverse_calculate,
    reverse_calculate_for_grade,
    weighted_total,
)


def paper(number: str, raw, max_raw, weight) -> PaperMarkEntry:
    return PaperMarkEntry(f"p{number}", number, f"Paper {number}", raw, max_raw, weight)


def summary(grade: Grade, pct: float) -> GradeThresholdSummary:
    return GradeThresholdSummary(grade=grade, averaged_pct=pct, min_pct=pct, max_pct=pct)


SUMMARIES = [summary(Grade.A_STAR, 80.0), summary(Grade.A, 70.0), summary(Grade.B, 60.0)]

# Only the 2023 series: A* 80, A 70, B 60, C 50
LATEST_YEAR = EstimatorConfig(trailing_years=1)


class TestWeightedTotal:
    """Tests for weighted_total()."""

    def test_complete_entry_is_not_rescaled(self):
        total = weighted_total([paper("1", 80, 100, 50), paper("2", 60, 100, 50)])

        assert total.percentage == 70.0
        assert not total.was_rescaled

    def test_partial_entry_is_rescaled(self):
        total = weighted_total([paper("1", 80, 100, 50), paper("2", NOT_ENTERED, 100, 50)])

        assert total.raw_sum == 40.0
        assert total.total_weight == 50
        assert total.percentage == 80.0
        assert total.was_rescaled

    def test_marks_above_maximum_count_as_full(self):
        assert weighted_total([paper("1", 120, 100, 100)]).percentage == 100.0

    def test_zero_maximum_is_ignored(self):
        total = weighted_total([paper("1", 10, 0, 50), paper("2", 30, 40, 50)])

        assert total.total_weight == 50
        assert total.percentage == 75.0

    def test_nothing_entered(self):
        total = weighted_total([paper("1", NOT_ENTERED, 100, 100)])

        assert total.total_weight == 0
        assert total.percentage == 0.0

    def test_zero_partial_entry_is_still_rescaled(self):
        total = weighted_total([paper("1", 0, 100, 50), paper("2", NOT_ENTERED, 100, 50)])

        assert total.raw_sum == 0.0
        assert total.total_weight == 50
        assert total.percentage == 0.0
        assert total.was_rescaled

    def test_zero_is_a_real_mark(self):
        total = weighted_total([paper("1", 0, 100, 50), paper("2", 50, 100, 50)])

        assert total.percentage == 25.0
        assert not total.was_rescaled


class TestFillPaperMaxMarks:
    """Tests for fill_paper_max_marks()."""

    def test_missing_maxima_come_from_the_store(self):
        repository = InMemoryThresholdRepository()
        repository.upsert_paper_max_mark("0580", "2", 130)
        request = EstimateRequest.from_dict({"entries": [{
            "subject_id": "0580",
            "paper_marks": [
                {"paper_number": "1", "raw_mark": 40, "max_raw_mark": 80, "weight_percentage": 50},
                {"paper_number": "2", "raw_mark": 65, "weight_percentage": 50},
                {"paper_number": "3", "raw_mark": 10, "weight_percentage": 0},
            ],
        }]})

        filled = fill_paper_max_marks(request, repository)

        papers = filled.entries[0].paper_marks
        assert [p.max_raw_mark for p in papers] == [80, 130, 0]
        assert request.entries[0].paper_marks[1].max_raw_mark == 0
        assert weighted_total(papers).percentage == 50.0

    def test_given_maximum_is_kept(self):
        repository = InMemoryThresholdRepository()
        repository.upsert_paper_max_mark("0580", "1", 100)
        request = EstimateRequest(entries=(
            SubjectEstimateInput("0580", "0580", "Mathematics", Tier.CORE, (paper("1", 40, 80, 100),)),
        ))

        filled = fill_paper_max_marks(request, repository)

        assert filled.entries[0].paper_marks[0].max_raw_mark == 80


class TestEstimateGrade:
    """Tests for estimate_grade()."""

    @pytest.mark.parametrize("pct, expected", [
        (74.0, Grade.A),
        (80.0, Grade.A_STAR),
        (70.0, Grade.A),
        (99.9, Grade.A_STAR),
        (60.0, Grade.B),
        (59.9, None),
    ])
    def test_best_grade_met(self, pct, expected):
        assert estimate_grade(SUMMARIES, pct) is expected

    def test_input_order_does_not_matter(self):
        assert estimate_grade(list(reversed(SUMMARIES)), 85.0) is Grade.A_STAR

    def test_no_summaries(self):
        assert estimate_grade([], 100.0) is None


class TestEstimateSubject:
    """Tests for estimate_subject() against a seeded store."""

    def test_complete_entry(self, seeded_repository):
        entry = SubjectEstimateInput(
            "0580", "0580", "Mathematics", Tier.EXTENDED,
            (paper("2", 96, 128, 50), paper("4", 112, 128, 50)),
        )

        result = estimate_subject(entry, seeded_repository, config=LATEST_YEAR)

        assert result.weighted_total_pct == 81.3
        assert result.estimated_grade is Grade.A_STAR
        assert not result.missing_papers
        assert [t.grade for t in result.thresholds] == [Grade.A_STAR, Grade.A, Grade.B, Grade.C]

    def test_partial_entry_flags_missing_papers(self, seeded_repository):
        entry = SubjectEstimateInput(
            "0580", "0580", "Mathematics", Tier.EXTENDED,
            (paper("2", 96, 128, 50), paper("4", NOT_ENTERED, 128, 50)),
        )

        result = estimate_subject(entry, seeded_repository, config=LATEST_YEAR)

        assert result.weighted_total_pct == 75.0
        assert result.estimated_grade is Grade.A
        assert result.missing_papers

    def test_grade_uses_unrounded_total(self, seeded_repository):
        """79.96 is reported as 80.0 but does not reach A* (80.0)."""
        entry = SubjectEstimateInput(
            "0580", "0580", "Mathematics", Tier.EXTENDED, (paper("2", 7996, 10000, 100),),
        )

        result = estimate_subject(entry, seeded_repository, config=LATEST_YEAR)

        assert result.weighted_total_pct == 80.0
        assert result.estimated_grade is Grade.A

    def test_unknown_subject_is_ungraded(self, seeded_repository):
        entry = SubjectEstimateInput("9999", "9999", "Unknown", None, (paper("1", 50, 50, 100),))

        result = estimate_subject(entry, seeded_repository)

        assert result.estimated_grade is None
        assert result.thresholds == ()
        assert result.weighted_total_pct == 100.0


class TestCalculateEstimate:
    """Tests for calculate_estimate()."""

    def test_results_keep_request_order(self, seeded_repository):
        entries = tuple(
            SubjectEstimateInput(
                "0580", "0580", "Mathematics", Tier.EXTENDED, (paper("2", raw, 100, 100),),
            )
            for raw in (85, 45, 65, 75)
        )

        result = calculate_estimate(EstimateRequest(entries=entries), seeded_repository, LATEST_YEAR)

        assert [e.estimated_grade for e in result.entries] == [Grade.A_STAR, None, Grade.B, Grade.A]
        assert datetime.fromisoformat(result.calculated_at).tzinfo is not None

    def test_single_subject(self, seeded_repository):
        entry = SubjectEstimateInput(
            "0580", "0580", "Mathematics", Tier.EXTENDED, (paper("2", 55, 100, 100),),
        )

        result = calculate_estimate(EstimateRequest(entries=(entry,)), seeded_repository, LATEST_YEAR)

        assert len(result.entries) == 1
        assert result.entries[0].estimated_grade is Grade.C
        assert result.to_dict()["entries"][0]["estimated_grade"] == "C"

    def test_empty_request(self, seeded_repository):
        assert calculate_estimate(EstimateRequest(entries=()), seeded_repository).entries == ()


class TestReverseCalculate:
    """Tests for reverse_calculate() and reverse_calculate_for_grade()."""

    def test_needed_mark(self):
        target = reverse_calculate(55.0, 30.0, 50.0, 80)

        assert (target.needed_raw, target.needed_pct, target.achievable) == (40, 50.0, True)

    def test_already_met_is_floored_at_zero(self):
        target = reverse_calculate(50.0, 60.0, 50.0, 80)

        assert (target.needed_raw, target.needed_pct, target.achievable) == (0, 0.0, True)

    def test_unachievable(self):
        target = reverse_calculate(80.0, 30.0, 40.0, 80)

        assert target.needed_raw == 100
        assert target.needed_pct == 125.0
        assert not target.achievable

    def test_full_marks_are_achievable(self):
        target = reverse_calculate(80.0, 40.0, 40.0, 80)

        assert (target.needed_raw, target.achievable) == (80, True)

    @pytest.mark.parametrize("target_pct, current, weight, max_mark", [
        (55.0, 30.0, 50.0, 80),
        (75.0, 20.0, 60.0, 90),
        (64.0, 24.0, 80.0, 100),
        (62.5, 50.0, 25.0, 64),
    ])
    def test_needed_raw_covers_the_gap(self, target_pct, current, weight, max_mark):
        target = reverse_calculate(target_pct, current, weight, max_mark)

        assert current + target.needed_raw / max_mark * weight >= target_pct - 1e-9

    @pytest.mark.parametrize("weight, max_mark", [(0, 80), (50, 0), (-5, 80)])
    def test_invalid_paper_raises(self, weight, max_mark):
        with pytest.raises(ValueError, match="must be positive"):
            reverse_calculate(60.0, 30.0, weight, max_mark)

    def test_for_grade_uses_averaged_threshold(self, seeded_repository):
        summaries = average_thresholds(seeded_repository, "0580", Tier.EXTENDED)

        target = reverse_calculate_for_grade(summaries, Grade.A, 24.0, 80.0, 100)

        assert (target.needed_raw, target.needed_pct) == (50, 50.0)

    def test_for_grade_without_history(self, seeded_repository):
        summaries = average_thresholds(seeded_repository, "0580", Tier.EXTENDED)

        assert reverse_calculate_for_grade(summaries, Grade.G, 24.0, 80.0, 100) is None


class TestEstimatorConfig:
    """Tests for EstimatorConfig validation."""

    @pytest.mark.parametrize("kwargs", [
        {"trailing_years": 0},
        {"full_weight_pct": 0},
        {"max_workers": 0},
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            EstimatorConfig(**kwargs)
