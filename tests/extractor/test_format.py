"""
Unit tests for extractor.detection.format.
"""

from threshold_toolkit.core.models.grades import Tier
from threshold_toolkit.extractor.detection.format import (
    ExternalMaxMarks,
    TableFormat,
    detect_grade_count,
    detect_table_format,
    extract_external_max_marks,
    has_embedded_max_mark,
    locate_overall_section,
    text_before_section,
)


class TestLocateOverallSection:
    """Tests for section location."""

    def test_locate_overall_section_is_case_insensitive(self):
        text = "Component 12 80\nOVERALL THRESHOLDS\nAX 1 2 3"

        assert locate_overall_section(text) == "OVERALL THRESHOLDS\nAX 1 2 3"

    def test_locate_overall_section_when_missing_then_none(self):
        assert locate_overall_section("Component thresholds only") is None

    def test_text_before_section(self):
        text = "Component 12 80\nOverall thresholds\nAX 1 2 3"

        assert text_before_section(text) == "Component 12 80\n"
        assert text_before_section("no marker") == "no marker"


class TestDetectGradeCount:
    """Tests for 6 vs 8 grade column detection."""

    def test_detect_grade_count_when_f_and_g_then_eight(self):
        assert detect_grade_count("Overall thresholds\nOption A* A B C D E F G") == 8

    def test_detect_grade_count_when_stops_at_e_then_six(self):
        assert detect_grade_count("Overall thresholds\nOption A* A B C D E\nAX 10 9 8 7 6 5") == 6

    def test_detect_grade_count_only_scans_the_header_window(self):
        section = "Overall thresholds\n" + " " * 700 + "A* A B C D E F G"

        assert detect_grade_count(section, scan_chars=600) == 6
        assert detect_grade_count(section, scan_chars=800) == 8


class TestExternalMaxMarks:
    """Tests for the prose max-mark sentence."""

    def test_two_values_named_per_tier(self):
        text = (
            "The maximum total mark for this syllabus, after weighting has been applied, "
            "is 200 for the Extended option and 160 for the Core option."
        )

        marks = extract_external_max_marks(text)

        assert marks == ExternalMaxMarks(default=200, core=160, extended=200)
        assert marks.for_tier(Tier.CORE) == 160
        assert marks.for_tier(None) is None

    def test_single_value(self):
        text = "The maximum total mark for this syllabus, after weighting has been applied, is 100."

        marks = extract_external_max_marks(text)

        assert marks == ExternalMaxMarks(default=100)
        assert marks.for_tier(Tier.EXTENDED) is None

    def test_no_sentence(self):
        assert extract_external_max_marks("Overall thresholds") is None


class TestDetectTableFormat:
    """Tests for detect_table_format() on whole documents."""

    def test_2023_layout(self, sample_2023_text):
        assert detect_table_format(sample_2023_text) == TableFormat(
            grade_count=8, has_embedded_max_mark=True
        )

    def test_2022_layout(self, sample_2022_text):
        table_format = detect_table_format(sample_2022_text)

        assert table_format.grade_count == 8
        assert not table_format.has_embedded_max_mark
        assert table_format.external_max_marks == ExternalMaxMarks(260, core=200, extended=260)
        assert table_format.is_usable

    def test_six_grade_layout(self, sample_six_grade_text):
        table_format = detect_table_format(sample_six_grade_text)

        assert table_format.grade_count == 6
        assert table_format.has_embedded_max_mark

    def test_missing_section(self):
        assert detect_table_format("Component 12 80 60 40") is None

    def test_no_max_mark_source_is_not_usable(self):
        text = "Overall thresholds\nOption A* A B C D E F G\nAX 90 80 70 60 50 40 30 20"

        table_format = detect_table_format(text)

        assert table_format is not None
        assert not table_format.is_usable

    def test_embedded_column_ignores_prose_sentence(self):
        """Column layout wins; the sentence is not consulted."""
        text = (
            "The maximum total mark for this syllabus, after weighting has been applied, is 100.\n"
            "Overall thresholds\nOption Maximum mark after weighting A* A B C D E F G"
        )

        table_format = detect_table_format(text)

        assert has_embedded_max_mark(locate_overall_section(text))
        assert table_format.external_max_marks is None
