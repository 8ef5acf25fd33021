"""
Unit Tests for Serialization Utilities

Tests for thresholds.json / components.json reading and writing.
"""

import dataclasses
import json
import pytest

from threshold_toolkit.core.models.grades import Grade, Season, Tier
from threshold_toolkit.core.models.thresholds import GradeBoundary, ParsedComponent, ParsedThreshold
from threshold_toolkit.core.schemas.validator import ValidationError
from threshold_toolkit.core.utils.serialization import (
    COMPONENTS_FILENAME,
    THRESHOLDS_FILENAME,
    deserialize_thresholds,
    load_components_json,
    load_thresholds_json,
    save_parsed_output,
    serialize_thresholds,
)


@pytest.fixture
def sample_threshold() -> ParsedThreshold:
    return ParsedThreshold(
        syllabus_code="0580",
        season=Season.FM,
        year=2023,
        tier=Tier.CORE,
        option_code="AX",
        max_mark=200,
        grades=(GradeBoundary(Grade.C, 115), GradeBoundary(Grade.D, 86)),
    )


@pytest.fixture
def sample_component() -> ParsedComponent:
    return ParsedComponent("0580", 2023, "12", "1", 100)


class TestSaveAndLoad:
    """Tests for the parsed-output files."""

    def test_save_then_load(self, tmp_path, sample_threshold, sample_component):
        thresholds_path, components_path = save_parsed_output(
            tmp_path, [sample_threshold], [sample_component]
        )

        assert thresholds_path == tmp_path / THRESHOLDS_FILENAME
        assert components_path == tmp_path / COMPONENTS_FILENAME
        assert load_thresholds_json(thresholds_path) == [sample_threshold]
        assert load_components_json(components_path) == [sample_component]

    def test_saved_file_is_a_plain_json_array(self, tmp_path, sample_threshold):
        save_parsed_output(tmp_path, [sample_threshold], [])

        data = json.loads((tmp_path / THRESHOLDS_FILENAME).read_text(encoding="utf-8"))

        assert data == [sample_threshold.to_dict()]
        assert json.loads((tmp_path / COMPONENTS_FILENAME).read_text(encoding="utf-8")) == []

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_thresholds_json(tmp_path / THRESHOLDS_FILENAME)

    def test_truncated_file_raises_validation_error(self, tmp_path):
        path = tmp_path / THRESHOLDS_FILENAME
        path.write_text('[{"syllabus_code": "0580"', encoding="utf-8")

        with pytest.raises(ValidationError, match="Invalid JSON"):
            load_thresholds_json(path)

    def test_schema_violation_raises(self, tmp_path, sample_threshold):
        record = sample_threshold.to_dict()
        record["season"] = "XX"
        path = tmp_path / THRESHOLDS_FILENAME
        path.write_text(json.dumps([record]), encoding="utf-8")

        with pytest.raises(ValidationError):
            load_thresholds_json(path)

    def test_save_rejects_records_that_would_not_load(self, tmp_path, sample_threshold):
        stray = dataclasses.replace(sample_threshold, syllabus_code="0580 (1)")

        with pytest.raises(ValidationError, match="syllabus_code"):
            save_parsed_output(tmp_path, [sample_threshold, stray], [])

        assert not (tmp_path / THRESHOLDS_FILENAME).exists()
        assert not (tmp_path / COMPONENTS_FILENAME).exists()


class TestDeserialize:
    """Tests for in-memory (de)serialization."""

    def test_order_is_preserved(self, sample_threshold):
        later = ParsedThreshold.from_dict({**sample_threshold.to_dict(), "year": 2024})

        data = serialize_thresholds([later, sample_threshold])

        assert deserialize_thresholds(data) == [later, sample_threshold]

    def test_without_validation_model_invariants_still_apply(self, sample_threshold):
        record = {**sample_threshold.to_dict(), "max_mark": 0}

        with pytest.raises(ValueError):
            deserialize_thresholds([record], validate=False)
