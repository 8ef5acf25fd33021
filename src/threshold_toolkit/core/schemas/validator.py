"""
Schema Validation Utilities

Validates parsed-output JSON records (thresholds.json, components.json) and
the bundled subject tier data against JSON schemas.

Reading parsed output back in (seeding a store, running estimates from a
previous batch) goes through these checks so a hand-edited or truncated
file fails fast instead of producing silently wrong percentages.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema


# Schema version of the bundled subject tier data
SUBJECT_TIERS_SCHEMA_VERSION = 1


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


@lru_cache(maxsize=None)
def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    schema_path = Path(__file__).parent / f"{name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _validate_against(data: Any, schema_name: str, path: str = "") -> None:
    schema = _load_schema(schema_name)
    validator = jsonschema.Draft202012Validator(schema)
    errors = list(validator.iter_errors(data))
    if errors:
        first = jsonschema.exceptions.best_match(errors)
        location = ".".join(str(p) for p in first.absolute_path)
        full_path = f"{path}.{location}" if path and location else (path or location)
        raise ValidationError(
            f"Schema validation failed at {full_path or '<root>'}: {first.message}",
            path=full_path,
            errors=[e.message for e in errors],
        )


def validate_threshold(data: dict[str, Any], *, path: str = "") -> None:
    """
    Validate one ParsedThreshold record.

    Args:
        data: Dictionary as written to thresholds.json
        path: Location prefix used in error messages (e.g. "[3]")

    Raises:
        ValidationError: If the record is malformed
    """
    _validate_against(data, "threshold", path)

    grades = [g["grade"] for g in data["grades"]]
    if len(set(grades)) != len(grades):
        raise ValidationError(
            f"Duplicate grades in threshold record: {grades}",
            path=f"{path}.grades" if path else "grades",
        )


def validate_component(data: dict[str, Any], *, path: str = "") -> None:
    """
    Validate one ParsedComponent record.

    Raises:
        ValidationError: If the record is malformed
    """
    _validate_against(data, "component", path)


def validate_records(records: Any, kind: str) -> None:
    """
    Validate a whole parsed-output array.

    Args:
        records: Decoded JSON content of thresholds.json or components.json
        kind: "threshold" or "component"

    Raises:
        ValidationError: If the content is not an array or any record fails
    """
    if not isinstance(records, list):
        raise ValidationError(f"Expected a JSON array of {kind} records")
    check = validate_threshold if kind == "threshold" else validate_component
    for index, record in enumerate(records):
        check(record, path=f"[{index}]")


def validate_subject_tiers(data: dict[str, Any]) -> None:
    """
    Validate the subject tier configuration document.

    Raises:
        ValidationError: If the document is malformed or from a newer schema
    """
    _validate_against(data, "subject_tiers")

    version = data.get("schema_version")
    if version > SUBJECT_TIERS_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported subject tier schema version: {version} "
            f"(expected <= {SUBJECT_TIERS_SCHEMA_VERSION})",
            path="schema_version",
        )

    for code, rule in data["tiered"].items():
        if set(rule["core"]).isdisjoint(rule["extended"]):
            continue
        raise ValidationError(
            f"Subject {code} maps the same prefix to Core and Extended",
            path=f"tiered.{code}",
        )
