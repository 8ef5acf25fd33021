"""
Serialization Utilities

Reads and writes the two parsed-output files of a batch run:

- `thresholds.json`: array of ParsedThreshold records
- `components.json`: array of ParsedComponent records

Writes go through `extractor.file_locking.atomic_write_json` so a reader never
observes a partially written file. Reads validate every record against the
JSON schemas before building the immutable models.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

from ..models.thresholds import ParsedComponent, ParsedThreshold
from ..schemas.validator import ValidationError, validate_records

logger = logging.getLogger(__name__)

THRESHOLDS_FILENAME = "thresholds.json"
COMPONENTS_FILENAME = "components.json"


# ─────────────────────────────────────────────────────────────────────────────
# Record Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_thresholds(thresholds: Iterable[ParsedThreshold]) -> List[dict[str, Any]]:
    """Serialize thresholds to JSON-ready dictionaries, preserving order."""
    return [t.to_dict() for t in thresholds]


def serialize_components(components: Iterable[ParsedComponent]) -> List[dict[str, Any]]:
    """Serialize components to JSON-ready dictionaries, preserving order."""
    return [c.to_dict() for c in components]


def deserialize_thresholds(data: Any, *, validate: bool = True) -> List[ParsedThreshold]:
    """
    Build ParsedThreshold models from decoded JSON.

    Args:
        data: Decoded content of thresholds.json
        validate: Whether to validate against the schema first

    Returns:
        List of ParsedThreshold in file order

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If a record breaks a model invariant
    """
    if validate:
        validate_records(data, "threshold")
    return [ParsedThreshold.from_dict(record) for record in data]


def deserialize_components(data: Any, *, validate: bool = True) -> List[ParsedComponent]:
    """
    Build ParsedComponent models from decoded JSON.

    Raises:
        ValidationError: If validate=True and data is invalid
    """
    if validate:
        validate_records(data, "component")
    return [ParsedComponent.from_dict(record) for record in data]


# ─────────────────────────────────────────────────────────────────────────────
# File I/O
# ─────────────────────────────────────────────────────────────────────────────

def _read_json(path: Path) -> Any:
    from threshold_toolkit.extractor.file_locking import locked_read_json

    try:
        return locked_read_json(path)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}", path=str(path)) from e


def load_thresholds_json(path: Path, *, validate: bool = True) -> List[ParsedThreshold]:
    """
    Load thresholds.json.

    Raises:
        FileNotFoundError: If path doesn't exist
        ValidationError: If the content is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Thresholds file not found: {path}")
    thresholds = deserialize_thresholds(_read_json(path), validate=validate)
    logger.debug(f"Loaded {len(thresholds)} threshold records from {path}")
    return thresholds


def load_components_json(path: Path, *, validate: bool = True) -> List[ParsedComponent]:
    """
    Load components.json.

    Raises:
        FileNotFoundError: If path doesn't exist
        ValidationError: If the content is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Components file not found: {path}")
    components = deserialize_components(_read_json(path), validate=validate)
    logger.debug(f"Loaded {len(components)} component records from {path}")
    return components


def save_parsed_output(
    output_dir: Path,
    thresholds: Iterable[ParsedThreshold],
    components: Iterable[ParsedComponent],
    *,
    validate: bool = True,
) -> tuple[Path, Path]:
    """
    Write thresholds.json and components.json atomically.

    Both payloads are serialized, and validated against the same schemas
    the loaders apply, before either file is touched, so a bad record
    leaves any previous output in place.

    Returns:
        (thresholds_path, components_path)

    Raises:
        ValidationError: If validate=True and a record would not load back
    """
    from threshold_toolkit.extractor.file_locking import atomic_write_json

    threshold_payload = serialize_thresholds(thresholds)
    component_payload = serialize_components(components)
    if validate:
        validate_records(threshold_payload, "threshold")
        validate_records(component_payload, "component")

    thresholds_path = output_dir / THRESHOLDS_FILENAME
    components_path = output_dir / COMPONENTS_FILENAME
    atomic_write_json(thresholds_path, threshold_payload)
    atomic_write_json(components_path, component_payload)

    logger.info(
        f"Wrote {len(threshold_payload)} thresholds and "
        f"{len(component_payload)} components to {output_dir}"
    )
    return thresholds_path, components_path
