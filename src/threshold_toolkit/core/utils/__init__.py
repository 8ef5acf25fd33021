"""
Utils Package

Serialization of parsed output files.
"""

from .serialization import (
    COMPONENTS_FILENAME,
    THRESHOLDS_FILENAME,
    deserialize_components,
    deserialize_thresholds,
    load_components_json,
    load_thresholds_json,
    save_parsed_output,
    serialize_components,
    serialize_thresholds,
)

__all__ = [
    "serialize_thresholds",
    "serialize_components",
    "deserialize_thresholds",
    "deserialize_components",
    "load_thresholds_json",
    "load_components_json",
    "save_parsed_output",
    "THRESHOLDS_FILENAME",
    "COMPONENTS_FILENAME",
]
