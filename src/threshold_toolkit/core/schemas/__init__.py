"""
Schemas Package

JSON schema definitions and validation utilities for parsed output and
bundled configuration.
"""

from .validator import (
    SUBJECT_TIERS_SCHEMA_VERSION,
    ValidationError,
    validate_component,
    validate_records,
    validate_subject_tiers,
    validate_threshold,
)

__all__ = [
    "validate_threshold",
    "validate_component",
    "validate_records",
    "validate_subject_tiers",
    "ValidationError",
    "SUBJECT_TIERS_SCHEMA_VERSION",
]
