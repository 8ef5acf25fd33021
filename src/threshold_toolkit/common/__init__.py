"""Common utilities shared across the toolkit."""

from __future__ import annotations

from .numeric import round_half_up, round_to_tenth
from .subjects import (
    SubjectTierRule,
    TierConfig,
    TierConfigError,
    load_tier_config,
)

__all__ = [
    # numeric
    "round_half_up",
    "round_to_tenth",
    # subjects
    "SubjectTierRule",
    "TierConfig",
    "TierConfigError",
    "load_tier_config",
]
