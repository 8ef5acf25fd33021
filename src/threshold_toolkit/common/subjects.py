"""
Module: common.subjects

Purpose:
    Subject -> tier-prefix configuration used by the tier resolver.
    The configuration is immutable data passed into the resolver as a
    parameter, so tests (or a different exam board) can substitute
    their own without touching module state.

Key Classes:
    - SubjectTierRule: Option-code prefixes for Core and Extended
    - TierConfig: All tier rules plus non-tiered prefix hints

Key Functions:
    - load_tier_config(): Load and validate a tier config JSON file
      (defaults to the bundled subject_tiers.json)

Dependencies:
    - jsonschema (via core.schemas.validator)

Used By:
    - extractor.tiers: resolve_thresholds()
    - extractor.pipeline: Batch parsing
    - cli: --tier-config override
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from threshold_toolkit.common.thresholds import TIER_THRESHOLDS
from threshold_toolkit.core.schemas.validator import ValidationError, validate_subject_tiers

logger = logging.getLogger(__name__)

BUNDLED_TIER_CONFIG = Path(__file__).resolve().parent / "subject_tiers.json"


class TierConfigError(RuntimeError):
    """Raised when a tier configuration file cannot be read or is invalid."""


@dataclass(frozen=True)
class SubjectTierRule:
    """
    Option-code prefixes that identify each tier of one syllabus.

    Example:
        >>> rule = SubjectTierRule(core=("F", "G"), extended=("B", "C"))
        >>> rule.is_core("FY")
        True
    """
    core: Tuple[str, ...]
    extended: Tuple[str, ...]

    def is_core(self, option_code: str) -> bool:
        return option_code.startswith(self.core)

    def is_extended(self, option_code: str) -> bool:
        return option_code.startswith(self.extended)


@dataclass(frozen=True)
class TierConfig:
    """
    Immutable tier-selection configuration.

    Attributes:
        tiered: Syllabus code -> SubjectTierRule for tiered subjects.
        preferred_prefix: Syllabus code -> option prefix to prefer for
            non-tiered subjects with several options.
        default_prefix: Prefix preferred when a non-tiered subject has
            no explicit hint.
        preferred_suffix: Option suffix meaning "all compulsory components".
    """
    tiered: Mapping[str, SubjectTierRule] = field(default_factory=dict)
    preferred_prefix: Mapping[str, str] = field(default_factory=dict)
    default_prefix: str = TIER_THRESHOLDS.default_prefix
    preferred_suffix: str = TIER_THRESHOLDS.preferred_suffix

    def __post_init__(self) -> None:
        # Freeze the mappings so a shared config cannot be mutated in place
        object.__setattr__(self, "tiered", MappingProxyType(dict(self.tiered)))
        object.__setattr__(self, "preferred_prefix", MappingProxyType(dict(self.preferred_prefix)))

    def rule_for(self, syllabus_code: str) -> Optional[SubjectTierRule]:
        return self.tiered.get(syllabus_code)

    def prefix_for(self, syllabus_code: str) -> str:
        return self.preferred_prefix.get(syllabus_code, self.default_prefix)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TierConfig:
        tiered = {
            code: SubjectTierRule(
                core=tuple(rule.get("core", ())),
                extended=tuple(rule.get("extended", ())),
            )
            for code, rule in data.get("tiered", {}).items()
        }
        return cls(
            tiered=tiered,
            preferred_prefix=dict(data.get("preferred_prefix", {})),
            default_prefix=data.get("default_prefix", TIER_THRESHOLDS.default_prefix),
            preferred_suffix=data.get("preferred_suffix", TIER_THRESHOLDS.preferred_suffix),
        )


def load_tier_config(path: Optional[Path] = None) -> TierConfig:
    """
    Load a tier configuration file.

    Args:
        path: JSON file to load. None loads the bundled configuration
            (cached after the first call).

    Returns:
        Validated, immutable TierConfig.

    Raises:
        TierConfigError: If the file is unreadable or fails validation.
    """
    if path is None:
        return _load_bundled_tier_config()
    return _read_tier_config(path)


@lru_cache(maxsize=1)
def _load_bundled_tier_config() -> TierConfig:
    return _read_tier_config(BUNDLED_TIER_CONFIG)


def _read_tier_config(path: Path) -> TierConfig:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise TierConfigError(f"Cannot read tier config {path}: {e}") from e

    if not isinstance(data, dict):
        raise TierConfigError(f"Tier config must be a JSON object: {path}")

    try:
        validate_subject_tiers(data)
    except ValidationError as e:
        raise TierConfigError(f"Invalid tier config {path}: {e}") from e

    config = TierConfig.from_dict(data)
    logger.debug(
        f"Loaded tier config from {path.name}: {len(config.tiered)} tiered subjects, "
        f"{len(config.preferred_prefix)} prefix hints"
    )
    return config
