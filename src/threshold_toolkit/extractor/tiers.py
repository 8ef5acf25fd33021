"""
Module: extractor.tiers

Purpose:
    Picks the representative option row per tier and turns it into a
    ParsedThreshold. Tiered syllabuses yield up to two records (Core and
    Extended); untiered syllabuses yield exactly one with tier None.

Key Functions:
    - resolve_thresholds(): RawOption list -> ParsedThreshold list
    - pick_preferred(): Suffix tie-break within one candidate list

Dependencies:
    - common.subjects.TierConfig: Injected prefix configuration

Used By:
    - extractor.pipeline: Per-document parsing

Selection rules:
    Within a candidate list, the first option whose code ends in the
    preferred suffix ("Y": all compulsory components) wins, else the
    first candidate. A tier with no candidates is simply not emitted.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from threshold_toolkit.common.subjects import TierConfig
from threshold_toolkit.core.models.grades import Season, Tier
from threshold_toolkit.core.models.thresholds import ParsedThreshold, RawOption
from .detection.format import ExternalMaxMarks

logger = logging.getLogger(__name__)


def pick_preferred(candidates: Sequence[RawOption], suffix: str) -> Optional[RawOption]:
    """
    First candidate whose code ends with `suffix`, else the first candidate.

    Example:
        >>> pick_preferred([RawOption("AZ", 80, ()), RawOption("AY", 80, ())], "Y").code
        'AY'
    """
    for option in candidates:
        if option.code.endswith(suffix):
            return option
    return candidates[0] if candidates else None


def resolve_thresholds(
    options: Sequence[RawOption],
    *,
    syllabus_code: str,
    year: int,
    tier_config: TierConfig,
    season: Season = Season.FM,
    external_marks: Optional[ExternalMaxMarks] = None,
) -> List[ParsedThreshold]:
    """
    Resolve option rows into per-tier thresholds.

    Args:
        options: Option rows of one document, in document order.
        syllabus_code: Syllabus the document belongs to.
        year: Exam year.
        tier_config: Prefix configuration (see load_tier_config()).
        season: Exam season.
        external_marks: Prose max marks, when the table has no column.
            A tier-specific prose value overrides the option's own.

    Returns:
        Core before Extended for tiered syllabuses; one untiered record
        otherwise; empty when there are no options.

    Raises:
        ValueError: If a resolved record breaks a model invariant.
    """
    if not options:
        return []

    rule = tier_config.rule_for(syllabus_code)
    suffix = tier_config.preferred_suffix

    def build(option: RawOption, tier: Optional[Tier], max_mark: int) -> ParsedThreshold:
        return ParsedThreshold.from_option(
            option,
            syllabus_code=syllabus_code,
            season=season,
            year=year,
            tier=tier,
            max_mark=max_mark,
        )

    if rule is not None:
        results: List[ParsedThreshold] = []
        core = pick_preferred([o for o in options if rule.is_core(o.code)], suffix)
        extended = pick_preferred([o for o in options if rule.is_extended(o.code)], suffix)

        for tier, option in ((Tier.CORE, core), (Tier.EXTENDED, extended)):
            if option is None:
                logger.debug(f"{syllabus_code} {season} {year}: no {tier} option")
                continue
            tier_mark = external_marks.for_tier(tier) if external_marks else None
            results.append(build(option, tier, tier_mark if tier_mark is not None else option.max_mark))
        return results

    prefix = tier_config.prefix_for(syllabus_code)
    preferred = [o for o in options if o.code.startswith(prefix)]
    fallback = [o for o in options if not o.code.startswith(prefix)]
    option = pick_preferred(preferred, suffix) or pick_preferred(fallback, suffix) or options[0]

    max_mark = external_marks.default if external_marks is not None else option.max_mark
    return [build(option, None, max_mark)]
