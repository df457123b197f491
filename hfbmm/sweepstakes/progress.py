"""Tier progression shown on a store's positivation card."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from .thresholds import normalize_region, required_count

if TYPE_CHECKING:
    from ..models import AwardTier, Store


@dataclass(frozen=True)
class TierProgress:
    """Where a store stands on the tier ladder.

    Attributes
    ----------
    positivation_count : int
        Seals received so far.
    achieved_tier : Optional[AwardTier]
        Highest tier whose requirement is met, if any.
    next_tier : Optional[AwardTier]
        Tier right above ``achieved_tier``; ``None`` once the top is reached.
    progress_percent : float
        Progress towards ``next_tier`` in the 0-100 range.
    """

    positivation_count: int
    achieved_tier: Optional["AwardTier"]
    next_tier: Optional["AwardTier"]
    progress_percent: float


def tiers_for_region(tiers: Sequence["AwardTier"], region: Optional[str]) -> list["AwardTier"]:
    """Return ``tiers`` sorted by the requirement that applies to ``region``."""
    return sorted(tiers, key=lambda tier: required_count(tier, region))


def tier_progress(store: "Store", tiers: Sequence["AwardTier"]) -> TierProgress:
    """Compute the achieved tier, next tier and progress for ``store``."""

    count = len(store.positivations)
    region = normalize_region(store.state)
    ladder = tiers_for_region(tiers, region)

    achieved: Optional["AwardTier"] = None
    if region is not None:
        for tier in reversed(ladder):
            if count >= required_count(tier, region):
                achieved = tier
                break

    if achieved is not None:
        position = ladder.index(achieved)
        next_tier = ladder[position + 1] if position + 1 < len(ladder) else None
    elif region is not None and ladder:
        next_tier = ladder[0]
    else:
        next_tier = None

    if next_tier is None:
        percent = 100.0 if achieved is not None else 0.0
    else:
        needed = required_count(next_tier, region)
        if needed == 0:
            percent = 100.0 if count > 0 else 0.0
        else:
            percent = min(count / needed * 100.0, 100.0)

    return TierProgress(
        positivation_count=count,
        achieved_tier=achieved,
        next_tier=next_tier,
        progress_percent=percent,
    )


__all__ = ["TierProgress", "tier_progress", "tiers_for_region"]
