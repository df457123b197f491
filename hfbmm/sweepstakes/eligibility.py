"""Eligibility of stores for each award tier's draw."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Sequence

from .thresholds import normalize_region, required_count

if TYPE_CHECKING:
    from ..models import AwardTier, Store, SweepstakeWinnerRecord


@dataclass
class TierEligibility:
    """Draw state of one tier, derived from the current records.

    Attributes
    ----------
    remaining_slots : int
        ``quantity_available`` minus the tier's recorded winners. Not clamped:
        it can be zero or negative, and callers must check ``> 0`` before
        drawing.
    eligible_stores : list[Store]
        Qualifying stores, in input order.
    """

    remaining_slots: int
    eligible_stores: list["Store"] = field(default_factory=list)

    @property
    def can_draw(self) -> bool:
        return self.remaining_slots > 0 and bool(self.eligible_stores)


def won_store_ids(winner_records: Iterable["SweepstakeWinnerRecord"]) -> set[str]:
    """Return every store holding a prize, across all tiers."""
    return {record.store_id for record in winner_records}


def is_eligible(store: "Store", tier: "AwardTier", already_won: set[str]) -> bool:
    """Return ``True`` when ``store`` qualifies for ``tier``'s draw.

    A store qualifies when it participates, is checked in, has a state, has
    at least the regional number of positivations and has not won anything
    yet. Stores without a state never qualify.
    """
    region = normalize_region(store.state)
    if not store.participating or not store.is_checked_in or region is None:
        return False
    if len(store.positivations) < required_count(tier, region):
        return False
    return store.id not in already_won


def compute_eligibility(
    tiers: Sequence["AwardTier"],
    stores: Sequence["Store"],
    winner_records: Sequence["SweepstakeWinnerRecord"],
) -> dict[str, TierEligibility]:
    """Compute remaining slots and the eligible pool for every tier.

    The result is a pure function of the inputs and must be recomputed after
    every change to stores, tiers or the winner log.

    Parameters
    ----------
    tiers : Sequence[AwardTier]
        Tiers to evaluate.
    stores : Sequence[Store]
        Every registered store; the order is kept in each pool.
    winner_records : Sequence[SweepstakeWinnerRecord]
        The complete winner log. Exclusion is global: a store that won in any
        tier is out of every pool.

    Returns
    -------
    dict[str, TierEligibility]
        Mapping of tier id to its :class:`TierEligibility`.
    """

    already_won = won_store_ids(winner_records)
    winners_per_tier: dict[str, int] = {}
    for record in winner_records:
        winners_per_tier[record.tier_id] = winners_per_tier.get(record.tier_id, 0) + 1

    eligibility: dict[str, TierEligibility] = {}
    for tier in tiers:
        eligibility[tier.id] = TierEligibility(
            remaining_slots=tier.quantity_available - winners_per_tier.get(tier.id, 0),
            eligible_stores=[s for s in stores if is_eligible(s, tier, already_won)],
        )
    return eligibility


__all__ = [
    "TierEligibility",
    "compute_eligibility",
    "is_eligible",
    "won_store_ids",
]
