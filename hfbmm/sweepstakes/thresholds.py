"""Per-region positivation thresholds for award tiers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..models import AwardTier

PRIMARY_REGION = "PR"
"""Region whose threshold every tier defines; the fallback for all others."""

SECONDARY_REGION = "SC"
"""Region that may carry its own threshold."""


def normalize_region(region: Optional[str]) -> Optional[str]:
    """Normalize a raw state code by trimming and upper-casing.

    Blank values are treated as an undefined region and return ``None``.
    """

    if region is None:
        return None
    if not isinstance(region, str):
        raise TypeError("region must be a string or None")
    normalized = region.strip().upper()
    return normalized or None


def required_count(tier: "AwardTier", region: Optional[str]) -> int:
    """Return how many positivations a store in ``region`` needs for ``tier``.

    Parameters
    ----------
    tier : AwardTier
        Tier whose ``positivations_required`` mapping is consulted.
    region : Optional[str]
        The store's state code. ``None`` is valid and maps to the primary
        region threshold.

    Returns
    -------
    int
        The secondary-region threshold when ``region`` is the secondary
        region and the tier configures one; the primary-region threshold in
        every other case.
    """

    required = tier.positivations_required
    if normalize_region(region) == SECONDARY_REGION:
        secondary = required.get(SECONDARY_REGION)
        if secondary is not None:
            return int(secondary)
    return int(required[PRIMARY_REGION])


__all__ = [
    "PRIMARY_REGION",
    "SECONDARY_REGION",
    "normalize_region",
    "required_count",
]
