"""Eligibility and draw logic for tiered sweepstakes."""

from .eligibility import TierEligibility, compute_eligibility, is_eligible, won_store_ids
from .engine import SweepstakeDrawEngine
from .preview import DrawPreview
from .progress import TierProgress, tier_progress
from .thresholds import PRIMARY_REGION, SECONDARY_REGION, normalize_region, required_count

__all__ = [
    "DrawPreview",
    "PRIMARY_REGION",
    "SECONDARY_REGION",
    "SweepstakeDrawEngine",
    "TierEligibility",
    "TierProgress",
    "compute_eligibility",
    "is_eligible",
    "normalize_region",
    "required_count",
    "tier_progress",
    "won_store_ids",
]
