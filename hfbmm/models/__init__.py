from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .vendor import Vendor  # noqa: F401
from .store import Store, PositivationDetail  # noqa: F401
from .award_tier import AwardTier  # noqa: F401
from .sweepstake import SweepstakeWinnerRecord  # noqa: F401

__all__ = [
    "Base",
    "Vendor",
    "Store",
    "PositivationDetail",
    "AwardTier",
    "SweepstakeWinnerRecord",
]
