"""Random single-winner draws for award tiers."""

from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from ..errors import NoEligibleStores, NoSlotsRemaining
from .preview import DrawPreview

if TYPE_CHECKING:
    from ..models import AwardTier, Store

logger = logging.getLogger(__name__)


class SweepstakeDrawEngine:
    """Pick one winner per call, uniformly over the tier's eligible pool."""

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        preview_rng: Optional[random.Random] = None,
    ) -> None:
        """Create a draw engine.

        Parameters
        ----------
        rng : Optional[random.Random], default: None
            Source for the winning pick. Defaults to a ``SystemRandom``
            instance; tests inject a seeded ``random.Random``.
        preview_rng : Optional[random.Random], default: None
            Separate source used only to shuffle the cosmetic preview.
        """

        self._rng = rng or random.SystemRandom()
        self._preview_rng = preview_rng or random.Random()

    @staticmethod
    def check_preconditions(
        tier: "AwardTier",
        eligible_stores: Sequence["Store"],
        remaining_slots: int,
    ) -> None:
        """Raise when a draw for ``tier`` cannot happen.

        Raises
        ------
        NoSlotsRemaining
            If ``remaining_slots <= 0``.
        NoEligibleStores
            If ``eligible_stores`` is empty.
        """
        if remaining_slots <= 0:
            raise NoSlotsRemaining(tier.name, remaining_slots)
        if not eligible_stores:
            raise NoEligibleStores(tier.name)

    def draw(
        self,
        tier: "AwardTier",
        eligible_stores: Sequence["Store"],
        remaining_slots: int,
    ) -> "Store":
        """Select one winner for ``tier``.

        Every store in ``eligible_stores`` has probability
        ``1 / len(eligible_stores)``; nothing else weighs in. The engine does
        not write anything: the caller turns the result into a
        :class:`~hfbmm.models.SweepstakeWinnerRecord`.

        Raises
        ------
        NoSlotsRemaining, NoEligibleStores
            See :meth:`check_preconditions`. No selection happens in either case.
        """
        self.check_preconditions(tier, eligible_stores, remaining_slots)
        winner = eligible_stores[self._rng.randrange(len(eligible_stores))]
        logger.debug(
            f"Drew store {winner.id} for tier {tier.id} out of {len(eligible_stores)} eligible"
        )
        return winner

    def draw_with_preview(
        self,
        tier: "AwardTier",
        eligible_stores: Sequence["Store"],
        remaining_slots: int,
        *,
        on_frame: Optional[Callable[[str], None]] = None,
        duration: Optional[float] = None,
        interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "Store":
        """Show the cycling preview, then make an independent :meth:`draw`.

        The preview shuffles its own copy of the pool with ``preview_rng``;
        the final pick comes from the original ``eligible_stores`` sequence.
        """
        self.check_preconditions(tier, eligible_stores, remaining_slots)
        preview_kwargs = {"rng": self._preview_rng, "duration": duration}
        if interval is not None:
            preview_kwargs["interval"] = interval
        preview = DrawPreview(eligible_stores, **preview_kwargs)
        for label in preview.labels():
            if on_frame is not None:
                on_frame(label)
            sleep(preview.interval)
        return self.draw(tier, eligible_stores, remaining_slots)


__all__ = ["SweepstakeDrawEngine"]
