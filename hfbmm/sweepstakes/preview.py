"""Cosmetic name cycling shown while a draw is "spinning"."""

from __future__ import annotations

import os
import random
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from dotenv import load_dotenv

if TYPE_CHECKING:
    from ..models import Store

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()

DEFAULT_PREVIEW_SECONDS = float(os.getenv("SWEEPSTAKE_PREVIEW_SECONDS", "10"))
DEFAULT_FRAME_INTERVAL = 0.1


class DrawPreview:
    """Cycle through a privately shuffled copy of the eligible pool.

    The preview owns its random source and its copy of the pool, so nothing it
    does can change which store the engine picks afterwards.
    """

    def __init__(
        self,
        stores: Sequence["Store"],
        *,
        rng: Optional[random.Random] = None,
        duration: Optional[float] = None,
        interval: float = DEFAULT_FRAME_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._rng = rng or random.Random()
        self._order = list(stores)
        self._rng.shuffle(self._order)
        self.duration = DEFAULT_PREVIEW_SECONDS if duration is None else duration
        self.interval = interval

    @property
    def frame_count(self) -> int:
        """Number of labels shown over ``duration`` at one label per ``interval``."""
        if not self._order or self.duration <= 0:
            return 0
        return max(1, round(self.duration / self.interval))

    def labels(self) -> Iterator[str]:
        """Yield ``code - name`` labels, wrapping around the shuffled pool."""
        for frame in range(self.frame_count):
            yield self._order[frame % len(self._order)].display_label


__all__ = ["DrawPreview", "DEFAULT_PREVIEW_SECONDS", "DEFAULT_FRAME_INTERVAL"]
