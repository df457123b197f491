"""Database model for the sweepstake winner log."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from typing import Any, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    delete,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from hfbmm.db.utils import dt_iso, parse_iso

from .base import Base
from .utils import generate_record_id


class SweepstakeWinnerRecord(Base):
    """Immutable log entry produced by exactly one successful draw.

    The log is the only source of "already won" state: a store with any
    entry here is out of every tier's pool until the entry is reset.
    """

    __tablename__ = "sweepstake_winners"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    """Primary key."""

    tier_id: Mapped[str] = mapped_column(
        ForeignKey("award_tiers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    """Tier whose prize slot this record consumes."""

    tier_name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Tier name at draw time (denormalized)."""

    prize_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Reward name at draw time (denormalized)."""

    store_id: Mapped[str] = mapped_column(
        ForeignKey("stores.id", ondelete="RESTRICT"),
        nullable=False,
    )
    """Winning store."""

    store_name: Mapped[str] = mapped_column(String(512), nullable=False)
    """Winning store description (code, name, CNPJ, state) at draw time."""

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp of the draw."""

    draw_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    """Running number of the draw in the event; orders draws sharing a timestamp."""

    # One prize per store across the whole event, whatever the tier.
    __table_args__ = (
        UniqueConstraint("store_id", name="uq_sweepstake_winner_store"),
        Index("ix_sweepstake_winners_drawn_at", "drawn_at"),
    )

    def __init__(
        self,
        *,
        tier_id: str,
        tier_name: str,
        prize_name: str,
        store_id: str,
        store_name: str,
        drawn_at: Optional[datetime] = None,
        draw_number: Optional[int] = None,
        id: Optional[str] = None,
    ) -> None:
        self.id = id or generate_record_id("win")
        if draw_number is not None:
            self.draw_number = draw_number
        self.tier_id = tier_id
        self.tier_name = tier_name
        self.prize_name = prize_name
        self.store_id = store_id
        self.store_name = store_name
        self.drawn_at = drawn_at or datetime.now(timezone.utc)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<SweepstakeWinnerRecord(id={id}, tier_id={tier}, store_id={store}, drawn_at={at})>".format(
            id=self.id,
            tier=self.tier_id,
            store=self.store_id,
            at=self.drawn_at,
        )

    @classmethod
    def log(cls, session: Session, tier_id: Optional[str] = None) -> list["SweepstakeWinnerRecord"]:
        """Return the winner log in draw order, optionally scoped to ``tier_id``."""

        stmt = select(cls)
        if tier_id is not None:
            stmt = stmt.where(cls.tier_id == tier_id)
        stmt = stmt.order_by(cls.drawn_at.asc(), cls.draw_number.asc())
        return list(session.scalars(stmt).all())

    @classmethod
    def get_by_store(cls, session: Session, store_id: str) -> Optional["SweepstakeWinnerRecord"]:
        """Return the record held by ``store_id``, if the store has already won."""

        return session.scalar(select(cls).where(cls.store_id == store_id))

    @classmethod
    def delete_where(cls, session: Session, *criteria) -> int:
        """Bulk-delete records matching ``criteria`` and return how many went."""

        stmt = delete(cls)
        if criteria:
            stmt = stmt.where(*criteria)
        result = session.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0

    @classmethod
    def next_draw_number(cls, session: Session) -> int:
        """Number for the next draw: one past the highest still in the log."""

        return int(session.scalar(select(func.max(cls.draw_number))) or 0) + 1

    @classmethod
    def count_for_tier(cls, session: Session, tier_id: str) -> int:
        stmt = select(func.count(cls.id)).where(cls.tier_id == tier_id)
        return int(session.scalar(stmt) or 0)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tier_id": self.tier_id,
            "tier_name": self.tier_name,
            "prize_name": self.prize_name,
            "store_id": self.store_id,
            "store_name": self.store_name,
            "drawn_at": dt_iso(self.drawn_at),
            "draw_number": self.draw_number,
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "SweepstakeWinnerRecord":
        return cls(
            id=data["id"],
            tier_id=data["tier_id"],
            tier_name=data["tier_name"],
            prize_name=data["prize_name"],
            store_id=data["store_id"],
            store_name=data["store_name"],
            drawn_at=parse_iso(data.get("drawn_at")),
            draw_number=data.get("draw_number"),
        )
