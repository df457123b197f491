"""Database model for award tiers."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from typing import Any, Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from hfbmm.db.utils import dt_iso, parse_iso

from .base import Base
from .utils import generate_record_id


class AwardTier(Base):
    """A prize bracket with region-specific positivation thresholds."""

    __tablename__ = "award_tiers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Tier name ("Nome da faixa"), e.g. Bronze."""

    reward_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Prize handed to each winner of the tier."""

    quantity_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Total number of prizes the tier can award."""

    required_pr: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Positivations required in the primary region; the fallback for every other region."""

    required_sc: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Positivations required in the secondary region, when configured."""

    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Display and draw order."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("quantity_available >= 0", name="quantity_non_negative"),
        CheckConstraint("required_pr >= 0", name="required_pr_non_negative"),
        CheckConstraint(
            "required_sc IS NULL OR required_sc >= 0", name="required_sc_non_negative"
        ),
    )

    def __init__(
        self,
        *,
        name: str,
        reward_name: str,
        quantity_available: int,
        required_pr: int,
        required_sc: Optional[int] = None,
        sort_order: int = 0,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.id = id or generate_record_id("tier")
        self.name = name
        self.reward_name = reward_name
        self.quantity_available = quantity_available
        self.required_pr = required_pr
        self.required_sc = required_sc
        self.sort_order = sort_order
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<AwardTier(id={id}, name={name}, quantity_available={qty}, required={req})>".format(
            id=self.id,
            name=self.name,
            qty=self.quantity_available,
            req=self.positivations_required,
        )

    @property
    def positivations_required(self) -> dict[str, int]:
        """Thresholds keyed by region code; ``SC`` is absent when not configured."""
        required = {"PR": self.required_pr}
        if self.required_sc is not None:
            required["SC"] = self.required_sc
        return required

    @classmethod
    def ordered(cls, session: Session, *, refresh: bool = False) -> list["AwardTier"]:
        """Return every tier in ``sort_order``.

        With ``refresh`` set, tiers already in the session are overwritten
        with the database state.
        """

        stmt = select(cls).order_by(cls.sort_order.asc(), cls.name.asc())
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return list(session.scalars(stmt).all())

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "reward_name": self.reward_name,
            "quantity_available": self.quantity_available,
            "positivations_required": self.positivations_required,
            "sort_order": self.sort_order,
            "created_at": dt_iso(self.created_at),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AwardTier":
        required = data.get("positivations_required") or {}
        return cls(
            id=data["id"],
            name=data["name"],
            reward_name=data["reward_name"],
            quantity_available=int(data["quantity_available"]),
            required_pr=int(required.get("PR", 0)),
            required_sc=required.get("SC"),
            sort_order=int(data.get("sort_order", 0)),
            created_at=parse_iso(data.get("created_at")),
        )
