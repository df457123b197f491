from datetime import datetime, timezone
import json
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, String, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from hfbmm.db.utils import dt_iso

from .base import Base
from .utils import generate_record_id

if TYPE_CHECKING:
    from .store import PositivationDetail


class Vendor(Base):
    """A supplier company whose salespeople positivate stores."""

    def __init__(
        self,
        name: str,
        cnpj: str = "",
        address: str = "",
        city: str = "",
        neighborhood: str = "",
        state: str = "",
        logo_url: str = "",
        website: Optional[str] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id or generate_record_id("vendor")
        self.name = name
        self.cnpj = cnpj
        self.address = address
        self.city = city
        self.neighborhood = neighborhood
        self.state = state
        self.logo_url = logo_url
        self.website = website
        if created_at is not None:
            self.created_at = created_at

    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    cnpj: Mapped[str] = mapped_column(String(14), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    neighborhood: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    state: Mapped[str] = mapped_column(String(2), nullable=False, default="")
    logo_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(timezone.utc),
    )

    # Deleting a vendor withdraws every seal it gave.
    positivations: Mapped[list["PositivationDetail"]] = relationship(
        back_populates="vendor", cascade="all"
    )

    def __repr__(self) -> str:
        return f"<Vendor(id='{self.id}', name='{self.name}', state='{self.state}')>"

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["Vendor"]:
        """Retrieve a vendor company by name."""

        return session.scalar(select(cls).where(cls.name == name))

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cnpj": self.cnpj,
            "address": self.address,
            "city": self.city,
            "neighborhood": self.neighborhood,
            "state": self.state,
            "logo_url": self.logo_url,
            "website": self.website,
            "created_at": dt_iso(self.created_at),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)
