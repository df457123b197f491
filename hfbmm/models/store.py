from datetime import datetime, timezone
import json
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from hfbmm.db.utils import dt_iso, parse_iso

from .base import Base
from .utils import generate_record_id

if TYPE_CHECKING:
    from .vendor import Vendor


class Store(Base):
    """A retail outlet taking part (or not) in the business meeting."""

    def __init__(
        self,
        code: str,
        name: str,
        cnpj: str = "",
        participating: bool = True,
        is_checked_in: bool = False,
        state: Optional[str] = None,
        is_matrix: bool = True,
        matrix_store_id: Optional[str] = None,
        city: Optional[str] = None,
        neighborhood: Optional[str] = None,
        address: Optional[str] = None,
        phone: Optional[str] = None,
        owner_name: Optional[str] = None,
        responsible_name: Optional[str] = None,
        email: Optional[str] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`Store` record.

        Parameters
        ----------
        code : str
            Human-assigned store code, unique across the event.
        name : str
            Legal name ("Razão Social").
        cnpj : str, optional
            Company registry number, digits only.
        participating : bool, default: True
            Whether the store takes part in the event at all.
        is_checked_in : bool, default: False
            Attendance flag toggled at the entrance.
        state : str, optional
            Two-letter state code ("PR", "SC", ...). Stores without a state
            never qualify for a draw.
        is_matrix : bool, default: True
            ``True`` for a chain headquarters, ``False`` for a branch.
        matrix_store_id : str, optional
            Identifier of the matrix store when this store is a branch.
        id : str, optional
            Explicit identifier; generated when omitted.
        """

        self.id = id or generate_record_id("store")
        self.code = code
        self.name = name
        self.cnpj = cnpj
        self.participating = participating
        self.is_checked_in = is_checked_in
        self.state = state
        self.is_matrix = is_matrix
        self.matrix_store_id = None if is_matrix else matrix_store_id
        self.city = city
        self.neighborhood = neighborhood
        self.address = address
        self.phone = phone
        self.owner_name = owner_name
        self.responsible_name = responsible_name
        self.email = email
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    cnpj: Mapped[str] = mapped_column(String(14), nullable=False, default="")
    participating: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True, index=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    neighborhood: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    owner_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    responsible_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_matrix: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    matrix_store_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("stores.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # relationships
    positivations: Mapped[list["PositivationDetail"]] = relationship(
        back_populates="store",
        cascade="all, delete-orphan",
        order_by="PositivationDetail.positivated_at",
    )
    matrix_store: Mapped[Optional["Store"]] = relationship(
        back_populates="branches", remote_side="Store.id"
    )
    branches: Mapped[list["Store"]] = relationship(back_populates="matrix_store")

    @validates("state")
    def _normalize_state(self, _key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().upper()
        return normalized or None

    def __repr__(self) -> str:
        return (
            f"<Store(id='{self.id}', code='{self.code}', name='{self.name}', "
            f"state={self.state!r}, participating={self.participating}, "
            f"is_checked_in={self.is_checked_in})>"
        )

    @classmethod
    def get_by_code(cls, session: Session, code: str) -> Optional["Store"]:
        """Retrieve a store by its human-assigned code."""

        return session.scalar(select(cls).where(cls.code == code))

    @property
    def positivation_count(self) -> int:
        """Number of seals ("selos") received from vendors."""
        return len(self.positivations)

    @property
    def display_label(self) -> str:
        """Short ``code - name`` label used when cycling names in a draw."""
        return f"{self.code} - {self.name}"

    @property
    def description(self) -> str:
        """Denormalized description stored on winner records."""
        parts = [self.code, self.name]
        if self.cnpj:
            parts.append(f"CNPJ {self.cnpj}")
        parts.append(self.state or "N/A")
        return " - ".join(parts)

    def has_positivation_from(self, vendor_id: str) -> bool:
        return any(p.vendor_id == vendor_id for p in self.positivations)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "cnpj": self.cnpj,
            "participating": self.participating,
            "is_checked_in": self.is_checked_in,
            "state": self.state,
            "city": self.city,
            "neighborhood": self.neighborhood,
            "address": self.address,
            "phone": self.phone,
            "owner_name": self.owner_name,
            "responsible_name": self.responsible_name,
            "email": self.email,
            "is_matrix": self.is_matrix,
            "matrix_store_id": self.matrix_store_id,
            "positivations": [p.to_json() for p in self.positivations],
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Store":
        """Rebuild a transient :class:`Store` (with its positivations) from :meth:`to_json` output."""
        store = cls(
            id=data["id"],
            code=data["code"],
            name=data["name"],
            cnpj=data.get("cnpj") or "",
            participating=data.get("participating", True),
            is_checked_in=data.get("is_checked_in", False),
            state=data.get("state"),
            is_matrix=data.get("is_matrix", True),
            matrix_store_id=data.get("matrix_store_id"),
            city=data.get("city"),
            neighborhood=data.get("neighborhood"),
            address=data.get("address"),
            phone=data.get("phone"),
            owner_name=data.get("owner_name"),
            responsible_name=data.get("responsible_name"),
            email=data.get("email"),
            created_at=parse_iso(data.get("created_at")),
            updated_at=parse_iso(data.get("updated_at")),
        )
        for item in data.get("positivations", []):
            store.positivations.append(PositivationDetail.from_json(item))
        return store


class PositivationDetail(Base):
    """A single vendor-to-store endorsement ("selo")."""

    def __init__(
        self,
        vendor_id: str,
        vendor_name: str,
        vendor_logo_url: str = "",
        store_id: Optional[str] = None,
        salesperson_id: Optional[str] = None,
        salesperson_name: Optional[str] = None,
        positivated_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ):
        self.id = id or generate_record_id("pos")
        self.vendor_id = vendor_id
        self.vendor_name = vendor_name
        self.vendor_logo_url = vendor_logo_url
        if store_id is not None:
            self.store_id = store_id
        self.salesperson_id = salesperson_id
        self.salesperson_name = salesperson_name
        self.positivated_at = positivated_at or datetime.now(timezone.utc)

    __tablename__ = "positivation_details"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    store_id: Mapped[str] = mapped_column(
        ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vendor_id: Mapped[str] = mapped_column(
        ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Denormalized vendor name for display."""
    vendor_logo_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    """Denormalized vendor logo for display."""
    salesperson_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    salesperson_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    positivated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    store: Mapped["Store"] = relationship(back_populates="positivations")
    vendor: Mapped["Vendor"] = relationship(back_populates="positivations")

    # A vendor positivates a given store at most once.
    __table_args__ = (
        UniqueConstraint("store_id", "vendor_id", name="uq_positivation_store_vendor"),
    )

    def __repr__(self) -> str:
        return (
            f"<PositivationDetail(id='{self.id}', store_id='{self.store_id}', "
            f"vendor_id='{self.vendor_id}', positivated_at={self.positivated_at})>"
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "vendor_logo_url": self.vendor_logo_url,
            "salesperson_id": self.salesperson_id,
            "salesperson_name": self.salesperson_name,
            "positivated_at": dt_iso(self.positivated_at),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "PositivationDetail":
        return cls(
            id=data["id"],
            vendor_id=data["vendor_id"],
            vendor_name=data["vendor_name"],
            vendor_logo_url=data.get("vendor_logo_url") or "",
            salesperson_id=data.get("salesperson_id"),
            salesperson_name=data.get("salesperson_name"),
            positivated_at=parse_iso(data.get("positivated_at")),
        )
