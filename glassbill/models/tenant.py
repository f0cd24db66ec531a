"""
Shop (tenant) and user models.

A shop is the isolation boundary: every customer, quotation and invoice
belongs to exactly one shop. Users sign in by username and act for the
shop they are linked to.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glassbill.database import Base
from glassbill.db_types import UUIDType

if TYPE_CHECKING:
    from glassbill.models.customer import Customer


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class Shop(Base):
    """Glass shop owning its own customers, quotations and invoices."""
    __tablename__ = "shops"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    shop_name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    whatsapp_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gstin: Mapped[Optional[str]] = mapped_column(
        String(15),
        nullable=True,
        comment="Supplier GSTIN printed on invoices"
    )
    state: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Supplier state; compared with customer state for CGST/SGST vs IGST"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    users: Mapped[List["User"]] = relationship("User", back_populates="shop")
    customers: Mapped[List["Customer"]] = relationship("Customer", back_populates="shop")

    def __repr__(self) -> str:
        return f"<Shop(name='{self.shop_name}')>"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.ADMIN.value,
        nullable=False,
        comment="ADMIN, STAFF"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    shop_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("shops.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    shop: Mapped[Optional["Shop"]] = relationship("Shop", back_populates="users", lazy="selectin")

    def __repr__(self) -> str:
        return f"<User(username='{self.username}')>"
