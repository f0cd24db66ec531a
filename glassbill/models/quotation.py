"""Quotation models.

A quotation is a mutable DRAFT until it is CONFIRMED or REJECTED; after that
it and its items are a retained legal record.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, Boolean, DateTime, Date, ForeignKey, Integer, Text, Numeric
from sqlalchemy import UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glassbill.database import Base
from glassbill.db_types import UUIDType, MoneyType


class QuotationStatus(str, Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class BillingType(str, Enum):
    GST = "GST"
    NON_GST = "NON_GST"


class DiscountType(str, Enum):
    AMOUNT = "AMOUNT"
    PERCENTAGE = "PERCENTAGE"


class DimensionUnit(str, Enum):
    FEET = "FEET"
    INCH = "INCH"
    MM = "MM"


class Quotation(Base):
    __tablename__ = "quotations"
    __table_args__ = (
        UniqueConstraint("shop_id", "quotation_number", name="uq_quotation_shop_number"),
        Index("ix_quotations_shop_status", "shop_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    shop_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    quotation_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="e.g., QTN-2026-10-0001"
    )
    billing_type: Mapped[str] = mapped_column(
        String(10),
        default=BillingType.GST.value,
        nullable=False,
        comment="GST, NON_GST"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=QuotationStatus.DRAFT.value,
        nullable=False,
        comment="DRAFT, CONFIRMED, REJECTED"
    )

    # Customer snapshot (frozen at creation)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_mobile: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    customer_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    customer_state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Dates
    quotation_date: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Amounts
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, comment="Sum of item subtotals")
    installation_charge: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    transport_charge: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    transportation_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    discount_type: Mapped[str] = mapped_column(
        String(20),
        default=DiscountType.AMOUNT.value,
        nullable=False,
        comment="AMOUNT, PERCENTAGE"
    )
    discount_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=Decimal("0"),
        nullable=False,
        comment="Amount or percentage as entered"
    )
    discount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False, comment="Discount amount")

    # GST
    gst_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    is_interstate: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="True if IGST, False if CGST+SGST"
    )
    cgst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    sgst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    igst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Decision
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    confirmed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Audit
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    items: Mapped[List["QuotationItem"]] = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.item_order",
        lazy="selectin"
    )

    @property
    def is_draft(self) -> bool:
        return self.status == QuotationStatus.DRAFT.value

    def __repr__(self) -> str:
        return f"<Quotation(number='{self.quotation_number}', status='{self.status}')>"


class QuotationItem(Base):
    """Glass line item; area is in square feet."""
    __tablename__ = "quotation_items"
    __table_args__ = (
        UniqueConstraint("quotation_id", "item_order", name="uq_quotation_item_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("quotations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    glass_type: Mapped[str] = mapped_column(String(100), nullable=False)
    thickness: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    height: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    width: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    height_unit: Mapped[str] = mapped_column(String(10), default=DimensionUnit.FEET.value, nullable=False)
    width_unit: Mapped[str] = mapped_column(String(10), default=DimensionUnit.FEET.value, nullable=False)
    design: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    rate_per_sqft: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    area: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, comment="Square feet")
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    hsn_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    item_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    quotation: Mapped["Quotation"] = relationship("Quotation", back_populates="items")

    def __repr__(self) -> str:
        return f"<QuotationItem(glass_type='{self.glass_type}', qty={self.quantity})>"
