"""Invoice and payment models.

An invoice is materialized from exactly one CONFIRMED quotation. Its figures
are copied, never recomputed; after creation only paid_amount, due_amount and
payment_status change, and only through the payment ledger.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, Boolean, DateTime, Date, ForeignKey, Integer, Text, Numeric
from sqlalchemy import UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glassbill.database import Base
from glassbill.db_types import UUIDType, MoneyType

if TYPE_CHECKING:
    from glassbill.models.quotation import Quotation


class InvoiceType(str, Enum):
    """Invoice variant; selects the numbering prefix."""
    STANDARD = "STANDARD"
    ADVANCE = "ADVANCE"


class PaymentStatus(str, Enum):
    DUE = "DUE"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentMode(str, Enum):
    CASH = "CASH"
    UPI = "UPI"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    OTHER = "OTHER"


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("shop_id", "invoice_number", name="uq_invoice_shop_number"),
        Index("ix_invoices_shop_payment_status", "shop_id", "payment_status"),
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
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("quotations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    invoice_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="e.g., INV-2026-10-0001 or ADV-2026-10-0001"
    )
    invoice_type: Mapped[str] = mapped_column(
        String(20),
        default=InvoiceType.STANDARD.value,
        nullable=False,
        comment="STANDARD, ADVANCE"
    )
    billing_type: Mapped[str] = mapped_column(String(10), nullable=False, comment="GST, NON_GST")
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Customer snapshot (copied from the quotation)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_mobile: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    customer_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    customer_state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Amounts (frozen)
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    installation_charge: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    transport_charge: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    discount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    gst_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    is_interstate: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    cgst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    sgst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    igst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Payment tracking (the only mutable fields)
    payment_status: Mapped[str] = mapped_column(
        String(20),
        default=PaymentStatus.DUE.value,
        nullable=False,
        comment="DUE, PARTIAL, PAID"
    )
    paid_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    due_amount: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="grand_total - paid_amount; negative when overpaid"
    )

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

    # Relationships
    items: Mapped[List["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.item_order",
        lazy="selectin"
    )
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.payment_date",
        lazy="selectin"
    )
    quotation: Mapped["Quotation"] = relationship("Quotation")

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def __repr__(self) -> str:
        return f"<Invoice(number='{self.invoice_number}', payment_status='{self.payment_status}')>"


class InvoiceItem(Base):
    """Line item copied verbatim from a quotation item."""
    __tablename__ = "invoice_items"
    __table_args__ = (
        UniqueConstraint("invoice_id", "item_order", name="uq_invoice_item_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    glass_type: Mapped[str] = mapped_column(String(100), nullable=False)
    thickness: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    height: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    width: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    height_unit: Mapped[str] = mapped_column(String(10), nullable=False)
    width_unit: Mapped[str] = mapped_column(String(10), nullable=False)
    design: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    rate_per_sqft: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    area: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    hsn_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    item_order: Mapped[int] = mapped_column(Integer, nullable=False)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="items")

    def __repr__(self) -> str:
        return f"<InvoiceItem(glass_type='{self.glass_type}', qty={self.quantity})>"


class Payment(Base):
    """
    Payment received against an invoice.
    Rows are append-only; there is no update or delete path.
    """
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    payment_mode: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="CASH, UPI, CARD, BANK_TRANSFER, CHEQUE, OTHER"
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cheque_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, comment="UTR/Transaction ID")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment(mode='{self.payment_mode}', amount={self.amount})>"
