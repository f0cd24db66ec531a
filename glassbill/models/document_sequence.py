"""
Document Sequence Model for Number Allocation

NUMBERING FORMAT:
━━━━━━━━━━━━━━━━
• {PREFIX}-{YYYY}-{MM}-{NNNN}, sequence restarts every calendar month
• One counter per (shop, document type, month)
• Counter row read with SELECT ... FOR UPDATE so allocation is serialized

DOCUMENT FORMATS:
━━━━━━━━━━━━━━━━
• QTN: QTN-2026-10-0001 (Quotation)
• INV: INV-2026-10-0001 (Standard invoice)
• ADV: ADV-2026-10-0001 (Advance invoice)
"""

import uuid
from datetime import datetime, date, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from glassbill.database import Base
from glassbill.db_types import UUIDType


class DocumentType(str, Enum):
    """Numbered document kinds; the value is the number prefix."""
    QUOTATION = "QTN"
    INVOICE = "INV"
    ADVANCE_INVOICE = "ADV"


def period_for(on: Optional[date] = None) -> str:
    """Calendar year-month a number belongs to, e.g. "2026-10"."""
    on = on or datetime.now(timezone.utc).date()
    return f"{on.year:04d}-{on.month:02d}"


def format_document_number(
    document_type: DocumentType,
    period: str,
    sequence: int,
    padding_length: int = 4,
) -> str:
    return f"{document_type.value}-{period}-{str(sequence).zfill(padding_length)}"


def number_prefix(document_type: DocumentType, period: str) -> str:
    """Leading part shared by every number of one type and month."""
    return f"{document_type.value}-{period}-"


class DocumentSequence(Base):
    """
    Per-shop, per-type, per-month counter.

    Example:
        document_type = "INV"
        period = "2026-10"
        current_number = 42
        → Next invoice number: INV-2026-10-0043
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint(
            "shop_id", "document_type", "period",
            name="uq_document_sequence_shop_type_period"
        ),
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
    document_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="QTN, INV, ADV"
    )
    period: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="YYYY-MM"
    )
    current_number: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Last used sequence number"
    )
    padding_length: Mapped[int] = mapped_column(
        Integer,
        default=4,
        nullable=False,
        comment="Zero padding for sequence (4 = 0001)"
    )
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

    def get_next_number(self) -> str:
        """
        Generate next document number.

        NOTE: This method increments current_number but does NOT
        flush or commit. The caller owns the transaction.
        """
        self.current_number += 1
        return format_document_number(
            DocumentType(self.document_type), self.period, self.current_number, self.padding_length
        )

    def preview_next_number(self) -> str:
        """Preview next number without incrementing."""
        return format_document_number(
            DocumentType(self.document_type), self.period, self.current_number + 1, self.padding_length
        )

    def __repr__(self) -> str:
        return f"<DocumentSequence({self.document_type}/{self.period}: {self.current_number})>"
