"""
Document Sequence Service for Atomic Number Generation

NUMBERING:
- Format: {PREFIX}-{YYYY}-{MM}-{NNNN}, e.g. QTN-2026-10-0001
- Sequence restarts every calendar month, per shop and document type
- Counter row locked with SELECT FOR UPDATE while a number is taken
- A new counter is seeded from the highest number already issued that month

COLLISIONS:
The unique constraints on (shop_id, quotation_number) and
(shop_id, invoice_number) are the backstop. create_numbered() allocates a
number and inserts the document inside a savepoint; if the insert hits the
constraint, the counter is re-synced from the stored documents and the
allocation is retried up to NUMBERING_MAX_RETRIES times.

USAGE:
    from glassbill.services.document_sequence_service import DocumentSequenceService

    service = DocumentSequenceService(db)
    quotation = await service.create_numbered(
        tenant.shop_id,
        DocumentType.QUOTATION,
        lambda number: Quotation(quotation_number=number, ...),
    )
"""

import logging
import uuid
from datetime import date
from typing import Callable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.config import settings
from glassbill.core.exceptions import NumberingConflictError
from glassbill.models.billing import Invoice
from glassbill.models.document_sequence import (
    DocumentSequence,
    DocumentType,
    format_document_number,
    number_prefix,
    period_for,
)
from glassbill.models.quotation import Quotation

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Where issued numbers of each type are stored
NUMBER_COLUMNS = {
    DocumentType.QUOTATION: (Quotation.shop_id, Quotation.quotation_number),
    DocumentType.INVOICE: (Invoice.shop_id, Invoice.invoice_number),
    DocumentType.ADVANCE_INVOICE: (Invoice.shop_id, Invoice.invoice_number),
}

# Fragments of unique-violation messages that mean "number already taken"
# (constraint names on PostgreSQL, column names on SQLite)
COLLISION_MARKERS = (
    "uq_quotation_shop_number",
    "uq_invoice_shop_number",
    "uq_document_sequence_shop_type_period",
    "quotations.quotation_number",
    "invoices.invoice_number",
    "document_sequences.shop_id",
)


def _is_number_collision(error: IntegrityError) -> bool:
    message = str(error.orig) if error.orig is not None else str(error)
    return any(marker in message for marker in COLLISION_MARKERS)


class DocumentSequenceService:
    """
    Allocates tenant-scoped, monthly document numbers.

    The service only flushes. The caller's transaction commits, which is
    also what releases the counter row lock.
    """

    def __init__(self, db: AsyncSession, padding_length: Optional[int] = None):
        self.db = db
        self.padding_length = padding_length or settings.NUMBER_PADDING

    async def get_next_number(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        on: Optional[date] = None,
    ) -> str:
        """
        Take the next number with an atomic increment.

        Returns:
            Formatted number, e.g. INV-2026-10-0043
        """
        document_type = DocumentType(document_type)
        period = period_for(on)

        sequence = await self._get_or_create_sequence(shop_id, document_type, period)
        number = sequence.get_next_number()
        await self.db.flush()

        logger.info(f"Allocated {number} for shop {shop_id}")
        return number

    async def preview_next_number(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        on: Optional[date] = None,
    ) -> str:
        """What get_next_number() would return now, without reserving it."""
        document_type = DocumentType(document_type)
        period = period_for(on)

        result = await self.db.execute(
            select(DocumentSequence).where(
                DocumentSequence.shop_id == shop_id,
                DocumentSequence.document_type == document_type.value,
                DocumentSequence.period == period,
            )
        )
        sequence = result.scalar_one_or_none()
        if sequence:
            return sequence.preview_next_number()

        used = await self._max_used_sequence(shop_id, document_type, period)
        return format_document_number(document_type, period, used + 1, self.padding_length)

    async def get_current_number(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        on: Optional[date] = None,
    ) -> int:
        """Last used sequence number of the month (0 if none)."""
        result = await self.db.execute(
            select(DocumentSequence.current_number).where(
                DocumentSequence.shop_id == shop_id,
                DocumentSequence.document_type == DocumentType(document_type).value,
                DocumentSequence.period == period_for(on),
            )
        )
        return result.scalar_one_or_none() or 0

    async def sync_from_documents(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        period: str,
    ) -> DocumentSequence:
        """
        Move the counter forward to the highest number actually stored.

        Repairs a counter that fell behind the documents table. The counter
        never moves backwards.
        """
        sequence = await self._get_or_create_sequence(shop_id, document_type, period)
        used = await self._max_used_sequence(shop_id, document_type, period)

        if used > sequence.current_number:
            logger.info(
                f"Resync {document_type.value}/{period} for shop {shop_id}: "
                f"{sequence.current_number} -> {used}"
            )
            sequence.current_number = used
            await self.db.flush()

        return sequence

    async def create_numbered(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        build: Callable[[str], T],
        on: Optional[date] = None,
    ) -> T:
        """
        Allocate a number, build the document with it and insert it.

        build(number) must return a new, unsaved ORM object. It may be called
        more than once, each time with a fresh number.

        Raises:
            NumberingConflictError: the number still collided after
                NUMBERING_MAX_RETRIES attempts
        """
        document_type = DocumentType(document_type)
        max_attempts = max(settings.NUMBERING_MAX_RETRIES, 1)
        resync = False

        for attempt in range(1, max_attempts + 1):
            try:
                async with self.db.begin_nested():
                    if resync:
                        await self.sync_from_documents(shop_id, document_type, period_for(on))
                    number = await self.get_next_number(shop_id, document_type, on)
                    document = build(number)
                    self.db.add(document)
                    await self.db.flush()
                return document
            except IntegrityError as e:
                if not _is_number_collision(e):
                    raise
                logger.warning(
                    f"{document_type.value} number collision for shop {shop_id} "
                    f"(attempt {attempt}/{max_attempts}), retrying"
                )
                resync = True

        raise NumberingConflictError(
            f"Could not allocate a unique {document_type.value} number",
            {"shop_id": str(shop_id), "attempts": max_attempts}
        )

    async def _max_used_sequence(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        period: str,
    ) -> int:
        """Highest sequence suffix stored for this shop, type and month."""
        shop_column, number_column = NUMBER_COLUMNS[document_type]
        prefix = number_prefix(document_type, period)

        result = await self.db.execute(
            select(number_column).where(
                shop_column == shop_id,
                number_column.like(f"{prefix}%"),
            )
        )

        highest = 0
        for number in result.scalars():
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest

    async def _get_or_create_sequence(
        self,
        shop_id: uuid.UUID,
        document_type: DocumentType,
        period: str,
    ) -> DocumentSequence:
        """
        Get the counter row with a row lock, or create it.

        A new row starts at the highest number already issued, so the first
        allocation of a month is the document count + 1.
        """
        result = await self.db.execute(
            select(DocumentSequence)
            .where(
                DocumentSequence.shop_id == shop_id,
                DocumentSequence.document_type == document_type.value,
                DocumentSequence.period == period,
            )
            .with_for_update()
        )
        sequence = result.scalar_one_or_none()

        if sequence:
            return sequence

        sequence = DocumentSequence(
            shop_id=shop_id,
            document_type=document_type.value,
            period=period,
            current_number=await self._max_used_sequence(shop_id, document_type, period),
            padding_length=self.padding_length,
        )
        self.db.add(sequence)
        await self.db.flush()

        # Re-fetch with lock
        result = await self.db.execute(
            select(DocumentSequence)
            .where(DocumentSequence.id == sequence.id)
            .with_for_update()
        )
        return result.scalar_one()
