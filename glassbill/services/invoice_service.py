"""
Invoice Materializer

Turns a CONFIRMED quotation into an invoice. Customer snapshot, money fields,
tax split and items are copied from the quotation as stored; nothing is
recomputed. The invoice type picks the number prefix:

    STANDARD -> INV-YYYY-MM-NNNN
    ADVANCE  -> ADV-YYYY-MM-NNNN

Payment tracking starts at paid 0, due = grand total, status DUE.
"""

import logging
import uuid
from datetime import datetime, date, timezone
from typing import Optional, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.core.exceptions import NotFoundError, QuotationNotConfirmedError
from glassbill.core.tenant_context import TenantContext
from glassbill.db_types import ZERO
from glassbill.models.billing import Invoice, InvoiceItem, InvoiceType, PaymentStatus
from glassbill.models.document_sequence import DocumentType
from glassbill.models.quotation import Quotation, QuotationStatus
from glassbill.services.document_sequence_service import DocumentSequenceService

logger = logging.getLogger(__name__)


INVOICE_DOCUMENT_TYPES = {
    InvoiceType.STANDARD: DocumentType.INVOICE,
    InvoiceType.ADVANCE: DocumentType.ADVANCE_INVOICE,
}

# Quotation item columns carried over to invoice items
ITEM_FIELDS = (
    "glass_type",
    "thickness",
    "height",
    "width",
    "height_unit",
    "width_unit",
    "design",
    "quantity",
    "rate_per_sqft",
    "area",
    "subtotal",
    "hsn_code",
    "description",
    "item_order",
)

# Quotation columns carried over to the invoice
SNAPSHOT_FIELDS = (
    "customer_id",
    "billing_type",
    "customer_name",
    "customer_mobile",
    "customer_address",
    "customer_gstin",
    "customer_state",
    "subtotal",
    "installation_charge",
    "transport_charge",
    "discount",
    "gst_percentage",
    "is_interstate",
    "cgst",
    "sgst",
    "igst",
    "gst_amount",
    "grand_total",
)


def document_type_for(invoice_type: InvoiceType) -> DocumentType:
    return INVOICE_DOCUMENT_TYPES[InvoiceType(invoice_type)]


class InvoiceService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_from_quotation(
        self,
        tenant: TenantContext,
        quotation_id: uuid.UUID,
        invoice_type: InvoiceType = InvoiceType.STANDARD,
        invoice_date: Optional[date] = None,
    ) -> Invoice:
        """
        Materialize an invoice from a confirmed quotation.

        A quotation may be invoiced more than once; nothing here prevents a
        second invoice.

        Raises:
            NotFoundError: no such quotation
            CrossTenantAccessError: the quotation belongs to another shop
            QuotationNotConfirmedError: the quotation is DRAFT or REJECTED
            NumberingConflictError: no unique number after retries
        """
        invoice_type = InvoiceType(invoice_type)

        quotation = await self.db.get(Quotation, quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation not found", {"quotation_id": str(quotation_id)})
        tenant.ensure_owns(quotation.shop_id, "Quotation")

        if quotation.status != QuotationStatus.CONFIRMED.value:
            logger.warning(
                f"Refused to invoice {quotation.status} quotation {quotation.quotation_number}"
            )
            raise QuotationNotConfirmedError(
                "Only CONFIRMED quotations can be invoiced",
                {"quotation_id": str(quotation.id), "current_status": quotation.status}
            )

        invoice_date = invoice_date or datetime.now(timezone.utc).date()
        snapshot = {field: getattr(quotation, field) for field in SNAPSHOT_FIELDS}
        item_rows = [
            {field: getattr(item, field) for field in ITEM_FIELDS}
            for item in quotation.items
        ]

        def build(number: str) -> Invoice:
            return Invoice(
                shop_id=tenant.shop_id,
                quotation_id=quotation.id,
                invoice_number=number,
                invoice_type=invoice_type.value,
                invoice_date=invoice_date,
                **snapshot,
                payment_status=PaymentStatus.DUE.value,
                paid_amount=ZERO,
                due_amount=snapshot["grand_total"],
                created_by=tenant.username,
                items=[InvoiceItem(**row) for row in item_rows],
                payments=[],
            )

        invoice = await DocumentSequenceService(self.db).create_numbered(
            tenant.shop_id, document_type_for(invoice_type), build
        )
        await self.db.refresh(invoice)

        logger.info(
            f"Invoice {invoice.invoice_number} created from {quotation.quotation_number} "
            f"by {tenant.username}"
        )
        return invoice

    async def get(self, tenant: TenantContext, invoice_id: uuid.UUID) -> Invoice:
        """
        Raises:
            NotFoundError: no such invoice
            CrossTenantAccessError: the invoice belongs to another shop
        """
        invoice = await self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found", {"invoice_id": str(invoice_id)})
        tenant.ensure_owns(invoice.shop_id, "Invoice")
        return invoice

    async def list(
        self,
        tenant: TenantContext,
        payment_status: Optional[PaymentStatus] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Invoice], int]:
        """Newest first, optionally filtered by payment status."""
        stmt = select(Invoice).where(Invoice.shop_id == tenant.shop_id)
        if payment_status is not None:
            stmt = stmt.where(Invoice.payment_status == PaymentStatus(payment_status).value)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(Invoice.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def list_by_payment_status(
        self,
        tenant: TenantContext,
        payment_status: PaymentStatus,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Invoice], int]:
        return await self.list(tenant, payment_status=payment_status, skip=skip, limit=limit)
