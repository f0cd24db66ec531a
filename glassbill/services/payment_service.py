"""
Payment Ledger & Status Reconciler

Payments are append-only. After each append the invoice totals are
recomputed from the ledger itself, not incremented:

    paid_amount = SUM(payments.amount)
    due_amount  = grand_total - paid_amount     (negative when overpaid)

    paid_amount >= grand_total -> PAID
    paid_amount > 0            -> PARTIAL
    otherwise                  -> DUE

The invoice row is locked (SELECT FOR UPDATE) before the insert, so
concurrent payments on one invoice serialize and the SUM sees all of them.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.core.exceptions import InvalidAmountError, NotFoundError
from glassbill.core.tenant_context import TenantContext
from glassbill.models.billing import Invoice, Payment, PaymentStatus
from glassbill.schemas.billing import PaymentCreate
from glassbill.services.tax_service import to_decimal, to_money

logger = logging.getLogger(__name__)


def payment_status_for(paid_amount: Decimal, grand_total: Decimal) -> PaymentStatus:
    if paid_amount >= grand_total:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.DUE


class PaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_payment(
        self,
        tenant: TenantContext,
        invoice_id: uuid.UUID,
        data: PaymentCreate,
    ) -> Payment:
        """
        Append a payment and reconcile the invoice.

        Raises:
            InvalidAmountError: amount <= 0 or finer than 0.01
            NotFoundError: no such invoice
            CrossTenantAccessError: the invoice belongs to another shop
        """
        amount = to_decimal(data.amount)
        if amount <= 0:
            logger.warning(f"Rejected payment of {amount} on invoice {invoice_id}")
            raise InvalidAmountError(
                "Payment amount must be greater than zero",
                {"amount": str(amount)}
            )
        if amount != to_money(amount):
            logger.warning(f"Rejected payment of {amount} on invoice {invoice_id}: sub-paisa precision")
            raise InvalidAmountError(
                "Payment amount cannot have more than 2 decimal places",
                {"amount": str(amount)}
            )

        invoice = await self._lock_invoice(invoice_id)
        tenant.ensure_owns(invoice.shop_id, "Invoice")

        payment = Payment(
            payment_mode=data.payment_mode.value,
            amount=to_money(amount),
            payment_date=data.payment_date or datetime.now(timezone.utc),
            reference_number=data.reference_number,
            bank_name=data.bank_name,
            cheque_number=data.cheque_number,
            transaction_id=data.transaction_id,
            notes=data.notes,
            created_by=tenant.username,
        )
        invoice.payments.append(payment)
        await self.db.flush()

        await self._reconcile(invoice)

        logger.info(
            f"Payment {payment.amount} ({payment.payment_mode}) on {invoice.invoice_number}: "
            f"paid {invoice.paid_amount}, due {invoice.due_amount}, {invoice.payment_status}"
        )
        return payment

    async def list_payments(self, tenant: TenantContext, invoice_id: uuid.UUID) -> List[Payment]:
        invoice = await self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found", {"invoice_id": str(invoice_id)})
        tenant.ensure_owns(invoice.shop_id, "Invoice")

        result = await self.db.execute(
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.payment_date, Payment.created_at)
        )
        return list(result.scalars().all())

    async def _lock_invoice(self, invoice_id: uuid.UUID) -> Invoice:
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice not found", {"invoice_id": str(invoice_id)})
        return invoice

    async def _reconcile(self, invoice: Invoice) -> None:
        """Recompute paid, due and status from the stored payments."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.invoice_id == invoice.id)
        )
        paid = to_money(result.scalar())

        invoice.paid_amount = paid
        invoice.due_amount = to_money(invoice.grand_total) - paid
        invoice.payment_status = payment_status_for(paid, to_money(invoice.grand_total)).value
        await self.db.flush()
