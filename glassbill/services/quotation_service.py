"""
Quotation Lifecycle

    DRAFT ──► CONFIRMED
      │
      └────► REJECTED

CONFIRMED and REJECTED are terminal. Only a DRAFT can be deleted; a decided
quotation is a retained legal record.

The status check is repeated inside the UPDATE (WHERE status = 'DRAFT'), so
two concurrent confirm calls cannot both succeed.
"""

import logging
import uuid
from datetime import datetime, date, timedelta, timezone
from decimal import Decimal
from typing import Optional, List, Dict, Tuple

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.config import settings
from glassbill.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from glassbill.core.tenant_context import TenantContext
from glassbill.models.document_sequence import DocumentType
from glassbill.models.quotation import (
    Quotation,
    QuotationItem,
    QuotationStatus,
    BillingType,
)
from glassbill.schemas.quotation import QuotationCreate
from glassbill.services import tax_service
from glassbill.services.customer_service import CustomerService
from glassbill.services.document_sequence_service import DocumentSequenceService

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION RULES
# =============================================================================

QUOTATION_TRANSITIONS: Dict[str, List[str]] = {
    QuotationStatus.DRAFT.value: [
        QuotationStatus.CONFIRMED.value,
        QuotationStatus.REJECTED.value,
    ],
    QuotationStatus.CONFIRMED.value: [],  # Terminal
    QuotationStatus.REJECTED.value: [],   # Terminal
}


def can_transition(current_status: str, target_status: str) -> bool:
    return target_status in QUOTATION_TRANSITIONS.get(current_status, [])


def validate_transition(quotation: Quotation, target_status: QuotationStatus) -> None:
    """Raise InvalidStateError unless quotation may move to target_status."""
    if not can_transition(quotation.status, target_status.value):
        logger.warning(
            f"Rejected transition of {quotation.quotation_number}: "
            f"{quotation.status} -> {target_status.value}"
        )
        raise InvalidStateError(
            f"Cannot change quotation from {quotation.status} to {target_status.value}",
            {
                "quotation_id": str(quotation.id),
                "current_status": quotation.status,
                "allowed": QUOTATION_TRANSITIONS.get(quotation.status, []),
            }
        )


class QuotationService:
    """Creates, decides and deletes quotations for one shop at a time."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Queries ====================

    async def get(self, tenant: TenantContext, quotation_id: uuid.UUID) -> Quotation:
        """
        Raises:
            NotFoundError: no such quotation
            CrossTenantAccessError: the quotation belongs to another shop
        """
        quotation = await self.db.get(Quotation, quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation not found", {"quotation_id": str(quotation_id)})
        tenant.ensure_owns(quotation.shop_id, "Quotation")
        return quotation

    async def list(
        self,
        tenant: TenantContext,
        status: Optional[QuotationStatus] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Quotation], int]:
        """Newest first, optionally filtered by status."""
        stmt = select(Quotation).where(Quotation.shop_id == tenant.shop_id)
        if status is not None:
            stmt = stmt.where(Quotation.status == QuotationStatus(status).value)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(Quotation.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def list_by_status(
        self,
        tenant: TenantContext,
        status: QuotationStatus,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Quotation], int]:
        return await self.list(tenant, status=status, skip=skip, limit=limit)

    # ==================== Create ====================

    async def create(self, tenant: TenantContext, data: QuotationCreate) -> Quotation:
        """
        Price the items, compute tax and save a numbered DRAFT.

        Raises:
            ValidationError: no items, non-positive dimensions or quantity,
                or no customer name
            InvalidDiscountError / InvalidTaxRateError: from the tax engine
            NumberingConflictError: no unique number after retries
        """
        if not data.items:
            raise ValidationError("Quotation must have at least one item")

        snapshot = await self._customer_snapshot(tenant, data)

        item_rows = []
        running_subtotal = Decimal("0")
        for index, item in enumerate(data.items):
            area = tax_service.item_area(item.height, item.width, item.height_unit, item.width_unit)
            line_subtotal = tax_service.item_subtotal(area, item.rate_per_sqft, item.quantity)
            running_subtotal += line_subtotal
            item_rows.append({
                "glass_type": item.glass_type,
                "thickness": item.thickness,
                "height": item.height,
                "width": item.width,
                "height_unit": item.height_unit.value,
                "width_unit": item.width_unit.value,
                "design": item.design,
                "quantity": item.quantity,
                "rate_per_sqft": item.rate_per_sqft,
                "area": tax_service.to_money(area),
                "subtotal": tax_service.to_money(line_subtotal),
                "hsn_code": item.hsn_code,
                "description": item.description,
                "item_order": index,
            })

        subtotal = tax_service.to_money(running_subtotal)
        installation = tax_service.to_money(data.installation_charge)
        transport = tax_service.to_money(data.transport_charge)
        discount = tax_service.resolve_discount(
            data.discount_type, data.discount_value, subtotal, installation, transport
        )

        if data.billing_type == BillingType.NON_GST:
            gst_percentage = None
        elif data.gst_percentage is not None:
            gst_percentage = data.gst_percentage
        else:
            gst_percentage = tax_service.to_decimal(settings.DEFAULT_GST_PERCENTAGE)

        tax = tax_service.compute(
            subtotal,
            installation,
            transport,
            discount,
            gst_percentage,
            tenant.supplier_state,
            snapshot["customer_state"],
        )

        quotation_date = data.quotation_date or datetime.now(timezone.utc).date()
        valid_until = data.valid_until or quotation_date + timedelta(days=settings.QUOTATION_VALIDITY_DAYS)

        def build(number: str) -> Quotation:
            return Quotation(
                shop_id=tenant.shop_id,
                customer_id=data.customer_id,
                quotation_number=number,
                billing_type=data.billing_type.value,
                status=QuotationStatus.DRAFT.value,
                **snapshot,
                quotation_date=quotation_date,
                valid_until=valid_until,
                subtotal=subtotal,
                installation_charge=installation,
                transport_charge=transport,
                transportation_required=data.transportation_required,
                discount_type=data.discount_type.value,
                discount_value=tax_service.to_decimal(data.discount_value),
                discount=discount,
                gst_percentage=gst_percentage,
                is_interstate=tax.is_interstate,
                cgst=tax.cgst,
                sgst=tax.sgst,
                igst=tax.igst,
                gst_amount=tax.tax_amount,
                grand_total=tax.grand_total,
                created_by=tenant.username,
                items=[QuotationItem(**row) for row in item_rows],
            )

        quotation = await DocumentSequenceService(self.db).create_numbered(
            tenant.shop_id, DocumentType.QUOTATION, build
        )
        await self.db.refresh(quotation)

        logger.info(
            f"Quotation {quotation.quotation_number} created by {tenant.username} "
            f"(grand total {quotation.grand_total})"
        )
        return quotation

    async def _customer_snapshot(self, tenant: TenantContext, data: QuotationCreate) -> dict:
        """Customer fields frozen onto the quotation."""
        snapshot = {
            "customer_name": None,
            "customer_mobile": None,
            "customer_address": None,
            "customer_gstin": None,
            "customer_state": None,
        }

        if data.customer_id:
            customer = await CustomerService(self.db).get(tenant, data.customer_id)
            snapshot.update({
                "customer_name": customer.name,
                "customer_mobile": customer.mobile,
                "customer_address": customer.address,
                "customer_gstin": customer.gstin,
                "customer_state": customer.state,
            })

        for field in snapshot:
            value = getattr(data, field)
            if value:
                snapshot[field] = value

        if not snapshot["customer_name"]:
            raise ValidationError("Customer name is required")

        return snapshot

    # ==================== Transitions ====================

    async def confirm(self, tenant: TenantContext, quotation_id: uuid.UUID) -> Quotation:
        """
        DRAFT -> CONFIRMED, recording who and when.

        Raises:
            InvalidStateError: the quotation is no longer DRAFT
        """
        quotation = await self.get(tenant, quotation_id)
        validate_transition(quotation, QuotationStatus.CONFIRMED)

        now = datetime.now(timezone.utc)
        await self._transition_from_draft(
            quotation,
            QuotationStatus.CONFIRMED,
            confirmed_at=now,
            confirmed_by=tenant.username,
        )

        logger.info(f"Quotation {quotation.quotation_number} confirmed by {tenant.username}")
        return quotation

    async def reject(
        self,
        tenant: TenantContext,
        quotation_id: uuid.UUID,
        reason: str,
    ) -> Quotation:
        """
        DRAFT -> REJECTED with a mandatory reason.

        Raises:
            ValidationError: empty reason
            InvalidStateError: the quotation is no longer DRAFT
        """
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required")

        quotation = await self.get(tenant, quotation_id)
        validate_transition(quotation, QuotationStatus.REJECTED)

        now = datetime.now(timezone.utc)
        await self._transition_from_draft(
            quotation,
            QuotationStatus.REJECTED,
            rejected_at=now,
            rejected_by=tenant.username,
            rejection_reason=reason.strip(),
        )

        logger.info(f"Quotation {quotation.quotation_number} rejected by {tenant.username}")
        return quotation

    async def delete(self, tenant: TenantContext, quotation_id: uuid.UUID) -> None:
        """
        Delete a DRAFT together with its items.

        Raises:
            InvalidStateError: the quotation is CONFIRMED or REJECTED
        """
        quotation = await self.get(tenant, quotation_id)

        if not quotation.is_draft:
            logger.warning(
                f"Refused to delete {quotation.status} quotation {quotation.quotation_number}"
            )
            raise InvalidStateError(
                "Only DRAFT quotations can be deleted",
                {"quotation_id": str(quotation.id), "current_status": quotation.status}
            )

        await self.db.delete(quotation)
        await self.db.flush()
        logger.info(f"Quotation {quotation.quotation_number} deleted by {tenant.username}")

    async def _transition_from_draft(
        self,
        quotation: Quotation,
        target_status: QuotationStatus,
        **values,
    ) -> None:
        """Conditional UPDATE; fails if someone else decided the quotation first."""
        result = await self.db.execute(
            update(Quotation)
            .where(
                Quotation.id == quotation.id,
                Quotation.status == QuotationStatus.DRAFT.value,
            )
            .values(
                status=target_status.value,
                updated_at=datetime.now(timezone.utc),
                **values,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await self.db.refresh(quotation)
            logger.warning(
                f"Quotation {quotation.quotation_number} was decided concurrently "
                f"(now {quotation.status})"
            )
            raise InvalidStateError(
                f"Quotation is already {quotation.status}",
                {"quotation_id": str(quotation.id), "current_status": quotation.status}
            )

        await self.db.refresh(quotation)
