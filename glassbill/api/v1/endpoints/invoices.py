from typing import List
import uuid

from fastapi import APIRouter, status, Query
from fastapi.responses import Response

from glassbill.api.deps import DB, Tenant
from glassbill.models.billing import PaymentStatus
from glassbill.schemas.billing import (
    InvoiceCreateFromQuotation,
    InvoiceResponse,
    InvoiceBrief,
    InvoiceListResponse,
    PaymentCreate,
    PaymentResponse,
)
from glassbill.services.document_render_service import DocumentRenderService
from glassbill.services.invoice_service import InvoiceService
from glassbill.services.payment_service import PaymentService


router = APIRouter(tags=["Invoices"])


@router.post("/from-quotation", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice_from_quotation(data: InvoiceCreateFromQuotation, db: DB, tenant: Tenant):
    """
    Materialize an invoice from a CONFIRMED quotation.

    STANDARD invoices are numbered INV-YYYY-MM-NNNN, ADVANCE invoices
    ADV-YYYY-MM-NNNN.
    """
    invoice = await InvoiceService(db).create_from_quotation(
        tenant,
        data.quotation_id,
        invoice_type=data.invoice_type,
        invoice_date=data.invoice_date,
    )
    return InvoiceResponse.model_validate(invoice)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: DB,
    tenant: Tenant,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    invoices, total = await InvoiceService(db).list(tenant, skip=skip, limit=limit)
    return InvoiceListResponse(
        items=[InvoiceBrief.model_validate(i) for i in invoices],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/payment-status/{payment_status}", response_model=InvoiceListResponse)
async def list_invoices_by_payment_status(
    payment_status: PaymentStatus,
    db: DB,
    tenant: Tenant,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    invoices, total = await InvoiceService(db).list_by_payment_status(
        tenant, payment_status, skip=skip, limit=limit
    )
    return InvoiceListResponse(
        items=[InvoiceBrief.model_validate(i) for i in invoices],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: uuid.UUID, db: DB, tenant: Tenant):
    invoice = await InvoiceService(db).get(tenant, invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.post("/{invoice_id}/payments", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def add_payment(invoice_id: uuid.UUID, data: PaymentCreate, db: DB, tenant: Tenant):
    """Record a payment; returns the invoice with updated paid/due/status."""
    await PaymentService(db).add_payment(tenant, invoice_id, data)
    invoice = await InvoiceService(db).get(tenant, invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}/payments", response_model=List[PaymentResponse])
async def list_payments(invoice_id: uuid.UUID, db: DB, tenant: Tenant):
    payments = await PaymentService(db).list_payments(tenant, invoice_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/{invoice_id}/download")
async def download_invoice(invoice_id: uuid.UUID, db: DB, tenant: Tenant):
    content = await DocumentRenderService(db).render_invoice(tenant, invoice_id)
    return Response(
        content=content,
        media_type="text/html",
        headers={"Content-Disposition": f'inline; filename="invoice-{invoice_id}.html"'},
    )
