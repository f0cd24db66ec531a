import uuid

from fastapi import APIRouter, status, Query
from fastapi.responses import Response

from glassbill.api.deps import DB, Tenant
from glassbill.models.quotation import QuotationStatus
from glassbill.schemas.quotation import (
    QuotationCreate,
    QuotationReject,
    QuotationResponse,
    QuotationBrief,
    QuotationListResponse,
)
from glassbill.services.document_render_service import DocumentRenderService
from glassbill.services.quotation_service import QuotationService


router = APIRouter(tags=["Quotations"])


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_quotation(data: QuotationCreate, db: DB, tenant: Tenant):
    """
    Create a DRAFT quotation.

    Item areas, subtotal, discount, GST split and grand total are computed
    server side; a QTN-YYYY-MM-NNNN number is assigned.
    """
    quotation = await QuotationService(db).create(tenant, data)
    return QuotationResponse.model_validate(quotation)


@router.get("", response_model=QuotationListResponse)
async def list_quotations(
    db: DB,
    tenant: Tenant,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    quotations, total = await QuotationService(db).list(tenant, skip=skip, limit=limit)
    return QuotationListResponse(
        items=[QuotationBrief.model_validate(q) for q in quotations],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/status/{quotation_status}", response_model=QuotationListResponse)
async def list_quotations_by_status(
    quotation_status: QuotationStatus,
    db: DB,
    tenant: Tenant,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    quotations, total = await QuotationService(db).list_by_status(
        tenant, quotation_status, skip=skip, limit=limit
    )
    return QuotationListResponse(
        items=[QuotationBrief.model_validate(q) for q in quotations],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(quotation_id: uuid.UUID, db: DB, tenant: Tenant):
    quotation = await QuotationService(db).get(tenant, quotation_id)
    return QuotationResponse.model_validate(quotation)


@router.post("/{quotation_id}/confirm", response_model=QuotationResponse)
async def confirm_quotation(quotation_id: uuid.UUID, db: DB, tenant: Tenant):
    """DRAFT -> CONFIRMED. 409 if the quotation was already decided."""
    quotation = await QuotationService(db).confirm(tenant, quotation_id)
    return QuotationResponse.model_validate(quotation)


@router.post("/{quotation_id}/reject", response_model=QuotationResponse)
async def reject_quotation(quotation_id: uuid.UUID, data: QuotationReject, db: DB, tenant: Tenant):
    """DRAFT -> REJECTED with a reason."""
    quotation = await QuotationService(db).reject(tenant, quotation_id, data.reason)
    return QuotationResponse.model_validate(quotation)


@router.delete("/{quotation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quotation(quotation_id: uuid.UUID, db: DB, tenant: Tenant):
    """Only DRAFT quotations can be deleted."""
    await QuotationService(db).delete(tenant, quotation_id)


@router.get("/{quotation_id}/download")
async def download_quotation(quotation_id: uuid.UUID, db: DB, tenant: Tenant):
    content = await DocumentRenderService(db).render_quotation(tenant, quotation_id)
    return Response(
        content=content,
        media_type="text/html",
        headers={"Content-Disposition": f'inline; filename="quotation-{quotation_id}.html"'},
    )
