from typing import Optional
import uuid

from fastapi import APIRouter, status, Query

from glassbill.api.deps import DB, Tenant
from glassbill.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)
from glassbill.services.customer_service import CustomerService


router = APIRouter(tags=["Customers"])


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    db: DB,
    tenant: Tenant,
    search: Optional[str] = Query(None, description="Search by name or mobile"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    """Customers of the caller's shop, newest first."""
    customers, total = await CustomerService(db).list(tenant, search=search, skip=skip, limit=limit)
    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in customers],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(data: CustomerCreate, db: DB, tenant: Tenant):
    customer = await CustomerService(db).create(tenant, data)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: uuid.UUID, db: DB, tenant: Tenant):
    customer = await CustomerService(db).get(tenant, customer_id)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(customer_id: uuid.UUID, data: CustomerUpdate, db: DB, tenant: Tenant):
    """Update a customer. Existing quotations and invoices keep their snapshot."""
    customer = await CustomerService(db).update(tenant, customer_id, data)
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: uuid.UUID, db: DB, tenant: Tenant):
    await CustomerService(db).delete(tenant, customer_id)
