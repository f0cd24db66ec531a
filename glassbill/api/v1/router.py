from fastapi import APIRouter

from glassbill.api.v1.endpoints import (
    auth,
    customers,
    quotations,
    invoices,
)

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth")

# Billing
api_router.include_router(customers.router, prefix="/customers")
api_router.include_router(quotations.router, prefix="/quotations")
api_router.include_router(invoices.router, prefix="/invoices")
