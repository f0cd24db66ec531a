"""Pydantic schemas for invoices and payments."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from glassbill.schemas.base import BaseResponseSchema
from glassbill.models.billing import InvoiceType, PaymentStatus, PaymentMode


# ==================== Invoice Schemas ====================

class InvoiceCreateFromQuotation(BaseModel):
    quotation_id: UUID
    invoice_type: InvoiceType = InvoiceType.STANDARD
    invoice_date: Optional[date] = None


class InvoiceItemResponse(BaseResponseSchema):
    id: UUID
    glass_type: str
    thickness: Optional[str] = None
    height: Decimal
    width: Decimal
    height_unit: str
    width_unit: str
    design: Optional[str] = None
    quantity: int
    rate_per_sqft: Decimal
    area: Decimal
    subtotal: Decimal
    hsn_code: Optional[str] = None
    description: Optional[str] = None
    item_order: int


# ==================== Payment Schemas ====================

class PaymentCreate(BaseModel):
    """Amount rules (> 0) are enforced by PaymentService."""
    payment_mode: PaymentMode
    amount: Decimal
    payment_date: Optional[datetime] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    bank_name: Optional[str] = Field(None, max_length=255)
    cheque_number: Optional[str] = Field(None, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentResponse(BaseResponseSchema):
    id: UUID
    invoice_id: UUID
    payment_mode: str
    amount: Decimal
    payment_date: datetime
    reference_number: Optional[str] = None
    bank_name: Optional[str] = None
    cheque_number: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


# ==================== Invoice Responses ====================

class InvoiceResponse(BaseResponseSchema):
    id: UUID
    shop_id: UUID
    customer_id: Optional[UUID] = None
    quotation_id: UUID
    invoice_number: str
    invoice_type: InvoiceType
    billing_type: str
    invoice_date: date

    customer_name: str
    customer_mobile: Optional[str] = None
    customer_address: Optional[str] = None
    customer_gstin: Optional[str] = None
    customer_state: Optional[str] = None

    subtotal: Decimal
    installation_charge: Decimal
    transport_charge: Decimal
    discount: Decimal
    gst_percentage: Optional[Decimal] = None
    is_interstate: bool
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    gst_amount: Decimal
    grand_total: Decimal

    payment_status: PaymentStatus
    paid_amount: Decimal
    due_amount: Decimal

    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    items: List[InvoiceItemResponse] = []
    payments: List[PaymentResponse] = []


class InvoiceBrief(BaseResponseSchema):
    """Row in invoice lists."""
    id: UUID
    invoice_number: str
    invoice_type: InvoiceType
    customer_name: str
    invoice_date: date
    grand_total: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    payment_status: PaymentStatus
    created_at: datetime


class InvoiceListResponse(BaseModel):
    items: List[InvoiceBrief]
    total: int
    skip: int = 0
    limit: int = 50
