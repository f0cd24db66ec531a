"""Pydantic schemas for quotations."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from glassbill.schemas.base import BaseResponseSchema
from glassbill.models.quotation import (
    QuotationStatus, BillingType, DiscountType, DimensionUnit
)


# ==================== Item Schemas ====================

class QuotationItemCreate(BaseModel):
    """
    One glass line. Dimension and quantity rules (> 0) are enforced by
    QuotationService so direct service callers get the same errors.
    """
    glass_type: str = Field(..., min_length=1, max_length=100)
    thickness: Optional[str] = Field(None, max_length=50)
    height: Decimal = Field(..., decimal_places=2)
    width: Decimal = Field(..., decimal_places=2)
    height_unit: DimensionUnit = DimensionUnit.FEET
    width_unit: DimensionUnit = DimensionUnit.FEET
    design: Optional[str] = Field(None, max_length=50)
    quantity: int
    rate_per_sqft: Decimal = Field(..., decimal_places=2)
    hsn_code: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None


class QuotationItemResponse(BaseResponseSchema):
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


# ==================== Quotation Schemas ====================

class QuotationCreate(BaseModel):
    """
    Create a DRAFT quotation.

    Customer details come from customer_id when given; customer_* fields
    override or replace them (walk-in customers).
    """
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_mobile: Optional[str] = Field(None, max_length=20)
    customer_address: Optional[str] = None
    customer_gstin: Optional[str] = Field(None, max_length=15)
    customer_state: Optional[str] = Field(None, max_length=100)

    billing_type: BillingType = BillingType.GST
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None

    installation_charge: Decimal = Field(Decimal("0"), ge=0)
    transport_charge: Decimal = Field(Decimal("0"), ge=0)
    transportation_required: bool = False
    discount_type: DiscountType = DiscountType.AMOUNT
    discount_value: Decimal = Decimal("0")
    gst_percentage: Optional[Decimal] = Field(
        None,
        description="Defaults to DEFAULT_GST_PERCENTAGE for GST billing; ignored for NON_GST"
    )

    items: List[QuotationItemCreate] = []


class QuotationReject(BaseModel):
    reason: str = Field(..., max_length=1000)


class QuotationResponse(BaseResponseSchema):
    id: UUID
    shop_id: UUID
    customer_id: Optional[UUID] = None
    quotation_number: str
    billing_type: str
    status: QuotationStatus

    customer_name: str
    customer_mobile: Optional[str] = None
    customer_address: Optional[str] = None
    customer_gstin: Optional[str] = None
    customer_state: Optional[str] = None

    quotation_date: date
    valid_until: Optional[date] = None

    subtotal: Decimal
    installation_charge: Decimal
    transport_charge: Decimal
    transportation_required: bool
    discount_type: str
    discount_value: Decimal
    discount: Decimal
    gst_percentage: Optional[Decimal] = None
    is_interstate: bool
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    gst_amount: Decimal
    grand_total: Decimal

    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None

    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    items: List[QuotationItemResponse] = []


class QuotationBrief(BaseResponseSchema):
    """Row in quotation lists."""
    id: UUID
    quotation_number: str
    status: QuotationStatus
    billing_type: str
    customer_name: str
    quotation_date: date
    grand_total: Decimal
    created_at: datetime


class QuotationListResponse(BaseModel):
    items: List[QuotationBrief]
    total: int
    skip: int = 0
    limit: int = 50
