from glassbill.models.tenant import Shop, User, UserRole
from glassbill.models.customer import Customer
from glassbill.models.quotation import (
    Quotation,
    QuotationItem,
    QuotationStatus,
    BillingType,
    DiscountType,
    DimensionUnit,
)
from glassbill.models.billing import (
    Invoice,
    InvoiceItem,
    Payment,
    InvoiceType,
    PaymentStatus,
    PaymentMode,
)
from glassbill.models.document_sequence import DocumentSequence, DocumentType

__all__ = [
    "Shop",
    "User",
    "UserRole",
    "Customer",
    "Quotation",
    "QuotationItem",
    "QuotationStatus",
    "BillingType",
    "DiscountType",
    "DimensionUnit",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "InvoiceType",
    "PaymentStatus",
    "PaymentMode",
    "DocumentSequence",
    "DocumentType",
]
