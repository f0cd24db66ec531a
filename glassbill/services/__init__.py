# Services module
from glassbill.services.auth_service import AuthService
from glassbill.services.customer_service import CustomerService
from glassbill.services.document_sequence_service import DocumentSequenceService
from glassbill.services.quotation_service import QuotationService
from glassbill.services.invoice_service import InvoiceService
from glassbill.services.payment_service import PaymentService
from glassbill.services.document_render_service import DocumentRenderService

__all__ = [
    "AuthService",
    "CustomerService",
    "DocumentSequenceService",
    "QuotationService",
    "InvoiceService",
    "PaymentService",
    "DocumentRenderService",
]
