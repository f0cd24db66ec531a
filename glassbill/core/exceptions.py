"""
Billing exception hierarchy.

Every business-rule failure raised by the services is a BillingError
subclass. Each kind carries the HTTP status the API layer answers with, so
endpoints never translate errors by hand.
"""

from typing import Any, Dict, Optional


class BillingError(Exception):
    """Base class for all billing-rule failures."""

    status_code: int = 400
    code: str = "BILLING_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


# ==================== Identity / Tenant ====================

class UnauthenticatedError(BillingError):
    """No principal, or the anonymous principal."""
    status_code = 401
    code = "UNAUTHENTICATED"


class PrincipalNotFoundError(BillingError):
    """The principal's backing user account does not exist."""
    status_code = 401
    code = "PRINCIPAL_NOT_FOUND"


class NoTenantAssignedError(BillingError):
    """The user exists but is not linked to a shop."""
    status_code = 403
    code = "NO_TENANT_ASSIGNED"


class CrossTenantAccessError(BillingError):
    """The record belongs to another shop."""
    status_code = 403
    code = "CROSS_TENANT_ACCESS"


class NotFoundError(BillingError):
    status_code = 404
    code = "NOT_FOUND"


# ==================== Lifecycle ====================

class InvalidStateError(BillingError):
    """Illegal lifecycle transition."""
    status_code = 409
    code = "INVALID_STATE"


class QuotationNotConfirmedError(BillingError):
    """Only CONFIRMED quotations can be turned into invoices."""
    status_code = 409
    code = "QUOTATION_NOT_CONFIRMED"


class NumberingConflictError(BillingError):
    """Document number still collided after the bounded retry."""
    status_code = 409
    code = "NUMBERING_CONFLICT"


# ==================== Validation ====================

class ValidationError(BillingError):
    status_code = 422
    code = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    code = "INVALID_AMOUNT"


class InvalidDiscountError(ValidationError):
    code = "INVALID_DISCOUNT"


class InvalidTaxRateError(ValidationError):
    code = "INVALID_TAX_RATE"
