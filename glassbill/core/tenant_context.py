"""
Tenant resolution for the billing services.

The caller's shop is never read from ambient state inside a service. The API
layer turns the bearer token into a Principal, TenantResolver turns the
Principal into a TenantContext, and that context is passed explicitly into
every service call.

Usage:

    tenant = await TenantResolver(db).resolve(Principal(name="admin"))
    quotation = await QuotationService(db).create(tenant, data)
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.core.exceptions import (
    UnauthenticatedError,
    PrincipalNotFoundError,
    NoTenantAssignedError,
    CrossTenantAccessError,
)
from glassbill.models.tenant import User

logger = logging.getLogger(__name__)

ANONYMOUS_PRINCIPAL = "anonymousUser"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as seen by the identity layer."""
    name: Optional[str]
    is_authenticated: bool = True

    @property
    def is_anonymous(self) -> bool:
        return not self.name or self.name == ANONYMOUS_PRINCIPAL


@dataclass(frozen=True)
class TenantContext:
    """The shop a request acts for, plus the acting username."""
    shop_id: uuid.UUID
    user_id: uuid.UUID
    username: str
    supplier_state: Optional[str] = None

    def ensure_owns(self, shop_id: uuid.UUID, what: str = "Record") -> None:
        """Raise CrossTenantAccessError unless shop_id is this tenant's shop."""
        if shop_id != self.shop_id:
            logger.warning(f"{self.username} denied access to {what.lower()} of shop {shop_id}")
            raise CrossTenantAccessError(
                f"{what} does not belong to your shop",
                {"shop_id": str(self.shop_id)}
            )


class TenantResolver:
    """Maps an authenticated principal to exactly one shop."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, principal: Optional[Principal]) -> TenantContext:
        """
        Resolve the caller's tenant.

        Raises:
            UnauthenticatedError: no principal, unauthenticated, or anonymous
            PrincipalNotFoundError: no active user with the principal's name
            NoTenantAssignedError: the user is not linked to a shop
        """
        if principal is None or not principal.is_authenticated or principal.is_anonymous:
            raise UnauthenticatedError("User not authenticated")

        result = await self.db.execute(
            select(User).where(User.username == principal.name)
        )
        user = result.scalar_one_or_none()

        if user is None or not user.is_active:
            logger.warning(f"Principal '{principal.name}' has no active user account")
            raise PrincipalNotFoundError("User not found", {"username": principal.name})

        if user.shop_id is None or user.shop is None:
            raise NoTenantAssignedError(
                "User is not linked to any shop",
                {"username": user.username}
            )

        return TenantContext(
            shop_id=user.shop_id,
            user_id=user.id,
            username=user.username,
            supplier_state=user.shop.state,
        )
