from typing import Annotated, Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.database import get_db
from glassbill.core.security import verify_access_token
from glassbill.core.tenant_context import Principal, TenantContext, TenantResolver


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme; a missing header is reported by TenantResolver
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Principal:
    """
    Turn the bearer token into a Principal.

    A missing, invalid or expired token yields an unauthenticated principal;
    TenantResolver decides how that fails.
    """
    if credentials is None:
        return Principal(name=None, is_authenticated=False)

    username = verify_access_token(credentials.credentials)
    if username is None:
        logger.warning("Token verification failed - invalid or expired token")
        return Principal(name=None, is_authenticated=False)

    return Principal(name=username)


async def get_tenant(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TenantContext:
    """Resolve the caller's shop; every billing endpoint depends on this."""
    return await TenantResolver(db).resolve(principal)


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
Tenant = Annotated[TenantContext, Depends(get_tenant)]
