import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.config import settings
from glassbill.core.security import verify_password, create_access_token
from glassbill.models.tenant import User

logger = logging.getLogger(__name__)


class AuthService:
    """Service for username/password sign-in."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """
        Authenticate a user by username and password.

        Returns:
            User object if authentication successful, None otherwise
        """
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        if user is None:
            return None

        if not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for '{username}'")
            return None

        if not user.is_active:
            return None

        return user

    def create_token(self, user: User) -> Tuple[str, int]:
        """
        Returns:
            Tuple of (access_token, expires_in_seconds)
        """
        access_token = create_access_token(
            username=user.username,
            additional_claims={"role": user.role},
        )
        return access_token, settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
