from fastapi import APIRouter, HTTPException, status

from glassbill.api.deps import DB
from glassbill.schemas.auth import LoginRequest, TokenResponse
from glassbill.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: DB):
    """
    Authenticate user and return a bearer token.
    """
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(data.username, data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, expires_in = auth_service.create_token(user)
    return TokenResponse(access_token=access_token, token_type="bearer", expires_in=expires_in)
