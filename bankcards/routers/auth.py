"""
Authentication router — registration and login.

Apart from /health, nothing else in the API can be reached without a
bearer token.

Endpoints:
  POST /auth/register — Create a USER account and get a token
  POST /auth/login    — Exchange username and password for a token

Plaintext passwords exist only in memory while the request is handled;
they are hashed before any database write and never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from bankcards.services import auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new card holder.

    The account receives the USER role only; admins are promoted
    separately. Returns a token so the user is logged in right away.
    """
    user, token = await auth_service.register(
        db=db,
        username=request.username,
        password=request.password,
        email=request.email,
        full_name=request.full_name,
    )
    return RegisterResponse(
        user_id=user.id,
        username=user.username,
        roles=sorted(role.value for role in user.role_names),
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Send the returned token on every other request:

        Authorization: Bearer <token>
    """
    _, token = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )
    return TokenResponse(token=token)
