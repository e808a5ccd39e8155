"""
Pydantic schemas for authentication endpoints (register and login).

Malformed bodies (short password, bad email, odd username characters)
are answered with 422 before any service code runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""
    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=8)
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=200)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Response body for successful login/registration — contains the JWT."""
    token: str
    token_type: str = "bearer"


class RegisterResponse(BaseModel):
    """Response body for successful registration — user info + JWT."""
    user_id: uuid.UUID
    username: str
    roles: list[str]
    token: str
    token_type: str = "bearer"
