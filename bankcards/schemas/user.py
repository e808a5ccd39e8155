"""
Response and request models for user administration.

hashed_password is NEVER included in any response schema.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from bankcards.models.role import RoleName


class UserResponse(BaseModel):
    """Public representation of a User (never includes password hash)."""
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    roles: list[RoleName]
    created_at: datetime


class RoleAssignRequest(BaseModel):
    """Request body for POST /admin/users/{id}/roles."""
    role: RoleName
