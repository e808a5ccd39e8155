"""
Admin router — user administration.

All endpoints require the ADMIN role; the user service enforces it.

Endpoints:
  GET    /admin/users                — List all users
  DELETE /admin/users/{user_id}       — Delete a user and their cards
  POST   /admin/users/{user_id}/roles — Grant a role to a user
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.dependencies import get_caller
from bankcards.policy import CallerContext
from bankcards.schemas.user import RoleAssignRequest, UserResponse
from bankcards.services import user_service

router = APIRouter()


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="[Admin] List all users",
)
async def list_users(
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db, caller)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Delete a user",
)
async def delete_user(
    user_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a user together with their cards.

    Transfer records that mention the deleted cards are kept.
    """
    await user_service.delete_user(db, caller, user_id)


@router.post(
    "/users/{user_id}/roles",
    response_model=UserResponse,
    summary="[Admin] Grant a role",
)
async def assign_role(
    user_id: uuid.UUID,
    request: RoleAssignRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.assign_role(db, caller, user_id, request.role)
