"""
User service — caller resolution, role catalog, and user administration.

Roles:
  The role catalog is seeded once (seed_roles) and only ever read after
  that. A user's role set changes only through assign_role(), an admin
  action.

Deleting users:
  A user owns their cards, but the relationship carries no ORM cascade.
  delete_user() removes the user's cards explicitly first, then the user.
  The transfer log is untouched: it references cards softly and outlives
  them.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards import repositories
from bankcards.exceptions import UnauthorizedError, UserNotFoundError
from bankcards.logging_config import get_logger
from bankcards.models.role import Role, RoleName
from bankcards.models.user import User
from bankcards.policy import CallerContext, can_manage_users, ensure
from bankcards.schemas.user import UserResponse

logger = get_logger(__name__)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        roles=sorted(user.role_names),
        created_at=user.created_at,
    )


def caller_context_for(user: User) -> CallerContext:
    return CallerContext(id=user.id, roles=user.role_names)


async def resolve_caller(db: AsyncSession, user_id: uuid.UUID) -> CallerContext:
    """
    Turn an authenticated user id into a CallerContext.

    Raises:
        UnauthorizedError: If the id no longer maps to a user. The identity
            layer vouched for someone who does not exist, so the request
            cannot proceed.
    """
    user = await repositories.find_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError()
    return caller_context_for(user)


async def seed_roles(db: AsyncSession) -> None:
    """Create any missing catalog roles. Safe to run on every startup."""
    for name in RoleName:
        if await repositories.find_role(db, name) is None:
            db.add(Role(name=name))
            logger.info("role_seeded", role=name.value)
    await db.flush()


async def get_role(db: AsyncSession, name: RoleName) -> Role:
    role = await repositories.find_role(db, name)
    if role is None:
        # The catalog is seeded at startup; a missing row is corrupted state
        raise RuntimeError(f"Role catalog is missing {name.value}")
    return role


async def list_users(db: AsyncSession, caller: CallerContext) -> list[UserResponse]:
    """[ADMIN ONLY] Every user in the system."""
    ensure(can_manage_users(caller), "Only admins can manage users")
    return [to_user_response(user) for user in await repositories.find_all_users(db)]


async def assign_role(
    db: AsyncSession,
    caller: CallerContext,
    user_id: uuid.UUID,
    role_name: RoleName,
) -> UserResponse:
    """
    [ADMIN ONLY] Add a role to a user's role set (no-op if already present).

    Raises:
        ForbiddenError: If the caller is not an admin.
        UserNotFoundError: If the user doesn't exist.
    """
    ensure(can_manage_users(caller), "Only admins can manage users")
    user = await repositories.find_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if role_name not in user.role_names:
        user.roles.append(await get_role(db, role_name))
        await db.flush()
        logger.info(
            "role_assigned",
            user_id=str(user.id),
            role=role_name.value,
            assigned_by=str(caller.id),
        )
    return to_user_response(user)


async def delete_user(
    db: AsyncSession,
    caller: CallerContext,
    user_id: uuid.UUID,
) -> None:
    """
    [ADMIN ONLY] Delete a user, removing their cards first.

    Raises:
        ForbiddenError: If the caller is not an admin.
        UserNotFoundError: If the user doesn't exist.
    """
    ensure(can_manage_users(caller), "Only admins can manage users")
    user = await repositories.find_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    cards = await repositories.find_all_cards_of_owner(db, user.id)
    for card in cards:
        await repositories.delete_card(db, card)

    await db.delete(user)
    await db.flush()
    logger.info(
        "user_deleted",
        user_id=str(user_id),
        cards_deleted=len(cards),
        deleted_by=str(caller.id),
    )
