"""
Authentication service — registration and login.

Registration creates a User holding the USER role. ADMIN is never granted
here; it is assigned afterwards by an existing admin (user_service.assign_role)
or by an operator script (demo/promote_admin.py).

Login returns the same error for "unknown username" and "wrong password"
so the endpoint cannot be used to discover which usernames exist.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards import repositories
from bankcards.exceptions import DuplicateUserError, InvalidCredentialsError
from bankcards.logging_config import get_logger
from bankcards.models.role import RoleName
from bankcards.models.user import User
from bankcards.security import create_access_token, hash_password, verify_password
from bankcards.services.user_service import get_role

logger = get_logger(__name__)


async def register(
    db: AsyncSession,
    username: str,
    password: str,
    email: str,
    full_name: str,
) -> tuple[User, str]:
    """
    Create a new account holder and log them in.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        DuplicateUserError: If the username or email is already taken.
    """
    if await repositories.user_exists(db, username=username):
        raise DuplicateUserError("username", username)
    if await repositories.user_exists(db, email=email):
        raise DuplicateUserError("email", email)

    user = User(
        username=username,
        hashed_password=hash_password(password),
        email=email,
        full_name=full_name,
        roles=[await get_role(db, RoleName.USER)],
    )
    db.add(user)
    await db.flush()

    logger.info("user_registered", user_id=str(user.id))
    return user, create_access_token(user.id)


async def login(db: AsyncSession, username: str, password: str) -> tuple[User, str]:
    """
    Verify credentials and issue a token.

    Raises:
        InvalidCredentialsError: If the username is unknown or the password
            is wrong (indistinguishably).
    """
    user = await repositories.find_user_by_username(db, username)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("login_failed")
        raise InvalidCredentialsError()
    return user, create_access_token(user.id)
