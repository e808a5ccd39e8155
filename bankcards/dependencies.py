"""
FastAPI dependencies that establish who is calling.

The dependency chain is:

  bearer token  ->  user id  ->  CallerContext (id + roles from the database)

Routes receive only the CallerContext and pass it explicitly into the
services; nothing in the core reads identity from global or request state.
Authorization itself is NOT decided here: each service asks the policy
module, so the same rules hold no matter which route reaches them.
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.policy import CallerContext
from bankcards.security import user_id_from_token
from bankcards.services import user_service


# Where Swagger UI's "Authorize" button obtains a token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_caller(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CallerContext:
    """
    Resolve the bearer token into a CallerContext.

    Raises:
        UnauthorizedError: If the token is invalid or its user no longer
            exists (answered with 401 by the exception handlers).
    """
    user_id = user_id_from_token(token)
    return await user_service.resolve_caller(db, user_id)
