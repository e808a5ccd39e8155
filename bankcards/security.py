"""
Identity cryptography: password hashing and bearer tokens.

Card-number encryption is a separate concern and lives in bankcards.cipher;
nothing here ever sees a card number.

Passwords:
  Stored only as Argon2id hashes through passlib's CryptContext. With
  deprecated="auto", hashes made under an older scheme still verify and can
  be upgraded transparently if the scheme list ever changes.

Tokens:
  Login returns an HS256-signed JWT whose "sub" claim is the user id. The
  token proves WHO the caller is; WHAT they may do is decided per request
  from the roles stored in the database (see dependencies.get_caller), so
  a role change takes effect without re-issuing tokens.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from bankcards.config import settings
from bankcards.exceptions import UnauthorizedError


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password with Argon2id."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored Argon2 hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: uuid.UUID, expires_delta: timedelta | None = None) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user_id: Becomes the "sub" claim.
        expires_delta: Lifetime of the token; defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def user_id_from_token(token: str) -> uuid.UUID:
    """
    Verify a token and return the user id it was issued for.

    Raises:
        UnauthorizedError: If the token is expired, tampered with, or has
            no usable subject.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise UnauthorizedError()
        return uuid.UUID(subject)
    except (JWTError, ValueError):
        raise UnauthorizedError()
