"""
SQLAlchemy async engine, the per-request session, and the model base.

Every request runs inside exactly one AsyncSession and therefore one
database transaction: get_db() commits when the route returns and rolls
back when anything raises, business errors included. That is what makes a
rejected transfer or a refused status change leave no trace: services
flush eagerly, and nothing they flushed survives an exception.

Card numbers only reach SQL as ciphertext, so echo=DEBUG statement logging
never exposes them.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from bankcards.config import settings


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Objects stay usable after commit; reloading an expired attribute would
# need implicit IO, which AsyncSession does not allow.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the Role, User, Card and CardTransaction tables."""


async def get_db():
    """Yield one session per request; commit on success, roll back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
