"""
Role model — the closed catalog of trust levels.

There are exactly two roles. The `roles` table is seeded once at startup
(see user_service.seed_roles) and is never written by normal flows; users
are linked to roles through the `user_roles` association table.

Authorization code never compares role names as strings: it works on the
RoleName enum (see bankcards.policy).
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Table
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base


class RoleName(str, enum.Enum):
    """
    The two trust levels of the system.

    Inherits from str so the value serializes naturally to JSON.
    """
    ADMIN = "ADMIN"   # Full access: any card, any status, deletion, user admin
    USER = "USER"     # Account holder: own cards only


# Many-to-many link between users and roles
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[RoleName] = mapped_column(
        Enum(RoleName),
        unique=True,
        nullable=False,
    )
