"""
User model — the authentication identity and card owner.

Each User has a unique login name, an Argon2id password hash, contact
fields, and a set of Roles. A User owns zero or more Cards.

Ownership contract:
  The `cards` relationship has NO cascade. A user can be deleted only once
  their cards are gone; user_service.delete_user removes them first.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankcards.database import Base
from bankcards.models.role import Role, RoleName, user_roles


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login identifier, unique and indexed
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    # Roles are needed on every request to build the caller context,
    # so they are loaded eagerly with a second SELECT ... IN query.
    roles: Mapped[list[Role]] = relationship(
        secondary=user_roles,
        lazy="selectin",
    )

    # passive_deletes: deleting a user never loads or rewrites its cards;
    # callers must have removed them already.
    cards: Mapped[list["Card"]] = relationship(
        back_populates="owner",
        passive_deletes=True,
    )

    @property
    def role_names(self) -> frozenset[RoleName]:
        return frozenset(role.name for role in self.roles)
