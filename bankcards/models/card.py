"""
Card model — a payment card owned by exactly one User.

Encryption strategy:
  The full card number is stored only as deterministic AES-SIV ciphertext
  (see bankcards.cipher). The ciphertext column is UNIQUE and indexed, so
  "does this number already exist?" is a single index lookup and the
  database rejects duplicates even under concurrent inserts.

Balance:
  Stored as integer cents with a CHECK constraint that it never goes
  negative. The `balance` property exposes it as a two-place Decimal.

Status:
  `status` is the PERSISTED value. What callers see is the derived status
  from effective_status(): past its expiry date an ACTIVE card reports
  EXPIRED, while BLOCKED always wins. Reads never write the derived value
  back; it is a pure function of the row and today's date, so two readers
  on the same day always agree.

Concurrency:
  `version_id` is SQLAlchemy's optimistic-lock counter. Every UPDATE is
  issued as "... WHERE id = ? AND version_id = ?"; if another transaction
  changed the row first, the flush raises StaleDataError instead of
  silently overwriting a newer balance.
"""

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Date, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankcards.database import Base
from bankcards.money import from_cents


class CardStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"


def effective_status(status: CardStatus, expiry_date: date, today: date) -> CardStatus:
    """
    The status a reader should see for a card on a given day.

    BLOCKED is sticky: an expired and blocked card reports BLOCKED.
    """
    if status == CardStatus.BLOCKED:
        return CardStatus.BLOCKED
    if status == CardStatus.EXPIRED or today > expiry_date:
        return CardStatus.EXPIRED
    return status


class Card(Base):
    __tablename__ = "cards"

    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_cards_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # AES-SIV ciphertext of the full card number (URL-safe base64)
    card_number_encrypted: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        index=True,
    )

    cardholder_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    expiry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus),
        default=CardStatus.ACTIVE,
        nullable=False,
    )

    balance_cents: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
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

    version_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version_id}

    # --- Relationships ---
    owner: Mapped["User"] = relationship(
        back_populates="cards",
        lazy="selectin",
    )

    @property
    def balance(self) -> Decimal:
        return from_cents(self.balance_cents)

    def status_on(self, today: date) -> CardStatus:
        return effective_status(self.status, self.expiry_date, today)

    def is_expired_on(self, today: date) -> bool:
        """True once the calendar date is past the expiry date."""
        return today > self.expiry_date
