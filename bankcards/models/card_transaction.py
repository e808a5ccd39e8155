"""
CardTransaction model — the immutable record of a completed transfer.

One row is appended per successful transfer and never updated or deleted.

The card references are SOFT: plain indexed UUID columns without foreign
keys. The transaction log is a historical record and must survive an
administrator physically deleting one of the cards it mentions.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Integer, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base


class CardTransaction(Base):
    __tablename__ = "card_transactions"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_card_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    from_card_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        index=True,
    )

    to_card_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        index=True,
    )

    amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
