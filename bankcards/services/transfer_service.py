"""
Transfer service — atomic money movement between two cards of one owner.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. A transfer either applies
completely (source debited, destination credited, one CardTransaction
appended, all in one database transaction) or not at all.

Check order (fixed, so the same bad request always yields the same error):
  1. Both cards exist                         -> CardNotFoundError
  2. Caller owns both cards                   -> ForbiddenError (no admin override)
  3. Source and destination differ            -> SameCardTransferError
  4. Source stored status is ACTIVE           -> CardNotActiveError("from")
  5. Destination stored status is ACTIVE      -> CardNotActiveError("to")
  6. Neither card is past its expiry date     -> CardExpiredError
  7. Amount is positive, whole cents, covered -> InvalidAmountError / InsufficientFundsError
Every check runs before the first mutation, so a rejected transfer never
leaves anything to undo.

Concurrency:
  Both cards are loaded with SELECT ... FOR UPDATE in ascending id order
  (see repositories.lock_cards), so transfers in opposite directions
  between the same two cards cannot deadlock on PostgreSQL.

  Card.version_id adds an optimistic check that also works on SQLite,
  which ignores FOR UPDATE: if another transfer committed a change to
  either card after we read it, our UPDATE matches no row and the flush
  raises StaleDataError. We then roll back and re-run the whole transfer
  against fresh rows. A second drain of the same balance therefore fails
  cleanly with InsufficientFundsError instead of overdrawing the card.
"""

import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from bankcards import clock, repositories
from bankcards.config import settings
from bankcards.exceptions import (
    CardExpiredError,
    CardNotActiveError,
    CardNotFoundError,
    ConcurrentUpdateError,
    InsufficientFundsError,
    SameCardTransferError,
)
from bankcards.logging_config import get_logger
from bankcards.models.card import CardStatus
from bankcards.models.card_transaction import CardTransaction
from bankcards.money import from_cents, to_cents
from bankcards.policy import CallerContext, ensure
from bankcards.schemas.transfer import TransferResponse
from bankcards.services.card_service import masked_number

logger = get_logger(__name__)


async def transfer(
    db: AsyncSession,
    caller: CallerContext,
    from_card_id: uuid.UUID,
    to_card_id: uuid.UUID,
    amount: Decimal,
) -> TransferResponse:
    """
    Move `amount` from one of the caller's cards to another.

    The operation owns the session's transaction: on a lost optimistic-lock
    race it rolls the session back and starts over, at most
    TRANSFER_MAX_RETRIES times.

    Args:
        db: Database session (nothing else should be pending on it).
        caller: Who is asking; must own both cards.
        from_card_id: Card to debit.
        to_card_id: Card to credit.
        amount: Positive amount with at most two decimal places.

    Returns:
        TransferResponse with the transaction id, masked card numbers,
        amount and timestamp.

    Raises:
        CardNotFoundError: If either card doesn't exist.
        ForbiddenError: If the caller doesn't own both cards.
        BadRequestError subclasses: Same card, inactive or expired card,
            invalid amount, insufficient funds.
        ConcurrentUpdateError: If every attempt lost a race (nothing was
            committed; safe to retry).
    """
    attempts = max(1, settings.TRANSFER_MAX_RETRIES)
    for attempt in range(1, attempts + 1):
        try:
            return await _execute_transfer(db, caller, from_card_id, to_card_id, amount)
        except StaleDataError:
            await db.rollback()
            logger.warning(
                "transfer_conflict",
                from_card_id=str(from_card_id),
                to_card_id=str(to_card_id),
                attempt=attempt,
            )
    raise ConcurrentUpdateError("Transfer could not be completed due to concurrent updates, please retry")


async def _execute_transfer(
    db: AsyncSession,
    caller: CallerContext,
    from_card_id: uuid.UUID,
    to_card_id: uuid.UUID,
    amount: Decimal,
) -> TransferResponse:
    # 1. Load and lock both cards (lower id first)
    cards = await repositories.lock_cards(db, [from_card_id, to_card_id])
    source = cards.get(from_card_id)
    if source is None:
        raise CardNotFoundError(from_card_id, label="From card")
    dest = cards.get(to_card_id)
    if dest is None:
        raise CardNotFoundError(to_card_id, label="To card")

    # 2. Ownership: both cards, caller only
    ensure(
        source.owner_id == caller.id and dest.owner_id == caller.id,
        "You can only transfer between your own cards",
    )

    # 3. Distinct cards
    if source.id == dest.id:
        raise SameCardTransferError()

    # 4-5. Stored status
    if source.status != CardStatus.ACTIVE:
        raise CardNotActiveError("from")
    if dest.status != CardStatus.ACTIVE:
        raise CardNotActiveError("to")

    # 6. Expiry by date
    today = clock.today()
    if source.is_expired_on(today):
        raise CardExpiredError("from")
    if dest.is_expired_on(today):
        raise CardExpiredError("to")

    # 7. Amount and funds
    amount_cents = to_cents(amount)
    if source.balance_cents < amount_cents:
        logger.info(
            "transfer_rejected",
            reason="insufficient_funds",
            from_card_id=str(source.id),
            to_card_id=str(dest.id),
            amount=str(from_cents(amount_cents)),
        )
        raise InsufficientFundsError(
            card_id=source.id,
            requested=from_cents(amount_cents),
            available=source.balance,
        )

    # 8. Apply and record
    source.balance_cents -= amount_cents
    dest.balance_cents += amount_cents
    await db.flush()

    txn = await repositories.save_transaction(
        db,
        CardTransaction(
            from_card_id=source.id,
            to_card_id=dest.id,
            amount_cents=amount_cents,
        ),
    )

    logger.info(
        "transfer_completed",
        transaction_id=str(txn.id),
        owner_id=str(caller.id),
        from_card_id=str(source.id),
        to_card_id=str(dest.id),
        amount=str(from_cents(amount_cents)),
    )

    # 9. Result
    return TransferResponse(
        transaction_id=txn.id,
        from_card_id=source.id,
        from_card_masked_number=masked_number(source),
        to_card_id=dest.id,
        to_card_masked_number=masked_number(dest),
        amount=from_cents(amount_cents),
        transaction_date=txn.created_at,
    )
