"""
Card service — the card lifecycle: create, read, list, re-status, delete.

Every operation follows the same shape:
  1. Load what the decision needs (NotFound if absent)
  2. Ask the authorization policy (Forbidden on denial)
  3. Apply business rules (BadRequest on violation)
  4. Write through the persistence gateway
  5. Build the response: decrypt the stored number, mask it, derive status

The clear card number exists only in memory, only inside steps 4 and 5:
encrypted on the way in, decrypted and immediately masked on the way out.
It is never logged and never placed in an error message.

Derived status:
  Responses report effective_status(): an ACTIVE card past its expiry date
  reads as EXPIRED, BLOCKED always reads as BLOCKED. Reads do NOT persist
  that correction; the stored status changes only through
  update_card_status().
"""

import math
import re
import uuid
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards import clock, repositories
from bankcards.cipher import card_cipher
from bankcards.config import settings
from bankcards.exceptions import (
    BadRequestError,
    CardNotFoundError,
    ConcurrentUpdateError,
    DuplicateCardNumberError,
    ExpiryDateInPastError,
    InvalidCardNumberError,
    UserNotFoundError,
)
from bankcards.logging_config import get_logger
from bankcards.masking import mask_card_number
from bankcards.models.card import Card, CardStatus
from bankcards.policy import (
    CallerContext,
    can_create_card_for,
    can_delete_card,
    can_list_all_cards,
    can_list_cards_for,
    can_set_status,
    can_view_card,
    ensure,
)
from bankcards.schemas.card import CardPage, CardResponse

logger = get_logger(__name__)


def masked_number(card: Card) -> str:
    """Decrypt a card's stored number and return only its masked form."""
    return mask_card_number(card_cipher.decrypt(card.card_number_encrypted))


def to_card_response(card: Card, today: date | None = None) -> CardResponse:
    """Build the public view of a card as of `today` (defaults to now)."""
    if today is None:
        today = clock.today()
    return CardResponse(
        id=card.id,
        masked_card_number=masked_number(card),
        cardholder_name=card.cardholder_name,
        expiry_date=card.expiry_date,
        status=card.status_on(today),
        balance=card.balance,
        owner_id=card.owner_id,
        owner_username=card.owner.username,
        created_at=card.created_at,
        updated_at=card.updated_at,
    )


def normalize_card_number(card_number: str) -> str:
    """
    Strip spaces and hyphens and require exactly 16 digits.

    The cipher is deterministic, so one card must always encrypt from the
    same canonical string for the uniqueness check to hold.

    Raises:
        InvalidCardNumberError: If what remains is not 16 digits.
    """
    digits = re.sub(r"[\s-]", "", card_number or "")
    if not re.fullmatch(r"\d{16}", digits, flags=re.ASCII):
        raise InvalidCardNumberError()
    return digits


async def _get_card_or_404(db: AsyncSession, card_id: uuid.UUID) -> Card:
    card = await repositories.find_card_by_id(db, card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    return card


async def list_cards(
    db: AsyncSession,
    caller: CallerContext,
    owner_id: uuid.UUID | None = None,
    cardholder_name: str | None = None,
    status: CardStatus | None = None,
    page: int = 0,
    size: int | None = None,
    sort_by: str = "id",
    sort_dir: str = "desc",
) -> CardPage:
    """
    List one owner's cards, filtered, sorted and paginated.

    Args:
        db: Database session.
        caller: Who is asking.
        owner_id: Whose cards to list; defaults to the caller.
        cardholder_name: Case-insensitive substring filter.
        status: Exact match on the DERIVED status.
        page: Zero-based page index.
        size: Page size (defaults to DEFAULT_PAGE_SIZE, capped at MAX_PAGE_SIZE).
        sort_by: One of repositories.SORT_COLUMNS.
        sort_dir: "asc" or "desc" (default).

    Raises:
        ForbiddenError: If a non-admin lists someone else's cards.
        BadRequestError: On an invalid page, size or sort key.
    """
    target_id = owner_id if owner_id is not None else caller.id
    ensure(
        can_list_cards_for(caller, target_id),
        "Access denied: You can only view your own cards",
    )

    if size is None:
        size = settings.DEFAULT_PAGE_SIZE
    if page < 0:
        raise BadRequestError("Page index cannot be negative")
    if not 1 <= size <= settings.MAX_PAGE_SIZE:
        raise BadRequestError(f"Page size must be between 1 and {settings.MAX_PAGE_SIZE}")

    today = clock.today()
    cards, total = await repositories.find_cards_by_owner(
        db,
        owner_id=target_id,
        today=today,
        cardholder_name=cardholder_name,
        status=status,
        sort_by=sort_by,
        sort_dir=sort_dir,
        limit=size,
        offset=page * size,
    )

    return CardPage(
        items=[to_card_response(card, today) for card in cards],
        page=page,
        size=size,
        total=total,
        total_pages=math.ceil(total / size),
    )


async def get_card(
    db: AsyncSession,
    caller: CallerContext,
    card_id: uuid.UUID,
) -> CardResponse:
    """
    Get a single card by id.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        ForbiddenError: If a non-admin asks for someone else's card.
    """
    card = await _get_card_or_404(db, card_id)
    ensure(can_view_card(caller, card), "Access denied: You can only view your own cards")
    return to_card_response(card)


async def create_card(
    db: AsyncSession,
    caller: CallerContext,
    card_number: str,
    cardholder_name: str,
    expiry_date: date,
    owner_id: uuid.UUID | None = None,
) -> CardResponse:
    """
    Register a new card with zero balance and ACTIVE status.

    Args:
        db: Database session.
        caller: Who is asking.
        card_number: The clear card number (encrypted before storage).
        cardholder_name: Name printed on the card.
        expiry_date: Last valid day; must not be before today.
        owner_id: Owner of the new card; defaults to the caller. Only
                  admins may name someone else.

    Raises:
        ForbiddenError: If a non-admin creates a card for another user.
        UserNotFoundError: If the requested owner doesn't exist.
        ExpiryDateInPastError: If expiry_date is before today.
        InvalidCardNumberError: If card_number is not 16 digits once spaces
            and hyphens are removed.
        DuplicateCardNumberError: If a card with this number already exists.
    """
    ensure(
        can_create_card_for(caller, owner_id),
        "Only admins can create cards for other users",
    )
    effective_owner_id = owner_id if owner_id is not None else caller.id
    owner = await repositories.find_user_by_id(db, effective_owner_id)
    if owner is None:
        raise UserNotFoundError(effective_owner_id, label="Owner")

    if expiry_date < clock.today():
        raise ExpiryDateInPastError()

    encrypted = card_cipher.encrypt(normalize_card_number(card_number))
    if await repositories.card_number_exists(db, encrypted):
        raise DuplicateCardNumberError()

    card = Card(
        card_number_encrypted=encrypted,
        cardholder_name=cardholder_name,
        expiry_date=expiry_date,
        status=CardStatus.ACTIVE,
        balance_cents=0,
        owner_id=owner.id,
        owner=owner,
    )
    try:
        await repositories.save_card(db, card)
    except IntegrityError:
        # Lost a race with a concurrent insert of the same number
        raise DuplicateCardNumberError()

    logger.info(
        "card_created",
        card_id=str(card.id),
        owner_id=str(owner.id),
        created_by=str(caller.id),
    )
    return to_card_response(card)


async def update_card_status(
    db: AsyncSession,
    caller: CallerContext,
    card_id: uuid.UUID,
    new_status: CardStatus,
) -> CardResponse:
    """
    Persist a new status for a card. No other field changes.

    Owners may only request BLOCKED; admins may set any status.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        ForbiddenError: If the caller may not set this status on this card.
        ConcurrentUpdateError: If a concurrent transfer changed the card first.
    """
    card = await _get_card_or_404(db, card_id)
    ensure(
        can_set_status(caller, card, new_status),
        "Access denied: You can only request to block your own card",
    )

    previous = card.status
    card.status = new_status
    try:
        await repositories.save_card(db, card)
    except StaleDataError:
        raise ConcurrentUpdateError()

    logger.info(
        "card_status_changed",
        card_id=str(card.id),
        from_status=previous.value,
        to_status=new_status.value,
        changed_by=str(caller.id),
    )
    return to_card_response(card)


async def delete_card(
    db: AsyncSession,
    caller: CallerContext,
    card_id: uuid.UUID,
) -> None:
    """
    Permanently remove a card (admins only).

    The transfer log keeps its soft references to the deleted card.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        ForbiddenError: If the caller is not an admin.
        ConcurrentUpdateError: If a concurrent transfer changed the card first.
    """
    card = await _get_card_or_404(db, card_id)
    ensure(can_delete_card(caller), "Only admins can delete cards")

    try:
        await repositories.delete_card(db, card)
    except StaleDataError:
        raise ConcurrentUpdateError()
    logger.info("card_deleted", card_id=str(card_id), deleted_by=str(caller.id))


async def list_all_cards(db: AsyncSession, caller: CallerContext) -> list[CardResponse]:
    """
    [ADMIN ONLY] Every card in the system, newest first.

    A plain non-locking read: it never blocks concurrent transfers.
    """
    ensure(can_list_all_cards(caller), "Only admins can view all cards")
    today = clock.today()
    return [to_card_response(card, today) for card in await repositories.find_all_cards(db)]
