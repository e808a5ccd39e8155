"""
Persistence gateway — the queries the card core needs, and nothing more.

Services never build SQL themselves; they call these functions with the
request's AsyncSession. Every write is flushed immediately so constraint
violations (duplicate ciphertext, negative balance, stale version) surface
inside the operation that caused them, not at commit time.

Locking:
  lock_cards() loads rows with SELECT ... FOR UPDATE, always in ascending
  id order, so two transfers moving money in opposite directions between
  the same pair of cards can never deadlock. On SQLite FOR UPDATE is a
  no-op; there the Card.version_id optimistic check does the guarding.
"""

import uuid
from datetime import date

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import InvalidSortKeyError
from bankcards.models.card import Card, CardStatus
from bankcards.models.card_transaction import CardTransaction
from bankcards.models.role import Role, RoleName
from bankcards.models.user import User


# Public sort keys (snake_case and the camelCase spelling clients often send)
SORT_COLUMNS = {
    "id": Card.id,
    "cardholder_name": Card.cardholder_name,
    "cardholderName": Card.cardholder_name,
    "expiry_date": Card.expiry_date,
    "expiryDate": Card.expiry_date,
    "status": Card.status,
    "balance": Card.balance_cents,
    "created_at": Card.created_at,
    "createdAt": Card.created_at,
}


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

async def find_card_by_id(db: AsyncSession, card_id: uuid.UUID) -> Card | None:
    result = await db.execute(select(Card).where(Card.id == card_id))
    return result.scalar_one_or_none()


async def lock_cards(db: AsyncSession, card_ids: list[uuid.UUID]) -> dict[uuid.UUID, Card]:
    """
    Load and row-lock the given cards in canonical (ascending id) order.

    populate_existing() makes a retried operation see the committed row,
    not a stale copy from the session's identity map.

    Returns:
        Mapping of card id to Card for the ids that exist.
    """
    cards: dict[uuid.UUID, Card] = {}
    for card_id in sorted(set(card_ids)):
        result = await db.execute(
            select(Card)
            .where(Card.id == card_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        card = result.scalar_one_or_none()
        if card is not None:
            cards[card_id] = card
    return cards


def derived_status_clause(status: CardStatus, today: date):
    """SQL condition matching cards whose derived status on `today` is `status`."""
    if status == CardStatus.BLOCKED:
        return Card.status == CardStatus.BLOCKED
    if status == CardStatus.EXPIRED:
        return or_(
            Card.status == CardStatus.EXPIRED,
            and_(Card.status != CardStatus.BLOCKED, Card.expiry_date < today),
        )
    return and_(Card.status == CardStatus.ACTIVE, Card.expiry_date >= today)


async def find_cards_by_owner(
    db: AsyncSession,
    owner_id: uuid.UUID,
    today: date,
    cardholder_name: str | None = None,
    status: CardStatus | None = None,
    sort_by: str = "id",
    sort_dir: str = "desc",
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Card], int]:
    """
    One page of an owner's cards plus the total number of matches.

    The card id is always appended as a tie breaker so pages are stable
    even when sorting by a non-unique column.

    Raises:
        InvalidSortKeyError: If sort_by is not a known sort key.
    """
    sort_column = SORT_COLUMNS.get(sort_by)
    if sort_column is None:
        raise InvalidSortKeyError(sort_by)

    conditions = [Card.owner_id == owner_id]
    if cardholder_name:
        conditions.append(
            Card.cardholder_name.icontains(cardholder_name, autoescape=True)
        )
    if status is not None:
        conditions.append(derived_status_clause(status, today))

    total = await db.scalar(select(func.count()).select_from(Card).where(*conditions))

    if sort_dir.lower() == "asc":
        order = [sort_column.asc(), Card.id.asc()]
    else:
        order = [sort_column.desc(), Card.id.desc()]

    result = await db.execute(
        select(Card)
        .where(*conditions)
        .order_by(*order)
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total or 0


async def find_all_cards(db: AsyncSession) -> list[Card]:
    result = await db.execute(select(Card).order_by(Card.created_at.desc(), Card.id.desc()))
    return list(result.scalars().all())


async def find_all_cards_of_owner(db: AsyncSession, owner_id: uuid.UUID) -> list[Card]:
    result = await db.execute(select(Card).where(Card.owner_id == owner_id))
    return list(result.scalars().all())


async def card_number_exists(db: AsyncSession, card_number_encrypted: str) -> bool:
    """Indexed existence check on the ciphertext column."""
    return bool(
        await db.scalar(
            select(exists().where(Card.card_number_encrypted == card_number_encrypted))
        )
    )


async def save_card(db: AsyncSession, card: Card) -> Card:
    db.add(card)
    await db.flush()
    return card


async def delete_card(db: AsyncSession, card: Card) -> None:
    await db.delete(card)
    await db.flush()


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

async def save_transaction(db: AsyncSession, txn: CardTransaction) -> CardTransaction:
    db.add(txn)
    await db.flush()
    return txn


# ---------------------------------------------------------------------------
# Users and roles
# ---------------------------------------------------------------------------

async def find_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def find_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def user_exists(db: AsyncSession, username: str | None = None, email: str | None = None) -> bool:
    condition = User.username == username if username is not None else User.email == email
    return bool(await db.scalar(select(exists().where(condition))))


async def find_all_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at, User.username))
    return list(result.scalars().all())


async def find_role(db: AsyncSession, name: RoleName) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalar_one_or_none()
