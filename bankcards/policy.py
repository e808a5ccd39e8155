"""
Authorization policy — who may do what to which card.

Every card operation receives an explicit CallerContext (never a global
"current user") and asks one of the predicates below before touching
state. The predicates are pure functions over the caller's id, the
caller's roles, and the resource's owner: no database access and no side
effects, so they can be tested exhaustively without fixtures.

Rules:
  - ADMIN may view, list, re-status, create for anyone, and delete any card.
  - USER may view and list only their own cards, create cards only for
    themselves, and may only request that their own card be BLOCKED.
  - Deleting cards, listing every card, and managing users are ADMIN only.
"""

import uuid
from dataclasses import dataclass, field
from typing import Protocol

from bankcards.exceptions import ForbiddenError
from bankcards.models.card import CardStatus
from bankcards.models.role import RoleName


@dataclass(frozen=True)
class CallerContext:
    """The resolved identity and role set of whoever invokes an operation."""
    id: uuid.UUID
    roles: frozenset[RoleName] = field(default_factory=frozenset)


class OwnedCard(Protocol):
    owner_id: uuid.UUID


def is_admin(caller: CallerContext) -> bool:
    return RoleName.ADMIN in caller.roles


def can_view_card(caller: CallerContext, card: OwnedCard) -> bool:
    return is_admin(caller) or caller.id == card.owner_id


def can_list_cards_for(caller: CallerContext, target_user_id: uuid.UUID) -> bool:
    return is_admin(caller) or caller.id == target_user_id


def can_set_status(
    caller: CallerContext,
    card: OwnedCard,
    requested_status: CardStatus,
) -> bool:
    if is_admin(caller):
        return True
    return caller.id == card.owner_id and requested_status == CardStatus.BLOCKED


def can_create_card_for(
    caller: CallerContext,
    requested_owner_id: uuid.UUID | None,
) -> bool:
    if requested_owner_id is None or requested_owner_id == caller.id:
        return True
    return is_admin(caller)


def can_delete_card(caller: CallerContext) -> bool:
    return is_admin(caller)


def can_list_all_cards(caller: CallerContext) -> bool:
    return is_admin(caller)


def can_manage_users(caller: CallerContext) -> bool:
    return is_admin(caller)


def ensure(allowed: bool, detail: str) -> None:
    """Raise ForbiddenError with `detail` unless `allowed`."""
    if not allowed:
        raise ForbiddenError(detail)
