"""
Tests for the authorization policy.

The predicates are pure, so they are exercised directly with plain
objects and no database.
"""

import uuid
from types import SimpleNamespace

import pytest

from bankcards.exceptions import ForbiddenError
from bankcards.models.card import CardStatus
from bankcards.models.role import RoleName
from bankcards.policy import (
    CallerContext,
    can_create_card_for,
    can_delete_card,
    can_list_all_cards,
    can_list_cards_for,
    can_manage_users,
    can_set_status,
    can_view_card,
    ensure,
    is_admin,
)


OWNER_ID = uuid.uuid4()
OTHER_ID = uuid.uuid4()

owner = CallerContext(id=OWNER_ID, roles=frozenset({RoleName.USER}))
stranger = CallerContext(id=OTHER_ID, roles=frozenset({RoleName.USER}))
admin = CallerContext(id=uuid.uuid4(), roles=frozenset({RoleName.ADMIN}))
card = SimpleNamespace(owner_id=OWNER_ID)


class TestViewing:

    def test_owner_sees_own_card(self):
        assert can_view_card(owner, card)

    def test_stranger_cannot_see_card(self):
        assert not can_view_card(stranger, card)

    def test_admin_sees_any_card(self):
        assert can_view_card(admin, card)

    def test_listing_follows_the_same_rule(self):
        assert can_list_cards_for(owner, OWNER_ID)
        assert not can_list_cards_for(stranger, OWNER_ID)
        assert can_list_cards_for(admin, OWNER_ID)


class TestStatusChanges:

    def test_owner_may_block(self):
        assert can_set_status(owner, card, CardStatus.BLOCKED)

    @pytest.mark.parametrize("status", [CardStatus.ACTIVE, CardStatus.EXPIRED])
    def test_owner_may_not_set_other_statuses(self, status):
        """Unblocking is an admin decision."""
        assert not can_set_status(owner, card, status)

    def test_stranger_may_not_block(self):
        assert not can_set_status(stranger, card, CardStatus.BLOCKED)

    @pytest.mark.parametrize("status", list(CardStatus))
    def test_admin_may_set_anything(self, status):
        assert can_set_status(admin, card, status)


class TestCreationAndAdminActions:

    def test_user_creates_for_self(self):
        assert can_create_card_for(owner, None)
        assert can_create_card_for(owner, OWNER_ID)

    def test_user_cannot_create_for_others(self):
        assert not can_create_card_for(owner, OTHER_ID)

    def test_admin_creates_for_anyone(self):
        assert can_create_card_for(admin, OTHER_ID)

    def test_admin_only_actions(self):
        for predicate in (can_delete_card, can_list_all_cards, can_manage_users):
            assert predicate(admin)
            assert not predicate(owner)

    def test_role_set_may_hold_both_roles(self):
        both = CallerContext(id=OWNER_ID, roles=frozenset({RoleName.USER, RoleName.ADMIN}))
        assert is_admin(both)

    def test_no_roles_means_no_privilege(self):
        assert not is_admin(CallerContext(id=OWNER_ID))


class TestEnsure:

    def test_allowed_passes(self):
        ensure(True, "unused")

    def test_denied_raises_with_message(self):
        with pytest.raises(ForbiddenError, match="Only admins"):
            ensure(False, "Only admins can delete cards")
