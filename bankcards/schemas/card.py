"""
Pydantic schemas for Card endpoints.

Card numbers are accepted in clear text exactly once, on creation, and are
NEVER returned: every response carries only the masked form
("**** **** **** 1234"). Balances are two-place decimals serialized as
strings ("1000.00") so no client ever parses money as a float.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from bankcards.models.card import CardStatus


class CardCreateRequest(BaseModel):
    """Request body for POST /cards."""
    card_number: str = Field(pattern=r"^\d{16}$", description="16 digits, no spaces")
    cardholder_name: str = Field(min_length=1, max_length=200)
    expiry_date: date
    owner_id: uuid.UUID | None = Field(
        None, description="Owner of the new card (admins only); defaults to the caller"
    )

    @field_validator("cardholder_name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Cardholder name is required")
        return value.strip()


class CardStatusUpdateRequest(BaseModel):
    """Request body for PATCH /cards/{id}/status."""
    status: CardStatus


class CardResponse(BaseModel):
    """Public representation of a card (masked number, derived status)."""
    id: uuid.UUID
    masked_card_number: str
    cardholder_name: str
    expiry_date: date
    status: CardStatus
    balance: Decimal
    owner_id: uuid.UUID
    owner_username: str
    created_at: datetime
    updated_at: datetime


class CardPage(BaseModel):
    """One page of cards plus paging metadata."""
    items: list[CardResponse]
    page: int
    size: int
    total: int
    total_pages: int
