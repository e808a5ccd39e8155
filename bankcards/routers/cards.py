"""
Cards router — card lifecycle and transfers.

Endpoints:
  GET    /cards              — List cards of one owner (filter, sort, page)
  GET    /cards/all          — [Admin] Every card in the system
  POST   /cards/transfer     — Move money between two of the caller's cards
  GET    /cards/{id}         — Get one card
  POST   /cards              — Register a card
  PATCH  /cards/{id}/status  — Change a card's status
  DELETE /cards/{id}         — [Admin] Delete a card

The fixed paths (/all, /transfer) are declared before /{card_id} so they
are never captured as an id. Authorization is decided in the services;
these handlers only translate HTTP into service calls.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.config import settings
from bankcards.database import get_db
from bankcards.dependencies import get_caller
from bankcards.models.card import CardStatus
from bankcards.policy import CallerContext
from bankcards.schemas.card import (
    CardCreateRequest,
    CardPage,
    CardResponse,
    CardStatusUpdateRequest,
)
from bankcards.schemas.transfer import TransferRequest, TransferResponse
from bankcards.services import card_service, transfer_service

router = APIRouter()


@router.get(
    "",
    response_model=CardPage,
    summary="List cards",
)
async def list_cards(
    owner_id: uuid.UUID | None = Query(None, description="Admins only; defaults to the caller"),
    cardholder_name: str | None = Query(None, description="Case-insensitive substring"),
    card_status: CardStatus | None = Query(None, alias="status"),
    page: int = Query(0, description="Zero-based page index"),
    size: int | None = Query(None, description=f"Page size, 1 to {settings.MAX_PAGE_SIZE}"),
    sort_by: str = Query("id"),
    sort_dir: str = Query("desc", pattern="^(asc|desc)$"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    List cards of one owner, newest id first by default.

    The status filter matches the derived status, so `status=EXPIRED`
    also finds ACTIVE cards whose expiry date has passed.
    """
    return await card_service.list_cards(
        db,
        caller,
        owner_id=owner_id,
        cardholder_name=cardholder_name,
        status=card_status,
        page=page,
        size=size,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )


@router.get(
    "/all",
    response_model=list[CardResponse],
    summary="[Admin] List all cards",
)
async def list_all_cards(
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await card_service.list_all_cards(db, caller)


@router.post(
    "/transfer",
    response_model=TransferResponse,
    summary="Transfer between own cards",
)
async def transfer(
    request: TransferRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    Move money between two ACTIVE, unexpired cards owned by the caller.

    The debit, the credit and the transaction record commit together or
    not at all. Admins get no override: they too may only move money
    between their own cards.
    """
    return await transfer_service.transfer(
        db,
        caller,
        from_card_id=request.from_card_id,
        to_card_id=request.to_card_id,
        amount=request.amount,
    )


@router.get(
    "/{card_id}",
    response_model=CardResponse,
    summary="Get a card",
)
async def get_card(
    card_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await card_service.get_card(db, caller, card_id)


@router.post(
    "",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a card",
)
async def create_card(
    request: CardCreateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    Register a card with zero balance and ACTIVE status.

    The number is encrypted before storage and only ever returned masked.
    """
    return await card_service.create_card(
        db,
        caller,
        card_number=request.card_number,
        cardholder_name=request.cardholder_name,
        expiry_date=request.expiry_date,
        owner_id=request.owner_id,
    )


@router.patch(
    "/{card_id}/status",
    response_model=CardResponse,
    summary="Change card status",
)
async def update_card_status(
    card_id: uuid.UUID,
    request: CardStatusUpdateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Owners may block their own cards; admins may set any status."""
    return await card_service.update_card_status(db, caller, card_id, request.status)


@router.delete(
    "/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Delete a card",
)
async def delete_card(
    card_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    await card_service.delete_card(db, caller, card_id)
