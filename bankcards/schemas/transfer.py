"""
Pydantic schemas for card-to-card transfers.

Amounts are decimals with at most two places; the request schema rejects
zero, negative and sub-cent amounts before the transfer engine runs (the
engine re-checks anyway).
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class TransferRequest(BaseModel):
    """Request body for POST /cards/transfer."""
    from_card_id: uuid.UUID
    to_card_id: uuid.UUID
    amount: Decimal = Field(gt=0, decimal_places=2, description="Amount to move, e.g. 200.00")


class TransferResponse(BaseModel):
    """Result of a completed transfer."""
    transaction_id: uuid.UUID
    from_card_id: uuid.UUID
    from_card_masked_number: str
    to_card_id: uuid.UUID
    to_card_masked_number: str
    amount: Decimal
    transaction_date: datetime
    message: str = "Transfer completed successfully"
