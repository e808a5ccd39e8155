"""
Domain errors of the Bank Cards service and their HTTP rendering.

The service layer raises domain-specific errors (like InsufficientFundsError)
without importing HTTP concepts. The handler layer translates each error
category into exactly one HTTP status code and a stable `error_type`.

Exception hierarchy:
    BankCardsError (base)
    ├── NotFoundError                 — 404
    │   ├── CardNotFoundError
    │   └── UserNotFoundError
    ├── BadRequestError               — 400 (business-rule violations)
    │   ├── ExpiryDateInPastError
    │   ├── DuplicateCardNumberError
    │   ├── CardNotActiveError
    │   ├── CardExpiredError
    │   ├── InsufficientFundsError
    │   ├── SameCardTransferError
    │   ├── InvalidAmountError
    │   ├── InvalidSortKeyError
    │   └── DuplicateUserError
    ├── ForbiddenError                — 403 (authorization denial)
    ├── UnauthorizedError             — 401 (caller identity missing/invalid)
    │   └── InvalidCredentialsError
    ├── ConcurrentUpdateError         — 409 (lost a concurrent update race, safe to retry)
    └── InternalError                 — 500 (corrupted state, opaque to clients)
        └── CardNumberCipherError

Error messages never contain a card number, plain or encrypted.
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bankcards.logging_config import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BankCardsError(Exception):
    """Base exception for all Bank Cards domain errors."""

    error_type = "error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class NotFoundError(BankCardsError):
    error_type = "not_found"


class BadRequestError(BankCardsError):
    error_type = "bad_request"


class ForbiddenError(BankCardsError):
    error_type = "forbidden"

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


class UnauthorizedError(BankCardsError):
    error_type = "unauthorized"

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(detail)


class ConcurrentUpdateError(BankCardsError):
    """
    Raised when an operation kept losing optimistic-lock races on a card.

    Nothing was committed, so the caller may safely retry.
    """

    error_type = "concurrent_update"

    def __init__(self, detail: str = "The card was modified concurrently, please retry"):
        super().__init__(detail)


class InternalError(BankCardsError):
    error_type = "internal_error"


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class CardNotFoundError(NotFoundError):
    error_type = "card_not_found"

    def __init__(self, card_id: uuid.UUID, label: str = "Card"):
        self.card_id = card_id
        super().__init__(f"{label} not found with id: {card_id}")


class UserNotFoundError(NotFoundError):
    error_type = "user_not_found"

    def __init__(self, user_id: uuid.UUID | str, label: str = "User"):
        self.user_id = user_id
        super().__init__(f"{label} not found with id: {user_id}")


# ---------------------------------------------------------------------------
# Bad request
# ---------------------------------------------------------------------------

class ExpiryDateInPastError(BadRequestError):
    error_type = "expiry_date_in_past"

    def __init__(self):
        super().__init__("Expiry date cannot be in the past")


class InvalidCardNumberError(BadRequestError):
    error_type = "invalid_card_number"

    def __init__(self):
        super().__init__("Card number must be 16 digits")


class DuplicateCardNumberError(BadRequestError):
    error_type = "duplicate_card_number"

    def __init__(self):
        super().__init__("Card with this number already exists")


class CardNotActiveError(BadRequestError):
    error_type = "card_not_active"

    def __init__(self, side: str):
        self.side = side
        super().__init__(f"{side.capitalize()} card is not active")


class CardExpiredError(BadRequestError):
    error_type = "card_expired"

    def __init__(self, side: str):
        self.side = side
        super().__init__(f"{side.capitalize()} card has expired")


class InsufficientFundsError(BadRequestError):
    """
    Raised when a transfer would make the source balance negative.

    Attributes:
        card_id: The card that lacks sufficient funds.
        requested: The amount the caller tried to move.
        available: The current balance of the card.
    """

    error_type = "insufficient_funds"

    def __init__(self, card_id: uuid.UUID, requested: Decimal, available: Decimal):
        self.card_id = card_id
        self.requested = requested
        self.available = available
        super().__init__("Insufficient funds")


class SameCardTransferError(BadRequestError):
    error_type = "same_card"

    def __init__(self):
        super().__init__("Cannot transfer to the same card")


class InvalidAmountError(BadRequestError):
    error_type = "invalid_amount"


class InvalidSortKeyError(BadRequestError):
    error_type = "invalid_sort_key"

    def __init__(self, sort_by: str):
        self.sort_by = sort_by
        super().__init__(f"Cannot sort cards by '{sort_by}'")


class DuplicateUserError(BadRequestError):
    error_type = "duplicate_user"

    def __init__(self, field: str, value: str):
        self.field = field
        super().__init__(f"{field.capitalize()} already exists: {value}")


# ---------------------------------------------------------------------------
# Unauthorized / internal
# ---------------------------------------------------------------------------

class InvalidCredentialsError(UnauthorizedError):
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid username or password")


class CardNumberCipherError(InternalError):
    """Raised when a stored card number cannot be encrypted or decrypted."""

    error_type = "cipher_error"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Card number {operation} failed")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

_STATUS_CODES: list[tuple[type[BankCardsError], int]] = [
    (NotFoundError, 404),
    (BadRequestError, 400),
    (ForbiddenError, 403),
    (UnauthorizedError, 401),
    (ConcurrentUpdateError, 409),
]


def status_code_for(exc: BankCardsError) -> int:
    """Map a domain error to its HTTP status code (500 for anything unmapped)."""
    for error_cls, code in _STATUS_CODES:
        if isinstance(exc, error_cls):
            return code
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """
    Install the single handler that renders every BankCardsError.

    Every domain error is rendered as {"detail": ..., "error_type": ...}.
    Internal errors are logged and answered with a generic message so no
    detail about stored card data leaks to the client.
    """

    @app.exception_handler(BankCardsError)
    async def bank_cards_error_handler(
        request: Request, exc: BankCardsError
    ) -> JSONResponse:
        status_code = status_code_for(exc)
        if status_code == 500:
            logger.error(
                "internal_error",
                error_type=exc.error_type,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "error_type": "internal_error"},
            )

        content = {"detail": exc.detail, "error_type": exc.error_type}
        if isinstance(exc, InsufficientFundsError):
            content["requested"] = str(exc.requested)
            content["available"] = str(exc.available)
        return JSONResponse(status_code=status_code, content=content)
