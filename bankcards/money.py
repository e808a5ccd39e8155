"""
Money conversion helpers.

Balances and amounts are stored as integer cents so that all arithmetic on
them is exact; the API speaks two-place Decimals ("1000.00"). These helpers
are the only place where the two representations meet.

Both directions work on the Decimal's digit tuple rather than through
arithmetic, so no amount is ever rounded by the decimal context's
precision, however large it is.
"""

from decimal import Decimal, InvalidOperation

from bankcards.exceptions import InvalidAmountError

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """
    Convert a positive Decimal amount to integer cents.

    Raises:
        InvalidAmountError: If the amount is not finite, not strictly
            positive, or has more than two decimal places.
    """
    try:
        amount = Decimal(amount)
        if not amount.is_finite():
            raise InvalidAmountError("Amount must be a decimal number")
        if amount <= 0:
            raise InvalidAmountError("Amount must be positive")
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError("Amount must be a decimal number")

    _, digits, exponent = amount.as_tuple()
    if exponent < -2 and any(digits[exponent + 2:]):
        raise InvalidAmountError("Amount must have at most two decimal places")
    return int(Decimal((0, digits, exponent + 2)))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a two-place Decimal."""
    sign, digits, _ = Decimal(cents).as_tuple()
    return Decimal((sign, digits, -2))
