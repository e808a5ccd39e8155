"""
Tests for the cents/decimal boundary: amounts are exact, never floats.
"""

from decimal import Decimal

import pytest

from bankcards.exceptions import InvalidAmountError
from bankcards.money import from_cents, to_cents


class TestToCents:

    @pytest.mark.parametrize(
        "amount, cents",
        [
            (Decimal("700.00"), 70000),
            (Decimal("0.01"), 1),
            (Decimal("12.5"), 1250),
            (Decimal("1"), 100),
        ],
    )
    def test_valid_amounts(self, amount, cents):
        assert to_cents(amount) == cents

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("0.00"), Decimal("-5.00")])
    def test_non_positive_rejected(self, amount):
        with pytest.raises(InvalidAmountError, match="positive"):
            to_cents(amount)

    def test_fractional_cents_rejected(self):
        with pytest.raises(InvalidAmountError, match="two decimal places"):
            to_cents(Decimal("1.005"))

    def test_trailing_zeros_beyond_cents_accepted(self):
        assert to_cents(Decimal("1.000")) == 100

    def test_amounts_beyond_context_precision_are_exact(self):
        assert to_cents(Decimal("1E+30")) == 10**32
        assert to_cents(Decimal("123456789012345678901234567890.01")) == 12345678901234567890123456789001

    @pytest.mark.parametrize("amount", [Decimal("NaN"), Decimal("Infinity"), "abc"])
    def test_not_a_number_rejected(self, amount):
        with pytest.raises(InvalidAmountError):
            to_cents(amount)


class TestFromCents:

    def test_two_places_always(self):
        assert str(from_cents(100000)) == "1000.00"
        assert str(from_cents(1)) == "0.01"
        assert str(from_cents(0)) == "0.00"
        assert str(from_cents(-5)) == "-0.05"

    def test_large_values_keep_every_digit(self):
        assert str(from_cents(10**32)) == "1" + "0" * 30 + ".00"

    def test_repeated_small_amounts_are_exact(self):
        assert from_cents(sum(to_cents(Decimal("0.10")) for _ in range(3))) == Decimal("0.30")
