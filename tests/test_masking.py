"""
Tests for card number masking.

Only the last four digits may ever appear in output; hidden digits are
asterisks grouped in fours from the right.
"""

import pytest

from bankcards.masking import mask_card_number


class TestMaskCardNumber:

    def test_standard_sixteen_digit_number(self):
        assert mask_card_number("1234567890123456") == "**** **** **** 3456"

    def test_separators_are_ignored(self):
        assert mask_card_number("1234 5678 9012 3456") == "**** **** **** 3456"
        assert mask_card_number("1234-5678-9012-3456") == "**** **** **** 3456"

    @pytest.mark.parametrize(
        "number, expected",
        [
            ("123456", "** 3456"),
            ("12345678", "**** 5678"),
            ("1234567890123456789", "*** **** **** **** 6789"),
            ("1234", "1234"),
        ],
    )
    def test_other_lengths_group_from_the_right(self, number, expected):
        assert mask_card_number(number) == expected

    def test_short_input_returned_unchanged(self):
        assert mask_card_number("123") == "123"
        assert mask_card_number("") == ""

    def test_none_passes_through(self):
        assert mask_card_number(None) is None

    def test_masking_is_idempotent(self):
        masked = mask_card_number("4111111111111111")
        assert mask_card_number(masked) == masked

    def test_no_hidden_digit_leaks(self):
        """None of the first twelve digits survive in the mask."""
        masked = mask_card_number("9876543210981234")
        assert masked.endswith("1234")
        assert not any(ch.isdigit() for ch in masked[:-4])
