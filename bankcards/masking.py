"""
Card number masking for display.

Only the last four digits of a card number are ever shown. Hidden digits
are rendered as asterisks grouped in fours, counted from the right, so a
standard 16-digit number becomes "**** **** **** 3456". Numbers of other
lengths keep the same right-aligned grouping with a shorter leading group:

    "1234567890123456"     -> "**** **** **** 3456"
    "1234567890123456789"  -> "*** **** **** **** 6789"
    "123456"               -> "** 3456"
    "1234"                 -> "1234"
    "123"                  -> "123"        (too short, returned as given)
    None                   -> None
"""

import re

_NON_DIGITS = re.compile(r"\D")
_ALREADY_MASKED = re.compile(r"^\*{1,4}( \*{4})* \d{4}$")

VISIBLE_DIGITS = 4
GROUP_SIZE = 4


def mask_card_number(card_number: str | None) -> str | None:
    """
    Produce the display-safe form of a card number.

    Non-digit characters (spaces, dashes) are ignored. A value that is
    already a mask is returned unchanged, so masking is idempotent.
    """
    if card_number is None:
        return None
    if _ALREADY_MASKED.match(card_number):
        return card_number

    digits = _NON_DIGITS.sub("", card_number)
    if len(digits) < VISIBLE_DIGITS:
        return card_number

    hidden = len(digits) - VISIBLE_DIGITS
    groups = [digits[-VISIBLE_DIGITS:]]
    while hidden > 0:
        size = min(GROUP_SIZE, hidden)
        groups.insert(0, "*" * size)
        hidden -= size
    return " ".join(groups)
