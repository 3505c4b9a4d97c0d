"""Phone number normalization transform.

This module maps raw tokens onto the digits-only comparison key.
Two tokens denote the same number iff their keys are equal.
"""

from __future__ import annotations

import re

_NON_DIGIT_PATTERN = re.compile(r"\D")


def normalize_number(raw: str | None) -> str:
    """Project a raw token onto its decimal digits.

    No length, country-code, or leading-zero rules are applied, so any
    digit string is a valid key.

    Args:
        raw: Raw token as found in a file.

    Returns:
        Digits of ``raw`` in original order, or an empty string.
    """
    if not raw:
        return ""
    return _NON_DIGIT_PATTERN.sub("", raw)


def contains_digit(text: str) -> bool:
    """Return whether text contains at least one decimal digit."""
    return bool(normalize_number(text))
