"""
Phone number utilities for warmpath.

Provides normalization to E.164 format so the same number imported from
different sources compares equal.
"""
import re
from typing import Optional


def normalize_phone(raw: str) -> Optional[str]:
    """
    Normalize phone number to E.164 format.

    Args:
        raw: Raw phone number in any common format

    Returns:
        E.164 formatted phone (+1XXXXXXXXXX) or None if invalid

    Examples:
        >>> normalize_phone("(415) 555-0134")
        '+14155550134'
        >>> normalize_phone("+44 20 7946 0958")
        '+442079460958'
        >>> normalize_phone("123")
    """
    if not raw:
        return None

    digits = re.sub(r'\D', '', raw)

    if len(digits) == 10:
        # US number without country code
        return f"+1{digits}"
    elif len(digits) == 11 and digits[0] == '1':
        return f"+{digits}"
    elif len(digits) > 11 and len(digits) <= 15:
        # International number
        return f"+{digits}"
    else:
        return None


def phone_match_key(raw: str) -> Optional[str]:
    """
    Key used to compare phone numbers for exact-match resolution.

    E.164 when the number normalizes, otherwise the bare digits so that
    short or unusual numbers still only match themselves. None for input
    with no digits at all.
    """
    normalized = normalize_phone(raw)
    if normalized:
        return normalized
    digits = re.sub(r'\D', '', raw or "")
    return digits or None
