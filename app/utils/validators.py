"""Custom validation utilities."""

import re

_AIRPORT_TRUE = {"Y", "YES", "TRUE", "1"}
_AIRPORT_FALSE = {"N", "NO", "FALSE", "0", ""}


def parse_airport_flag(value: str | bool | int | None) -> bool:
    """Parse catalog airport flags.

    Spreadsheets and JSON exports carry 'Y'/'N', booleans or 0/1.

    Args:
        value: Raw flag value

    Returns:
        bool: True for airport endpoints

    Raises:
        ValueError: If the value is not a recognised flag
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    cleaned = value.strip().upper()
    if cleaned in _AIRPORT_TRUE:
        return True
    if cleaned in _AIRPORT_FALSE:
        return False
    raise ValueError(f"Invalid airport flag: {value!r}")


def normalize_region(region: str) -> str:
    """Region codes are stored trimmed and upper-cased ('ny ' -> 'NY')."""
    return region.strip().upper()


def validate_phone(phone: str) -> bool:
    """Loose international phone check: digits with optional +, spaces, dashes, parentheses.

    Args:
        phone: Phone number to validate

    Returns:
        bool: True if it has 7-15 digits and no other characters
    """
    if not re.fullmatch(r"[\d\s\-\(\)\+]+", phone):
        return False
    digits = re.sub(r"\D", "", phone)
    return 7 <= len(digits) <= 15
