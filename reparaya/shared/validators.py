"""Shared validation utilities"""

import re
import uuid
from decimal import Decimal, InvalidOperation
from typing import Optional


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_uuid_field(value: str, field_name: str = "id") -> str:
    """Pydantic-friendly variant of ``validate_uuid`` that raises ValueError"""
    if not validate_uuid(value):
        raise ValueError(f"{field_name} must be a valid UUID")
    return value


def has_max_two_decimals(value: float) -> bool:
    try:
        exponent = Decimal(str(value)).normalize().as_tuple().exponent
    except InvalidOperation:
        return False
    return isinstance(exponent, int) and exponent >= -2


def validate_price(value: float) -> float:
    """
    Validate a money amount.

    Args:
        value: Amount in the listing currency

    Returns:
        The same amount

    Raises:
        ValueError: If it carries more than two decimal places
    """
    if not has_max_two_decimals(value):
        raise ValueError("Price must have at most 2 decimal places")
    return value


def validate_postal_code(postal_code: Optional[str]) -> Optional[str]:
    """
    Validate a postal code (5 digits).

    Raises:
        ValueError: If the code is not exactly five digits
    """
    if postal_code is None:
        return postal_code

    postal_code = postal_code.strip()
    if not re.fullmatch(r"\d{5}", postal_code):
        raise ValueError("Postal code must be exactly 5 digits")
    return postal_code
