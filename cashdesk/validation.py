from __future__ import annotations

from typing import Any

from .errors import InvalidAmountError, ValidationError


# Maximum single amount: 9,999,999.99 (999,999,999 cents)
# Keeps balances well inside a 32-bit-safe range on every backend
MAX_AMOUNT_CENTS = 999_999_999


def parse_amount_cents(
    value: Any,
    *,
    field: str = "amount_cents",
    allow_zero: bool = False,
    allow_negative: bool = False,
) -> int:
    """
    Strictly coerce an amount in cents to int.

    Accepts ints and plain digit strings. Rejects bools, floats, decimals,
    scientific notation and anything outside +/- MAX_AMOUNT_CENTS.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{field} must be an integer number of cents")

    if isinstance(value, int):
        amount = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidAmountError(f"{field} must be an integer number of cents")
        # Reject scientific notation (e.g., "1e5")
        if "e" in stripped.lower():
            raise InvalidAmountError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise InvalidAmountError(f"{field} must be in cents (no decimals)")
        try:
            amount = int(stripped)
        except ValueError:
            raise InvalidAmountError(f"{field} must be an integer number of cents")
    elif isinstance(value, float):
        raise InvalidAmountError(f"{field} must be an integer number of cents, not a float")
    else:
        raise InvalidAmountError(f"{field} must be an integer number of cents")

    if abs(amount) > MAX_AMOUNT_CENTS:
        raise InvalidAmountError(f"{field} exceeds maximum of {MAX_AMOUNT_CENTS} cents")
    if amount == 0 and not allow_zero:
        raise InvalidAmountError(f"{field} must be greater than zero")
    if amount < 0 and not allow_negative:
        raise InvalidAmountError(f"{field} must not be negative")
    return amount


def clean_text(value: Any, *, field: str, max_length: int | None = None) -> str | None:
    """Strip optional free text; empty becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def require_text(value: Any, *, field: str, max_length: int | None = None) -> str:
    text = clean_text(value, field=field, max_length=max_length)
    if text is None:
        raise ValidationError(f"{field} is required")
    return text
