# backend/minipos/money.py
"""
Money helpers. Amounts are integer cents everywhere below the HTTP layer.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from .validation import ValidationError


# $9,999,999.99
MAX_AMOUNT_CENTS = 999_999_999


def format_cents(cents: int | None) -> str:
    """Render integer cents as a two-decimal amount (1234 -> "12.34")."""
    value = (Decimal(cents or 0) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return str(value)


def parse_cents(value, field: str, *, required: bool = True, default: int | None = None) -> int | None:
    """
    Validate a cents amount from a JSON payload.

    Accepts ints and digit strings. Floats and decimals are rejected so that
    money never passes through binary floating point.
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", details={"field": field})
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer amount in cents", details={"field": field})

    if isinstance(value, int):
        cents = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} must be an integer amount in cents", details={"field": field})
        cents = int(stripped)
    else:
        raise ValidationError(f"{field} must be an integer amount in cents", details={"field": field})

    if cents < 0:
        raise ValidationError(f"{field} must be >= 0", details={"field": field})
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(
            f"{field} cannot exceed {MAX_AMOUNT_CENTS} ({format_cents(MAX_AMOUNT_CENTS)})",
            details={"field": field},
        )
    return cents
