# Overview: Money and rate conversions between wire strings and stored integers.

"""
Amounts are stored as integer cents and rendered as two-decimal strings
("10.00"). Tax rates are stored as basis points (825) and rendered as a
four-decimal fraction ("0.0825").
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

# Maximum amount: 9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999


def to_cents(value, field: str = "amount") -> int:
    """Parse "10.00", 10, or 10.5 into cents. Rejects negatives and junk."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a decimal amount")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a decimal amount")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a decimal amount")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")
    return cents


def format_cents(cents: int | None) -> str:
    return f"{Decimal(int(cents or 0)) / 100:.2f}"


def rate_to_bps(value, field: str = "tax_rate") -> int:
    """Parse a fractional rate ("0.0825") into basis points (825)."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a decimal fraction")
    try:
        rate = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a decimal fraction")
    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise ValidationError(f"{field} must be between 0 and 1")
    return int((rate * 10_000).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_bps(bps: int | None) -> str:
    return f"{Decimal(int(bps or 0)) / 10_000:.4f}"
