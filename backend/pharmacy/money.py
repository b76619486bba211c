# Overview: Fixed-point money helpers; amounts are stored as integer cents.

from __future__ import annotations

from decimal import Decimal

CENT = Decimal("0.01")


def cents_to_decimal(cents: int | None) -> Decimal | None:
    """Convert integer cents to a 2-place Decimal for display."""
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(CENT)


def format_cents(cents: int | None) -> str | None:
    amount = cents_to_decimal(cents)
    return None if amount is None else str(amount)
