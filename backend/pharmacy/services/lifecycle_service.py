# Overview: Item lifecycle rules; pure functions over an item value and an explicit "today".

from __future__ import annotations

from datetime import date

"""
Item Lifecycle Invariants (authoritative)

- These functions are the single source of truth for expiration and
  vendibility. Validation, maintenance and alert reporting all call them.
- Every function is pure: it reads item attributes (ORM row or
  ItemSnapshot) and never touches the session.
- "today" is always passed in; nothing here reads the clock.
- An item without expiration_date never expires. days_until_expiration
  returns None for it (unbounded), never a magic number.
- The near-expiry window is inclusive on both ends: 0 <= days <= threshold.
"""

DEFAULT_NEAR_EXPIRY_DAYS = 30

STATUS_EXPIRED = "EXPIRED"
STATUS_NEAR_EXPIRY = "NEAR_EXPIRY"
STATUS_OK = "OK"
STATUS_NO_EXPIRATION = "NO_EXPIRATION"


def is_expired(item, today: date) -> bool:
    if item.expiration_date is None:
        return False
    return item.expiration_date < today


def days_until_expiration(item, today: date) -> int | None:
    """
    Signed day count until expiration (negative once expired).

    Returns None when the item has no expiration date.
    """
    if item.expiration_date is None:
        return None
    return (item.expiration_date - today).days


def is_near_expiry(item, today: date, threshold_days: int = DEFAULT_NEAR_EXPIRY_DAYS) -> bool:
    days = days_until_expiration(item, today)
    if days is None:
        return False
    return 0 <= days <= threshold_days


def has_stock(item) -> bool:
    return item.stock > 0


def has_sufficient_stock(item, requested_qty: int) -> bool:
    return item.stock >= requested_qty


def is_sellable(item, today: date) -> bool:
    """Active, not expired and with stock on hand."""
    return item.is_active and not is_expired(item, today) and has_stock(item)


def expiration_status(item, today: date, threshold_days: int = DEFAULT_NEAR_EXPIRY_DAYS) -> str:
    if item.expiration_date is None:
        return STATUS_NO_EXPIRATION
    if is_expired(item, today):
        return STATUS_EXPIRED
    if is_near_expiry(item, today, threshold_days):
        return STATUS_NEAR_EXPIRY
    return STATUS_OK
