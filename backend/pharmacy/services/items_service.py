# backend/pharmacy/services/items_service.py
"""
Item maintenance service.

SOFT DELETE: Items are never removed; deactivation zeroes stock and clears
is_active so past sales keep a valid item_id.

REACTIVATION: Any create or edit that leaves stock > 0 forces is_active=True.
This is how a retired item comes back with a new lot. An edit that sets
is_active=False is a deactivation and zeroes stock.
"""
from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Item
from ..validation import ValidationError, enforce_rules_item
from . import lifecycle_service
from .concurrency import lock_for_update, run_with_retry

ITEM_MUTABLE_FIELDS = {"name", "description", "unit_price_cents", "stock", "expiration_date", "is_active"}


def apply_item_patch(item: Item, patch: dict) -> None:
    for k, v in patch.items():
        if k not in ITEM_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)

    # Explicit deactivation empties the shelf; otherwise stock on hand
    # means the item is on the shelf again
    if patch.get("is_active") is False:
        item.stock = 0
    elif item.stock is not None and item.stock > 0:
        item.is_active = True


def list_active_items(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Active items ordered by name, with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = (
        db.session.query(Item)
        .filter(Item.is_active.is_(True))
        .order_by(Item.name.asc(), Item.id.asc())
    )

    if page is None:
        items = base_query.all()
        return {
            "items": [i.to_dict() for i in items],
            "count": len(items),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)  # Ensure page >= 1

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    items = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [i.to_dict() for i in items],
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_item(item_id: int) -> Item | None:
    return db.session.get(Item, item_id)


def count_active_items() -> int:
    return db.session.query(Item).filter(Item.is_active.is_(True)).count()


def count_sellable_items() -> int:
    """Active items with stock on hand (expiration is not considered here)."""
    return (
        db.session.query(Item)
        .filter(Item.is_active.is_(True), Item.stock > 0)
        .count()
    )


def find_item_by_name(name: str | None) -> Item | None:
    """
    Case-insensitive lookup across ALL items, active or not.

    Used to detect a retired item before creating a duplicate, so the caller
    can reactivate it with a new lot instead.
    """
    if name is None or not name.strip():
        return None
    return (
        db.session.query(Item)
        .filter(func.lower(Item.name) == name.strip().lower())
        .order_by(Item.is_active.desc(), Item.id.asc())
        .first()
    )


def list_expired_items(today: date) -> list[Item]:
    return (
        db.session.query(Item)
        .filter(
            Item.is_active.is_(True),
            Item.expiration_date.isnot(None),
            Item.expiration_date < today,
        )
        .order_by(Item.expiration_date.asc(), Item.id.asc())
        .all()
    )


def list_expiring_items(
    today: date,
    threshold_days: int = lifecycle_service.DEFAULT_NEAR_EXPIRY_DAYS,
) -> list[Item]:
    """Active items inside the near-expiry window (not yet expired)."""
    horizon = today + timedelta(days=threshold_days)
    return (
        db.session.query(Item)
        .filter(
            Item.is_active.is_(True),
            Item.expiration_date.isnot(None),
            Item.expiration_date >= today,
            Item.expiration_date <= horizon,
        )
        .order_by(Item.expiration_date.asc(), Item.id.asc())
        .all()
    )


def create_item(*, patch: dict) -> dict:
    """
    Create an item from a validated patch dict.

    Raises:
        ValidationError: If required fields are missing or out of range
    """
    for required in ("name", "unit_price_cents"):
        if patch.get(required) is None:
            raise ValidationError(f"{required} is required")
    enforce_rules_item(patch)

    item = Item(stock=0, is_active=True)
    apply_item_patch(item, patch)

    db.session.add(item)
    db.session.commit()
    return item.to_dict()


def update_item(*, item_id: int, patch: dict) -> dict | None:
    """
    Update an item. Setting stock > 0 reactivates a retired item.

    Returns:
        Updated item dict, or None if not found
    """
    enforce_rules_item(patch)

    def _op():
        item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
        if not item:
            return None

        apply_item_patch(item, patch)
        if not item.is_active:
            item.stock = 0

        db.session.commit()
        return item.to_dict()

    return run_with_retry(_op)


def deactivate_item(*, item_id: int) -> bool:
    """
    Soft-delete an item: is_active=False and stock=0.

    Returns:
        True if deactivated, False if not found
    """
    def _op():
        item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
        if not item:
            return False

        if item.is_active or item.stock != 0:
            item.is_active = False
            item.stock = 0

        db.session.commit()
        return True

    return run_with_retry(_op)


def retire_expired_items(today: date) -> int:
    """
    Soft-delete every active item whose expiration date is before today.

    Returns:
        Number of items retired
    """
    def _op():
        expired = lock_for_update(
            db.session.query(Item).filter(
                Item.is_active.is_(True),
                Item.expiration_date.isnot(None),
                Item.expiration_date < today,
            )
        ).all()

        for item in expired:
            item.is_active = False
            item.stock = 0

        db.session.commit()
        return len(expired)

    return run_with_retry(_op)
