# backend/pharmacy/routes/items.py
"""
Item maintenance routes.

Authorization (admin vs. worker) is enforced in front of this API; these
routes assume an authorized caller.
"""
from flask import Blueprint, current_app, request

from ..models import Item
from ..services import items_service
from ..time_utils import local_today, parse_iso_date
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "unit_price_cents", "stock", "expiration_date", "is_active"},
    required_on_create={"name", "unit_price_cents"},
)

items_bp = Blueprint("items", __name__, url_prefix="/api/items")


def _today_arg():
    raw = request.args.get("today")
    if not raw:
        return local_today()
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError("today must be an ISO-8601 date (YYYY-MM-DD)")


@items_bp.get("")
def list_items():
    """
    List active items with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    result = items_service.list_active_items(page=page, per_page=per_page)
    result["active_count"] = items_service.count_active_items()
    result["sellable_count"] = items_service.count_sellable_items()
    return result


@items_bp.get("/search")
def search_item():
    """Find an item by exact name (case-insensitive), including retired items."""
    name = request.args.get("name", "")
    item = items_service.find_item_by_name(name)
    if item is None:
        return {"error": "Item not found"}, 404
    return {"item": item.to_dict()}


@items_bp.get("/<int:item_id>")
def get_item(item_id: int):
    item = items_service.get_item(item_id)
    if item is None:
        return {"error": "Item not found"}, 404
    return {"item": item.to_dict()}


@items_bp.post("")
def create_item_route():
    """Create a new item. stock > 0 always means active."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        created = items_service.create_item(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"item": created}, 201


@items_bp.patch("/<int:item_id>")
def update_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
        updated = items_service.update_item(item_id=item_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if updated is None:
        return {"error": "Item not found"}, 404
    return {"item": updated}


@items_bp.delete("/<int:item_id>")
def delete_item_route(item_id: int):
    """Soft-delete (deactivate) an item."""
    if not items_service.deactivate_item(item_id=item_id):
        return {"error": "Item not found"}, 404
    return {"status": "deactivated", "item_id": item_id}


@items_bp.post("/retire-expired")
def retire_expired_route():
    try:
        today = _today_arg()
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        retired = items_service.retire_expired_items(today)
    except Exception:
        current_app.logger.exception("Failed to retire expired items")
        return {"error": "Internal server error"}, 500

    return {"retired": retired, "today": today.isoformat()}
