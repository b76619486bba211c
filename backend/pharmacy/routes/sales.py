# backend/pharmacy/routes/sales.py
"""Sale transaction routes: cart pre-check, atomic processing, history."""

from flask import Blueprint, request, current_app

from ..services import sales_service
from ..services.cart_service import ProposedLine, validate_cart
from ..time_utils import local_today, parse_iso_datetime
from ..validation import ValidationError, coerce_int


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_lines(payload: dict) -> list[ProposedLine]:
    raw_lines = payload.get("lines")
    if raw_lines is None:
        return []
    if not isinstance(raw_lines, list):
        raise ValidationError("lines must be a list")

    lines = []
    for position, raw in enumerate(raw_lines, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"lines[{position}] must be an object")
        if raw.get("item_id") is None or raw.get("quantity") is None:
            raise ValidationError(f"lines[{position}]: item_id and quantity required")
        price = raw.get("unit_price_cents")
        lines.append(
            ProposedLine(
                item_id=coerce_int(f"lines[{position}].item_id", raw["item_id"]),
                quantity=coerce_int(f"lines[{position}].quantity", raw["quantity"]),
                unit_price_cents=(
                    None if price is None
                    else coerce_int(f"lines[{position}].unit_price_cents", price)
                ),
            )
        )
    return lines


def _json_object() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


@sales_bp.post("/validate")
def validate_cart_route():
    """
    Pre-check a cart for live feedback. Never writes.

    Body: {"lines": [{"item_id": 1, "quantity": 2}]}

    Expiration is judged against the server date; a "today" in the body is ignored.
    """
    try:
        payload = _json_object()
        lines = _parse_lines(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    violations = validate_cart(lines, today=local_today())
    return {"valid": not violations, "violations": violations}, 200


@sales_bp.post("")
def process_sale_route():
    """
    Process a cart atomically.

    Body: {"actor_id": 7, "lines": [...]}

    Expiration is judged against the server date; a "today" in the body is ignored.

    201 with the BatchResult on success; 409 with the BatchResult when the
    cart was rejected or the commit failed (nothing was written in either case).
    """
    try:
        payload = _json_object()
        if payload.get("actor_id") is None:
            raise ValidationError("actor_id required")
        actor_id = coerce_int("actor_id", payload["actor_id"])
        lines = _parse_lines(payload)
        result = sales_service.process_sale(lines, actor_id, today=local_today())
    except ValueError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return {"error": "Internal server error"}, 500

    return {"result": result.to_dict()}, 201 if result.success else 409


@sales_bp.get("")
def list_sales_route():
    """
    Sale history.

    Query params (mutually exclusive filters, checked in this order):
    - actor_id: sales by one actor
    - item_id: sales of one item
    - start / end: ISO-8601 datetimes, inclusive
    - page / per_page: pagination for the unfiltered listing
    """
    actor_id = request.args.get("actor_id", type=int)
    item_id = request.args.get("item_id", type=int)
    start = request.args.get("start")
    end = request.args.get("end")

    if actor_id is not None:
        rows = sales_service.list_sales_by_actor(actor_id)
    elif item_id is not None:
        rows = sales_service.list_sales_by_item(item_id)
    elif start or end:
        try:
            rows = sales_service.list_sales_in_range(parse_iso_datetime(start), parse_iso_datetime(end))
        except ValueError:
            return {"error": "start/end must be ISO-8601 datetimes"}, 400
    else:
        page = request.args.get("page", type=int)
        per_page = request.args.get("per_page", type=int)
        return sales_service.list_sales(page=page, per_page=per_page)

    return {"items": [s.to_dict() for s in rows], "count": len(rows)}
