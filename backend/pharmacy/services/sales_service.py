"""
Sale Transaction Service - all-or-nothing processing of a cart

WHY: A cart is either committed completely (every sale row plus every stock
decrement) or not at all. Validation runs again immediately before the commit
so a cart checked earlier in the UI cannot slip through on stale state.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..models import Sale
from ..money import cents_to_decimal, format_cents
from pharmacy.time_utils import local_today
from .cart_service import ProposedLine, check_lines
from .reporting_service import summarize_batch
from .repositories import (
    ItemRepository,
    PersistenceError,
    SaleCandidate,
    SaleRepository,
    StockConflictError,
)

MESSAGE_REJECTED = "Validation failed. No sale was processed."
MESSAGE_COMMITTED = "Sale completed successfully."


class SaleState(str, enum.Enum):
    RECEIVED = "RECEIVED"
    VALIDATING = "VALIDATING"
    REJECTED = "REJECTED"
    COMMITTING = "COMMITTING"
    COMMITTED = "COMMITTED"
    FAILED = "FAILED"


@dataclass
class BatchResult:
    """Outcome of one process_sale attempt, suitable for direct display."""

    success: bool
    state: SaleState
    message: str
    violations: list[str] = field(default_factory=list)
    committed_count: int = 0
    total_units: int = 0
    total_amount_cents: int = 0
    sale_ids: list[int] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return cents_to_decimal(self.total_amount_cents)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "state": self.state.value,
            "message": self.message,
            "violations": list(self.violations),
            "committed_count": self.committed_count,
            "total_units": self.total_units,
            "total_amount_cents": self.total_amount_cents,
            "total_amount": format_cents(self.total_amount_cents),
            "sale_ids": list(self.sale_ids),
        }


def _build_candidates(lines: list[ProposedLine], snapshots: dict, actor_id: int) -> list[SaleCandidate]:
    candidates = []
    for line in lines:
        unit_price_cents = line.unit_price_cents
        if unit_price_cents is None:
            unit_price_cents = snapshots[line.item_id].unit_price_cents
        candidates.append(
            SaleCandidate(
                item_id=line.item_id,
                actor_id=actor_id,
                quantity=line.quantity,
                unit_price_cents=unit_price_cents,
            )
        )
    return candidates


def process_sale(
    lines: Iterable[ProposedLine] | None,
    actor_id: int,
    today: date | None = None,
    items: ItemRepository | None = None,
    sales: SaleRepository | None = None,
) -> BatchResult:
    """
    Validate and commit a cart as one atomic unit.

    RECEIVED -> VALIDATING -> (REJECTED | COMMITTING) -> (COMMITTED | FAILED)

    Never raises for cart or storage problems; those come back as a failed
    BatchResult. Raises ValueError only for a malformed actor_id.
    """
    if not isinstance(actor_id, int) or isinstance(actor_id, bool) or actor_id <= 0:
        raise ValueError("actor_id must be a positive integer")

    items = items or ItemRepository()
    sales = sales or SaleRepository(items)
    today = today or local_today()
    lines = list(lines or [])
    logger = current_app.logger

    state = SaleState.RECEIVED
    logger.debug("Sale batch %s: %d line(s) from actor %s", state.value, len(lines), actor_id)

    state = SaleState.VALIDATING
    violations, snapshots = check_lines(lines, today, items)

    if violations:
        state = SaleState.REJECTED
        logger.warning("Sale batch %s: %d violation(s)", state.value, len(violations))
        return BatchResult(
            success=False,
            state=state,
            message=MESSAGE_REJECTED,
            violations=violations,
        )

    state = SaleState.COMMITTING
    candidates = _build_candidates(lines, snapshots, actor_id)

    try:
        sale_ids = sales.insert_batch(candidates)
    except (StockConflictError, PersistenceError) as exc:
        state = SaleState.FAILED
        cause = str(exc)
        logger.warning("Sale batch %s: %s", state.value, cause)
        return BatchResult(
            success=False,
            state=state,
            message=f"Database error: {cause}",
            violations=[cause],
        )

    state = SaleState.COMMITTED
    totals = summarize_batch(candidates)
    logger.info(
        "Sale batch %s: %d line(s), %d unit(s), %s total, actor %s",
        state.value,
        totals.line_count,
        totals.total_units,
        format_cents(totals.total_amount_cents),
        actor_id,
    )
    return BatchResult(
        success=True,
        state=state,
        message=MESSAGE_COMMITTED,
        committed_count=totals.line_count,
        total_units=totals.total_units,
        total_amount_cents=totals.total_amount_cents,
        sale_ids=list(sale_ids),
    )


# ==================================================================================
# Read side
# ==================================================================================

def list_sales(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Committed sales, newest first, with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all sales.
        per_page: Items per page (default 20, max 100)
    """
    base_query = db.session.query(Sale).order_by(Sale.sold_at.desc(), Sale.id.desc())

    if page is None:
        rows = base_query.all()
        return {
            "items": [s.to_dict() for s in rows],
            "count": len(rows),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)  # Ensure page >= 1

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [s.to_dict() for s in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_sales_by_actor(actor_id: int) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(Sale.actor_id == actor_id)
        .order_by(Sale.sold_at.desc(), Sale.id.desc())
        .all()
    )


def list_sales_by_item(item_id: int) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(Sale.item_id == item_id)
        .order_by(Sale.sold_at.desc(), Sale.id.desc())
        .all()
    )


def list_sales_in_range(start: datetime | None, end: datetime | None) -> list[Sale]:
    """Sales with start <= sold_at <= end (both bounds inclusive, both optional)."""
    query = db.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.sold_at >= start)
    if end is not None:
        query = query.filter(Sale.sold_at <= end)
    return query.order_by(Sale.sold_at.desc(), Sale.id.desc()).all()

