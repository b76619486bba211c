# Overview: Service-layer operations for reporting; batch totals, daily sales and expiration alerts.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable

from sqlalchemy import func

from pharmacy.extensions import db
from pharmacy.models import Item, Sale
from pharmacy.money import cents_to_decimal, format_cents
from pharmacy.time_utils import to_iso_date
from . import lifecycle_service


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


@dataclass(frozen=True)
class BatchTotals:
    line_count: int
    total_units: int
    total_amount_cents: int

    @property
    def total_amount(self) -> Decimal:
        return cents_to_decimal(self.total_amount_cents)

    def to_dict(self) -> dict:
        return {
            "line_count": self.line_count,
            "total_units": self.total_units,
            "total_amount_cents": self.total_amount_cents,
            "total_amount": format_cents(self.total_amount_cents),
        }


def summarize_batch(sales: Iterable) -> BatchTotals:
    """
    Totals for a committed batch.

    Accepts anything with quantity and unit_price_cents (Sale rows,
    SaleCandidate, ProposedLine with a captured price). The amount is
    recomputed from quantity * unit price rather than trusting a stored total.
    """
    line_count = 0
    total_units = 0
    total_amount_cents = 0
    for s in sales:
        line_count += 1
        total_units += s.quantity
        total_amount_cents += s.quantity * s.unit_price_cents
    return BatchTotals(
        line_count=line_count,
        total_units=total_units,
        total_amount_cents=total_amount_cents,
    )


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def daily_sales_report(day: date) -> dict:
    """
    All sales committed on a calendar day (UTC), newest first, with totals.
    """
    if day is None:
        raise ReportError("day is required")

    start, end = _day_bounds(day)
    rows = (
        db.session.query(Sale, Item.name)
        .join(Item, Item.id == Sale.item_id)
        .filter(Sale.sold_at >= start, Sale.sold_at < end)
        .order_by(Sale.sold_at.desc(), Sale.id.desc())
        .all()
    )

    totals = summarize_batch(sale for sale, _ in rows)
    actors = {sale.actor_id for sale, _ in rows}

    return {
        "day": to_iso_date(day),
        "rows": [dict(sale.to_dict(), item_name=name) for sale, name in rows],
        "totals": dict(totals.to_dict(), actor_count=len(actors)),
    }


def revenue_summary() -> dict:
    """Lifetime sale count and revenue."""
    count, revenue_cents = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_cents), 0),
    ).one()
    return {
        "sales_count": int(count or 0),
        "revenue_cents": int(revenue_cents or 0),
        "revenue": format_cents(int(revenue_cents or 0)),
    }


def expiration_alerts(
    today: date,
    threshold_days: int = lifecycle_service.DEFAULT_NEAR_EXPIRY_DAYS,
) -> dict:
    """
    Active items that are expired or within the near-expiry window.

    Ordered by expiration date (soonest first). Status and day counts come
    from lifecycle_service so alerts and sale validation always agree.
    """
    if threshold_days < 0:
        raise ReportError("threshold_days must be >= 0")

    horizon = today + timedelta(days=threshold_days)
    items = (
        db.session.query(Item)
        .filter(
            Item.is_active.is_(True),
            Item.expiration_date.isnot(None),
            Item.expiration_date <= horizon,
        )
        .order_by(Item.expiration_date.asc(), Item.id.asc())
        .all()
    )

    expired = []
    near_expiry = []
    for item in items:
        entry = dict(
            item.to_dict(),
            days_until_expiration=lifecycle_service.days_until_expiration(item, today),
            expiration_status=lifecycle_service.expiration_status(item, today, threshold_days),
        )
        if lifecycle_service.is_expired(item, today):
            expired.append(entry)
        else:
            near_expiry.append(entry)

    return {
        "today": to_iso_date(today),
        "threshold_days": threshold_days,
        "expired": expired,
        "near_expiry": near_expiry,
        "count": len(expired) + len(near_expiry),
    }
