# Overview: Cart validation; read-only checks of proposed sale lines against current item state.

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable

from pharmacy.time_utils import local_today
from pharmacy.validation import MAX_PRICE_CENTS, MAX_QUANTITY
from . import lifecycle_service
from .repositories import ItemRepository, ItemSnapshot, PersistenceError, aggregate_demand

"""
Cart Validation Rules (authoritative)

- An empty cart yields exactly one violation ("cart is empty") and nothing
  else is checked.
- Every line is checked; violations accumulate in input order so a user can
  fix the whole cart in one pass.
- Each distinct item is read once per validation call. All lines for the
  same item see the same snapshot.
- Stock sufficiency is judged against the summed demand of every line for
  an item, never line by line.
- Item-state problems (expired, inactive, insufficient stock) are reported
  once per distinct item, at its first line.
- A read failure for one item becomes a violation for that item only.
- Validation never writes.
"""

CART_EMPTY = "cart is empty"


@dataclass(frozen=True)
class ProposedLine:
    """
    One cart entry before commit.

    unit_price_cents may be None; it is then captured from the item at
    validation time.
    """

    item_id: int
    quantity: int
    unit_price_cents: int | None = None

    @property
    def total_cents(self) -> int | None:
        if self.unit_price_cents is None:
            return None
        return self.quantity * self.unit_price_cents

    def with_quantity(self, quantity: int) -> "ProposedLine":
        return replace(self, quantity=quantity)

    def with_unit_price(self, unit_price_cents: int) -> "ProposedLine":
        return replace(self, unit_price_cents=unit_price_cents)

    @classmethod
    def for_item(cls, item, quantity: int) -> "ProposedLine":
        """Build a line with the item's current price captured."""
        return cls(item_id=item.id, quantity=quantity, unit_price_cents=item.unit_price_cents)


def missing_item_message(item_id: int) -> str:
    return f"item {item_id} does not exist"


def expired_message(name: str) -> str:
    return f"{name} is EXPIRED; must be removed from the cart"


def inactive_message(name: str) -> str:
    return f"{name} is inactive"


def insufficient_stock_message(name: str, available: int, requested: int) -> str:
    return f"{name} — insufficient stock. Available: {available}, Requested: {requested}"


def _line_shape_violations(position: int, line: ProposedLine) -> list[str]:
    problems = []
    if not isinstance(line.quantity, int) or isinstance(line.quantity, bool) or line.quantity <= 0:
        problems.append(f"Line {position}: quantity must be greater than 0")
    elif line.quantity > MAX_QUANTITY:
        problems.append(f"Line {position}: quantity cannot exceed {MAX_QUANTITY}")

    price = line.unit_price_cents
    if price is not None:
        if price <= 0:
            problems.append(f"Line {position}: unit price must be greater than 0")
        elif price > MAX_PRICE_CENTS:
            problems.append(f"Line {position}: unit price cannot exceed {MAX_PRICE_CENTS} cents")
    return problems


def check_lines(
    lines: Iterable[ProposedLine] | None,
    today: date,
    items: ItemRepository,
) -> tuple[list[str], dict[int, ItemSnapshot]]:
    """
    Run every per-line check and return (violations, snapshots by item id).

    Snapshots only contain items that were successfully read.
    """
    lines = list(lines or [])
    if not lines:
        return [CART_EMPTY], {}

    violations: list[str] = []

    shape_problems = [_line_shape_violations(position, line) for position, line in enumerate(lines, start=1)]
    demand = aggregate_demand(line for line, problems in zip(lines, shape_problems) if not problems)

    snapshots: dict[int, ItemSnapshot] = {}
    reported: set[int] = set()

    for line, problems in zip(lines, shape_problems):
        if problems:
            violations.extend(problems)
            continue

        item_id = line.item_id
        if item_id in reported:
            continue
        reported.add(item_id)

        try:
            item = items.get_by_id(item_id)
        except PersistenceError as exc:
            violations.append(f"Error validating item {item_id}: {exc}")
            continue

        if item is None:
            violations.append(missing_item_message(item_id))
            continue

        snapshots[item_id] = item

        if lifecycle_service.is_expired(item, today):
            violations.append(expired_message(item.name))

        if not item.is_active:
            violations.append(inactive_message(item.name))

        requested = demand[item_id]
        if not lifecycle_service.has_sufficient_stock(item, requested):
            violations.append(insufficient_stock_message(item.name, item.stock, requested))

    return violations, snapshots


def validate_cart(
    lines: Iterable[ProposedLine] | None,
    today: date | None = None,
    items: ItemRepository | None = None,
) -> list[str]:
    """
    Validate a cart without committing anything.

    Returns the full list of violations; an empty list means the cart
    may be committed.
    """
    violations, _ = check_lines(lines, today or local_today(), items or ItemRepository())
    return violations
