# Overview: Item and sale repositories; the only code that reads or writes stock for the sale path.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Item, Sale
from ..validation import ConflictError
from .concurrency import run_with_retry

"""
Repository Invariants (authoritative)

- get_by_id returns a detached ItemSnapshot; nothing is cached between calls.
- Stock decrements are explicit and conditional:
      UPDATE items SET stock = stock - :qty
      WHERE id = :id AND is_active AND stock >= :qty
  A zero rowcount means the item changed after validation and the whole
  batch is rejected with StockConflictError.
- insert_batch applies every decrement and inserts every sale row inside a
  single DB transaction. Any failure rolls back all of it: no sale rows and
  no stock changes survive a failed attempt.
- Any other failure during the batch is rolled back and surfaces as
  PersistenceError.
- Only transient lock errors are retried here. Stock conflicts are surfaced
  to the caller, who must start a brand-new validation.
"""


class RepositoryError(Exception):
    """Base class for repository failures."""


class PersistenceError(RepositoryError):
    """Storage failure (I/O, constraint, connectivity)."""


class StockConflictError(RepositoryError, ConflictError):
    """Commit-time stock violation (e.g. a concurrent sale drained the item)."""

    def __init__(self, item_id: int, requested: int, available: int | None):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        if available is None:
            message = f"Stock conflict for item {item_id}: item no longer exists"
        else:
            message = (
                f"Stock conflict for item {item_id}: "
                f"Available: {available}, Requested: {requested}"
            )
        super().__init__(message)


@dataclass(frozen=True)
class ItemSnapshot:
    """Point-in-time copy of an items row, valid for one validation/commit cycle."""

    id: int
    name: str
    description: str | None
    unit_price_cents: int
    stock: int
    expiration_date: date | None
    is_active: bool

    @classmethod
    def from_model(cls, item: Item) -> "ItemSnapshot":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            unit_price_cents=item.unit_price_cents,
            stock=item.stock,
            expiration_date=item.expiration_date,
            is_active=item.is_active,
        )


@dataclass(frozen=True)
class SaleCandidate:
    """A validated line ready to be inserted as a Sale row."""

    item_id: int
    actor_id: int
    quantity: int
    unit_price_cents: int

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


def aggregate_demand(candidates: Iterable) -> dict[int, int]:
    """Sum requested quantity per item_id, preserving first-seen order."""
    demand: dict[int, int] = {}
    for c in candidates:
        demand[c.item_id] = demand.get(c.item_id, 0) + c.quantity
    return demand


class ItemRepository:
    def get_by_id(self, item_id: int) -> ItemSnapshot | None:
        try:
            item = db.session.get(Item, item_id, populate_existing=True)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(str(exc)) from exc
        if item is None:
            return None
        return ItemSnapshot.from_model(item)

    def commit_stock_decrements(self, demand: Mapping[int, int]) -> None:
        """
        Decrement stock for every item in demand.

        Runs inside the caller's transaction and never commits. Raises
        StockConflictError on the first item that cannot cover its demand.
        """
        for item_id, qty in demand.items():
            result = db.session.execute(
                update(Item)
                .where(
                    Item.id == item_id,
                    Item.is_active.is_(True),
                    Item.stock >= qty,
                )
                .values(stock=Item.stock - qty, version_id=Item.version_id + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                available = db.session.query(Item.stock).filter(Item.id == item_id).scalar()
                raise StockConflictError(item_id, qty, available)


class SaleRepository:
    def __init__(self, items: ItemRepository | None = None):
        self.items = items or ItemRepository()

    def insert_batch(self, candidates: list[SaleCandidate]) -> list[int]:
        """
        Atomically persist all candidates together with their stock decrements.

        Returns the store-assigned sale ids in candidate order.

        Raises:
            StockConflictError: an item can no longer cover its demand
            PersistenceError: any other storage failure
        """
        if not candidates:
            return []

        attempts = current_app.config.get("SALE_COMMIT_ATTEMPTS", 3)

        def _op():
            self.items.commit_stock_decrements(aggregate_demand(candidates))

            rows = [
                Sale(
                    item_id=c.item_id,
                    actor_id=c.actor_id,
                    quantity=c.quantity,
                    unit_price_cents=c.unit_price_cents,
                    total_cents=c.total_cents,
                )
                for c in candidates
            ]
            db.session.add_all(rows)
            db.session.flush()
            ids = [row.id for row in rows]

            db.session.commit()
            return ids

        try:
            return run_with_retry(_op, attempts=attempts)
        except StockConflictError:
            db.session.rollback()
            raise
        except Exception as exc:
            # Driver errors (e.g. OverflowError binding an integer) are not SQLAlchemyError
            db.session.rollback()
            raise PersistenceError(str(getattr(exc, "orig", None) or exc)) from exc
