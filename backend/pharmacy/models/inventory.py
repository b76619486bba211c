from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from pharmacy.time_utils import to_iso_date, to_utc_z


class Item(db.Model):
    """
    Sellable stock item (a pharmacy product).

    SOFT DELETE: Items are never physically removed. Deactivation sets
    is_active=False and stock=0 so historical sales keep their linkage.
    An edit that sets stock > 0 reactivates the item.

    Stock is a mutable on-hand quantity. Only the sale commit path
    (ItemRepository.commit_stock_decrements) and item maintenance may
    change it.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        db.CheckConstraint("unit_price_cents > 0", name="ck_items_price_positive"),
        db.Index("ix_items_name", "name"),
        db.Index("ix_items_active_expiration", "is_active", "expiration_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents
    unit_price_cents = db.Column(db.Integer, nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)

    # NULL means the item never expires
    expiration_date = db.Column(db.Date, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} stock={self.stock} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit_price_cents": self.unit_price_cents,
            "unit_price": format_cents(self.unit_price_cents),
            "stock": self.stock,
            "expiration_date": to_iso_date(self.expiration_date),
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
