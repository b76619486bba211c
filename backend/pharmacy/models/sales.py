from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from pharmacy.time_utils import to_utc_z


class Sale(db.Model):
    """
    Committed sale line.

    Append-only: rows are written by SaleRepository.insert_batch in the same
    DB transaction as the matching stock decrement, and are never updated
    afterwards. total_cents is always quantity * unit_price_cents.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.CheckConstraint("unit_price_cents > 0", name="ck_sales_price_positive"),
        db.CheckConstraint("total_cents = quantity * unit_price_cents", name="ck_sales_total"),
        db.Index("ix_sales_actor_sold_at", "actor_id", "sold_at"),
        db.Index("ix_sales_item_sold_at", "item_id", "sold_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)

    # Who sold it (authorization happens before the core is invoked)
    actor_id = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    # Assigned by the store at commit
    sold_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    item = db.relationship("Item", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} item_id={self.item_id} qty={self.quantity} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "actor_id": self.actor_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "total": format_cents(self.total_cents),
            "sold_at": to_utc_z(self.sold_at),
        }
