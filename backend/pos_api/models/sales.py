from __future__ import annotations

import json

from ..extensions import db
from ..time_utils import to_utc_z

TRANSACTION_STATUSES = ("completed", "voided")


class Transaction(db.Model):
    """
    A completed (or later voided) sale.

    The id is a UUID4 string generated when the sale is recorded.
    Amounts are supplied by the register: total = subtotal - discount is the
    caller's arithmetic and is stored as given.

    Lifecycle: created together with its items as status='completed';
    the only later mutation is the flip to 'voided'.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_created_at", "created_at"),
        db.Index("ix_transactions_status_created", "status", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)

    subtotal = db.Column(db.Float, nullable=False)
    discount = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    cash_received = db.Column(db.Float, nullable=True)
    change_amount = db.Column(db.Float, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="completed")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "TransactionItem",
        back_populates="transaction",
        order_by="TransactionItem.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} total={self.total} status={self.status}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "payment_method": self.payment_method,
            "cash_received": self.cash_received,
            "change_amount": self.change_amount,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class TransactionItem(db.Model):
    """
    Line item snapshot.

    product_name/price/cost are copied at sale time and never follow later
    product edits. No relationship to Product: deleting a product leaves
    historical items untouched.
    """
    __tablename__ = "transaction_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.String(36), db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Float, nullable=False)
    cost = db.Column(db.Float, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Float, nullable=False)

    transaction = db.relationship("Transaction", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "price": self.price,
            "cost": self.cost,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }


class HeldBill(db.Model):
    """Parked cart. cart_data holds the JSON-serialized cart (items + discount)."""
    __tablename__ = "held_bills"
    __table_args__ = (
        db.Index("ix_held_bills_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    cart_data = db.Column(db.Text, nullable=False)
    note = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cart_data": json.loads(self.cart_data),
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
