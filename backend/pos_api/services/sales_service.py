"""
Sales Service - transaction recording, voids and held bills

Recording a sale is two steps:
1. A read-only stock check over every cart line (no writes).
2. One database transaction that inserts the transaction row, inserts the
   line items and decrements stock. It either commits as a whole or rolls
   back as a whole.

The check in step 1 is not repeated inside step 2. A single register is the
expected deployment; two registers selling the last unit of the same product
at the same moment could both pass the check.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Transaction, TransactionItem, HeldBill, TRANSACTION_STATUSES
from ..validation import ValidationError, coerce_amount, coerce_int
from .concurrency import lock_for_update, run_with_retry


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: list | None = None):
        super().__init__(message)
        self.details = details or []


class TransactionNotFound(LookupError):
    """Raised when a transaction id does not exist."""


class HeldBillNotFound(LookupError):
    """Raised when a held bill id does not exist."""


@dataclass(frozen=True)
class CartLine:
    """One normalized cart line as sent by the register."""
    product_id: int
    quantity: int
    product_name: str | None = None
    price: float | None = None
    cost: float | None = None
    subtotal: float | None = None


def _new_id() -> str:
    return str(uuid.uuid4())


def _json_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _optional_amount(raw: dict, key: str, position: int) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    amount = coerce_amount(f"items[{position}].{key}", value)
    if amount < 0:
        raise ValidationError(f"items[{position}].{key} must be >= 0")
    return amount


def parse_cart_line(raw: Any, position: int) -> CartLine:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{position}] must be an object")

    if raw.get("product_id") is None:
        raise ValidationError(f"items[{position}].product_id is required")
    if raw.get("quantity") is None:
        raise ValidationError(f"items[{position}].quantity is required")

    product_id = coerce_int(f"items[{position}].product_id", raw["product_id"])
    quantity = coerce_int(f"items[{position}].quantity", raw["quantity"])
    if quantity <= 0:
        raise ValidationError(f"items[{position}].quantity must be > 0")

    name = raw.get("product_name")
    if name is not None:
        name = str(name).strip() or None

    return CartLine(
        product_id=product_id,
        quantity=quantity,
        product_name=name,
        price=_optional_amount(raw, "price", position),
        cost=_optional_amount(raw, "cost", position),
        subtotal=_optional_amount(raw, "subtotal", position),
    )


def _validate_stock(lines: list[CartLine]) -> None:
    # Quantities are summed per product so split lines cannot oversell
    requested: dict[int, int] = {}
    names: dict[int, str | None] = {}
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
        names.setdefault(line.product_id, line.product_name)

    errors = []
    for product_id, qty in requested.items():
        product = db.session.get(Product, product_id)
        if product is None:
            errors.append(f"Product not found: {names[product_id] or product_id}")
        elif product.stock < qty:
            errors.append(f"{product.name}: {product.stock} in stock, {qty} requested")

    if errors:
        raise SaleError("Insufficient stock", details=errors)


def create_transaction(
    *,
    items: list | None,
    subtotal: float | None,
    total: float | None,
    payment_method: str | None,
    discount: float | None = 0,
    cash_received: float | None = None,
    change_amount: float | None = None,
) -> Transaction:
    """
    Record a sale and deduct stock.

    Raises:
        SaleError: Empty cart, missing payment method, unknown product or
            insufficient stock. Nothing is written.
        ValidationError: Malformed cart line.
    """
    if not items:
        raise SaleError("Cart is empty")
    if not isinstance(items, list):
        raise ValidationError("items must be a list")
    if not payment_method:
        raise SaleError("Payment method is required")
    if subtotal is None or total is None:
        raise ValidationError("subtotal and total are required")

    lines = [parse_cart_line(raw, i) for i, raw in enumerate(items)]
    _validate_stock(lines)

    transaction_id = _new_id()

    def _op():
        try:
            txn = Transaction(
                id=transaction_id,
                subtotal=subtotal,
                discount=discount or 0,
                total=total,
                payment_method=payment_method,
                cash_received=cash_received or None,
                change_amount=change_amount or None,
                status="completed",
            )
            db.session.add(txn)

            for line in lines:
                product = db.session.get(Product, line.product_id)

                price = line.price
                if price is None:
                    price = product.price if product is not None else 0
                # Cost always comes from the product row when it still exists
                cost = product.cost if product is not None else (line.cost or 0)
                name = line.product_name or (product.name if product is not None else str(line.product_id))
                line_subtotal = line.subtotal if line.subtotal is not None else price * line.quantity

                txn.items.append(
                    TransactionItem(
                        product_id=line.product_id,
                        product_name=name,
                        price=price,
                        cost=cost,
                        quantity=line.quantity,
                        subtotal=line_subtotal,
                    )
                )

                if product is not None:
                    product.stock = product.stock - line.quantity

            db.session.commit()
            return txn
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(_op)


def void_transaction(transaction_id: str) -> Transaction:
    """
    Void a completed transaction and put its quantities back into stock.

    Raises:
        TransactionNotFound: Unknown id
        SaleError: Transaction already voided (stock untouched)
    """
    def _op():
        try:
            txn = lock_for_update(
                db.session.query(Transaction).filter(Transaction.id == transaction_id)
            ).first()
            if txn is None:
                raise TransactionNotFound("Transaction not found")

            if txn.status == "voided":
                raise SaleError("Transaction already voided")

            for item in txn.items:
                product = db.session.get(Product, item.product_id)
                # Deleted products have nothing to restore
                if product is not None:
                    product.stock = product.stock + item.quantity

            txn.status = "voided"
            db.session.commit()
            return txn
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(_op)


def get_transaction(transaction_id: str) -> Transaction:
    txn = db.session.get(Transaction, transaction_id)
    if txn is None:
        raise TransactionNotFound("Transaction not found")
    return txn


def list_transactions(*, on_date: date | None = None, status: str | None = None) -> list[Transaction]:
    """Newest first, optionally restricted to one UTC calendar date and/or status."""
    query = db.session.query(Transaction)

    if on_date is not None:
        query = query.filter(func.date(Transaction.created_at) == on_date.isoformat())

    if status:
        if status not in TRANSACTION_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(TRANSACTION_STATUSES)}")
        query = query.filter(Transaction.status == status)

    return query.order_by(Transaction.created_at.desc()).all()


# =============================================================================
# HELD BILLS
# =============================================================================

def hold_bill(*, cart_data: Any, note: str | None = None) -> HeldBill:
    """Park a cart. The snapshot is stored as-is (items, discount, totals)."""
    if not isinstance(cart_data, dict):
        raise ValidationError("cart_data must be an object")

    if note is not None:
        note = str(note).strip() or None
        if note is not None and len(note) > 255:
            raise ValidationError("note exceeds max length 255")

    bill = HeldBill(id=_new_id(), cart_data=_json_dumps(cart_data), note=note)
    db.session.add(bill)
    db.session.commit()
    return bill


def list_held_bills() -> list[HeldBill]:
    return db.session.query(HeldBill).order_by(HeldBill.created_at.desc()).all()


def get_held_bill(bill_id: str) -> HeldBill:
    bill = db.session.get(HeldBill, bill_id)
    if bill is None:
        raise HeldBillNotFound("Held bill not found")
    return bill


def delete_held_bill(bill_id: str) -> None:
    bill = get_held_bill(bill_id)
    db.session.delete(bill)
    db.session.commit()
