# Overview: Service-layer operations for products; encapsulates business logic and database work.

# backend/pos_api/services/products_service.py
"""
Products Service

Products are looked up by id (back office) or by barcode (register scan).
Barcode is globally unique; the check happens before insert so the caller
gets a ConflictError instead of an IntegrityError.

Stock is a plain counter on the product row. Explicit adjustments go
through adjust_stock(); sales and voids change it inside their own
transactions (see sales_service).
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product
from ..validation import MAX_QUANTITY, ConflictError, ValidationError, coerce_int

PRODUCT_MUTABLE_FIELDS = {"barcode", "name", "price", "cost", "unit", "stock"}


class ProductNotFound(LookupError):
    """Raised when a product id or barcode does not exist."""


class StockError(Exception):
    """Raised when an adjustment would take stock below zero."""


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise ProductNotFound("Product not found")
    return p


def _ensure_barcode_free(barcode: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Barcode already exists")


def list_products() -> list[dict]:
    products = (
        db.session.query(Product)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def get_product(product_id: int) -> dict:
    return _require_product(product_id).to_dict()


def get_product_by_barcode(barcode: str) -> dict:
    p = db.session.query(Product).filter(Product.barcode == barcode).first()
    if p is None:
        raise ProductNotFound("Product not found")
    return p.to_dict()


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        ValidationError: If barcode, name or price is missing
        ConflictError: If the barcode is already used
    """
    for key in ("barcode", "name", "price"):
        if patch.get(key) is None:
            raise ValidationError("Barcode, name, and price are required")

    _ensure_barcode_free(patch["barcode"])

    p = Product(
        cost=0,
        unit=current_app.config.get("DEFAULT_UNIT", "pcs"),
        stock=0,
    )
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict:
    """
    Partial update: keys absent from the patch keep their stored value.

    Raises:
        ProductNotFound: If the product does not exist
        ConflictError: If the new barcode belongs to another product
    """
    p = _require_product(product_id)

    if "barcode" in patch and patch["barcode"] != p.barcode:
        _ensure_barcode_free(patch["barcode"], exclude_id=p.id)

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: int) -> None:
    """
    Hard-delete a product.

    Transaction items keep their own name/price/cost snapshot, so history
    stays readable after the product row is gone.
    """
    p = _require_product(product_id)
    db.session.delete(p)
    db.session.commit()


def adjust_stock(*, product_id: int, adjustment) -> dict:
    """
    Add a signed delta to stock.

    Raises:
        ValidationError: If adjustment is missing or not an integer,
            or the resulting stock would exceed MAX_QUANTITY
        ProductNotFound: If the product does not exist
        StockError: If the resulting stock would be negative (stock unchanged)
    """
    if adjustment is None:
        raise ValidationError("adjustment is required")
    delta = coerce_int("adjustment", adjustment)

    p = _require_product(product_id)

    new_stock = p.stock + delta
    if new_stock < 0:
        raise StockError("Insufficient stock")
    if new_stock > MAX_QUANTITY:
        raise ValidationError(f"stock cannot exceed {MAX_QUANTITY:,}")

    p.stock = new_stock
    db.session.commit()
    return p.to_dict()
