# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/pos_api/routes/products.py
"""
Product management routes.

Lookup by barcode is the register's scan path; the remaining routes back
the product management screen.
"""
from flask import Blueprint, request, jsonify, current_app
from ..services import products_service
from ..services.products_service import ProductNotFound, StockError
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"barcode", "name", "price", "cost", "unit", "stock"},
    required_on_create={"barcode", "name", "price"},
    ignored_fields={"id", "created_at", "updated_at"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """List all products ordered by name."""
    return jsonify(products_service.list_products())


@products_bp.get("/barcode/<string:barcode>")
def get_product_by_barcode_route(barcode: str):
    try:
        return products_service.get_product_by_barcode(barcode)
    except ProductNotFound as e:
        return {"error": str(e)}, 404


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return products_service.get_product(product_id)
    except ProductNotFound as e:
        return {"error": str(e)}, 404


@products_bp.post("")
def create_product_route():
    """
    Create a new product.

    barcode, name and price are required; cost, unit and stock fall back
    to their defaults.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """Update a product. Fields left out of the payload keep their value."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ProductNotFound as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return updated, 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id)
    except ProductNotFound as e:
        return {"error": str(e)}, 404

    return {"message": "Product deleted successfully"}, 200


@products_bp.patch("/<int:product_id>/stock")
def adjust_stock_route(product_id: int):
    """
    Adjust stock by a signed delta.

    Body: {"adjustment": int} - positive to add, negative to deduct.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        updated = products_service.adjust_stock(
            product_id=product_id,
            adjustment=payload.get("adjustment"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFound as e:
        return {"error": str(e)}, 404
    except StockError as e:
        return {"error": str(e)}, 400

    current_app.logger.info(
        "Stock adjusted product_id=%s adjustment=%s stock=%s",
        product_id, payload.get("adjustment"), updated["stock"],
    )
    return updated, 200
