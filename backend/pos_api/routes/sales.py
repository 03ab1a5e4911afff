# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pos_api/routes/sales.py
"""Sales API routes: record, list and void transactions; hold and resume carts."""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import Transaction
from ..services import sales_service
from ..services.sales_service import SaleError, TransactionNotFound, HeldBillNotFound
from ..time_utils import parse_iso_date
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_transaction,
    ValidationError,
)


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={"subtotal", "discount", "total", "payment_method", "cash_received", "change_amount"},
    ignored_fields={"items"},
)


@sales_bp.get("")
def list_transactions_route():
    """
    List transactions, newest first.

    Query params:
    - date: YYYY-MM-DD (optional) - UTC calendar date
    - status: completed | voided (optional)
    """
    try:
        on_date = parse_iso_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "date must be an ISO date (YYYY-MM-DD)"}), 400

    try:
        transactions = sales_service.list_transactions(
            on_date=on_date,
            status=request.args.get("status"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify([t.to_dict() for t in transactions]), 200


@sales_bp.get("/<string:transaction_id>")
def get_transaction_route(transaction_id: str):
    """Get a transaction with its line items."""
    try:
        txn = sales_service.get_transaction(transaction_id)
    except TransactionNotFound as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(txn.to_dict(include_items=True)), 200


@sales_bp.post("")
def create_transaction_route():
    """
    Record a sale.

    Stock for every line is checked first; if any line is short the whole
    sale is rejected with a per-line list in "details". Otherwise the
    transaction, its items and the stock deduction are committed together.
    """
    payload = request.get_json(silent=True) or {}

    try:
        header = validate_payload(
            model=Transaction,
            payload=payload,
            policy=TRANSACTION_POLICY,
            partial=True,
        )
        enforce_rules_transaction(header)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        txn = sales_service.create_transaction(
            items=payload.get("items"),
            subtotal=header.get("subtotal"),
            total=header.get("total"),
            payment_method=header.get("payment_method"),
            discount=header.get("discount"),
            cash_received=header.get("cash_received"),
            change_amount=header.get("change_amount"),
        )
    except SaleError as e:
        body = {"error": str(e)}
        if e.details:
            body["details"] = e.details
        return jsonify(body), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Sale completed id=%s total=%s payment_method=%s lines=%d",
        txn.id, txn.total, txn.payment_method, len(txn.items),
    )
    return jsonify(txn.to_dict(include_items=True)), 201


@sales_bp.delete("/<string:transaction_id>")
def void_transaction_route(transaction_id: str):
    """Void a completed transaction and restore its stock."""
    try:
        sales_service.void_transaction(transaction_id)
    except TransactionNotFound as e:
        return jsonify({"error": str(e)}), 404
    except SaleError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to void transaction")
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Transaction voided id=%s", transaction_id)
    return jsonify({"message": "Transaction voided successfully"}), 200


# =============================================================================
# HELD BILLS
# =============================================================================

@sales_bp.post("/hold")
def hold_bill_route():
    """Park the current cart. Body: {"cart_data": {...}, "note": "..."}"""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        bill = sales_service.hold_bill(
            cart_data=payload.get("cart_data"),
            note=payload.get("note"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to hold bill")
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Bill held id=%s", bill.id)
    return jsonify({"id": bill.id, "message": "Bill held successfully"}), 201


@sales_bp.get("/held/all")
def list_held_bills_route():
    return jsonify([b.to_dict() for b in sales_service.list_held_bills()]), 200


@sales_bp.get("/held/<string:bill_id>")
def get_held_bill_route(bill_id: str):
    try:
        bill = sales_service.get_held_bill(bill_id)
    except HeldBillNotFound as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(bill.to_dict()), 200


@sales_bp.delete("/held/<string:bill_id>")
def delete_held_bill_route(bill_id: str):
    try:
        sales_service.delete_held_bill(bill_id)
    except HeldBillNotFound as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"message": "Held bill deleted successfully"}), 200
