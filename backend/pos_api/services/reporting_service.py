# Overview: Service-layer operations for reporting; read-only aggregates over completed sales.

from __future__ import annotations

import csv
import io
from datetime import date, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Transaction, TransactionItem
from ..time_utils import parse_iso_date, to_utc_z, today_utc, utcnow


EXPORT_HEADERS = ["ID", "Date", "Subtotal", "Discount", "Total", "Payment Method", "Status"]


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


def parse_report_date(value: str | None, *, field: str = "date") -> date | None:
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ReportError(f"{field} must be an ISO date (YYYY-MM-DD)")


def _completed():
    return Transaction.status == "completed"


def _summary(*filters) -> dict:
    row = db.session.query(
        func.count(Transaction.id).label("bill_count"),
        func.coalesce(func.sum(Transaction.total), 0).label("total_sales"),
        func.coalesce(func.sum(Transaction.discount), 0).label("total_discount"),
    ).filter(_completed(), *filters).one()

    return {
        "bill_count": int(row.bill_count or 0),
        "total_sales": float(row.total_sales or 0),
        "total_discount": float(row.total_discount or 0),
    }


def _profit(*filters) -> float:
    """Line revenue minus cost of goods; discounts are not deducted."""
    row = db.session.query(
        func.coalesce(func.sum(TransactionItem.subtotal), 0).label("revenue"),
        func.coalesce(func.sum(TransactionItem.cost * TransactionItem.quantity), 0).label("total_cost"),
    ).join(Transaction, TransactionItem.transaction_id == Transaction.id).filter(
        _completed(), *filters
    ).one()

    return float(row.revenue or 0) - float(row.total_cost or 0)


def daily_report(*, on_date: date | None = None) -> dict:
    target = on_date or today_utc()
    day_filter = func.date(Transaction.created_at) == target.isoformat()

    by_payment_method = (
        db.session.query(
            Transaction.payment_method,
            func.count(Transaction.id).label("txn_count"),
            func.coalesce(func.sum(Transaction.total), 0).label("total"),
        )
        .filter(_completed(), day_filter)
        .group_by(Transaction.payment_method)
        .order_by(Transaction.payment_method.asc())
        .all()
    )

    return {
        "date": target.isoformat(),
        **_summary(day_filter),
        "profit": _profit(day_filter),
        "by_payment_method": [
            {
                "payment_method": row.payment_method,
                "count": int(row.txn_count),
                "total": float(row.total or 0),
            }
            for row in by_payment_method
        ],
    }


def monthly_report(*, year: int | None = None, month: int | None = None) -> dict:
    today = today_utc()
    target_year = year if year is not None else today.year
    target_month = month if month is not None else today.month

    if not 1 <= target_month <= 12:
        raise ReportError("month must be between 1 and 12")
    if not 1 <= target_year <= 9999:
        raise ReportError("year is out of range")

    month_filter = func.strftime("%Y-%m", Transaction.created_at) == f"{target_year:04d}-{target_month:02d}"
    day_expr = func.date(Transaction.created_at)

    rows = (
        db.session.query(
            day_expr.label("date"),
            func.count(Transaction.id).label("bill_count"),
            func.coalesce(func.sum(Transaction.total), 0).label("total_sales"),
        )
        .filter(_completed(), month_filter)
        .group_by(day_expr)
        .order_by(day_expr.asc())
        .all()
    )

    return {
        "year": target_year,
        "month": target_month,
        **_summary(month_filter),
        "profit": _profit(month_filter),
        "daily_breakdown": [
            {
                "date": row.date,
                "bill_count": int(row.bill_count),
                "total_sales": float(row.total_sales or 0),
            }
            for row in rows
        ],
    }


def top_products(*, limit: int = 10, days: int = 30) -> list[dict]:
    if limit <= 0:
        raise ReportError("limit must be > 0")
    if days <= 0:
        raise ReportError("days must be > 0")

    since = utcnow() - timedelta(days=days)
    total_quantity = func.sum(TransactionItem.quantity)

    rows = (
        db.session.query(
            TransactionItem.product_id,
            TransactionItem.product_name,
            total_quantity.label("total_quantity"),
            func.sum(TransactionItem.subtotal).label("total_revenue"),
            func.sum((TransactionItem.price - TransactionItem.cost) * TransactionItem.quantity).label("total_profit"),
        )
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
        .filter(_completed(), Transaction.created_at >= since)
        .group_by(TransactionItem.product_id, TransactionItem.product_name)
        .order_by(total_quantity.desc(), TransactionItem.product_id.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "total_quantity": int(row.total_quantity or 0),
            "total_revenue": float(row.total_revenue or 0),
            "total_profit": float(row.total_profit or 0),
        }
        for row in rows
    ]


def low_stock(*, threshold: int = 10) -> list[dict]:
    products = (
        db.session.query(Product)
        .filter(Product.stock <= threshold)
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def export_transactions_csv(*, start_date: date | None = None, end_date: date | None = None) -> str:
    """Completed transactions in an inclusive UTC date range, newest first."""
    if start_date and end_date and start_date > end_date:
        raise ReportError("start_date must be on or before end_date")

    day_expr = func.date(Transaction.created_at)
    query = db.session.query(Transaction).filter(_completed())
    if start_date:
        query = query.filter(day_expr >= start_date.isoformat())
    if end_date:
        query = query.filter(day_expr <= end_date.isoformat())

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for t in query.order_by(Transaction.created_at.desc()).all():
        writer.writerow([
            t.id,
            to_utc_z(t.created_at),
            t.subtotal,
            t.discount,
            t.total,
            t.payment_method,
            t.status,
        ])
    return buf.getvalue()
