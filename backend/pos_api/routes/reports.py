from flask import Blueprint, Response, current_app, jsonify, request

from ..services import reporting_service
from ..services.reporting_service import ReportError, parse_report_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _int_arg(name: str, default: int | None) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ReportError(f"{name} must be an integer")


@reports_bp.get("/daily")
def daily_report():
    try:
        on_date = parse_report_date(request.args.get("date"))
        report = reporting_service.daily_report(on_date=on_date)
        return jsonify(report), 200
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/monthly")
def monthly_report():
    try:
        report = reporting_service.monthly_report(
            year=_int_arg("year", None),
            month=_int_arg("month", None),
        )
        return jsonify(report), 200
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/top-products")
def top_products_report():
    try:
        report = reporting_service.top_products(
            limit=_int_arg("limit", 10),
            days=_int_arg("days", 30),
        )
        return jsonify(report), 200
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/low-stock")
def low_stock_report():
    try:
        threshold = _int_arg("threshold", current_app.config.get("LOW_STOCK_THRESHOLD", 10))
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(reporting_service.low_stock(threshold=threshold)), 200


@reports_bp.get("/export")
def export_transactions():
    """Completed transactions as a CSV download."""
    try:
        body = reporting_service.export_transactions_csv(
            start_date=parse_report_date(request.args.get("start_date"), field="start_date"),
            end_date=parse_report_date(request.args.get("end_date"), field="end_date"),
        )
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )
