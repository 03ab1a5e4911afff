"""
Report tests.

Only completed transactions count; voided sales drop out of every total.
Transactions are back-dated by setting created_at directly.
"""

from datetime import datetime

import pytest

from pos_api.models import Transaction
from pos_api.services import reporting_service
from pos_api.services.reporting_service import EXPORT_HEADERS, ReportError
from pos_api.time_utils import utcnow

from conftest import make_product, sale_payload


def record_sale(client, session, *lines, at=None, **kwargs):
    resp = client.post("/api/sales", json=sale_payload(*lines, **kwargs))
    assert resp.status_code == 201, resp.json
    txn_id = resp.json["id"]
    if at is not None:
        session.get(Transaction, txn_id).created_at = at
        session.commit()
    return txn_id


# =============================================================================
# DAILY / MONTHLY
# =============================================================================


class TestDailyReport:

    def test_profit_is_line_revenue_minus_cost(self, client, db_session, coffee):
        record_sale(client, db_session, (coffee, 2), at=datetime(2026, 3, 5, 10, 0, 0))

        resp = client.get("/api/reports/daily?date=2026-03-05")
        assert resp.status_code == 200
        assert resp.json["date"] == "2026-03-05"
        assert resp.json["bill_count"] == 1
        assert resp.json["total_sales"] == 100.0
        assert resp.json["profit"] == 40.0

    def test_discount_and_payment_breakdown(self, client, db_session, coffee, milk):
        day = datetime(2026, 3, 5, 12, 0, 0)
        record_sale(client, db_session, (coffee, 1), discount=5, at=day)
        record_sale(client, db_session, (milk, 1), payment_method="card", at=day)
        record_sale(client, db_session, (milk, 1), payment_method="card", at=day)

        report = client.get("/api/reports/daily?date=2026-03-05").json
        assert report["bill_count"] == 3
        assert report["total_sales"] == 85.0
        assert report["total_discount"] == 5.0
        # discounts are not deducted from profit
        assert report["profit"] == 20.0 + 8.0 + 8.0
        assert report["by_payment_method"] == [
            {"payment_method": "card", "count": 2, "total": 40.0},
            {"payment_method": "cash", "count": 1, "total": 45.0},
        ]

    def test_voided_and_other_days_excluded(self, client, db_session, coffee):
        voided = record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 5, 8, 0, 0))
        record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 6, 8, 0, 0))
        client.delete(f"/api/sales/{voided}")

        report = client.get("/api/reports/daily?date=2026-03-05").json
        assert report["bill_count"] == 0
        assert report["total_sales"] == 0
        assert report["profit"] == 0
        assert report["by_payment_method"] == []

    def test_defaults_to_today(self, client, db_session):
        resp = client.get("/api/reports/daily")
        assert resp.status_code == 200
        assert resp.json["date"] == utcnow().date().isoformat()

    def test_bad_date_rejected(self, client, db_session):
        resp = client.get("/api/reports/daily?date=yesterday")
        assert resp.status_code == 400
        assert "date" in resp.json["error"]


class TestMonthlyReport:

    def test_daily_breakdown(self, client, db_session, coffee):
        record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 2, 9, 0, 0))
        record_sale(client, db_session, (coffee, 2), at=datetime(2026, 3, 2, 17, 0, 0))
        record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 20, 9, 0, 0))
        record_sale(client, db_session, (coffee, 1), at=datetime(2026, 4, 1, 9, 0, 0))

        report = client.get("/api/reports/monthly?year=2026&month=3").json
        assert report["year"] == 2026
        assert report["month"] == 3
        assert report["bill_count"] == 3
        assert report["total_sales"] == 200.0
        assert report["profit"] == 80.0
        assert report["daily_breakdown"] == [
            {"date": "2026-03-02", "bill_count": 2, "total_sales": 150.0},
            {"date": "2026-03-20", "bill_count": 1, "total_sales": 50.0},
        ]

    @pytest.mark.parametrize("query", ["month=13", "month=0", "month=march"])
    def test_bad_month_rejected(self, client, db_session, query):
        assert client.get(f"/api/reports/monthly?year=2026&{query}").status_code == 400


# =============================================================================
# PRODUCT REPORTS
# =============================================================================


class TestTopProducts:

    def test_ranked_by_quantity(self, client, db_session, coffee, milk):
        record_sale(client, db_session, (coffee, 1), (milk, 3))
        record_sale(client, db_session, (coffee, 1))

        rows = client.get("/api/reports/top-products").json
        assert [r["product_name"] for r in rows] == ["Milk", "Coffee Beans"]
        assert rows[0]["total_quantity"] == 3
        assert rows[0]["total_revenue"] == 60.0
        assert rows[0]["total_profit"] == 24.0
        assert rows[1]["total_profit"] == 40.0

    def test_limit_and_window(self, client, db_session, coffee, milk):
        record_sale(client, db_session, (milk, 3), at=datetime(2020, 1, 1, 9, 0, 0))
        record_sale(client, db_session, (coffee, 1))

        rows = client.get("/api/reports/top-products?days=30&limit=1").json
        assert [r["product_id"] for r in rows] == [coffee.id]

    def test_non_positive_params_rejected(self, client, db_session):
        assert client.get("/api/reports/top-products?limit=0").status_code == 400
        assert client.get("/api/reports/top-products?days=-1").status_code == 400
        assert client.get("/api/reports/top-products?limit=x").status_code == 400


class TestLowStock:

    def test_default_threshold(self, client, db_session, coffee, milk):
        make_product(db_session, barcode="999", name="Sugar", price=1, stock=50)

        rows = client.get("/api/reports/low-stock").json
        assert [r["name"] for r in rows] == ["Milk", "Coffee Beans"]

    def test_custom_threshold(self, client, db_session, coffee, milk):
        rows = client.get("/api/reports/low-stock?threshold=5").json
        assert [r["name"] for r in rows] == ["Milk"]


# =============================================================================
# CSV EXPORT
# =============================================================================


class TestExport:

    def test_csv_download(self, client, db_session, coffee):
        kept = record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 5, 10, 0, 0))
        voided = record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 5, 11, 0, 0))
        record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 9, 10, 0, 0))
        client.delete(f"/api/sales/{voided}")

        resp = client.get("/api/reports/export?start_date=2026-03-01&end_date=2026-03-05")
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert resp.headers["Content-Disposition"] == "attachment; filename=transactions.csv"

        lines = resp.get_data(as_text=True).splitlines()
        assert lines[0] == ",".join(EXPORT_HEADERS)
        assert lines[0] == "ID,Date,Subtotal,Discount,Total,Payment Method,Status"
        assert len(lines) == 2
        assert lines[1].startswith(f"{kept},2026-03-05T10:00:00Z,")
        assert lines[1].endswith(",cash,completed")

    def test_open_range_is_newest_first(self, client, db_session, coffee):
        older = record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 1, 10, 0, 0))
        newer = record_sale(client, db_session, (coffee, 1), at=datetime(2026, 3, 2, 10, 0, 0))

        lines = client.get("/api/reports/export").get_data(as_text=True).splitlines()
        assert [line.split(",")[0] for line in lines[1:]] == [newer, older]

    def test_reversed_range_rejected(self, client, db_session):
        resp = client.get("/api/reports/export?start_date=2026-03-05&end_date=2026-03-01")
        assert resp.status_code == 400


class TestReportService:

    def test_month_out_of_range(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.monthly_report(year=2026, month=13)

    def test_empty_database_totals(self, db_session):
        report = reporting_service.daily_report()
        assert report["bill_count"] == 0
        assert report["total_sales"] == 0.0
        assert reporting_service.top_products() == []
