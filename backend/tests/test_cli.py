"""Flask CLI command tests (system, products, reports groups)."""

from datetime import datetime

from pos_api.cli import DEMO_PRODUCTS
from pos_api.models import Product, Transaction

from conftest import sale_payload


class TestProductCommands:

    def test_seed_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["products", "seed"])
        assert result.exit_code == 0
        assert f"Created {len(DEMO_PRODUCTS)} products" in result.output

        result = runner.invoke(args=["products", "seed"])
        assert "Created 0 products" in result.output
        assert db_session.query(Product).count() == len(DEMO_PRODUCTS)

    def test_list(self, app, coffee):
        result = app.test_cli_runner().invoke(args=["products", "list"])
        assert result.exit_code == 0
        assert "Coffee Beans" in result.output
        assert "8850000000011" in result.output

    def test_list_empty(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["products", "list"])
        assert "No products found." in result.output


class TestSystemCommands:

    def test_init(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "Database tables ready" in result.output

    def test_reset_requires_confirmation(self, app, coffee, db_session):
        result = app.test_cli_runner().invoke(args=["system", "reset-db"])
        assert "Refusing" in result.output
        assert db_session.query(Product).count() == 1

    def test_reset_clears_data(self, app, coffee, db_session):
        result = app.test_cli_runner().invoke(args=["system", "reset-db", "--yes"])
        assert result.exit_code == 0
        assert db_session.query(Product).count() == 0


class TestReportCommands:

    def test_daily(self, app, client, db_session, coffee):
        txn_id = client.post("/api/sales", json=sale_payload((coffee, 2))).json["id"]
        db_session.get(Transaction, txn_id).created_at = datetime(2026, 3, 5, 10, 0, 0)
        db_session.commit()

        result = app.test_cli_runner().invoke(args=["reports", "daily", "--date", "2026-03-05"])
        assert result.exit_code == 0
        assert "Bills:          1" in result.output
        assert "Profit:         40.00" in result.output

    def test_daily_bad_date(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["reports", "daily", "--date", "March"])
        assert result.exit_code != 0

    def test_export_to_file(self, app, client, db_session, coffee, tmp_path):
        client.post("/api/sales", json=sale_payload((coffee, 1)))
        out = tmp_path / "sales.csv"

        result = app.test_cli_runner().invoke(args=["reports", "export", "--output", str(out)])
        assert result.exit_code == 0
        assert "Wrote 1 transactions" in result.output
        assert out.read_text(encoding="utf-8").startswith("ID,Date,Subtotal")

    def test_export_to_stdout(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["reports", "export"])
        assert result.output == "ID,Date,Subtotal,Discount,Total,Payment Method,Status\n"
