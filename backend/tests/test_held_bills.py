"""Held bill (parked cart) tests."""

from datetime import datetime

from pos_api.models import HeldBill


CART = {
    "items": [
        {"product_id": 1, "product_name": "Coffee Beans", "price": 50, "quantity": 2, "subtotal": 100},
        {"product_id": 2, "product_name": "Milk", "price": 20, "quantity": 1, "subtotal": 20},
    ],
    "discount": 5,
}


class TestHeldBills:

    def test_hold_and_resume(self, client, db_session):
        resp = client.post("/api/sales/hold", json={"cart_data": CART, "note": "Table 4"})
        assert resp.status_code == 201
        assert resp.json["message"] == "Bill held successfully"
        bill_id = resp.json["id"]

        resp = client.get(f"/api/sales/held/{bill_id}")
        assert resp.status_code == 200
        assert resp.json["cart_data"] == CART
        assert resp.json["note"] == "Table 4"

    def test_note_is_optional(self, client, db_session):
        resp = client.post("/api/sales/hold", json={"cart_data": CART})
        assert resp.status_code == 201
        assert client.get(f"/api/sales/held/{resp.json['id']}").json["note"] is None

    def test_list_newest_first(self, client, db_session):
        older = client.post("/api/sales/hold", json={"cart_data": CART, "note": "older"}).json["id"]
        newer = client.post("/api/sales/hold", json={"cart_data": CART, "note": "newer"}).json["id"]
        db_session.get(HeldBill, older).created_at = datetime(2026, 3, 5, 10, 0, 0)
        db_session.get(HeldBill, newer).created_at = datetime(2026, 3, 5, 11, 0, 0)
        db_session.commit()

        resp = client.get("/api/sales/held/all")
        assert resp.status_code == 200
        assert [b["id"] for b in resp.json] == [newer, older]
        assert resp.json[0]["cart_data"] == CART

    def test_cart_data_must_be_object(self, client, db_session):
        assert client.post("/api/sales/hold", json={"cart_data": "nope"}).status_code == 400
        assert client.post("/api/sales/hold", json={}).status_code == 400
        assert db_session.query(HeldBill).count() == 0

    def test_overlong_note_rejected(self, client, db_session):
        resp = client.post("/api/sales/hold", json={"cart_data": CART, "note": "x" * 256})
        assert resp.status_code == 400

    def test_delete(self, client, db_session):
        bill_id = client.post("/api/sales/hold", json={"cart_data": CART}).json["id"]

        resp = client.delete(f"/api/sales/held/{bill_id}")
        assert resp.status_code == 200
        assert resp.json["message"] == "Held bill deleted successfully"
        assert client.get(f"/api/sales/held/{bill_id}").status_code == 404

    def test_missing_bill_is_404(self, client, db_session):
        assert client.get("/api/sales/held/nope").status_code == 404
        assert client.delete("/api/sales/held/nope").status_code == 404
