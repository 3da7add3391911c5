# Overview: End-to-end checks of the JSON API through the Flask test client.

"""
API Tests

Walks the main flow over HTTP: register, stock a product, ring up a sale,
read the dashboard. Also checks status codes and the error shape for
unauthenticated, forbidden, cross-tenant and store failures.
"""

import pytest
from sqlalchemy.exc import OperationalError

from znpos.services.storage import Storage

ADMIN = {
    "username": "owner",
    "email": "owner@corner.test",
    "password": "owner-pass",
    "first_name": "Olive",
    "last_name": "Owens",
}


def _register(client, name="Corner Shop", user=ADMIN):
    return client.post("/api/register", json={
        "business": {"name": name, "email": f"{user['username']}@biz.test", "tax_rate": "0.0825"},
        "user": user,
    })


@pytest.fixture
def owner_client(app, db_session):
    client = app.test_client()
    resp = _register(client)
    assert resp.status_code == 201
    return client


class TestSaleScenario:

    def test_register_stock_sell_report(self, owner_client):
        resp = owner_client.post("/api/products", json={
            "name": "P",
            "price": "10.00",
            "stock": 3,
            "low_stock_threshold": 5,
        })
        assert resp.status_code == 201
        product = resp.get_json()

        resp = owner_client.post("/api/transactions", json={
            "transaction": {
                "subtotal": "20.00",
                "tax_amount": "1.65",
                "total": "21.65",
                "payment_method": "cash",
            },
            "items": [{
                "product_id": product["id"],
                "quantity": 2,
                "unit_price": "10.00",
                "total": "20.00",
            }],
        })
        assert resp.status_code == 201
        txn = resp.get_json()
        assert txn["total"] == "21.65"
        assert txn["invoice_id"] == txn["id"]

        stats = owner_client.get("/api/dashboard/stats").get_json()
        assert stats["today_sales"] == "21.65"
        assert stats["today_transactions"] == 1
        assert stats["average_sale"] == "21.65"
        assert stats["low_stock_count"] == 1

        top = owner_client.get("/api/dashboard/top-products").get_json()
        assert [(p["id"], p["sold_count"]) for p in top] == [(product["id"], 2)]

        low = owner_client.get("/api/dashboard/low-stock").get_json()
        assert [p["id"] for p in low] == [product["id"]]

        recent = owner_client.get("/api/dashboard/recent-transactions").get_json()
        assert [t["id"] for t in recent] == [txn["id"]]

        invoice = owner_client.get(f"/api/invoices/{txn['id']}").get_json()
        assert invoice["items"][0]["product_name"] == "P"
        assert invoice["business"]["tax_rate"] == "0.0825"
        assert invoice["payment_status"] == "Paid"

    def test_bad_sale_is_400_and_writes_nothing(self, owner_client):
        product = owner_client.post("/api/products", json={"name": "P", "price": "10.00"}).get_json()

        resp = owner_client.post("/api/transactions", json={
            "transaction": {"subtotal": "10.00", "total": "10.00", "payment_method": "cash"},
            "items": [],
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"]["kind"] == "validation_error"
        assert owner_client.get("/api/transactions").get_json() == []
        assert product["is_active"] is True


class TestBadInputOverHttp:

    def test_overlong_password_register_is_400(self, client, db_session):
        resp = _register(client, user={**ADMIN, "password": "x" * 100})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["kind"] == "validation_error"
        assert client.get("/api/me").status_code == 401

    def test_overlong_password_login_is_401(self, app, owner_client):
        resp = app.test_client().post("/api/login", json={"username": "owner", "password": "x" * 100})
        assert resp.status_code == 401

    @pytest.mark.parametrize("path", [
        "/api/transactions?limit=-1",
        "/api/transactions?limit=0",
        "/api/dashboard/recent-transactions?limit=-1",
        "/api/dashboard/top-products?limit=0",
    ])
    def test_non_positive_limit_is_400(self, owner_client, path):
        resp = owner_client.get(path)

        assert resp.status_code == 400
        assert resp.get_json()["error"]["kind"] == "validation_error"


class TestSession:

    def test_register_logs_in(self, owner_client):
        me = owner_client.get("/api/me").get_json()
        assert me["user"]["role"] == "admin"
        assert me["business"]["name"] == "Corner Shop"

    def test_logout_then_me_is_401(self, owner_client):
        owner_client.post("/api/logout")

        resp = owner_client.get("/api/me")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": {"kind": "unauthorized", "message": "Authentication required"}}

    def test_login_by_email(self, app, owner_client):
        client = app.test_client()
        resp = client.post("/api/login", json={"username": ADMIN["email"], "password": ADMIN["password"]})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["username"] == "owner"
        assert "password_hash" not in body["user"]
        assert client.get("/api/me").status_code == 200

    def test_bad_login_is_401(self, app, owner_client):
        client = app.test_client()
        resp = client.post("/api/login", json={"username": "owner", "password": "wrong-pass"})

        assert resp.status_code == 401
        assert resp.get_json()["error"]["message"] == "Invalid credentials"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/customers"),
            ("GET", "/api/transactions"),
            ("POST", "/api/transactions"),
            ("GET", "/api/dashboard/stats"),
            ("GET", "/api/employees"),
            ("PUT", "/api/settings/business"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


class TestPermissionsOverHttp:

    def test_cashier_denied_inventory(self, app, owner_client):
        resp = owner_client.post("/api/employees", json={
            "username": "till1",
            "email": "till1@corner.test",
            "password": "till-pass",
            "first_name": "Tia",
            "last_name": "Till",
        })
        assert resp.status_code == 201

        cashier = app.test_client()
        cashier.post("/api/login", json={"username": "till1", "password": "till-pass"})

        resp = cashier.get("/api/products")
        assert resp.status_code == 403
        assert resp.get_json()["error"]["kind"] == "forbidden"
        assert cashier.get("/api/employees").status_code == 403

    def test_employee_cap_is_409(self, app, owner_client):
        app.config["EMPLOYEE_LIMIT"] = 1
        try:
            payload = {"password": "till-pass", "first_name": "T", "last_name": "T"}
            first = owner_client.post("/api/employees", json={**payload, "username": "t1", "email": "t1@c.test"})
            second = owner_client.post("/api/employees", json={**payload, "username": "t2", "email": "t2@c.test"})
        finally:
            app.config["EMPLOYEE_LIMIT"] = 10

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.get_json()["error"]["kind"] == "capacity_exceeded"

    def test_delete_admin_is_404(self, owner_client):
        me = owner_client.get("/api/me").get_json()
        resp = owner_client.delete(f"/api/employees/{me['user']['user_id']}")
        assert resp.status_code == 404

    def test_cross_tenant_product_is_404(self, app, owner_client):
        product = owner_client.post("/api/products", json={"name": "Mine", "price": "1.00"}).get_json()

        other = app.test_client()
        _register(other, name="Other Shop", user={**ADMIN, "username": "rival", "email": "rival@other.test"})

        assert other.get(f"/api/products/{product['id']}").status_code == 404
        assert other.put(f"/api/products/{product['id']}", json={"price": "0.01"}).status_code == 404
        assert owner_client.get(f"/api/products/{product['id']}").get_json()["price"] == "1.00"


class TestStoreFailure:

    def test_store_error_is_503(self, monkeypatch, owner_client):
        def broken(self, principal):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        monkeypatch.setattr(Storage, "list_customers", broken)

        resp = owner_client.get("/api/customers")
        assert resp.status_code == 503
        assert resp.get_json()["error"]["kind"] == "store_unavailable"
