"""
Order API tests.

Verifies:
- Unauthenticated requests return 401, non-admins get 403 on admin routes
- POST /api/orders returns 201 with the order, 400 with code + details on failure
- Another user's order is indistinguishable from a missing one (404)
- Admin status updates validate the status value
"""

import pytest

from aura.extensions import db
from aura.models import Order

from conftest import stock_of

CUSTOMER = {
    "name": "Ana",
    "email": "ana@example.com",
    "phone": "+919876543210",
    "address": "1 Rose Lane, Pune, MH, 411001, India",
}


def _variant(product, name="50ml"):
    return next(v for v in product.variants if v.name == name)


def _place(client, headers, product, quantity=1):
    return client.post(
        "/api/orders",
        json={
            "items": [{"product_id": product.id, "variant_id": _variant(product).id, "quantity": quantity}],
            "customer_details": CUSTOMER,
        },
        headers=headers,
    )


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/orders"),
            ("GET", "/api/orders"),
            ("GET", "/api/orders/1"),
            ("GET", "/api/orders/admin/all"),
            ("PUT", "/api/orders/1/status"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/orders", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_customer_cannot_use_admin_routes(self, client, customer_headers):
        assert client.get("/api/orders/admin/all", headers=customer_headers).status_code == 403
        resp = client.put("/api/orders/1/status", json={"status": "Shipped"}, headers=customer_headers)
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Admin access required"


class TestPlaceOrderRoute:

    def test_scenario_stock_five_order_three(self, client, customer_headers, product):
        resp = _place(client, customer_headers, product, quantity=3)

        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["total_cents"] == 30000
        assert order["status"] == "Pending"
        assert order["items"][0]["line_total_cents"] == 30000
        assert order["date"].endswith("Z")
        assert stock_of(_variant(product)) == 2

    def test_insufficient_stock_response(self, client, customer_headers, product):
        resp = _place(client, customer_headers, product, quantity=6)

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["details"]["requested"] == 6
        assert body["details"]["available"] == 5
        assert stock_of(_variant(product)) == 5

    def test_unknown_product_response(self, client, customer_headers):
        resp = client.post(
            "/api/orders",
            json={"items": [{"product_id": 987654, "quantity": 1}], "customer_details": CUSTOMER},
            headers=customer_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "PRODUCT_NOT_FOUND"
        assert db.session.query(Order).count() == 0

    def test_oversized_product_id_is_a_client_error(self, client, customer_headers):
        resp = client.post(
            "/api/orders",
            json={"items": [{"product_id": 10**20, "quantity": 1}], "customer_details": CUSTOMER},
            headers=customer_headers,
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "INVALID_ITEM"
        assert body["details"]["field"] == "product_id"
        assert db.session.query(Order).count() == 0

    def test_object_address_is_rejected(self, client, customer_headers, product):
        resp = client.post(
            "/api/orders",
            json={
                "items": [{"product_id": product.id, "variant_id": _variant(product).id, "quantity": 1}],
                "customer_details": {**CUSTOMER, "address": {"street": "x"}},
            },
            headers=customer_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "MISSING_CUSTOMER_DETAILS"
        assert db.session.query(Order).count() == 0
        assert stock_of(_variant(product)) == 5

    def test_empty_cart_response(self, client, customer_headers):
        resp = client.post("/api/orders", json={"items": [], "customer_details": CUSTOMER}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "EMPTY_CART"

    def test_missing_body(self, client, customer_headers):
        resp = client.post("/api/orders", headers=customer_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "EMPTY_CART"

    def test_missing_customer_details_response(self, client, customer_headers, product):
        resp = client.post(
            "/api/orders",
            json={"items": [{"product_id": product.id, "variant_id": _variant(product).id, "quantity": 1}]},
            headers=customer_headers,
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "MISSING_CUSTOMER_DETAILS"
        assert body["details"]["missing"] == ["name", "email", "phone", "address"]

    def test_offer_line(self, client, customer_headers, offer):
        resp = client.post(
            "/api/orders",
            json={"items": [{"offer_id": offer.id, "quantity": 3}], "customer_details": CUSTOMER},
            headers=customer_headers,
        )
        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["total_cents"] == 28000
        assert sum(i["quantity"] for i in order["items"]) == 3


class TestOrderQueriesRoute:

    def test_list_my_orders(self, client, customer_headers, other_customer_headers, product):
        _place(client, customer_headers, product)
        _place(client, customer_headers, product)
        _place(client, other_customer_headers, product)

        resp = client.get("/api/orders", headers=customer_headers)
        assert resp.status_code == 200
        orders = resp.get_json()["orders"]
        assert len(orders) == 2
        assert orders[0]["id"] > orders[1]["id"]

    def test_get_own_order(self, client, customer_headers, product):
        order_id = _place(client, customer_headers, product).get_json()["order"]["id"]

        resp = client.get(f"/api/orders/{order_id}", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.get_json()["order"]["id"] == order_id

    def test_other_users_order_is_not_found(self, client, customer_headers, other_customer_headers, product):
        order_id = _place(client, customer_headers, product).get_json()["order"]["id"]

        foreign = client.get(f"/api/orders/{order_id}", headers=other_customer_headers)
        missing = client.get("/api/orders/987654", headers=other_customer_headers)
        assert foreign.status_code == 404
        assert missing.status_code == 404
        assert foreign.get_json() == missing.get_json()

    def test_admin_list_all(self, client, customer_headers, admin_headers, product):
        _place(client, customer_headers, product)

        resp = client.get("/api/orders/admin/all?status=All&search=ana", headers=admin_headers)
        assert resp.status_code == 200
        orders = resp.get_json()["orders"]
        assert len(orders) == 1
        assert orders[0]["user_email"] == "ana@example.com"

        resp = client.get("/api/orders/admin/all?status=Delivered", headers=admin_headers)
        assert resp.get_json()["orders"] == []


class TestOrderStatusRoute:

    def test_update_status(self, client, customer_headers, admin_headers, product):
        order_id = _place(client, customer_headers, product).get_json()["order"]["id"]

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "Shipped"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["order"]["status"] == "Shipped"

    def test_invalid_status(self, client, customer_headers, admin_headers, product):
        order_id = _place(client, customer_headers, product).get_json()["order"]["id"]

        resp = client.put(f"/api/orders/{order_id}/status", json={"status": "Lost"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_STATUS"

        resp = client.get(f"/api/orders/{order_id}", headers=customer_headers)
        assert resp.get_json()["order"]["status"] == "Pending"

    def test_missing_order(self, client, admin_headers):
        resp = client.put("/api/orders/987654/status", json={"status": "Shipped"}, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "ORDER_NOT_FOUND"

    def test_oversized_order_id(self, client, customer_headers, admin_headers):
        huge = 10**20
        resp = client.put(f"/api/orders/{huge}/status", json={"status": "Shipped"}, headers=admin_headers)
        assert resp.status_code == 404
        assert client.get(f"/api/orders/{huge}", headers=customer_headers).status_code == 404
