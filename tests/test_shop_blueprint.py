"""
Testes dos endpoints do painel do operador (/api/shop).
"""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from proxyshop.exceptions import ProvisioningFailed
from proxyshop.models import OrderStatus
from proxyshop.services.shop_service import ShopService


class TestPackageEndpoints:

    def test_create_list_update_delete(self, client):
        resp = client.post("/api/shop/packages", json={"name": "Pro", "data_gb": 100, "days": 30, "price": 29.9})
        assert resp.status_code == 201
        package_id = resp.get_json()["obj"]["id"]

        resp = client.post("/api/shop/packages", json={"id": package_id, "name": "Pro+", "price": 35})
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "updated"

        items = client.get("/api/shop/packages").get_json()["obj"]
        assert [(p["id"], p["name"], p["price"]) for p in items] == [(package_id, "Pro+", 35.0)]

        assert client.post(f"/api/shop/packages/{package_id}/delete").status_code == 200
        assert client.get("/api/shop/packages").get_json()["obj"] == []

    def test_partial_update_keeps_other_fields(self, client):
        resp = client.post("/api/shop/packages", json={
            "name": "Pro", "data_gb": 50, "days": 30, "price": 10, "is_active": False,
        })
        package_id = resp.get_json()["obj"]["id"]

        resp = client.post("/api/shop/packages", json={"id": package_id, "name": "Renamed"})
        assert resp.status_code == 200
        obj = resp.get_json()["obj"]
        assert (obj["name"], obj["data_gb"], obj["days"], obj["price"], obj["is_active"]) == (
            "Renamed", 50, 30, 10.0, False)

        resp = client.post("/api/shop/packages", json={"id": package_id, "name": "Renamed", "is_active": True})
        assert resp.get_json()["obj"]["is_active"] is True
        assert resp.get_json()["obj"]["data_gb"] == 50

    def test_name_is_required(self, client):
        resp = client.post("/api/shop/packages", json={"data_gb": 10})
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_invalid_price(self, client):
        resp = client.post("/api/shop/packages", json={"name": "X", "price": "abc"})
        assert resp.status_code == 400

    def test_update_missing_package(self, client):
        resp = client.post("/api/shop/packages", json={"id": 999, "name": "X"})
        assert resp.status_code == 404

    def test_delete_missing_package(self, client):
        assert client.post("/api/shop/packages/999/delete").status_code == 404


class TestOrderEndpoints:

    def test_list_orders_with_packages(self, client, make_order):
        make_order(customer_id=1)
        make_order(customer_id=2)

        body = client.get("/api/shop/orders").get_json()["obj"]
        assert len(body["orders"]) == 2
        assert body["packages"] == []

        scoped = client.get("/api/shop/orders?customer_id=2").get_json()["obj"]["orders"]
        assert [o["customer_id"] for o in scoped] == [2]

    def test_approve(self, client, make_order, provisioner):
        order = make_order(OrderStatus.PENDING_REVIEW)

        resp = client.post(f"/api/shop/orders/{order.id}/approve")
        assert resp.status_code == 200
        obj = resp.get_json()["obj"]
        assert obj["status"] == "APPROVED"
        assert obj["client_email"] == "user@x"

        resp = client.post(f"/api/shop/orders/{order.id}/approve")
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "IllegalTransition"
        assert provisioner.calls == [order.id]

    def test_approve_not_ready(self, client, make_order, provisioner):
        order = make_order(OrderStatus.PENDING_RECEIPT)
        assert client.post(f"/api/shop/orders/{order.id}/approve").status_code == 409
        assert provisioner.calls == []

    def test_approve_missing(self, client):
        assert client.post("/api/shop/orders/404/approve").status_code == 404

    def test_approve_provisioning_failed(self, client, make_order, provisioner):
        order = make_order(OrderStatus.PENDING_REVIEW)
        provisioner.side_effect = ProvisioningFailed("painel fora do ar")

        resp = client.post(f"/api/shop/orders/{order.id}/approve")
        assert resp.status_code == 502
        assert resp.get_json()["error"] == "ProvisioningFailed"

    def test_approve_partial_failure_reports_account(self, client, make_order):
        order = make_order(OrderStatus.PENDING_REVIEW)
        error = OperationalError("UPDATE shop_orders", {}, Exception("database is locked"))

        with patch.object(ShopService, "_set_order_provisioned", side_effect=error):
            resp = client.post(f"/api/shop/orders/{order.id}/approve")

        assert resp.status_code == 500
        body = resp.get_json()
        assert body["error"] == "PersistenceInconsistent"
        assert body["account_may_exist"] is True
        assert body["account"]["email"] == "user@x"

        stuck = client.get("/api/shop/orders/stuck").get_json()["obj"]
        assert [o["id"] for o in stuck] == [order.id]

        resp = client.post(f"/api/shop/orders/{order.id}/reconcile",
                           json={"email": "user@x", "client_id": "cid-1", "sub_id": "sub-1"})
        assert resp.status_code == 200
        assert resp.get_json()["obj"]["status"] == "APPROVED"

    def test_release(self, client, services, make_order):
        order = make_order(OrderStatus.PENDING_REVIEW)
        services.shop._claim_for_provisioning(order.id)

        resp = client.post(f"/api/shop/orders/{order.id}/release")
        assert resp.status_code == 200
        assert resp.get_json()["obj"]["provisioning"] is False

    def test_reject_with_note(self, client, make_order):
        order = make_order(OrderStatus.PENDING_REVIEW)

        resp = client.post(f"/api/shop/orders/{order.id}/reject", json={"note": "valor errado"})
        assert resp.status_code == 200
        obj = resp.get_json()["obj"]
        assert obj["status"] == "REJECTED"
        assert obj["note"] == "valor errado"

        assert client.post(f"/api/shop/orders/{order.id}/reject").status_code == 409


class TestReceiptEndpoint:

    def test_serves_stored_receipt(self, client, services, make_order, tmp_path):
        root = tmp_path / "receipts"
        root.mkdir()
        receipt = root / "order_1_pix.png"
        receipt.write_bytes(b"png-bytes")
        order = make_order(OrderStatus.PENDING_REVIEW, receipt_path=str(receipt))

        resp = client.get(f"/api/shop/receipt/{order.id}")
        assert resp.status_code == 200
        assert resp.data == b"png-bytes"

    def test_outside_root_is_not_found(self, client, make_order, tmp_path):
        secret = tmp_path / "secret.png"
        secret.write_bytes(b"x")
        order = make_order(OrderStatus.PENDING_REVIEW, receipt_path=str(secret))

        assert client.get(f"/api/shop/receipt/{order.id}").status_code == 404

    def test_order_without_receipt(self, client, make_order):
        order = make_order()
        assert client.get(f"/api/shop/receipt/{order.id}").status_code == 404


class TestInboundEndpoints:

    def test_default_allow_then_explicit(self, client):
        body = client.get("/api/shop/inbounds").get_json()["obj"]
        assert body["mode"] == "default_allow"
        assert [(i["id"], i["enabled"]) for i in body["inbounds"]] == [(1, True), (3, True), (5, True)]

        assert client.post("/api/shop/inbounds/3", json={"enabled": True}).status_code == 200

        body = client.get("/api/shop/inbounds").get_json()["obj"]
        assert body["mode"] == "explicit"
        assert [(i["id"], i["enabled"]) for i in body["inbounds"]] == [(1, False), (3, True), (5, False)]

    def test_enabled_must_be_boolean(self, client):
        assert client.post("/api/shop/inbounds/3", json={"enabled": "yes"}).status_code == 400
        assert client.post("/api/shop/inbounds/3", json={}).status_code == 400


def test_health(client):
    assert client.get("/api/health").get_json()["status"] == "healthy"
