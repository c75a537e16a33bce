"""
Testes dos endpoints do cliente (/api/storefront).
"""

import io
import os
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from proxyshop.models import OrderStatus
from proxyshop.services.shop_service import ShopService
from proxyshop.services.setting_service import SHOP_MAX_DAYS, SHOP_MAX_GB, SHOP_MIN_DAYS, SHOP_MIN_GB, SHOP_PRICE_PER_GB


def configure_limits(set_setting):
    set_setting(SHOP_MIN_GB, 10)
    set_setting(SHOP_MAX_GB, 100)
    set_setting(SHOP_MIN_DAYS, 7)
    set_setting(SHOP_MAX_DAYS, 365)
    set_setting(SHOP_PRICE_PER_GB, "0.5")


class TestCatalog:

    def test_only_active_packages(self, client, services):
        services.shop.create_package("Ativo", data_gb=10, days=30, price=5)
        services.shop.create_package("Inativo", data_gb=10, days=30, price=5, is_active=False)

        names = [p["name"] for p in client.get("/api/storefront/packages").get_json()["obj"]]
        assert names == ["Ativo"]

    def test_quote(self, client, set_setting):
        configure_limits(set_setting)

        resp = client.get("/api/storefront/quote?data_gb=50&days=30")
        assert resp.status_code == 200
        assert resp.get_json()["obj"] == {"data_gb": 50, "days": 30, "price": 25.0}

        resp = client.get("/api/storefront/quote?data_gb=5&days=30")
        assert resp.status_code == 400
        assert resp.get_json()["reason"] == "data_too_low"

        resp = client.get("/api/storefront/quote?data_gb=50&days=400")
        assert resp.get_json()["reason"] == "days_too_high"

    def test_quote_needs_numbers(self, client):
        assert client.get("/api/storefront/quote?data_gb=abc&days=30").status_code == 400
        assert client.get("/api/storefront/quote?days=30").status_code == 400

    def test_enabled_inbounds(self, client, services):
        assert client.get("/api/storefront/inbounds").get_json()["obj"] == [1, 3, 5]

        services.inbounds.set_inbound_enabled(5, True)
        assert client.get("/api/storefront/inbounds").get_json()["obj"] == [5]

    def test_quote_rejects_non_positive_terms(self, client, set_setting):
        set_setting(SHOP_PRICE_PER_GB, "2")

        resp = client.get("/api/storefront/quote?data_gb=-5&days=30")
        assert resp.status_code == 400
        assert resp.get_json()["reason"] == "data_too_low"

        resp = client.get("/api/storefront/quote?data_gb=0&days=30")
        assert resp.status_code == 400

        resp = client.get("/api/storefront/quote?data_gb=10&days=0")
        assert resp.status_code == 400
        assert resp.get_json()["reason"] == "days_too_low"


class TestOrders:

    def test_package_order(self, client, services):
        package = services.shop.create_package("Pro", data_gb=100, days=30, price="29.90")

        resp = client.post("/api/storefront/orders", json={"customer_id": 777, "package_id": package.id})
        assert resp.status_code == 201
        obj = resp.get_json()["obj"]
        assert obj["status"] == "PENDING_RECEIPT"
        assert obj["package_id"] == package.id
        assert obj["price"] == 29.9

    def test_custom_order(self, client, set_setting):
        configure_limits(set_setting)

        resp = client.post("/api/storefront/orders", json={"customer_id": 777, "data_gb": 20, "days": 30})
        assert resp.status_code == 201
        assert resp.get_json()["obj"]["price"] == 10.0

        resp = client.post("/api/storefront/orders", json={"customer_id": 777, "data_gb": 20, "days": 3})
        assert resp.status_code == 400
        assert resp.get_json()["reason"] == "days_too_low"

    def test_unknown_package(self, client):
        resp = client.post("/api/storefront/orders", json={"customer_id": 777, "package_id": 99})
        assert resp.status_code == 404

    def test_customer_is_required(self, client):
        assert client.post("/api/storefront/orders", json={"package_id": 1}).status_code == 400
        assert client.get("/api/storefront/orders").status_code == 400

    def test_list_my_orders(self, client, make_order):
        mine = make_order(customer_id=777)
        make_order(customer_id=888)

        orders = client.get("/api/storefront/orders?customer_id=777").get_json()["obj"]
        assert [o["id"] for o in orders] == [mine.id]


class TestReceiptUpload:

    def _upload(self, client, order_id, customer_id=777, name="pix.png", file_id="tg-file-1"):
        return client.post(
            f"/api/storefront/orders/{order_id}/receipt",
            data={
                "customer_id": str(customer_id),
                "file_id": file_id,
                "receipt": (io.BytesIO(b"png-bytes"), name),
            },
            content_type="multipart/form-data",
        )

    def test_upload_moves_to_review(self, client, services, make_order):
        order = make_order(customer_id=777)

        resp = self._upload(client, order.id)
        assert resp.status_code == 200
        obj = resp.get_json()["obj"]
        assert obj["status"] == "PENDING_REVIEW"
        assert obj["has_receipt"] is True
        assert obj["receipt_file_id"] == "tg-file-1"

        stored = services.shop.get_order(order.id)
        assert os.path.isfile(stored.receipt_path)
        assert client.get(f"/api/shop/receipt/{order.id}").data == b"png-bytes"

    def test_second_upload_is_refused(self, client, make_order, tmp_path):
        order = make_order(customer_id=777)
        assert self._upload(client, order.id).status_code == 200

        resp = self._upload(client, order.id)
        assert resp.status_code == 409
        assert len(os.listdir(tmp_path / "receipts")) == 1

    def test_other_customer_gets_not_found(self, client, make_order):
        order = make_order(customer_id=777)
        assert self._upload(client, order.id, customer_id=888).status_code == 404

    def test_rejected_order_refuses_receipt(self, client, make_order):
        order = make_order(OrderStatus.REJECTED, customer_id=777)
        assert self._upload(client, order.id).status_code == 409

    def test_bad_extension(self, client, make_order):
        order = make_order(customer_id=777)
        assert self._upload(client, order.id, name="pix.exe").status_code == 400

    def test_database_error_removes_saved_file(self, client, services, make_order, tmp_path):
        order = make_order(customer_id=777)
        error = OperationalError("UPDATE shop_orders", {}, Exception("database is locked"))

        with patch.object(ShopService, "_update_order_receipt", side_effect=error):
            resp = self._upload(client, order.id)

        assert resp.status_code == 500
        assert os.listdir(tmp_path / "receipts") == []
        assert services.shop.get_order(order.id).status == OrderStatus.PENDING_RECEIPT.value
