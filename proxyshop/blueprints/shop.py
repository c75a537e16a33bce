# proxyshop/blueprints/shop.py
# Painel do operador: pacotes, revisão de pedidos e visibilidade dos inbounds.
from decimal import Decimal, InvalidOperation

from flask import Blueprint, request, send_file

from proxyshop.exceptions import ShopError
from proxyshop.services import get_services
from proxyshop.utils.params import bool_param, int_param
from proxyshop.utils.responses import json_msg, json_obj
from .serializers import order_to_dict, package_to_dict

shop_bp = Blueprint("shop", __name__)


def _price(data):
    try:
        price = Decimal(str(data.get("price") or 0))
    except (InvalidOperation, ValueError):
        raise ShopError("Preço inválido")
    if price < 0:
        raise ShopError("Preço inválido")
    return price


# --------- Pacotes ---------

@shop_bp.get("/packages")
def list_packages():
    active_only = request.args.get("active") in ("1", "true")
    packages = get_services().shop.list_packages(active_only)
    return json_obj([package_to_dict(p) for p in packages])


@shop_bp.post("/packages")
def upsert_package():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ShopError("Pacote inválido")
    name = (data.get("name") or "").strip()
    if not name:
        raise ShopError("Campo obrigatório: name")

    shop = get_services().shop
    package_id = int_param(data, "id", required=False, default=0)
    if package_id > 0:
        # atualização parcial: campos ausentes mantêm o valor atual
        fields = {"name": name}
        for key in ("data_gb", "days"):
            if key in data:
                fields[key] = int_param(data, key)
        if "price" in data:
            fields["price"] = _price(data)
        if "is_active" in data:
            fields["is_active"] = bool(data["is_active"])
        return json_obj(package_to_dict(shop.update_package(package_id, **fields)), "updated")

    fields = {
        "name": name,
        "data_gb": int_param(data, "data_gb", required=False, default=0),
        "days": int_param(data, "days", required=False, default=0),
        "price": _price(data),
        "is_active": bool(data.get("is_active", True)),
    }
    return json_obj(package_to_dict(shop.create_package(**fields)), "created", 201)


@shop_bp.post("/packages/<int:package_id>/delete")
def delete_package(package_id: int):
    get_services().shop.delete_package(package_id)
    return json_msg("deleted")


# --------- Pedidos ---------

@shop_bp.get("/orders")
def list_orders():
    shop = get_services().shop
    customer_id = int_param(request.args, "customer_id", required=False)
    if customer_id is not None:
        orders = shop.list_orders_by_customer(customer_id)
    else:
        orders = shop.list_orders()
    return json_obj({
        "orders": [order_to_dict(o) for o in orders],
        "packages": [package_to_dict(p) for p in shop.list_packages(False)],
    })


@shop_bp.get("/orders/stuck")
def list_stuck_orders():
    orders = get_services().lifecycle.list_stuck_orders()
    return json_obj([order_to_dict(o) for o in orders])


@shop_bp.post("/orders/<int:order_id>/approve")
def approve_order(order_id: int):
    result = get_services().lifecycle.approve(order_id)
    return json_obj(order_to_dict(result.order), "approved")


@shop_bp.post("/orders/<int:order_id>/reject")
def reject_order(order_id: int):
    data = request.get_json(silent=True) or {}
    note = (data.get("note") or "").strip() if isinstance(data, dict) else ""
    order = get_services().lifecycle.reject(order_id, note)
    return json_obj(order_to_dict(order), "rejected")


@shop_bp.post("/orders/<int:order_id>/reconcile")
def reconcile_order(order_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ShopError("Requisição inválida")
    result = get_services().lifecycle.reconcile_order(
        order_id, data.get("email"), data.get("client_id"), data.get("sub_id")
    )
    return json_obj(order_to_dict(result.order), "reconciled")


@shop_bp.post("/orders/<int:order_id>/release")
def release_order(order_id: int):
    order = get_services().lifecycle.release_provisioning(order_id)
    return json_obj(order_to_dict(order), "released")


@shop_bp.get("/receipt/<int:order_id>")
def get_receipt(order_id: int):
    services = get_services()
    order = services.shop.get_order(order_id)
    path = services.receipts.resolve(order.receipt_path)
    return send_file(path)


# --------- Inbounds ---------

@shop_bp.get("/inbounds")
def list_inbounds():
    inbounds = get_services().inbounds
    options = inbounds.list_inbound_options()
    return json_obj({
        "mode": inbounds.visibility_mode().value,
        "inbounds": [o.to_dict() for o in options],
    })


@shop_bp.post("/inbounds/<int:inbound_id>")
def set_inbound_enabled(inbound_id: int):
    data = request.get_json(silent=True)
    enabled = bool_param(data if isinstance(data, dict) else None, "enabled")
    get_services().inbounds.set_inbound_enabled(inbound_id, enabled)
    return json_msg("updated")
