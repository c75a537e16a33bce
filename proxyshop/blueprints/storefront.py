# proxyshop/blueprints/storefront.py
# Lado do cliente (bot/loja): pacotes, orçamento, pedidos e comprovante.
import os

from flask import Blueprint, request

from proxyshop.exceptions import IllegalTransition, OrderNotFound, ShopError
from proxyshop.models import OrderStatus
from proxyshop.services import get_services
from proxyshop.utils.params import int_param
from proxyshop.utils.responses import json_obj
from .serializers import order_to_dict, package_to_dict


storefront_bp = Blueprint("storefront", __name__)


@storefront_bp.get("/packages")
def list_packages():
    packages = get_services().shop.list_packages(active_only=True)
    return json_obj([package_to_dict(p) for p in packages])


@storefront_bp.get("/quote")
def quote():
    data_gb = int_param(request.args, "data_gb")
    days = int_param(request.args, "days")
    pricing = get_services().pricing
    pricing.validate_custom_order(data_gb, days)
    price = pricing.calculate_custom_price(data_gb)
    return json_obj({"data_gb": data_gb, "days": days, "price": float(price)})


@storefront_bp.post("/orders")
def create_order():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ShopError("Pedido inválido")
    customer_id = int_param(data, "customer_id")
    shop = get_services().shop

    package_id = int_param(data, "package_id", required=False)
    if package_id is not None:
        order = shop.create_order(customer_id, package_id)
    else:
        order = shop.create_custom_order(customer_id, int_param(data, "data_gb"), int_param(data, "days"))
    return json_obj(order_to_dict(order), "created", 201)


@storefront_bp.get("/orders")
def list_my_orders():
    customer_id = int_param(request.args, "customer_id")
    orders = get_services().shop.list_orders_by_customer(customer_id)
    return json_obj([order_to_dict(o) for o in orders])


@storefront_bp.post("/orders/<int:order_id>/receipt")
def upload_receipt(order_id: int):
    services = get_services()
    customer_id = int_param(request.form, "customer_id")
    order = services.shop.get_order(order_id)
    if order.customer_id != customer_id:
        raise OrderNotFound(f"Pedido {order_id} não encontrado")
    if order.status != OrderStatus.PENDING_RECEIPT.value:
        raise IllegalTransition(f"Pedido {order_id} não aguarda comprovante", current_status=order.status)

    file = request.files.get("receipt")
    if file is None:
        raise ShopError("Arquivo do comprovante é obrigatório")
    path = services.receipts.save(order_id, file)
    try:
        order = services.lifecycle.submit_receipt(order_id, path, (request.form.get("file_id") or "").strip())
    except Exception:
        # pedido mudou entre a checagem e a gravação, ou o banco falhou
        os.remove(path)
        raise
    return json_obj(order_to_dict(order), "receipt received")


@storefront_bp.get("/inbounds")
def list_enabled_inbounds():
    return json_obj(get_services().inbounds.enabled_inbound_ids())
