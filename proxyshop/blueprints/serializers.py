# proxyshop/blueprints/serializers.py
from proxyshop.models import ShopOrder, ShopPackage


def _iso(value):
    return value.isoformat() if value else None


def package_to_dict(p: ShopPackage):
    return {
        "id": p.id,
        "name": p.name,
        "data_gb": int(p.data_gb or 0),
        "days": int(p.days or 0),
        "price": float(p.price or 0),
        "is_active": bool(p.is_active),
        "created_at": _iso(p.created_at),
        "updated_at": _iso(p.updated_at),
    }


def order_to_dict(o: ShopOrder):
    return {
        "id": o.id,
        "customer_id": o.customer_id,
        "package_id": o.package_id,
        "data_gb": int(o.data_gb or 0),
        "days": int(o.days or 0),
        "price": float(o.price or 0),
        "status": o.status,
        "has_receipt": bool(o.receipt_path),
        "receipt_file_id": o.receipt_file_id,
        "client_email": o.client_email,
        "client_id": o.client_id,
        "client_sub_id": o.client_sub_id,
        "note": o.note,
        "provisioning": o.provisioning_started_at is not None,
        "created_at": _iso(o.created_at),
        "updated_at": _iso(o.updated_at),
    }
