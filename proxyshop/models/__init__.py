# proxyshop/models/__init__.py
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .shop import OrderStatus, ShopPackage, ShopOrder, ShopInbound  # noqa: E402
from .inbound import Inbound  # noqa: E402
from .setting import Setting  # noqa: E402

__all__ = [
    "db",
    "OrderStatus",
    "ShopPackage",
    "ShopOrder",
    "ShopInbound",
    "Inbound",
    "Setting",
]
