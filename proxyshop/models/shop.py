# proxyshop/models/shop.py
from enum import Enum

from . import db


class OrderStatus(str, Enum):
    """Status do pedido na loja"""
    PENDING_RECEIPT = "PENDING_RECEIPT"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({OrderStatus.APPROVED.value, OrderStatus.REJECTED.value})


class ShopPackage(db.Model):
    __tablename__ = "shop_packages"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    data_gb = db.Column(db.Integer, nullable=False, default=0)
    days = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<ShopPackage id={self.id} name={self.name!r}>"


class ShopOrder(db.Model):
    __tablename__ = "shop_orders"

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.BigInteger, nullable=False, index=True)
    # sem FK: o pacote pode ser apagado sem afetar pedidos antigos
    package_id = db.Column(db.Integer, nullable=True)
    data_gb = db.Column(db.Integer, nullable=False, default=0)
    days = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default=OrderStatus.PENDING_RECEIPT.value)
    receipt_path = db.Column(db.String(512), nullable=False, default="")
    receipt_file_id = db.Column(db.String(255), nullable=False, default="")
    client_email = db.Column(db.String(255), nullable=False, default="")
    client_id = db.Column(db.String(255), nullable=False, default="")
    client_sub_id = db.Column(db.String(255), nullable=False, default="")
    note = db.Column(db.Text, nullable=False, default="")
    # marcador de provisionamento em andamento (ou interrompido)
    provisioning_started_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def is_custom(self) -> bool:
        return self.package_id is None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<ShopOrder id={self.id} customer={self.customer_id} status={self.status}>"


class ShopInbound(db.Model):
    __tablename__ = "shop_inbounds"

    id = db.Column(db.Integer, primary_key=True)
    inbound_id = db.Column(db.Integer, nullable=False, unique=True)
    enabled = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())
