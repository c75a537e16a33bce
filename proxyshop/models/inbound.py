# proxyshop/models/inbound.py
from . import db


class Inbound(db.Model):
    """Inbound configurado no painel (somente leitura para a loja)."""
    __tablename__ = "inbounds"

    id = db.Column(db.Integer, primary_key=True)
    remark = db.Column(db.String(255), nullable=False, default="")
    protocol = db.Column(db.String(32), nullable=False, default="")
    port = db.Column(db.Integer, nullable=False, default=0)
    enable = db.Column(db.Boolean, nullable=False, default=True)
