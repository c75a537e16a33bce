"""
Visibilidade dos inbounds na loja.

A tabela shop_inbounds é esparsa: sem nenhuma linha todos os inbounds do
painel são oferecidos (DEFAULT_ALLOW); com qualquer linha presente só os
inbounds com linha enabled=True são oferecidos (EXPLICIT).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from proxyshop.models import Inbound, ShopInbound, db

logger = logging.getLogger(__name__)


class VisibilityMode(Enum):
    """Política de visibilidade em vigor"""
    DEFAULT_ALLOW = "default_allow"
    EXPLICIT = "explicit"


@dataclass
class InboundInfo:
    """Inbound configurado no painel"""
    id: int
    remark: str
    protocol: str
    port: int


@dataclass
class ShopInboundOption:
    """Inbound com a disponibilidade na loja"""
    id: int
    remark: str
    protocol: str
    port: int
    enabled: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class InboundSource(ABC):
    """Fonte dos inbounds configurados no painel de proxy."""

    @abstractmethod
    def get_all_inbounds(self) -> List[InboundInfo]:
        pass


class DatabaseInboundSource(InboundSource):
    """Lê os inbounds da tabela do painel no mesmo banco."""

    def get_all_inbounds(self) -> List[InboundInfo]:
        return [
            InboundInfo(id=ib.id, remark=ib.remark or "", protocol=ib.protocol or "", port=ib.port or 0)
            for ib in Inbound.query.order_by(Inbound.id.asc()).all()
        ]


class InboundVisibilityService:

    def __init__(self, source: InboundSource):
        self.source = source

    @staticmethod
    def resolve_mode(overrides: List[ShopInbound]) -> VisibilityMode:
        return VisibilityMode.DEFAULT_ALLOW if not overrides else VisibilityMode.EXPLICIT

    def visibility_mode(self) -> VisibilityMode:
        return self.resolve_mode(ShopInbound.query.all())

    def list_inbound_options(self) -> List[ShopInboundOption]:
        """
        Lista todos os inbounds do painel com o estado na loja.

        Returns:
            List[ShopInboundOption]: ordenada por id crescente
        """
        inbounds = self.source.get_all_inbounds()
        overrides = ShopInbound.query.all()
        mode = self.resolve_mode(overrides)
        enabled_map = {item.inbound_id: bool(item.enabled) for item in overrides}

        options = []
        for inbound in inbounds:
            if mode is VisibilityMode.DEFAULT_ALLOW:
                enabled = True
            else:
                enabled = enabled_map.get(inbound.id, False)
            options.append(ShopInboundOption(
                id=inbound.id,
                remark=inbound.remark,
                protocol=inbound.protocol,
                port=inbound.port,
                enabled=enabled,
            ))

        options.sort(key=lambda o: o.id)
        return options

    def set_inbound_enabled(self, inbound_id: int, enabled: bool) -> ShopInbound:
        """Cria ou atualiza a linha de visibilidade de um inbound."""
        existing = ShopInbound.query.filter_by(inbound_id=inbound_id).first()
        if existing is not None:
            existing.enabled = enabled
            row = existing
        else:
            row = ShopInbound(inbound_id=inbound_id, enabled=enabled)
            db.session.add(row)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Erro ao salvar visibilidade do inbound {inbound_id}: {e}")
            raise
        logger.info(f"Inbound {inbound_id} na loja: {'habilitado' if enabled else 'desabilitado'}")
        return row

    def enabled_inbound_ids(self) -> List[int]:
        return [option.id for option in self.list_inbound_options() if option.enabled]
