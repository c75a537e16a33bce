"""
Leitura das configurações da loja (limites de pedido personalizado e preço por GB).
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from proxyshop.exceptions import ConfigUnavailable
from proxyshop.models import Setting

logger = logging.getLogger(__name__)

SHOP_MIN_GB = "shopMinGB"
SHOP_MAX_GB = "shopMaxGB"
SHOP_MIN_DAYS = "shopMinDays"
SHOP_MAX_DAYS = "shopMaxDays"
SHOP_PRICE_PER_GB = "shopPricePerGB"


class SettingService:
    """
    Acessores somente leitura das configurações.
    A tabela settings tem prioridade; sem linha, vale o padrão do ambiente.
    Valor vazio significa "não configurado" (sem limite / preço zero).
    """

    def __init__(self, defaults: Optional[Dict[str, str]] = None):
        self.defaults = dict(defaults or {})

    def _raw(self, key: str) -> str:
        try:
            row = Setting.query.filter_by(key=key).first()
        except SQLAlchemyError as e:
            logger.error(f"Erro ao ler configuração {key}: {e}")
            raise ConfigUnavailable(f"Configuração {key} indisponível") from e
        if row is not None:
            return (row.value or "").strip()
        return str(self.defaults.get(key) or "").strip()

    def _get_int(self, key: str) -> int:
        raw = self._raw(key)
        if not raw:
            return 0
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigUnavailable(f"Configuração {key} inválida: {raw!r}") from e

    def get_shop_min_gb(self) -> int:
        return self._get_int(SHOP_MIN_GB)

    def get_shop_max_gb(self) -> int:
        return self._get_int(SHOP_MAX_GB)

    def get_shop_min_days(self) -> int:
        return self._get_int(SHOP_MIN_DAYS)

    def get_shop_max_days(self) -> int:
        return self._get_int(SHOP_MAX_DAYS)

    def get_shop_price_per_gb(self) -> Decimal:
        raw = self._raw(SHOP_PRICE_PER_GB)
        if not raw:
            return Decimal("0")
        try:
            return Decimal(raw)
        except InvalidOperation as e:
            raise ConfigUnavailable(f"Configuração {SHOP_PRICE_PER_GB} inválida: {raw!r}") from e
