"""
Validação e preço de pedidos personalizados (volume de dados + duração).
"""

import logging
from decimal import Decimal

from proxyshop.exceptions import ConfigUnavailable, OutOfRange

logger = logging.getLogger(__name__)


class PricingService:
    """Limites e preço por GB lidos do SettingService"""

    def __init__(self, settings):
        self.settings = settings

    def _bound(self, getter, name: str) -> int:
        # limite ilegível vale como "sem limite"
        try:
            return getter()
        except ConfigUnavailable as e:
            logger.warning(f"Limite {name} ignorado: {e.message}")
            return 0

    def validate_custom_order(self, data_gb: int, days: int) -> None:
        """
        Valida um pedido personalizado contra os limites configurados.

        Args:
            data_gb: Volume de dados em GB
            days: Duração em dias

        Raises:
            OutOfRange: com reason data_too_low, data_too_high,
                days_too_low ou days_too_high (volume ou duração
                não positivos contam como abaixo do mínimo)
        """
        if data_gb <= 0:
            raise OutOfRange(OutOfRange.DATA_TOO_LOW, "Volume deve ser positivo", 1)
        if days <= 0:
            raise OutOfRange(OutOfRange.DAYS_TOO_LOW, "Duração deve ser positiva", 1)

        min_gb = self._bound(self.settings.get_shop_min_gb, "min_gb")
        max_gb = self._bound(self.settings.get_shop_max_gb, "max_gb")
        min_days = self._bound(self.settings.get_shop_min_days, "min_days")
        max_days = self._bound(self.settings.get_shop_max_days, "max_days")

        if min_gb > 0 and data_gb < min_gb:
            raise OutOfRange(OutOfRange.DATA_TOO_LOW, f"Volume menor que o mínimo permitido ({min_gb} GB)", min_gb)
        if max_gb > 0 and data_gb > max_gb:
            raise OutOfRange(OutOfRange.DATA_TOO_HIGH, f"Volume maior que o máximo permitido ({max_gb} GB)", max_gb)
        if min_days > 0 and days < min_days:
            raise OutOfRange(OutOfRange.DAYS_TOO_LOW, f"Duração menor que o mínimo permitido ({min_days} dias)", min_days)
        if max_days > 0 and days > max_days:
            raise OutOfRange(OutOfRange.DAYS_TOO_HIGH, f"Duração maior que o máximo permitido ({max_days} dias)", max_days)

    def calculate_custom_price(self, data_gb: int) -> Decimal:
        """Preço = data_gb x preço por GB (preço negativo vira zero)."""
        price_per_gb = self.settings.get_shop_price_per_gb()
        if price_per_gb < 0:
            price_per_gb = Decimal("0")
        return Decimal(data_gb) * price_per_gb
