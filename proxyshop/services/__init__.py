# proxyshop/services/__init__.py
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from .inbound_service import DatabaseInboundSource, InboundSource, InboundVisibilityService
from .notifier import Notifier, NullNotifier, TelegramNotifier
from .order_lifecycle import OrderLifecycleController
from .pricing_service import PricingService
from .provisioning import HttpProvisioner, Provisioner, ProvisionerConfig
from .receipt_storage import ReceiptStorage
from .setting_service import SettingService
from .shop_service import ShopService

EXTENSION_KEY = "proxyshop"


@dataclass
class ShopServices:
    """Serviços da loja montados para um app"""
    settings: SettingService
    pricing: PricingService
    shop: ShopService
    inbounds: InboundVisibilityService
    receipts: ReceiptStorage
    lifecycle: OrderLifecycleController


def build_services(config: dict,
                   provisioner: Optional[Provisioner] = None,
                   notifier: Optional[Notifier] = None,
                   inbound_source: Optional[InboundSource] = None,
                   executor=None) -> ShopServices:
    settings = SettingService(config.get("SHOP_SETTING_DEFAULTS"))
    pricing = PricingService(settings)
    shop = ShopService(pricing)
    inbounds = InboundVisibilityService(inbound_source or DatabaseInboundSource())

    if provisioner is None:
        provisioner = HttpProvisioner(
            ProvisionerConfig(
                base_url=config.get("PROVISIONER_URL", ""),
                token=config.get("PROVISIONER_TOKEN", ""),
                timeout=config.get("PROVISIONER_TIMEOUT", 30),
            ),
            inbound_ids=inbounds.enabled_inbound_ids,
        )
    if notifier is None:
        token = config.get("TELEGRAM_BOT_TOKEN", "")
        notifier = TelegramNotifier(token, timeout=config.get("NOTIFIER_TIMEOUT", 10)) if token else NullNotifier()

    return ShopServices(
        settings=settings,
        pricing=pricing,
        shop=shop,
        inbounds=inbounds,
        receipts=ReceiptStorage(config["RECEIPT_ROOT"]),
        lifecycle=OrderLifecycleController(shop, provisioner, notifier, executor=executor),
    )


def get_services() -> ShopServices:
    return current_app.extensions[EXTENSION_KEY]
