"""
Notificações ao cliente (bot do Telegram).
"""

from abc import ABC, abstractmethod
import logging

import requests

from proxyshop.exceptions import NotificationFailed

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class Notifier(ABC):
    """Interface dos notificadores"""

    @abstractmethod
    def notify_fulfillment(self, customer_id: int, email: str) -> None:
        """Avisa o cliente que o pedido foi atendido."""
        pass


class NullNotifier(Notifier):
    """Usado quando o bot não está configurado."""

    def notify_fulfillment(self, customer_id: int, email: str) -> None:
        logger.debug(f"Bot desligado, cliente {customer_id} não notificado")


class TelegramNotifier(Notifier):

    def __init__(self, token: str, timeout: int = 10, api_url: str = TELEGRAM_API):
        self.token = token
        self.timeout = timeout
        self.api_url = api_url.rstrip("/")
        self.session = requests.Session()

    @staticmethod
    def fulfillment_text(email: str) -> str:
        return (
            "✅ Seu pedido foi aprovado!\n"
            f"Conta: {email}\n"
            "Use /meus_pedidos para ver os detalhes."
        )

    def notify_fulfillment(self, customer_id: int, email: str) -> None:
        url = f"{self.api_url}/bot{self.token}/sendMessage"
        try:
            response = self.session.post(url, json={
                "chat_id": customer_id,
                "text": self.fulfillment_text(email),
            }, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            # a URL carrega o token do bot, não vai para o log
            raise NotificationFailed(f"Falha ao notificar cliente {customer_id}: {type(e).__name__}") from e
