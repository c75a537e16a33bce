"""
Provisionamento de contas de proxy para pedidos aprovados.
Define a interface comum e a implementação via API HTTP do painel.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional
import logging

import requests

from proxyshop.exceptions import ProvisioningFailed

logger = logging.getLogger(__name__)


@dataclass
class ProvisionedAccount:
    """Identidade da conta criada no painel"""
    email: str
    client_id: str
    sub_id: str

    def is_complete(self) -> bool:
        return bool(self.email and self.client_id and self.sub_id)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class Provisioner(ABC):
    """
    Interface dos provisionadores.
    Timeouts e retentativas são responsabilidade de cada implementação.
    """

    @abstractmethod
    def provision(self, order) -> ProvisionedAccount:
        """
        Cria a conta de proxy de um pedido aprovado.

        Args:
            order: ShopOrder com volume (GB) e duração (dias)

        Returns:
            ProvisionedAccount: email, client_id e sub_id da conta

        Raises:
            ProvisioningFailed: erro ou timeout do painel
        """
        pass


@dataclass
class ProvisionerConfig:
    """Configuração do provisionador HTTP"""
    base_url: str
    token: str = ""
    timeout: int = 30


class HttpProvisioner(Provisioner):
    """
    Cria o cliente nos inbounds habilitados da loja através da API do painel.
    Não há retentativa: criar cliente não é idempotente.
    """

    def __init__(self, config: ProvisionerConfig, inbound_ids: Callable[[], List[int]]):
        self.config = config
        self.inbound_ids = inbound_ids
        self.session = requests.Session()
        self._setup_session()

    def _setup_session(self):
        """Configuração inicial da sessão HTTP"""
        self.session.headers.update({
            'User-Agent': 'ProxyShop-Provisioner',
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })
        if self.config.token:
            self.session.headers['Authorization'] = f'Bearer {self.config.token}'

    @staticmethod
    def account_email(order) -> str:
        return f"tg{order.customer_id}-{order.id}"

    def _payload(self, order, inbound_ids: List[int]) -> Dict:
        return {
            'order_id': order.id,
            'customer_id': order.customer_id,
            'email': self.account_email(order),
            'total_gb': int(order.data_gb or 0),
            'expiry_days': int(order.days or 0),
            'inbound_ids': inbound_ids,
        }

    def provision(self, order) -> ProvisionedAccount:
        if not self.config.base_url:
            raise ProvisioningFailed("Provisionador não configurado (PROVISIONER_URL)")

        inbound_ids = self.inbound_ids()
        if not inbound_ids:
            raise ProvisioningFailed("Nenhum inbound habilitado na loja")

        url = f"{self.config.base_url.rstrip('/')}/provision"
        try:
            response = self.session.post(url, json=self._payload(order, inbound_ids),
                                         timeout=self.config.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.ConnectTimeout as e:
            raise ProvisioningFailed(f"Painel inacessível ao provisionar pedido {order.id}") from e
        except requests.exceptions.Timeout as e:
            # o painel recebeu a requisição; a conta pode existir
            raise ProvisioningFailed(f"Timeout ao provisionar pedido {order.id}", outcome_unknown=True) from e
        except requests.exceptions.RequestException as e:
            raise ProvisioningFailed(f"Erro ao provisionar pedido {order.id}: {e}") from e
        except ValueError as e:
            raise ProvisioningFailed(f"Resposta inválida do painel para o pedido {order.id}") from e

        if not data.get('success', True):
            raise ProvisioningFailed(data.get('message') or f"Painel recusou o pedido {order.id}")

        obj: Optional[Dict] = data.get('obj') or data
        account = ProvisionedAccount(
            email=str(obj.get('email') or ''),
            client_id=str(obj.get('client_id') or ''),
            sub_id=str(obj.get('sub_id') or ''),
        )
        logger.info(f"Conta {account.email} criada para o pedido {order.id} em {len(inbound_ids)} inbound(s)")
        return account
