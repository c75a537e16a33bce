"""
Ciclo de vida do pedido: comprovante, revisão, aprovação com
provisionamento da conta e rejeição.

    PENDING_RECEIPT -> PENDING_REVIEW -> APPROVED
           \\                 \\
            +-> REJECTED      +-> REJECTED

A aprovação é serializada por pedido com um UPDATE condicional que grava o
marcador provisioning_started_at. O marcador só é limpo quando a conta é
gravada no pedido, quando o provisionamento falha sem criar conta ou por
ação do operador (reconcile_order / release_provisioning).
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from proxyshop.exceptions import (
    ApprovalInProgress,
    IllegalTransition,
    PersistenceInconsistent,
    ProvisioningFailed,
    ShopError,
)
from proxyshop.models import OrderStatus, ShopOrder
from proxyshop.services.provisioning import ProvisionedAccount

logger = logging.getLogger(__name__)

# status atual -> status seguintes permitidos
VALID_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING_RECEIPT: frozenset({OrderStatus.PENDING_REVIEW, OrderStatus.REJECTED}),
    OrderStatus.PENDING_REVIEW: frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED}),
    OrderStatus.APPROVED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


def is_valid_transition(current: str, target: OrderStatus) -> bool:
    return target in VALID_TRANSITIONS.get(OrderStatus(current), frozenset())


@dataclass
class ApprovalResult:
    """Pedido aprovado e a notificação agendada (se houver)"""
    order: ShopOrder
    account: ProvisionedAccount
    notification: Optional[Future] = None


class OrderLifecycleController:
    """
    Único componente que move um pedido entre as etapas de revisão.
    """

    def __init__(self, shop_service, provisioner, notifier, executor=None):
        self.shop = shop_service
        self.provisioner = provisioner
        self.notifier = notifier
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="shop-notify")

    # ------------------------------------------------------------------
    # Verificações
    # ------------------------------------------------------------------

    @staticmethod
    def _check_transition(order: ShopOrder, target: OrderStatus) -> None:
        if not is_valid_transition(order.status, target):
            raise IllegalTransition(
                f"Pedido {order.id} em {order.status} não pode ir para {target.value}",
                current_status=order.status,
            )

    def _conflict(self, order_id: int, target: OrderStatus):
        """Erro para um UPDATE condicional que não afetou nenhuma linha."""
        order = self.shop.get_order(order_id)
        if order.status == OrderStatus.PENDING_REVIEW.value and order.provisioning_started_at is not None:
            return ApprovalInProgress(
                f"Pedido {order_id} está em provisionamento",
                current_status=order.status,
            )
        return IllegalTransition(
            f"Pedido {order_id} em {order.status} não pode ir para {target.value}",
            current_status=order.status,
        )

    # ------------------------------------------------------------------
    # Transições
    # ------------------------------------------------------------------

    def submit_receipt(self, order_id: int, receipt_path: str, receipt_file_id: str = "") -> ShopOrder:
        """
        Registra o comprovante e envia o pedido para revisão.
        Só é aceito em PENDING_RECEIPT: reenvio sobre pedido já em revisão
        ou decidido é recusado.
        """
        order = self.shop.get_order(order_id)
        self._check_transition(order, OrderStatus.PENDING_REVIEW)
        if not self.shop._update_order_receipt(order_id, receipt_path, receipt_file_id or ""):
            raise self._conflict(order_id, OrderStatus.PENDING_REVIEW)
        logger.info(f"Comprovante recebido para o pedido {order_id}")
        return self.shop.get_order(order_id)

    def approve(self, order_id: int) -> ApprovalResult:
        """
        Aprova um pedido em PENDING_REVIEW e provisiona a conta.

        Raises:
            OrderNotFound: pedido inexistente
            IllegalTransition: pedido fora de PENDING_REVIEW
            ApprovalInProgress: outra aprovação já reivindicou o pedido
            ProvisioningFailed: erro ou timeout do provisionador
            PersistenceInconsistent: conta criada mas pedido não gravado
        """
        order = self.shop.get_order(order_id)
        self._check_transition(order, OrderStatus.APPROVED)
        if order.provisioning_started_at is not None:
            raise ApprovalInProgress(f"Pedido {order_id} está em provisionamento", current_status=order.status)

        if not self.shop._claim_for_provisioning(order_id):
            raise self._conflict(order_id, OrderStatus.APPROVED)

        order = self.shop.get_order(order_id)
        logger.info(f"Provisionando pedido {order_id} do cliente {order.customer_id}")
        account = self._provision(order)

        try:
            saved = self.shop._set_order_provisioned(order_id, account.email, account.client_id, account.sub_id)
        except SQLAlchemyError as e:
            logger.warning(
                f"Pedido {order_id} salvo parcialmente: conta {account.email} "
                f"(client_id={account.client_id}, sub_id={account.sub_id}) criada, erro ao gravar: {e}"
            )
            raise PersistenceInconsistent(
                f"Conta criada para o pedido {order_id}, mas o pedido não foi atualizado",
                account=account.to_dict(),
            ) from e
        if not saved:
            logger.warning(
                f"Pedido {order_id} salvo parcialmente: conta {account.email} "
                f"(client_id={account.client_id}, sub_id={account.sub_id}) criada, marcador alterado por terceiros"
            )
            raise PersistenceInconsistent(
                f"Conta criada para o pedido {order_id}, mas o pedido não foi atualizado",
                account=account.to_dict(),
            )

        order = self.shop.get_order(order_id)
        logger.info(f"Pedido {order_id} aprovado: conta {account.email}")
        return ApprovalResult(order=order, account=account,
                              notification=self._dispatch_notification(order.customer_id, account.email))

    def _provision(self, order: ShopOrder) -> ProvisionedAccount:
        try:
            account = self.provisioner.provision(order)
        except ProvisioningFailed as e:
            if e.outcome_unknown:
                logger.warning(f"Provisionamento do pedido {order.id} sem resultado, marcador mantido: {e.message}")
            else:
                logger.error(f"Provisionamento do pedido {order.id} falhou: {e.message}")
                self._release_after_failure(order.id)
            raise
        except Exception as e:
            logger.error(f"Provisionamento do pedido {order.id} falhou: {e}")
            self._release_after_failure(order.id)
            raise ProvisioningFailed(f"Falha ao provisionar pedido {order.id}") from e

        if account is None or not account.is_complete():
            logger.error(f"Provisionador retornou identidade incompleta para o pedido {order.id}: {account}")
            self._release_after_failure(order.id)
            raise ProvisioningFailed(f"Identidade incompleta para o pedido {order.id}")
        return account

    def _release_after_failure(self, order_id: int) -> None:
        try:
            self.shop._release_provisioning(order_id)
        except SQLAlchemyError as e:
            logger.error(f"Marcador do pedido {order_id} não foi limpo, reconciliação manual necessária: {e}")

    def reject(self, order_id: int, note: str = "") -> ShopOrder:
        """
        Rejeita o pedido em qualquer etapa não terminal.
        Pedidos com provisionamento em andamento não podem ser rejeitados.
        """
        order = self.shop.get_order(order_id)
        if order.provisioning_started_at is not None and not order.is_terminal:
            raise ApprovalInProgress(f"Pedido {order_id} está em provisionamento", current_status=order.status)
        self._check_transition(order, OrderStatus.REJECTED)

        expected = [OrderStatus.PENDING_RECEIPT, OrderStatus.PENDING_REVIEW]
        if not self.shop._update_order_status(order_id, OrderStatus.REJECTED, note, expected):
            raise self._conflict(order_id, OrderStatus.REJECTED)
        logger.info(f"Pedido {order_id} rejeitado")
        return self.shop.get_order(order_id)

    # ------------------------------------------------------------------
    # Reconciliação manual
    # ------------------------------------------------------------------

    def list_stuck_orders(self) -> List[ShopOrder]:
        return self.shop.list_stuck_orders()

    def reconcile_order(self, order_id: int, email: str, client_id: str, sub_id: str) -> ApprovalResult:
        """Grava a conta já existente no painel de um pedido travado."""
        account = ProvisionedAccount(email=(email or "").strip(), client_id=(client_id or "").strip(),
                                     sub_id=(sub_id or "").strip())
        if not account.is_complete():
            raise ShopError("email, client_id e sub_id são obrigatórios")
        order = self.shop.get_order(order_id)
        if not self.shop._set_order_provisioned(order_id, account.email, account.client_id, account.sub_id):
            raise IllegalTransition(
                f"Pedido {order_id} não aguarda reconciliação",
                current_status=order.status,
            )
        order = self.shop.get_order(order_id)
        logger.info(f"Pedido {order_id} reconciliado com a conta {account.email}")
        return ApprovalResult(order=order, account=account,
                              notification=self._dispatch_notification(order.customer_id, account.email))

    def release_provisioning(self, order_id: int) -> ShopOrder:
        """Operador confirmou que a conta não existe: libera nova aprovação."""
        order = self.shop.get_order(order_id)
        if not self.shop._release_provisioning(order_id):
            raise IllegalTransition(f"Pedido {order_id} não aguarda reconciliação", current_status=order.status)
        logger.info(f"Marcador de provisionamento do pedido {order_id} liberado")
        return self.shop.get_order(order_id)

    # ------------------------------------------------------------------
    # Notificação
    # ------------------------------------------------------------------

    def _dispatch_notification(self, customer_id: int, email: str) -> Optional[Future]:
        try:
            return self.executor.submit(self._notify, customer_id, email)
        except RuntimeError as e:
            logger.warning(f"Notificação do cliente {customer_id} não agendada: {e}")
            return None

    def _notify(self, customer_id: int, email: str) -> None:
        try:
            self.notifier.notify_fulfillment(customer_id, email)
        except Exception as e:
            logger.warning(f"Notificação do cliente {customer_id} falhou: {e}")
