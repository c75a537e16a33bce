"""
Serviço de pacotes e pedidos da loja.

Dono de toda leitura/escrita de ShopPackage e ShopOrder. Os métodos com
prefixo "_" mudam o status do pedido e são de uso exclusivo do
OrderLifecycleController.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from proxyshop.exceptions import OrderNotFound, PackageNotFound
from proxyshop.models import OrderStatus, ShopOrder, ShopPackage, db

logger = logging.getLogger(__name__)

PACKAGE_FIELDS = ("name", "data_gb", "days", "price", "is_active")


def _commit(context: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Erro ao salvar {context}: {e}")
        raise


class ShopService:
    """Pacotes e pedidos"""

    def __init__(self, pricing):
        self.pricing = pricing

    # ------------------------------------------------------------------
    # Pacotes
    # ------------------------------------------------------------------

    def list_packages(self, active_only: bool = False) -> List[ShopPackage]:
        query = ShopPackage.query
        if active_only:
            query = query.filter(ShopPackage.is_active.is_(True))
        return query.order_by(ShopPackage.id.desc()).all()

    def get_package(self, package_id: int) -> ShopPackage:
        package = db.session.get(ShopPackage, package_id)
        if package is None:
            raise PackageNotFound(f"Pacote {package_id} não encontrado")
        return package

    def create_package(self, name: str, data_gb: int = 0, days: int = 0,
                       price=0, is_active: bool = True) -> ShopPackage:
        package = ShopPackage(
            name=name,
            data_gb=int(data_gb or 0),
            days=int(days or 0),
            price=Decimal(str(price or 0)),
            is_active=bool(is_active),
        )
        db.session.add(package)
        _commit(f"pacote {name!r}")
        logger.info(f"Pacote {package.id} criado: {name}")
        return package

    def update_package(self, package_id: int, **fields: Any) -> ShopPackage:
        package = self.get_package(package_id)
        for field in PACKAGE_FIELDS:
            if field not in fields or fields[field] is None:
                continue
            value = fields[field]
            if field in ("data_gb", "days"):
                value = int(value)
            elif field == "price":
                value = Decimal(str(value))
            elif field == "is_active":
                value = bool(value)
            setattr(package, field, value)
        _commit(f"pacote {package_id}")
        return package

    def delete_package(self, package_id: int) -> None:
        # pedidos antigos guardam os próprios termos, então podem ficar órfãos
        package = self.get_package(package_id)
        db.session.delete(package)
        _commit(f"remoção do pacote {package_id}")
        logger.info(f"Pacote {package_id} removido")

    # ------------------------------------------------------------------
    # Pedidos
    # ------------------------------------------------------------------

    def list_orders(self) -> List[ShopOrder]:
        return ShopOrder.query.order_by(ShopOrder.id.desc()).all()

    def list_orders_by_customer(self, customer_id: int) -> List[ShopOrder]:
        return (ShopOrder.query
                .filter_by(customer_id=customer_id)
                .order_by(ShopOrder.id.desc())
                .all())

    def get_order(self, order_id: int) -> ShopOrder:
        order = db.session.get(ShopOrder, order_id)
        if order is None:
            raise OrderNotFound(f"Pedido {order_id} não encontrado")
        return order

    def create_order(self, customer_id: int, package_id: int) -> ShopOrder:
        """Cria um pedido de um pacote ativo, copiando os termos do pacote."""
        package = self.get_package(package_id)
        if not package.is_active:
            raise PackageNotFound(f"Pacote {package_id} não está disponível")
        order = ShopOrder(
            customer_id=customer_id,
            package_id=package.id,
            data_gb=package.data_gb,
            days=package.days,
            price=package.price,
            status=OrderStatus.PENDING_RECEIPT.value,
        )
        db.session.add(order)
        _commit(f"pedido do cliente {customer_id}")
        logger.info(f"Pedido {order.id} criado para o cliente {customer_id} (pacote {package.id})")
        return order

    def create_custom_order(self, customer_id: int, data_gb: int, days: int) -> ShopOrder:
        """Cria um pedido personalizado validado e precificado."""
        self.pricing.validate_custom_order(data_gb, days)
        price = self.pricing.calculate_custom_price(data_gb)
        order = ShopOrder(
            customer_id=customer_id,
            package_id=None,
            data_gb=data_gb,
            days=days,
            price=price,
            status=OrderStatus.PENDING_RECEIPT.value,
        )
        db.session.add(order)
        _commit(f"pedido personalizado do cliente {customer_id}")
        logger.info(f"Pedido personalizado {order.id} criado para o cliente {customer_id}: {data_gb} GB / {days} dias")
        return order

    def list_stuck_orders(self) -> List[ShopOrder]:
        return (ShopOrder.query
                .filter(ShopOrder.status == OrderStatus.PENDING_REVIEW.value,
                        ShopOrder.provisioning_started_at.isnot(None))
                .order_by(ShopOrder.id.desc())
                .all())

    # ------------------------------------------------------------------
    # Escritas condicionais de status (uso do OrderLifecycleController)
    # ------------------------------------------------------------------

    def _conditional_update(self, order_id: int, values: Dict[str, Any],
                            statuses: Iterable[OrderStatus],
                            claimed: Optional[bool] = False) -> bool:
        """
        UPDATE ... WHERE id = ? AND status IN (?) [AND marcador ...].
        Retorna True se exatamente uma linha mudou.

        claimed: False exige marcador vazio, True exige marcador presente,
        None não filtra pelo marcador.
        """
        query = ShopOrder.query.filter(
            ShopOrder.id == order_id,
            ShopOrder.status.in_([s.value for s in statuses]),
        )
        if claimed is True:
            query = query.filter(ShopOrder.provisioning_started_at.isnot(None))
        elif claimed is False:
            query = query.filter(ShopOrder.provisioning_started_at.is_(None))
        values = dict(values, updated_at=db.func.now())
        try:
            changed = query.update(values, synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Erro ao atualizar pedido {order_id}: {e}")
            raise
        return changed == 1

    def _update_order_receipt(self, order_id: int, receipt_path: str, receipt_file_id: str) -> bool:
        return self._conditional_update(order_id, {
            "receipt_path": receipt_path,
            "receipt_file_id": receipt_file_id,
            "status": OrderStatus.PENDING_REVIEW.value,
        }, [OrderStatus.PENDING_RECEIPT])

    def _claim_for_provisioning(self, order_id: int) -> bool:
        return self._conditional_update(order_id, {
            "provisioning_started_at": db.func.now(),
        }, [OrderStatus.PENDING_REVIEW])

    def _release_provisioning(self, order_id: int) -> bool:
        return self._conditional_update(order_id, {
            "provisioning_started_at": None,
        }, [OrderStatus.PENDING_REVIEW], claimed=True)

    def _set_order_provisioned(self, order_id: int, email: str, client_id: str, sub_id: str) -> bool:
        return self._conditional_update(order_id, {
            "client_email": email,
            "client_id": client_id,
            "client_sub_id": sub_id,
            "status": OrderStatus.APPROVED.value,
            "provisioning_started_at": None,
        }, [OrderStatus.PENDING_REVIEW], claimed=True)

    def _update_order_status(self, order_id: int, status: OrderStatus, note: str,
                             expected: Iterable[OrderStatus]) -> bool:
        return self._conditional_update(order_id, {
            "status": status.value,
            "note": note or "",
        }, expected)
