"""
Fixtures compartilhadas: app com SQLite em memória e colaboradores falsos.
"""

from concurrent.futures import Future

import pytest

from proxyshop.main import create_app
from proxyshop.models import OrderStatus, Setting, ShopOrder, db
from proxyshop.services import get_services
from proxyshop.services.inbound_service import InboundInfo, InboundSource
from proxyshop.services.notifier import Notifier
from proxyshop.services.provisioning import ProvisionedAccount, Provisioner


class FakeProvisioner(Provisioner):
    """Registra as chamadas e devolve uma conta fixa (ou executa side_effect)."""

    def __init__(self):
        self.calls = []
        self.account = ProvisionedAccount(email="user@x", client_id="cid-1", sub_id="sub-1")
        self.side_effect = None

    def provision(self, order):
        self.calls.append(order.id)
        if self.side_effect is not None:
            if isinstance(self.side_effect, Exception):
                raise self.side_effect
            return self.side_effect(order)
        return self.account


class FakeNotifier(Notifier):

    def __init__(self):
        self.sent = []
        self.error = None

    def notify_fulfillment(self, customer_id, email):
        if self.error is not None:
            raise self.error
        self.sent.append((customer_id, email))


class StaticInboundSource(InboundSource):

    def __init__(self, inbounds):
        self.inbounds = list(inbounds)

    def get_all_inbounds(self):
        return list(self.inbounds)


class ImmediateExecutor:
    """Executa a tarefa na hora e devolve um Future já resolvido."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def provisioner():
    return FakeProvisioner()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def inbound_source():
    # fora de ordem de propósito
    return StaticInboundSource([
        InboundInfo(id=5, remark="ws-tls", protocol="vless", port=8443),
        InboundInfo(id=1, remark="reality", protocol="vless", port=443),
        InboundInfo(id=3, remark="trojan", protocol="trojan", port=2053),
    ])


@pytest.fixture
def app(tmp_path, provisioner, notifier, inbound_source):
    app = create_app(
        config={
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "RECEIPT_ROOT": str(tmp_path / "receipts"),
            "CORS_ORIGINS": [],
            "SHOP_SETTING_DEFAULTS": {},
        },
        provisioner=provisioner,
        notifier=notifier,
        inbound_source=inbound_source,
        executor=ImmediateExecutor(),
    )
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


@pytest.fixture
def set_setting(app):
    def _set(key, value):
        row = Setting.query.filter_by(key=key).first()
        if row is None:
            row = Setting(key=key, value=str(value))
            db.session.add(row)
        else:
            row.value = str(value)
        db.session.commit()
    return _set


@pytest.fixture
def make_order(app):
    """Cria um pedido direto no banco com o status pedido."""
    def _make(status=OrderStatus.PENDING_RECEIPT, customer_id=1001, order_id=None, **fields):
        order = ShopOrder(
            customer_id=customer_id,
            data_gb=fields.pop("data_gb", 50),
            days=fields.pop("days", 30),
            price=fields.pop("price", 100),
            status=status.value,
            **fields,
        )
        if order_id is not None:
            order.id = order_id
        db.session.add(order)
        db.session.commit()
        return order
    return _make
