"""Exceções de domínio da loja.

Levantadas pela camada de serviços quando uma regra de negócio é violada.
Os blueprints capturam e traduzem para a resposta HTTP adequada.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ShopError(Exception):
    """Erro base da loja."""

    http_status = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, "error": self.__class__.__name__}


class NotFound(ShopError):
    """Registro não encontrado."""

    http_status = 404


class OrderNotFound(NotFound):
    """Pedido não encontrado."""


class PackageNotFound(NotFound):
    """Pacote não encontrado."""


class ReceiptNotFound(NotFound):
    """Comprovante não encontrado."""


class IllegalTransition(ShopError):
    """Transição de status não permitida."""

    http_status = 409

    def __init__(self, message: str = "", current_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status


class ApprovalInProgress(IllegalTransition):
    """Pedido já está em provisionamento."""


class OutOfRange(ShopError):
    """Valor fora dos limites configurados."""

    DATA_TOO_LOW = "data_too_low"
    DATA_TOO_HIGH = "data_too_high"
    DAYS_TOO_LOW = "days_too_low"
    DAYS_TOO_HIGH = "days_too_high"

    def __init__(self, reason: str, message: str = "", limit: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.limit = limit

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        data["limit"] = self.limit
        return data


class ConfigUnavailable(ShopError):
    """Configuração obrigatória ausente ou ilegível."""

    http_status = 503


class ProvisioningFailed(ShopError):
    """Falha ao criar a conta no painel."""

    http_status = 502

    def __init__(self, message: str = "", outcome_unknown: bool = False):
        super().__init__(message)
        # True quando a conta pode ter sido criada (ex.: timeout de leitura)
        self.outcome_unknown = outcome_unknown


class PersistenceInconsistent(ShopError):
    """Conta criada, mas o pedido não foi atualizado."""

    http_status = 500

    def __init__(self, message: str = "", account: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.account = account or {}

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["account"] = self.account
        data["account_may_exist"] = True
        return data


class NotificationFailed(ShopError):
    """Falha ao notificar o cliente (apenas registrada em log)."""
