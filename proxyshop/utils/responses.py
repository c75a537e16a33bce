# proxyshop/utils/responses.py
import logging

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError

from proxyshop.exceptions import ShopError

logger = logging.getLogger(__name__)


def json_obj(obj=None, message: str = "", status: int = 200):
    return jsonify({"success": True, "message": message, "obj": obj}), status


def json_msg(message: str, status: int = 200):
    return json_obj(None, message, status)


def register_error_handlers(app):
    """Traduz as exceções da loja para respostas JSON."""

    @app.errorhandler(ShopError)
    def _shop_error(e: ShopError):
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(SQLAlchemyError)
    def _db_error(e: SQLAlchemyError):
        logger.error(f"Erro de banco: {e}")
        return jsonify({"success": False, "message": "Erro interno ao acessar o banco"}), 500
