import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from proxyshop.config import load_config
from proxyshop.models import db
from proxyshop.services import EXTENSION_KEY, build_services
from proxyshop.blueprints.shop import shop_bp
from proxyshop.blueprints.storefront import storefront_bp
from proxyshop.utils.debug_routes import register_debug_routes
from proxyshop.utils.responses import register_error_handlers


def create_app(config=None, provisioner=None, notifier=None, inbound_source=None, executor=None) -> Flask:
    """
    Monta o app. Colaboradores externos (provisionador, notificador, fonte de
    inbounds) podem ser injetados; sem eles usa a configuração do ambiente.
    """
    app = Flask(__name__)
    app.config.update(load_config())
    if config:
        app.config.update(config)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    # CORS somente para os domínios configurados em /api/*
    origins = app.config.get("CORS_ORIGINS") or []
    if origins:
        CORS(app, resources={r"/api/*": {"origins": origins}})

    db.init_app(app)

    # Cria tabelas se SQLite local
    with app.app_context():
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///"):
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
        if uri.startswith("sqlite:"):
            db.create_all()

    app.extensions[EXTENSION_KEY] = build_services(
        app.config,
        provisioner=provisioner,
        notifier=notifier,
        inbound_source=inbound_source,
        executor=executor,
    )

    register_error_handlers(app)

    # Health check
    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "healthy", "service": "Proxy Shop"}), 200

    app.register_blueprint(shop_bp, url_prefix="/api/shop")
    app.register_blueprint(storefront_bp, url_prefix="/api/storefront")
    register_debug_routes(app)

    return app


if __name__ == "__main__":
    # execução local
    create_app().run(host="127.0.0.1", port=int(os.getenv("PORT", "5001")), debug=True)
