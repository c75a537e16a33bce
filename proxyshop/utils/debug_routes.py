# proxyshop/utils/debug_routes.py
import os
from flask import jsonify

from proxyshop.services import get_services

SAFE_ENV_KEYS = {"RENDER", "PYTHON_VERSION"}


def register_debug_routes(app):
    """
    Habilita endpoints de debug quando DEBUG_ROUTES=1.
    Não deixar ligado em produção.
    """
    if os.getenv("DEBUG_ROUTES") != "1" and not app.config.get("DEBUG_ROUTES"):
        return

    @app.get("/api/_routes")
    def _routes():
        out = []
        for rule in app.url_map.iter_rules():
            methods = sorted(m for m in rule.methods if m in {
                "GET", "POST", "PUT", "DELETE", "PATCH"
            })
            out.append({"rule": str(rule), "endpoint": rule.endpoint, "methods": methods})
        out.sort(key=lambda r: r["rule"])
        return jsonify(out)

    @app.get("/api/health/full")
    def _health_full():
        bps = sorted(app.blueprints.keys())
        env = {k: os.getenv(k) for k in SAFE_ENV_KEYS if os.getenv(k)}
        services = get_services()
        return jsonify({
            "status": "ok",
            "blueprints": bps,
            "env": env,
            "inbound_mode": services.inbounds.visibility_mode().value,
            "stuck_orders": len(services.lifecycle.list_stuck_orders()),
            "provisioner": type(services.lifecycle.provisioner).__name__,
            "notifier": type(services.lifecycle.notifier).__name__,
        })
