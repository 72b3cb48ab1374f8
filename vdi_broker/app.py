"""
VDI Broker Flask application.

``create_app`` wires the service container, session authentication, the API
blueprint, the WebSocket endpoint, rate limiting and metrics into a Flask app.
"""

from __future__ import annotations

import logging
import os
import secrets
from datetime import timedelta

from flask import Flask

from vdi_broker.api.auth import init_auth
from vdi_broker.api.rate_limit import init_limiter
from vdi_broker.api.responses import api_error
from vdi_broker.api.routes import api
from vdi_broker.api.validators import ValidationError
from vdi_broker.api.websocket import sock
from vdi_broker.config.loader import BrokerConfig
from vdi_broker.config.models import BrokerSettings
from vdi_broker.config.settings import get_env
from vdi_broker.container import ServiceContainer

logger = logging.getLogger("vdi-broker")


def _secret_key() -> str:
    key = get_env("secret_key")
    if key:
        return key
    logger.warning("SECRET_KEY not set, generating a random key (sessions end on restart)")
    return secrets.token_hex(32)


def create_app(
    settings: BrokerSettings | None = None,
    services: ServiceContainer | None = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        settings: Broker settings; loaded from broker.yml when omitted
        services: Pre-built service container (tests); created from
            ``settings`` when omitted

    Returns:
        Configured Flask app
    """
    if settings is None:
        settings = services.settings if services is not None else BrokerConfig.settings()
    if services is None:
        services = ServiceContainer(settings)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=_secret_key(),
        SESSION_COOKIE_NAME=settings.session.cookie_name,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_SECURE=settings.session.secure_cookie,
        PERMANENT_SESSION_LIFETIME=timedelta(hours=settings.session.lifetime_hours),
    )
    app.extensions["services"] = services

    init_limiter(app, settings)
    init_auth(app)
    app.register_blueprint(api)
    sock.init_app(app)

    if settings.metrics.enabled:
        from vdi_broker.observability import init_metrics
        init_metrics(app)

    # =========================================================================
    # Error Handlers
    # =========================================================================

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError) -> tuple:
        """Handle validation errors."""
        return api_error(str(e), 400)

    @app.errorhandler(404)
    def handle_not_found(e: Exception) -> tuple:
        """Handle 404 errors."""
        return api_error("Resource not found", 404)

    @app.errorhandler(500)
    def handle_server_error(e: Exception) -> tuple:
        """Handle 500 errors."""
        from vdi_broker.observability import ERRORS_TOTAL
        ERRORS_TOTAL.labels(endpoint="app_500").inc()
        logger.error(f"Internal server error: {e}")
        return api_error("Internal server error", 500)

    services.monitor.start()

    # Seeds accounts and the VDI pool before the first request
    logger.info(
        f"VDI broker ready: {len(services.ledger.list_vdis())} VDIs, "
        f"{len(services.identity.list_users())} accounts"
    )
    return app


def main() -> None:
    """Run the development server."""
    from vdi_broker.observability import setup_json_logging

    setup_json_logging(level=os.environ.get("LOG_LEVEL", BrokerConfig.settings().logging.level))
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "5000")), debug=False, threaded=True)


if __name__ == "__main__":
    main()
