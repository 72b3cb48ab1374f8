"""
Rate limiting for the broker API.

Uses Flask-Limiter with in-memory storage (suitable for single-process serving).
"""

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from vdi_broker.api.responses import api_error
from vdi_broker.config.models import BrokerSettings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
)

# Login/register limit, read from config at init time, used by route decorators
auth_limit = "10/minute"


def get_auth_limit() -> str:
    return auth_limit


def init_limiter(app: Flask, settings: BrokerSettings) -> None:
    """Attach the limiter to the Flask app and configure from broker config."""
    global auth_limit

    rl_config = settings.security.rate_limiting
    app.config.setdefault("RATELIMIT_ENABLED", rl_config.enabled)
    app.config.setdefault("RATELIMIT_DEFAULT", rl_config.default_limit)
    auth_limit = rl_config.auth_limit

    limiter.init_app(app)

    @app.errorhandler(429)
    def rate_limit_handler(e):
        return api_error("Rate limit exceeded. Try again later.", 429)
