"""
Session authentication for the broker API.

Flask-Login keeps the authenticated user id in the signed session cookie.
A before_request hook rejects unauthenticated calls to every API endpoint
except the public ones (health, login, register, logout).
"""

from __future__ import annotations

import logging

from flask import Flask, Response, request
from flask_login import LoginManager, UserMixin, current_user

from vdi_broker.api.responses import api_error
from vdi_broker.container import get_services
from vdi_broker.domain.types import User

logger = logging.getLogger("vdi-broker")

# Endpoints that do not require authentication (use Flask endpoint names)
PUBLIC_ENDPOINTS = frozenset({
    "api.health",
    "api.login",
    "api.register",
    "api.logout",
})

login_manager = LoginManager()


class SessionUser(UserMixin):
    """Flask-Login view of an identity store account."""

    def __init__(self, user: User) -> None:
        self.id = user.id
        self.username = user.username

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username}


def load_session_user(user_id: str) -> SessionUser | None:
    """Resolve the user id stored in the session to a live account."""
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        return None
    user = get_services().identity.get_user(uid)
    return SessionUser(user) if user else None


def _unauthorized() -> tuple[Response, int]:
    return api_error("Authentication required", 401)


def init_auth(app: Flask) -> None:
    """Attach Flask-Login to the app."""
    login_manager.init_app(app)
    login_manager.user_loader(load_session_user)
    login_manager.unauthorized_handler(_unauthorized)


def require_login() -> tuple[Response, int] | None:
    """
    Flask before_request hook that enforces session authentication.

    - Skips public endpoints.
    - Returns 401 if no authenticated user is attached to the session.
    - Returns None (allows request) otherwise.
    """
    if request.endpoint in PUBLIC_ENDPOINTS:
        return None

    if not current_user.is_authenticated:
        logger.debug(f"Unauthenticated request from {request.remote_addr} on {request.path}")
        return _unauthorized()

    return None
