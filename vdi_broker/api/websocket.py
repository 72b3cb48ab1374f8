"""
Real-time channel endpoint (``/ws``).

The subscriber identity comes from the session cookie sent with the upgrade
request. Connections that cannot be resolved to a known user are accepted
but never registered, so they receive nothing.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from flask import session
from flask_sock import Sock
from simple_websocket import ConnectionClosed

from vdi_broker.config.settings import SESSION_USER_KEY
from vdi_broker.container import ServiceContainer, get_services

logger = logging.getLogger("vdi-broker")

sock = Sock()


class WebSocketChannel:
    """Channel adapter over a simple-websocket connection."""

    def __init__(self, ws: Any) -> None:
        self._ws = ws
        # Fan-out may send from several request threads at once
        self._send_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return bool(getattr(self._ws, "connected", False))

    def send(self, text: str) -> None:
        with self._send_lock:
            self._ws.send(text)


def resolve_subscriber(services: ServiceContainer) -> int | None:
    """
    Map the current session to a user id.

    Returns None when the cookie is missing or invalid, carries no user,
    or names a user the identity store does not know.
    """
    raw_id = session.get(SESSION_USER_KEY)
    if raw_id is None:
        return None
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        return None
    if services.identity.get_user(user_id) is None:
        return None
    return user_id


def serve_channel(ws: Any, services: ServiceContainer, user_id: int | None) -> None:
    """
    Hold a connection open until the client goes away.

    Inbound messages are read and discarded. A registered channel is always
    unregistered on exit.
    """
    channel = WebSocketChannel(ws)
    if user_id is None:
        logger.debug("WebSocket connection without authenticated session left inert")
    else:
        services.notifier.register(user_id, channel)
        logger.info(f"Subscriber connected: user {user_id}")

    try:
        while True:
            ws.receive()
    except ConnectionClosed:
        pass
    finally:
        if user_id is not None:
            services.notifier.unregister(user_id, channel)
            logger.info(f"Subscriber disconnected: user {user_id}")


@sock.route("/ws")
def updates(ws: Any) -> None:
    """WebSocket endpoint pushing VDI updates and request alerts."""
    services = get_services()
    serve_channel(ws, services, resolve_subscriber(services))
