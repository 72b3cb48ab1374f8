"""
Lightweight DI container for broker services.

Stored in ``app.extensions['services']``; route handlers and the WebSocket
endpoint reach it through :func:`get_services`. Each container owns an
independent ledger, identity store and notifier, so tests and additional
app instances never share state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vdi_broker.config.models import BrokerSettings
    from vdi_broker.domain.identity import IdentityStore
    from vdi_broker.domain.ledger import ResourceLedger
    from vdi_broker.domain.notifier import NotificationFanout
    from vdi_broker.services.channel_monitor import ChannelMonitor


class ServiceContainer:
    """Lightweight service container holding shared service instances."""

    def __init__(self, settings: BrokerSettings | None = None) -> None:
        if settings is None:
            from vdi_broker.config.loader import BrokerConfig

            settings = BrokerConfig.settings()
        self.settings = settings
        self._ledger: ResourceLedger | None = None
        self._identity: IdentityStore | None = None
        self._notifier: NotificationFanout | None = None
        self._monitor: ChannelMonitor | None = None

    @property
    def ledger(self) -> ResourceLedger:
        if self._ledger is None:
            from vdi_broker.domain.ledger import ResourceLedger

            self._ledger = ResourceLedger(self.settings.vdi_ids())
        return self._ledger

    @property
    def identity(self) -> IdentityStore:
        if self._identity is None:
            from vdi_broker.domain.identity import IdentityStore

            accounts = self.settings.accounts
            seeds = [(a.username, a.password) for a in accounts.defaults] if accounts.seed_defaults else []
            self._identity = IdentityStore(seeds)
        return self._identity

    @property
    def notifier(self) -> NotificationFanout:
        if self._notifier is None:
            from vdi_broker.domain.notifier import NotificationFanout

            self._notifier = NotificationFanout(self.ledger, self.identity)
        return self._notifier

    @property
    def monitor(self) -> ChannelMonitor:
        if self._monitor is None:
            from vdi_broker.services.channel_monitor import ChannelMonitor

            self._monitor = ChannelMonitor(
                self,
                interval=self.settings.notifications.sweep_interval,
            )
        return self._monitor


def get_services() -> ServiceContainer:
    """Return the service container of the current Flask application.

    Raises:
        RuntimeError: Outside an application context, or before
            ``create_app`` installed a container.
    """
    from flask import current_app

    try:
        return current_app.extensions["services"]
    except KeyError:
        raise RuntimeError("ServiceContainer not initialized") from None
