"""
Channel monitoring service: prunes dead subscriber channels.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from vdi_broker.observability import collect_business_metrics

if TYPE_CHECKING:
    from vdi_broker.container import ServiceContainer

logger = logging.getLogger("vdi-broker")


class ChannelMonitor:
    """Background service removing channels that closed without unregistering."""

    def __init__(self, services: ServiceContainer, interval: int = 30):
        """
        Initialize channel monitor.

        Args:
            services: Container whose notifier is swept
            interval: Sweep interval in seconds (0 disables the thread)
        """
        self.services = services
        self.interval = interval
        self.running = False
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the monitor service."""
        if self.interval <= 0:
            logger.info("Channel monitor disabled (sweep_interval <= 0)")
            return
        if self.running:
            return
        self.running = True
        self._stop.clear()
        self._thread = threading.Thread(target=self._monitor_loop, daemon=True)
        self._thread.start()
        logger.info("Channel monitor started")

    def stop(self) -> None:
        """Stop the monitor service."""
        self.running = False
        self._stop.set()

    def _monitor_loop(self) -> None:
        """Main monitor loop."""
        while not self._stop.wait(self.interval):
            self.sweep()

    def sweep(self) -> int:
        """
        Prune closed channels and refresh gauges.

        Returns:
            Number of channels removed
        """
        try:
            removed = self.services.notifier.prune_closed()
            collect_business_metrics(self.services)
            return removed
        except Exception as e:
            logger.error(f"Monitor error: {e}")
            return 0
