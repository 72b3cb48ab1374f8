"""
Observability module: Prometheus metrics and structured JSON logging.

- Custom business metrics (Gauges, Counters)
- PrometheusMetrics integration for automatic Flask instrumentation
- JSON structured logging via python-json-logger
- Periodic business metrics collection (called from ChannelMonitor)
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING

from flask import Flask
from prometheus_client import Counter, Gauge
from prometheus_flask_exporter import PrometheusMetrics

if TYPE_CHECKING:
    from vdi_broker.container import ServiceContainer

# =============================================================================
# Prometheus Custom Metrics
# =============================================================================

ASSIGNED_VDIS = Gauge(
    "vdi_broker_assigned_vdis",
    "Number of VDIs currently assigned to a user",
)

PENDING_REQUESTS = Gauge(
    "vdi_broker_pending_requests",
    "Number of VDI requests awaiting a decision",
)

LIVE_CHANNELS = Gauge(
    "vdi_broker_live_channels",
    "Number of registered real-time channels",
)

NOTIFICATIONS_TOTAL = Counter(
    "vdi_broker_notifications_total",
    "Push messages delivered to channels, by message type",
    ["type"],
)

NOTIFICATION_FAILURES = Counter(
    "vdi_broker_notification_failures_total",
    "Push messages that could not be built or delivered",
)

ERRORS_TOTAL = Counter(
    "vdi_broker_errors_total",
    "Total number of errors by endpoint",
    ["endpoint"],
)


# =============================================================================
# Metrics Initialization
# =============================================================================

def init_metrics(app: Flask) -> PrometheusMetrics:
    """
    Initialize PrometheusMetrics on the Flask app.

    Auto-instruments all routes with flask_http_request_duration_seconds
    and flask_http_request_total. Exposes /metrics endpoint.
    """
    metrics = PrometheusMetrics(app, path="/metrics")

    # Exempt /metrics from rate limiting
    from vdi_broker.api.rate_limit import limiter
    metrics_view = app.view_functions.get("prometheus_metrics")
    if metrics_view is not None:
        limiter.exempt(metrics_view)

    return metrics


# =============================================================================
# JSON Structured Logging
# =============================================================================

class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in log messages."""

    SENSITIVE_PATTERNS = [
        (re.compile(r'password["\']?\s*[:=]\s*["\']?[^"\'}\s]+', re.I), 'password=***'),
        (re.compile(r'secret["\']?\s*[:=]\s*["\']?[^"\'}\s]+', re.I), 'secret=***'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                record.msg = pattern.sub(replacement, record.msg)
        return True


def setup_json_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with JSON structured output.

    Uses python-json-logger's JsonFormatter. The 'audit' logger is
    unaffected (propagate=False, own handler).
    """
    from pythonjsonlogger.json import JsonFormatter

    handler = logging.StreamHandler(sys.stderr)
    formatter = JsonFormatter(
        fmt="%(timestamp)s %(name)s %(levelname)s %(message)s",
        rename_fields={"levelname": "level", "asctime": "timestamp"},
        timestamp=True,
    )
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())


# =============================================================================
# Business Metrics Collection
# =============================================================================

def collect_business_metrics(services: ServiceContainer) -> None:
    """
    Update Gauges from current ledger and registry state.

    Called periodically from the ChannelMonitor loop and from /health.
    """
    stats = services.ledger.get_stats()
    ASSIGNED_VDIS.set(stats["assigned"])
    PENDING_REQUESTS.set(stats["pending_requests"])
    LIVE_CHANNELS.set(services.notifier.channel_count())
