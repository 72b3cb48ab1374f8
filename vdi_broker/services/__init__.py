"""Services module for the assignment workflow and background services."""

from vdi_broker.services.assignment import (
    assign_vdi,
    request_vdi,
    approve_request,
    reject_request,
)
from vdi_broker.services.channel_monitor import ChannelMonitor

__all__ = [
    "assign_vdi",
    "request_vdi",
    "approve_request",
    "reject_request",
    "ChannelMonitor",
]
