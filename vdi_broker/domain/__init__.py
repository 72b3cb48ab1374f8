"""Domain module containing the ledger, identities and notification fan-out."""

from vdi_broker.domain.errors import LedgerError, NotFoundError, ConflictError
from vdi_broker.domain.types import User, VDI, VDIRequest, VDIStatus, RequestStatus
from vdi_broker.domain.ledger import ResourceLedger
from vdi_broker.domain.identity import IdentityStore, hash_password, verify_password
from vdi_broker.domain.messages import (
    PushMessage,
    VDIUpdateMessage,
    VDIRequestMessage,
    parse_push_message,
)
from vdi_broker.domain.notifier import Channel, NotificationFanout

__all__ = [
    "LedgerError",
    "NotFoundError",
    "ConflictError",
    "User",
    "VDI",
    "VDIRequest",
    "VDIStatus",
    "RequestStatus",
    "ResourceLedger",
    "IdentityStore",
    "hash_password",
    "verify_password",
    "PushMessage",
    "VDIUpdateMessage",
    "VDIRequestMessage",
    "parse_push_message",
    "Channel",
    "NotificationFanout",
]
