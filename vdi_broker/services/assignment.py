"""
Assignment workflow: runs a ledger transition, then fans the new state out.

Ledger failures propagate to the caller before any notification is sent.
Notifications never raise, so a successful transition always returns its
record regardless of push delivery.
"""

import logging

from vdi_broker.container import ServiceContainer
from vdi_broker.domain.types import VDI, VDIRequest

logger = logging.getLogger("vdi-broker")


def assign_vdi(services: ServiceContainer, vdi_id: str, user_id: int) -> VDI:
    """
    Claim a free VDI for a user and broadcast the new snapshot.

    Raises:
        NotFoundError: Unknown VDI
        ConflictError: VDI already assigned
    """
    vdi = services.ledger.assign(vdi_id, user_id)
    services.notifier.broadcast_snapshot()
    return vdi


def request_vdi(services: ServiceContainer, vdi_id: str, user_id: int) -> VDIRequest:
    """
    Ask the current holder of a VDI to hand it over.

    The holder receives a targeted alert, then everyone receives a snapshot.
    """
    request = services.ledger.create_request(vdi_id, user_id)
    delivered = services.notifier.notify_holder(vdi_id, user_id)
    if not delivered:
        logger.info(f"Request {request.id} for {vdi_id}: holder has no live channel")
    services.notifier.broadcast_snapshot()
    return request


def approve_request(services: ServiceContainer, request_id: int) -> VDIRequest:
    """
    Approve a pending request, transferring the VDI to the requester.

    Raises:
        NotFoundError: Unknown request or VDI
        ConflictError: Request already decided, or VDI reassigned meanwhile
    """
    request = services.ledger.approve_request(request_id)
    services.notifier.broadcast_snapshot()
    return request


def reject_request(services: ServiceContainer, request_id: int) -> VDIRequest:
    """
    Reject a pending request. The VDI stays with its holder.

    Raises:
        NotFoundError: Unknown request
        ConflictError: Request already decided
    """
    request = services.ledger.reject_request(request_id)
    services.notifier.broadcast_snapshot()
    return request
