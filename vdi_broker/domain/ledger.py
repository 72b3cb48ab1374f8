"""
Resource ledger: authoritative in-memory record of VDI ownership and
request history.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from typing import Iterable

from vdi_broker.domain.errors import ConflictError, NotFoundError
from vdi_broker.domain.types import VDI, RequestStatus, VDIRequest, VDIStatus

logger = logging.getLogger("vdi-broker")


class ResourceLedger:
    """
    Owns every VDI and VDIRequest record.

    All operations are serialized by a single lock so that concurrent
    handler threads never interleave a read-modify-write on the same record.
    Nothing inside the lock blocks on I/O.
    """

    def __init__(self, vdi_ids: Iterable[str]) -> None:
        self._lock = threading.Lock()
        # dicts preserve insertion order, which is the listing order
        self._vdis: dict[str, VDI] = {vdi_id: VDI(id=vdi_id) for vdi_id in vdi_ids}
        self._requests: dict[int, VDIRequest] = {}
        self._request_ids = itertools.count(1)
        logger.info(f"Ledger initialized with {len(self._vdis)} VDIs")

    # =========================================================================
    # VDIs
    # =========================================================================

    def list_vdis(self) -> list[VDI]:
        """Return the current snapshot of all VDIs, in pool order."""
        with self._lock:
            return list(self._vdis.values())

    def get_vdi(self, vdi_id: str) -> VDI | None:
        with self._lock:
            return self._vdis.get(vdi_id)

    def assign(self, vdi_id: str, user_id: int) -> VDI:
        """
        Assign a free VDI to a user.

        Raises:
            NotFoundError: Unknown VDI
            ConflictError: VDI already assigned (to anyone, including user_id)
        """
        with self._lock:
            return self._assign_locked(vdi_id, user_id)

    def unassign(self, vdi_id: str) -> VDI:
        """
        Release a VDI. Idempotent: releasing a free VDI is not an error.

        Raises:
            NotFoundError: Unknown VDI
        """
        with self._lock:
            return self._unassign_locked(vdi_id)

    def _assign_locked(self, vdi_id: str, user_id: int) -> VDI:
        vdi = self._vdis.get(vdi_id)
        if vdi is None:
            raise NotFoundError("VDI not found")
        if vdi.is_assigned:
            raise ConflictError("VDI already assigned")
        updated = replace(vdi, status=VDIStatus.ASSIGNED, assigned_user_id=user_id)
        self._vdis[vdi_id] = updated
        logger.info(f"{vdi_id} assigned to user {user_id}")
        return updated

    def _unassign_locked(self, vdi_id: str) -> VDI:
        vdi = self._vdis.get(vdi_id)
        if vdi is None:
            raise NotFoundError("VDI not found")
        updated = replace(vdi, status=VDIStatus.FREE, assigned_user_id=None)
        self._vdis[vdi_id] = updated
        return updated

    # =========================================================================
    # Requests
    # =========================================================================

    def list_requests(self) -> list[VDIRequest]:
        """Return every request ever created, in creation order."""
        with self._lock:
            return list(self._requests.values())

    def get_request(self, request_id: int) -> VDIRequest | None:
        with self._lock:
            return self._requests.get(request_id)

    def latest_pending_request(self, vdi_id: str, requested_by: int | None = None) -> VDIRequest | None:
        """
        Most recently created request for ``vdi_id`` that is still pending.

        Args:
            vdi_id: Target VDI
            requested_by: Only consider requests made by this user
        """
        with self._lock:
            for request in reversed(self._requests.values()):
                if request.vdi_id != vdi_id or not request.is_pending:
                    continue
                if requested_by is None or request.requested_by_user_id == requested_by:
                    return request
        return None

    def create_request(self, vdi_id: str, requesting_user_id: int) -> VDIRequest:
        """
        Record a pending request for ``vdi_id``.

        The target is not validated: unknown or free VDIs are accepted and
        simply have no holder to notify.
        """
        with self._lock:
            vdi = self._vdis.get(vdi_id)
            request = VDIRequest(
                id=next(self._request_ids),
                vdi_id=vdi_id,
                requested_by_user_id=requesting_user_id,
                holder_user_id=vdi.assigned_user_id if vdi else None,
            )
            self._requests[request.id] = request
        logger.info(f"Request {request.id}: user {requesting_user_id} asks for {vdi_id}")
        return request

    def approve_request(self, request_id: int) -> VDIRequest:
        """
        Transfer the requested VDI to the requester, then mark the request
        Approved. On failure neither record changes.

        Raises:
            NotFoundError: Unknown request or VDI
            ConflictError: Request already decided, or the VDI now belongs
                to someone other than the holder at request time
        """
        with self._lock:
            request = self._pending_locked(request_id)
            vdi = self._vdis.get(request.vdi_id)
            if vdi is None:
                raise NotFoundError("VDI not found")
            if vdi.is_assigned and vdi.assigned_user_id != request.holder_user_id:
                raise ConflictError("VDI was reassigned since the request was made")

            self._unassign_locked(vdi.id)
            self._assign_locked(vdi.id, request.requested_by_user_id)

            updated = replace(request, status=RequestStatus.APPROVED)
            self._requests[request_id] = updated
        logger.info(f"Request {request_id} approved")
        return updated

    def reject_request(self, request_id: int) -> VDIRequest:
        """
        Mark a pending request Rejected. VDI records are never touched.

        Raises:
            NotFoundError: Unknown request
            ConflictError: Request already decided
        """
        with self._lock:
            request = self._pending_locked(request_id)
            updated = replace(request, status=RequestStatus.REJECTED)
            self._requests[request_id] = updated
        logger.info(f"Request {request_id} rejected")
        return updated

    def _pending_locked(self, request_id: int) -> VDIRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise NotFoundError("Request not found")
        if not request.is_pending:
            raise ConflictError(f"Request already {request.status.value.lower()}")
        return request

    # =========================================================================
    # Stats
    # =========================================================================

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            assigned = sum(1 for v in self._vdis.values() if v.is_assigned)
            pending = sum(1 for r in self._requests.values() if r.is_pending)
            return {
                "vdis": len(self._vdis),
                "assigned": assigned,
                "free": len(self._vdis) - assigned,
                "pending_requests": pending,
                "requests": len(self._requests),
            }
