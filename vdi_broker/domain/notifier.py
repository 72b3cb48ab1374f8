"""
Notification fan-out: pushes ledger state to live subscriber channels.

Delivery is best-effort. A channel is checked for liveness right before each
send, closed channels are skipped, and a failing send is logged and counted
without interrupting delivery to the remaining channels. None of the public
methods raise.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Protocol, runtime_checkable

from vdi_broker.domain.identity import IdentityStore
from vdi_broker.domain.ledger import ResourceLedger
from vdi_broker.domain.messages import (
    RequestingUser,
    VDIRequestAlert,
    VDIRequestMessage,
    VDIUpdateMessage,
)

logger = logging.getLogger("vdi-broker")


@runtime_checkable
class Channel(Protocol):
    """One-way delivery path to a connected client."""

    @property
    def is_open(self) -> bool: ...

    def send(self, text: str) -> None: ...


class NotificationFanout:
    """Registry of subscriber channels keyed by user id."""

    def __init__(self, ledger: ResourceLedger, identity: IdentityStore) -> None:
        self._ledger = ledger
        self._identity = identity
        self._lock = threading.Lock()
        # Serializes snapshot build and delivery so frames go out in ledger order
        self._broadcast_lock = threading.Lock()
        self._channels: dict[int, set[Channel]] = {}

    # =========================================================================
    # Registry
    # =========================================================================

    def register(self, user_id: int, channel: Channel) -> None:
        with self._lock:
            self._channels.setdefault(user_id, set()).add(channel)
        logger.debug(f"Channel registered for user {user_id}")

    def unregister(self, user_id: int, channel: Channel) -> None:
        """Remove a channel; the user's entry is dropped once it is empty."""
        with self._lock:
            channels = self._channels.get(user_id)
            if channels is None:
                return
            channels.discard(channel)
            if not channels:
                del self._channels[user_id]
        logger.debug(f"Channel unregistered for user {user_id}")

    def subscriber_ids(self) -> list[int]:
        with self._lock:
            return list(self._channels)

    def channels_for(self, user_id: int) -> list[Channel]:
        with self._lock:
            return list(self._channels.get(user_id, ()))

    def channel_count(self) -> int:
        with self._lock:
            return sum(len(channels) for channels in self._channels.values())

    def prune_closed(self) -> int:
        """Drop every channel reporting not-open. Returns the number removed."""
        removed = 0
        with self._lock:
            for user_id in list(self._channels):
                channels = self._channels[user_id]
                closed = {c for c in channels if not _is_open(c)}
                channels -= closed
                removed += len(closed)
                if not channels:
                    del self._channels[user_id]
        if removed:
            logger.info(f"Pruned {removed} closed channels")
        return removed

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> list[dict[str, Any]]:
        """Current VDI list, each assigned VDI enriched with its holder's username."""
        vdis = self._ledger.list_vdis()
        names = self._identity.usernames(
            v.assigned_user_id for v in vdis if v.assigned_user_id is not None
        )
        result = []
        for vdi in vdis:
            item = vdi.to_dict()
            name = names.get(vdi.assigned_user_id)
            if name is not None:
                item["assignedUsername"] = name
            result.append(item)
        return result

    # =========================================================================
    # Delivery
    # =========================================================================

    def broadcast_snapshot(self) -> int:
        """
        Push the full VDI snapshot to every live channel of every user.

        Concurrent broadcasts are serialized, so the last frame a channel
        receives always reflects the latest ledger state.

        Returns:
            Number of channels the message was delivered to
        """
        with self._broadcast_lock:
            try:
                message = VDIUpdateMessage(data=self.snapshot()).to_json()
            except Exception as e:
                logger.error(f"Failed to build VDI snapshot: {e}")
                _count_failure()
                return 0

            with self._lock:
                targets = [c for channels in self._channels.values() for c in channels]
            return self._deliver(targets, message, "vdi_update")

    def notify_holder(self, vdi_id: str, requesting_user_id: int) -> int:
        """
        Alert the current holder of ``vdi_id`` that another user wants it.

        No-op when the VDI is unknown or free, or the requester is unknown.

        Returns:
            Number of channels the alert was delivered to
        """
        try:
            vdi = self._ledger.get_vdi(vdi_id)
            if vdi is None or vdi.assigned_user_id is None:
                return 0
            requester = self._identity.get_user(requesting_user_id)
            request = self._ledger.latest_pending_request(vdi_id, requested_by=requesting_user_id)
            if requester is None or request is None:
                return 0
            message = VDIRequestMessage(
                data=VDIRequestAlert(
                    requesting_user=RequestingUser(id=requester.id, username=requester.username),
                    vdi_id=vdi_id,
                    request_id=request.id,
                )
            ).to_json()
        except Exception as e:
            logger.error(f"Failed to build request alert for {vdi_id}: {e}")
            _count_failure()
            return 0

        return self._deliver(self.channels_for(vdi.assigned_user_id), message, "vdi_request")

    def _deliver(self, channels: Iterable[Channel], message: str, kind: str) -> int:
        delivered = 0
        for channel in channels:
            if not _is_open(channel):
                continue
            try:
                channel.send(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropped {kind} message for a channel: {e}")
                _count_failure()

        from vdi_broker.observability import NOTIFICATIONS_TOTAL
        NOTIFICATIONS_TOTAL.labels(type=kind).inc(delivered)
        return delivered


def _is_open(channel: Channel) -> bool:
    try:
        return bool(channel.is_open)
    except Exception:
        return False


def _count_failure() -> None:
    from vdi_broker.observability import NOTIFICATION_FAILURES
    NOTIFICATION_FAILURES.inc()
