"""
Typed data structures for the broker domain.

Records are frozen: the ledger and the identity store replace a record on
every change instead of mutating it in place.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class VDIStatus(str, enum.Enum):
    FREE = "Free"
    ASSIGNED = "Assigned"


class RequestStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class User:
    """Registered account. ``password_hash`` never leaves the server."""

    id: int
    username: str
    password_hash: str = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username}


@dataclass(frozen=True)
class VDI:
    """Virtual desktop from the fixed pool."""

    id: str
    status: VDIStatus = VDIStatus.FREE
    assigned_user_id: int | None = None

    def __post_init__(self) -> None:
        if (self.status is VDIStatus.ASSIGNED) != (self.assigned_user_id is not None):
            raise ValueError(
                f"{self.id}: status {self.status.value} inconsistent with "
                f"assigned user {self.assigned_user_id}"
            )

    @property
    def is_assigned(self) -> bool:
        return self.status is VDIStatus.ASSIGNED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "assignedUserId": self.assigned_user_id,
        }


@dataclass(frozen=True)
class VDIRequest:
    """Request by one user to take over a VDI."""

    id: int
    vdi_id: str
    requested_by_user_id: int
    status: RequestStatus = RequestStatus.PENDING
    # Holder of the VDI when the request was made; internal only
    holder_user_id: int | None = field(default=None, compare=False)

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "vdiId": self.vdi_id,
            "requestedByUserId": self.requested_by_user_id,
            "status": self.status.value,
        }
