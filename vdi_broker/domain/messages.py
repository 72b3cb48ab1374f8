"""
Push message envelopes sent over the real-time channel.

``PushMessage`` is a discriminated union on ``type``: every message a client
can receive is exactly one of the models below.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class RequestingUser(_Envelope):
    id: int
    username: str


class VDIRequestAlert(_Envelope):
    requesting_user: RequestingUser
    vdi_id: str
    request_id: int


class VDIUpdateMessage(_Envelope):
    """Full VDI snapshot, broadcast to every subscriber."""

    type: Literal["vdi_update"] = "vdi_update"
    data: list[dict[str, Any]]


class VDIRequestMessage(_Envelope):
    """Request alert, delivered only to the holder of the VDI."""

    type: Literal["vdi_request"] = "vdi_request"
    data: VDIRequestAlert


PushMessage = Annotated[
    Union[VDIUpdateMessage, VDIRequestMessage],
    Field(discriminator="type"),
]

_push_adapter: TypeAdapter[PushMessage] = TypeAdapter(PushMessage)


def parse_push_message(raw: str | bytes) -> VDIUpdateMessage | VDIRequestMessage:
    """Decode a serialized envelope into its concrete message type."""
    return _push_adapter.validate_json(raw)
