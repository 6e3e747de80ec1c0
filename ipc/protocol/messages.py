from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.common import current_pid, generate_nonce
from .constants import PROTOCOL_VERSION
from .opcodes import Command


class HandshakeRequest(BaseModel):
    """First frame on every connection."""

    v: int = Field(default=PROTOCOL_VERSION, description="Protocol version")
    client_id: str = Field(..., min_length=1, description="Discord application identifier")


class ActivityArgs(BaseModel):
    pid: int = Field(default_factory=current_pid, description="Process id of the caller")
    activity: Dict[str, Any] = Field(default_factory=dict, description="Opaque activity document")


class ActivityCommand(BaseModel):
    """SET_ACTIVITY envelope sent as a FRAME."""

    cmd: Literal[Command.SET_ACTIVITY] = Command.SET_ACTIVITY
    args: ActivityArgs
    nonce: str = Field(default_factory=generate_nonce, description="Request tag, never matched on reply")


class _CodedReply(BaseModel):
    """Numeric code plus a free-form message; only the code is required."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: Optional[str] = None

    @field_validator("message", mode="before")
    @classmethod
    def _stringify_message(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)


class ErrorData(_CodedReply):
    """`data` object of an ERROR reply."""


class HandshakeError(_CodedReply):
    """Failure reply to a handshake (usually delivered with a CLOSE opcode)."""


__all__ = ["HandshakeRequest", "ActivityArgs", "ActivityCommand", "ErrorData", "HandshakeError"]
