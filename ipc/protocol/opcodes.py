from __future__ import annotations

from enum import IntEnum, StrEnum


class Opcode(IntEnum):
    """Frame operation codes carried in the 8-byte header."""

    HANDSHAKE = 0
    FRAME = 1
    CLOSE = 2
    PING = 3
    PONG = 4


class Command(StrEnum):
    """RPC command names sent inside FRAME payloads."""

    SET_ACTIVITY = "SET_ACTIVITY"


class Event(StrEnum):
    """Values of the `evt` field in replies."""

    READY = "READY"
    ERROR = "ERROR"


__all__ = ["Opcode", "Command", "Event"]
