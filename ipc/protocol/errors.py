from __future__ import annotations

from enum import IntEnum
from typing import Union


class ErrorCode(IntEnum):
    """Numeric codes reported by the presence host."""

    UNKNOWN = 0
    INVALID_ARGUMENT = 4000


class IpcError(Exception):
    """Structured IPC exception carrying a numeric code + message."""

    recoverable = False

    def __init__(self, code: Union[int, ErrorCode] = ErrorCode.UNKNOWN, message: str = "") -> None:
        self.code = int(code)
        self.message = message
        super().__init__(f"{message} (code={self.code})")


class ChannelNotFound(IpcError):
    """No local endpoint accepted a connection."""

    def __init__(self, message: str = "Cannot find a Discord IPC endpoint to connect to") -> None:
        super().__init__(ErrorCode.UNKNOWN, message)


class ChannelBroken(IpcError):
    """The connection dropped in the middle of a read or write."""

    def __init__(self, message: str = "IPC channel closed unexpectedly") -> None:
        super().__init__(ErrorCode.UNKNOWN, message)


class ProtocolViolation(IpcError):
    """A frame or its JSON payload could not be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.UNKNOWN, message)


class IllegalState(IpcError):
    """Operation invoked in a link state that does not allow it."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.UNKNOWN, message)


class LinkError(IpcError):
    """Error reported by the presence host."""

    recoverable = True


class ClientIdInvalid(LinkError):
    recoverable = False

    def __init__(self, message: str = "Client ID is invalid") -> None:
        super().__init__(ErrorCode.INVALID_ARGUMENT, message)


class ActivityInvalid(LinkError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_ARGUMENT, message)


__all__ = [
    "ErrorCode",
    "IpcError",
    "ChannelNotFound",
    "ChannelBroken",
    "ProtocolViolation",
    "IllegalState",
    "LinkError",
    "ClientIdInvalid",
    "ActivityInvalid",
]
