"""Protocol-wide constants for the Discord local IPC channel."""

PROTOCOL_VERSION = 1
ENCODING = "utf-8"
HEADER_FORMAT = "<II"  # opcode, payload length (little-endian uint32)
HEADER_SIZE = 8
MAX_PAYLOAD_SIZE = 64 * 1024
PIPE_NAME_PREFIX = "discord-ipc-"
DEFAULT_PIPE_CANDIDATES = 10
DEFAULT_CONNECT_TIMEOUT = 1.0  # seconds
ACTIVITY_ERROR_PREFIX = 'child "activity" fails because ['

__all__ = [
    "PROTOCOL_VERSION",
    "ENCODING",
    "HEADER_FORMAT",
    "HEADER_SIZE",
    "MAX_PAYLOAD_SIZE",
    "PIPE_NAME_PREFIX",
    "DEFAULT_PIPE_CANDIDATES",
    "DEFAULT_CONNECT_TIMEOUT",
    "ACTIVITY_ERROR_PREFIX",
]
