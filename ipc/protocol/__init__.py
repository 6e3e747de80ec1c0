"""
Discord IPC protocol package that centralizes opcodes, message models, framing
helpers, error types, and reply validation.
"""

from .constants import ENCODING, HEADER_SIZE, MAX_PAYLOAD_SIZE, PROTOCOL_VERSION
from .errors import (
    ActivityInvalid,
    ChannelBroken,
    ChannelNotFound,
    ClientIdInvalid,
    ErrorCode,
    IllegalState,
    IpcError,
    LinkError,
    ProtocolViolation,
)
from .framing import decode_frame, decode_header, decode_payload, encode_frame, encode_payload
from .messages import ActivityArgs, ActivityCommand, ErrorData, HandshakeError, HandshakeRequest
from .opcodes import Command, Event, Opcode
from .validator import is_valid, load_schema, validate_msg

__all__ = [
    "ENCODING",
    "HEADER_SIZE",
    "MAX_PAYLOAD_SIZE",
    "PROTOCOL_VERSION",
    "ActivityInvalid",
    "ChannelBroken",
    "ChannelNotFound",
    "ClientIdInvalid",
    "ErrorCode",
    "IllegalState",
    "IpcError",
    "LinkError",
    "ProtocolViolation",
    "decode_frame",
    "decode_header",
    "decode_payload",
    "encode_frame",
    "encode_payload",
    "ActivityArgs",
    "ActivityCommand",
    "ErrorData",
    "HandshakeError",
    "HandshakeRequest",
    "Command",
    "Event",
    "Opcode",
    "is_valid",
    "load_schema",
    "validate_msg",
]
