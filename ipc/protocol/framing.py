from __future__ import annotations

import json
import struct
from typing import Any, Dict, Tuple, Union

from .constants import ENCODING, HEADER_FORMAT, HEADER_SIZE, MAX_PAYLOAD_SIZE
from .errors import ProtocolViolation
from .opcodes import Opcode


def encode_payload(payload: Dict[str, Any]) -> bytes:
    """Serialize a payload dict into compact UTF-8 JSON."""
    try:
        json_str = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ProtocolViolation(f"Encode failed: {exc}") from exc

    data = json_str.encode(ENCODING)
    if len(data) > MAX_PAYLOAD_SIZE:
        raise ProtocolViolation("Payload too large for IPC frame")
    return data


def encode_frame(opcode: Union[int, Opcode], payload: Dict[str, Any]) -> bytes:
    """
    Encode a frame: 4 bytes little-endian opcode + 4 bytes little-endian len + JSON payload.
    """
    data = encode_payload(payload)
    return struct.pack(HEADER_FORMAT, int(opcode), len(data)) + data


def decode_header(header: bytes) -> Tuple[Opcode, int]:
    """Decode the 8-byte header into (opcode, payload length)."""
    if len(header) != HEADER_SIZE:
        raise ProtocolViolation(f"Frame header must be {HEADER_SIZE} bytes, got {len(header)}")
    op, length = struct.unpack(HEADER_FORMAT, header)
    try:
        opcode = Opcode(op)
    except ValueError as exc:
        raise ProtocolViolation(f"Unknown opcode {op}") from exc
    if length > MAX_PAYLOAD_SIZE:
        raise ProtocolViolation(f"Declared payload length {length} exceeds limit")
    return opcode, length


def decode_payload(data: bytes) -> Dict[str, Any]:
    """Decode UTF-8 JSON bytes into a dict."""
    try:
        payload = json.loads(data.decode(ENCODING))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolViolation(f"Decode failed: {exc}") from exc
    if not isinstance(payload, dict):
        raise ProtocolViolation(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


def decode_frame(data: bytes) -> Tuple[Opcode, Dict[str, Any]]:
    """Decode one complete frame held in memory."""
    opcode, length = decode_header(data[:HEADER_SIZE])
    body = data[HEADER_SIZE:]
    if len(body) != length:
        raise ProtocolViolation(f"Frame payload truncated: expected {length} bytes, got {len(body)}")
    return opcode, decode_payload(body)


__all__ = ["encode_payload", "encode_frame", "decode_header", "decode_payload", "decode_frame"]
