from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Dict, Optional, Tuple

from ipc.protocol import framing, validator
from ipc.protocol.constants import ACTIVITY_ERROR_PREFIX, HEADER_SIZE
from ipc.protocol.errors import (
    ActivityInvalid,
    ChannelBroken,
    ClientIdInvalid,
    ErrorCode,
    IllegalState,
    LinkError,
    ProtocolViolation,
)
from ipc.protocol.messages import ActivityArgs, ActivityCommand, ErrorData, HandshakeError, HandshakeRequest
from ipc.protocol.opcodes import Event, Opcode
from ipc.utils.common import current_pid

from .channel import TransportChannel

logger = logging.getLogger(__name__)


class LinkState(StrEnum):
    UNCONNECTED = "unconnected"
    HANDSHAKING = "handshaking"
    READY = "ready"
    CLOSED = "closed"


def strip_activity_error(message: str) -> str:
    """Remove the `child "activity" fails because [...]` wrapper if present."""
    if message.startswith(ACTIVITY_ERROR_PREFIX):
        # the host always closes the wrapper with a single trailing bracket
        return message[len(ACTIVITY_ERROR_PREFIX) : len(message) - 1]
    return message


class PresenceLink:
    """
    Framed request/response client for the Discord IPC channel.

    The handshake happens in the constructor; afterwards every activity call
    is a blocking send followed by reading exactly one reply frame. Not
    thread-safe: callers must serialize access.
    """

    def __init__(
        self,
        client_id: str,
        channel: Optional[TransportChannel] = None,
        pid: Optional[int] = None,
    ) -> None:
        self.client_id = client_id
        self.pid = pid if pid is not None else current_pid()
        self.state = LinkState.UNCONNECTED
        self._channel = channel or TransportChannel()
        try:
            self._channel.connect()
            self.state = LinkState.HANDSHAKING
            self._handshake()
        except BaseException:
            self._abandon()
            raise
        self.state = LinkState.READY
        logger.info("Discord IPC handshake complete")

    def __enter__(self) -> "PresenceLink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.state is LinkState.READY:
            self.close()

    @property
    def ready(self) -> bool:
        return self.state is LinkState.READY

    def set_activity(self, activity: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Publish an activity document; returns the host's reply unchanged."""
        self._require_ready()
        command = ActivityCommand(args=ActivityArgs(pid=self.pid, activity=activity or {}))
        payload = command.model_dump(mode="json")
        validator.validate_msg(payload, "set_activity")
        self._send(Opcode.FRAME, payload)
        logger.debug("Sent %s (nonce=%s)", command.cmd, command.nonce)

        _, reply = self._read_frame()
        if reply.get("evt") == Event.ERROR:
            raise self._activity_error(reply)
        return reply

    def clear_activity(self) -> Dict[str, Any]:
        return self.set_activity({})

    def close(self) -> None:
        self._require_ready()
        try:
            self._channel.write_all(framing.encode_frame(Opcode.CLOSE, {}))
        finally:
            self.state = LinkState.CLOSED
            self._channel.close()
        logger.info("Discord IPC link closed")

    def _handshake(self) -> None:
        request = HandshakeRequest(client_id=self.client_id)
        self._send(Opcode.HANDSHAKE, request.model_dump())
        _, reply = self._read_frame()
        if reply.get("evt") == Event.READY:
            return

        if not validator.is_valid(reply, "handshake_error"):
            raise LinkError(ErrorCode.UNKNOWN, "unexpected handshake response")
        error = HandshakeError.model_validate(reply)
        if error.code == ErrorCode.INVALID_ARGUMENT:
            raise ClientIdInvalid()
        raise LinkError(error.code, error.message or "Unknown error")

    @staticmethod
    def _activity_error(reply: Dict[str, Any]) -> LinkError:
        if not validator.is_valid(reply, "error_reply"):
            return LinkError(ErrorCode.UNKNOWN, "unexpected error reply")
        data = ErrorData.model_validate(reply["data"])
        if data.code == ErrorCode.INVALID_ARGUMENT:
            return ActivityInvalid(strip_activity_error(data.message or ""))
        return LinkError(data.code, data.message or "Unknown error")

    def _send(self, opcode: Opcode, payload: Dict[str, Any]) -> None:
        frame = framing.encode_frame(opcode, payload)
        try:
            self._channel.write_all(frame)
        except ChannelBroken:
            self._abandon()
            raise

    def _read_frame(self) -> Tuple[Opcode, Dict[str, Any]]:
        """Read one frame; PINGs that arrive first are answered and skipped."""
        while True:
            try:
                opcode, length = framing.decode_header(self._channel.read_exact(HEADER_SIZE))
                payload = framing.decode_payload(self._channel.read_exact(length))
            except (ProtocolViolation, ChannelBroken):
                self._abandon()
                raise
            if opcode is Opcode.PING:
                logger.debug("Answering PING from presence host")
                self._send(Opcode.PONG, payload)
                continue
            return opcode, payload

    def _require_ready(self) -> None:
        if self.state is not LinkState.READY:
            raise IllegalState(f"Presence link is {self.state.value}")

    def _abandon(self) -> None:
        """Drop a corrupted or unusable connection without further I/O."""
        if self.state is LinkState.CLOSED:
            return
        self.state = LinkState.CLOSED
        try:
            self._channel.close()
        except OSError as exc:
            logger.debug("Ignoring error while releasing IPC channel: %s", exc)


__all__ = ["PresenceLink", "LinkState", "strip_activity_error"]
