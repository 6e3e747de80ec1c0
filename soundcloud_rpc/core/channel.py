from __future__ import annotations

import contextlib
import logging
import os
import socket
import sys
from typing import Any, Callable, List, Optional

from ipc.protocol.constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PIPE_CANDIDATES, PIPE_NAME_PREFIX
from ipc.protocol.errors import ChannelBroken, ChannelNotFound

logger = logging.getLogger(__name__)

# connector(endpoint, timeout) -> object exposing recv(n) / sendall(data) / shutdown(how) / close()
Connector = Callable[[str, float], Any]


class _PipeStream:
    """Socket-like adapter over a Windows named pipe opened as a file."""

    def __init__(self, fp) -> None:
        self._fp = fp

    def recv(self, size: int) -> bytes:
        return self._fp.read(size)

    def sendall(self, data: bytes) -> None:
        self._fp.write(data)
        self._fp.flush()

    def shutdown(self, how: int) -> None:
        # named pipes have no half-close; close() is the only release
        pass

    def close(self) -> None:
        self._fp.close()


def _open_unix_socket(endpoint: str, timeout: float) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(endpoint)
    except OSError:
        sock.close()
        raise
    # only connection establishment is time-bounded
    sock.settimeout(None)
    return sock


def _open_named_pipe(endpoint: str, timeout: float) -> _PipeStream:
    # Named pipes either open immediately or fail; there is no wait to bound.
    return _PipeStream(open(endpoint, "r+b", buffering=0))


def _runtime_dir() -> str:
    for key in ("XDG_RUNTIME_DIR", "TMPDIR", "TMP", "TEMP"):
        value = os.environ.get(key)
        if value:
            return value
    return "/tmp"


def candidate_endpoints(count: int = DEFAULT_PIPE_CANDIDATES) -> List[str]:
    """Ordered endpoint names discord-ipc-0 .. discord-ipc-(count-1)."""
    if sys.platform == "win32":
        return [rf"\\?\pipe\{PIPE_NAME_PREFIX}{i}" for i in range(count)]
    base = _runtime_dir()
    return [os.path.join(base, f"{PIPE_NAME_PREFIX}{i}") for i in range(count)]


def default_connector() -> Connector:
    return _open_named_pipe if sys.platform == "win32" else _open_unix_socket


class TransportChannel:
    """Blocking byte-stream connection to the local Discord IPC endpoint."""

    def __init__(
        self,
        candidates: int = DEFAULT_PIPE_CANDIDATES,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        connector: Optional[Connector] = None,
        endpoints: Optional[List[str]] = None,
    ) -> None:
        self.endpoints: List[str] = endpoints if endpoints is not None else candidate_endpoints(candidates)
        self.connect_timeout = connect_timeout
        self._connector: Connector = connector or default_connector()
        self._conn: Optional[Any] = None
        self.endpoint: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> str:
        """Probe candidates in order; return the first endpoint that accepts."""
        for endpoint in self.endpoints:
            try:
                self._conn = self._connector(endpoint, self.connect_timeout)
            except OSError as exc:
                logger.debug("IPC endpoint %s unavailable: %s", endpoint, exc)
                continue
            self.endpoint = endpoint
            logger.info("Connected to Discord IPC at %s", endpoint)
            return endpoint
        raise ChannelNotFound()

    def read_exact(self, size: int) -> bytes:
        conn = self._require_conn()
        buf = bytearray()
        while len(buf) < size:
            try:
                chunk = conn.recv(size - len(buf))
            except OSError as exc:
                raise ChannelBroken(f"Read failed: {exc}") from exc
            if not chunk:
                raise ChannelBroken(f"Channel closed after {len(buf)} of {size} bytes")
            buf.extend(chunk)
        return bytes(buf)

    def write_all(self, data: bytes) -> None:
        conn = self._require_conn()
        try:
            conn.sendall(data)
        except OSError as exc:
            raise ChannelBroken(f"Write failed: {exc}") from exc

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            # shutdown wakes any thread still blocked in recv on this connection
            with contextlib.suppress(OSError):
                conn.shutdown(socket.SHUT_RDWR)
            conn.close()
            logger.debug("IPC channel %s closed", self.endpoint)

    def _require_conn(self) -> Any:
        if self._conn is None:
            raise ChannelBroken("Channel is not connected")
        return self._conn


__all__ = ["TransportChannel", "Connector", "candidate_endpoints", "default_connector"]
