"""UNIX-domain stream socket transport speaking the JSON envelope protocol.

The socket is connected once, when the transport is built, and stays open
until :meth:`UnixSocketTransport.close`. Each call writes one envelope and
reads one reply; the write and the read happen under a lock so concurrent
callers on one client never interleave their halves of a transaction.

Two framings are supported (see :class:`~reflect.models.Framing`):

* ``NEWLINE`` -- envelope and reply each end with ``\\n``. Replies are read
  in ``read_bytes`` chunks until the delimiter arrives, so their size is
  unbounded. Bytes that follow the delimiter are kept for the next read.
* ``RAW`` -- one undelimited write and a single ``recv(read_bytes)``. This
  matches peers that expect one JSON value per write with no framing, at
  the cost of truncating any reply of ``read_bytes`` or more. A truncated
  reply fails to decode and raises
  :class:`~reflect.exceptions.TransactionError`.

Failures are never retried and the socket is never reopened. Any failed
transaction (write error, read error or timeout, malformed or truncated
reply) closes the socket, since a late reply could otherwise be returned
to the next call; build a new client to reconnect.
"""

from __future__ import annotations

import socket
import threading
from typing import TYPE_CHECKING, Optional

from reflect.exceptions import ConnectionError_, TransactionError
from reflect.models import DEFAULT_READ_BYTES, Connection, Framing
from reflect.output import debug
from reflect.transport.base import Transport, TransportResult
from reflect.transport.envelope import decode_reply, encode_envelope

if TYPE_CHECKING:
    from reflect.request import Request


DELIMITER = b"\n"


def connect_unix_socket(path: str, timeout: Optional[float] = None) -> socket.socket:
    """Open a connected ``AF_UNIX`` / ``SOCK_STREAM`` socket to *path*.

    Raises:
        ConnectionError_: If the socket cannot be created or connected.
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    if timeout is not None:
        sock.settimeout(timeout)
    try:
        sock.connect(path)
    except OSError as exc:
        sock.close()
        raise ConnectionError_(f"Unable to connect to socket {path}: {exc}") from exc
    return sock


class UnixSocketTransport(Transport):
    """Execute requests over a persistent UNIX socket.

    Args:
        path: Filesystem path of the socket.
        framing: Message framing, see module docs.
        read_bytes: Size of each ``recv`` call.
        timeout: Socket timeout in seconds, or ``None`` to block forever.
        sock: An already-connected socket (e.g. one end of
            :func:`socket.socketpair`). When given, nothing is connected.
    """

    connection = Connection.AF_UNIX

    def __init__(
        self,
        path: str,
        framing: Framing = Framing.NEWLINE,
        read_bytes: int = DEFAULT_READ_BYTES,
        timeout: Optional[float] = None,
        sock: Optional[socket.socket] = None,
    ) -> None:
        self._path = path
        self._framing = framing
        self._read_bytes = read_bytes
        self._lock = threading.Lock()
        self._buffer = bytearray()
        self._sock = sock if sock is not None else connect_unix_socket(path, timeout)
        self._closed = False
        self._failed = False
        debug(f"Connected to {path} ({framing.value} framing)")

    @property
    def path(self) -> str:
        return self._path

    def describe(self, request: Request) -> str:
        return f"{request.method.value} {request.path} via {self._path}"

    def execute(self, request: Request) -> TransportResult:
        if request.params:
            debug("Query parameters are not part of the socket envelope; ignoring them")

        frame = encode_envelope(request.path, request.method, request.payload)
        if self._framing == Framing.NEWLINE:
            frame += DELIMITER

        with self._lock:
            self._ensure_usable()
            try:
                self._write(frame)
                return self._decode(self._read())
            except TransactionError:
                self._discard()
                raise

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._sock.close()
                self._closed = True

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_usable(self) -> None:
        if self._failed:
            raise TransactionError(
                f"Socket {self._path} is unusable after a failed transaction; build a new client"
            )
        if self._closed:
            raise TransactionError(f"Socket {self._path} is closed")

    def _discard(self) -> None:
        """Drop the connection after a failed transaction.

        A late or partial reply may still be in flight, so the stream can no
        longer be matched to requests.
        """
        self._failed = True
        self._buffer.clear()
        if not self._closed:
            self._sock.close()
            self._closed = True
        debug(f"Discarded connection to {self._path} after a failed transaction")

    def _decode(self, reply: bytes) -> TransportResult:
        try:
            return decode_reply(reply)
        except TransactionError as exc:
            if self._framing == Framing.RAW and len(reply) >= self._read_bytes:
                raise TransactionError(
                    f"Reply filled the {self._read_bytes}-byte read buffer and was "
                    "truncated; use newline framing for larger replies"
                ) from exc
            raise

    def _write(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except OSError as exc:
            raise TransactionError(
                f"Failed to complete transaction: write to {self._path} failed: {exc}"
            ) from exc

    def _recv(self) -> bytes:
        try:
            chunk = self._sock.recv(self._read_bytes)
        except OSError as exc:
            raise TransactionError(
                f"Failed to complete transaction: read from {self._path} failed: {exc}"
            ) from exc
        if not chunk:
            raise TransactionError(
                f"Failed to complete transaction: {self._path} closed the connection"
            )
        return chunk

    def _read(self) -> bytes:
        if self._framing == Framing.RAW:
            return self._recv()

        while DELIMITER not in self._buffer:
            self._buffer += self._recv()
        line, _, rest = bytes(self._buffer).partition(DELIMITER)
        self._buffer = bytearray(rest)
        return line
