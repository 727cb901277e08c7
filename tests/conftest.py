"""Shared test fixtures for reflect.

Provides an isolated config environment, global output reset, and a
threaded UNIX socket peer that speaks the JSON envelope protocol. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import shutil
import socket
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from reflect.models import Framing, Method
from reflect.output import OutputFormat, OutputManager, reset_output, set_output
from reflect.transport.envelope import decode_envelope, encode_reply


Handler = Callable[[str, Method, Optional[Any]], bytes]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams the
    cached references go stale, so a fresh manager is created on next use.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME at tmp_path, forces XDG path resolution, and
    clears all REFLECT_* environment variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("reflect.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ["REFLECT_PROFILE", "REFLECT_ENDPOINT", "REFLECT_KEY"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# UNIX socket peer
# ---------------------------------------------------------------------------


def echo_handler(path: str, method: Method, payload: Optional[Any]) -> bytes:
    """Reply 200 with the decoded envelope echoed back as the body."""
    return encode_reply(200, {"path": path, "method": method.value, "payload": payload})


class EnvelopeServer:
    """Single-connection UNIX socket peer for tests.

    Accepts one client, then answers each envelope with ``handler`` until the
    client disconnects. Raw request bytes (without framing) are recorded in
    :attr:`requests`.
    """

    def __init__(self, path: str, handler: Handler, framing: Framing = Framing.NEWLINE) -> None:
        self.path = path
        self.handler = handler
        self.framing = framing
        self.requests: list[bytes] = []
        self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._sock.bind(path)
        self._sock.listen(1)
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return
        with conn:
            reader = conn.makefile("rb")
            while True:
                if self.framing == Framing.NEWLINE:
                    raw = reader.readline()
                    if not raw:
                        break
                    raw = raw.rstrip(b"\n")
                else:
                    raw = conn.recv(65536)
                    if not raw:
                        break
                self.requests.append(raw)
                path, method, payload = decode_envelope(raw)
                reply = self.handler(path, method, payload)
                if self.framing == Framing.NEWLINE:
                    reply += b"\n"
                try:
                    conn.sendall(reply)
                except OSError:
                    break

    def close(self) -> None:
        self._sock.close()
        self._thread.join(timeout=2)


@pytest.fixture
def socket_dir() -> Path:
    """A short temporary directory for socket files.

    AF_UNIX paths are limited to about 100 bytes, which pytest's tmp_path
    can exceed.
    """
    path = Path(tempfile.mkdtemp(prefix="reflect-"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def envelope_server(socket_dir: Path):
    """Factory starting :class:`EnvelopeServer` instances in ``socket_dir``."""
    servers: list[EnvelopeServer] = []

    def _start(
        handler: Optional[Handler] = None,
        framing: Framing = Framing.NEWLINE,
        name: str = "reflect.sock",
    ) -> EnvelopeServer:
        server = EnvelopeServer(str(socket_dir / name), handler or echo_handler, framing)
        servers.append(server)
        return server

    yield _start
    for server in servers:
        server.close()


@pytest.fixture
def socket_pair():
    """A connected (client_end, peer_end) pair of UNIX stream sockets."""
    client_end, peer_end = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    yield client_end, peer_end
    client_end.close()
    peer_end.close()
