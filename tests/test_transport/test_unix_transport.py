"""Tests for the UNIX socket transport.

Most tests use a :func:`socket.socketpair` and queue the peer's reply
before the call: the transport writes, then reads what is already waiting.
"""

from __future__ import annotations

import json
import socket
import threading

import pytest

from reflect.exceptions import TransactionError
from reflect.models import Framing, Method
from reflect.request import build_request
from reflect.transport.envelope import encode_reply
from reflect.transport.unix import UnixSocketTransport


def _transport(sock, framing: Framing = Framing.NEWLINE, read_bytes: int = 2048):
    return UnixSocketTransport("/tmp/reflect.sock", framing=framing, read_bytes=read_bytes, sock=sock)


class TestNewlineFraming:
    def test_sends_delimited_envelope(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.sendall(encode_reply(200, {"x": 1}) + b"\n")

        transport = _transport(client_end)
        result = transport.execute(build_request("/echo", Method.POST, payload={"x": 1}))

        assert peer.recv(4096) == b'["echo","POST",{"x":1}]\n'
        assert result.status == 200
        assert json.loads(result.body) == {"x": 1}

    def test_reply_larger_than_read_size_is_reassembled(self, socket_pair) -> None:
        client_end, peer = socket_pair
        big = {"data": "x" * 10_000}
        reply = encode_reply(200, big) + b"\n"
        # Deliver in several small writes.
        for i in range(0, len(reply), 700):
            peer.sendall(reply[i : i + 700])

        transport = _transport(client_end, read_bytes=512)
        result = transport.execute(build_request("blob", Method.GET))

        assert result.status == 200
        assert json.loads(result.body) == big

    def test_pipelined_bytes_kept_for_next_call(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.sendall(encode_reply(200, "first") + b"\n" + encode_reply(201, "second") + b"\n")

        transport = _transport(client_end)
        first = transport.execute(build_request("a", Method.GET))
        second = transport.execute(build_request("b", Method.GET))

        assert (first.status, first.body) == (200, "first")
        assert (second.status, second.body) == (201, "second")

    def test_peer_closing_mid_reply_fails(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.sendall(b'[200,"partial')
        peer.shutdown(socket.SHUT_WR)

        transport = _transport(client_end)
        with pytest.raises(TransactionError, match="closed the connection"):
            transport.execute(build_request("a", Method.GET))

    def test_params_are_not_sent(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.sendall(encode_reply(200, "ok") + b"\n")

        transport = _transport(client_end)
        transport.execute(build_request("search", Method.GET, params={"q": "x"}))

        assert peer.recv(4096) == b'["search","GET",null]\n'


class TestRawFraming:
    def test_sends_undelimited_envelope(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.sendall(encode_reply(200, {"ok": True}))

        transport = _transport(client_end, framing=Framing.RAW)
        result = transport.execute(build_request("/echo", Method.PUT, payload={"a": [1, 2]}))

        assert peer.recv(4096) == b'["echo","PUT",{"a":[1,2]}]'
        assert result.status == 200
        assert json.loads(result.body) == {"ok": True}

    def test_reply_at_least_buffer_size_is_truncated(self, socket_pair) -> None:
        """A single bounded read cannot receive a reply of read_bytes or more.

        This is the documented limitation of raw framing: the reply is cut
        at the buffer size and the call fails instead of returning a
        silently shortened body.
        """
        client_end, peer = socket_pair
        peer.sendall(encode_reply(200, "y" * 5000))

        transport = _transport(client_end, framing=Framing.RAW, read_bytes=2048)
        with pytest.raises(TransactionError, match="truncated"):
            transport.execute(build_request("big", Method.GET))

    def test_reply_below_buffer_size_fits(self, socket_pair) -> None:
        client_end, peer = socket_pair
        reply = encode_reply(200, "y" * 100)
        assert len(reply) < 2048
        peer.sendall(reply)

        transport = _transport(client_end, framing=Framing.RAW)
        assert transport.execute(build_request("small", Method.GET)).body == "y" * 100

    def test_empty_read_fails(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.shutdown(socket.SHUT_WR)

        transport = _transport(client_end, framing=Framing.RAW)
        with pytest.raises(TransactionError, match="Failed to complete transaction"):
            transport.execute(build_request("a", Method.GET))


class TestLifecycle:
    def test_calls_after_close_fail(self, socket_pair) -> None:
        client_end, _ = socket_pair
        transport = _transport(client_end)
        transport.close()
        transport.close()  # idempotent

        with pytest.raises(TransactionError, match="closed"):
            transport.execute(build_request("a", Method.GET))

    def test_write_failure_is_transaction_error(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.close()
        transport = _transport(client_end)

        with pytest.raises(TransactionError):
            transport.execute(build_request("a", Method.POST, payload={"k": "v" * 100_000}))

    def test_describe(self, socket_pair) -> None:
        client_end, _ = socket_pair
        transport = _transport(client_end)
        assert transport.describe(build_request("/x", Method.GET)) == "GET x via /tmp/reflect.sock"


class TestServerRoundTrip:
    def test_connects_to_listening_socket(self, envelope_server) -> None:
        server = envelope_server()
        transport = UnixSocketTransport(server.path)
        try:
            result = transport.execute(build_request("/echo", Method.POST, payload={"x": 1}))
        finally:
            transport.close()

        assert result.status == 200
        assert json.loads(result.body) == {"path": "echo", "method": "POST", "payload": {"x": 1}}
        assert server.requests == [b'["echo","POST",{"x":1}]']

    def test_concurrent_callers_do_not_interleave(self, envelope_server) -> None:
        server = envelope_server()
        transport = UnixSocketTransport(server.path)
        results: dict[int, dict] = {}

        def worker(n: int) -> None:
            for i in range(10):
                result = transport.execute(build_request(f"w{n}/{i}", Method.POST, payload={"n": n, "i": i}))
                results[n * 100 + i] = json.loads(result.body)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        try:
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=10)
        finally:
            transport.close()

        assert len(results) == 40
        for key, body in results.items():
            n, i = divmod(key, 100)
            assert body == {"path": f"w{n}/{i}", "method": "POST", "payload": {"n": n, "i": i}}


class TestFailedTransaction:
    def test_timeout_discards_connection(self, socket_pair) -> None:
        client_end, peer = socket_pair
        client_end.settimeout(0.2)
        transport = _transport(client_end)

        with pytest.raises(TransactionError, match="read from"):
            transport.execute(build_request("slow", Method.GET))

        # The reply for the timed-out call arrives late; it must not be
        # handed to the next caller.
        try:
            peer.sendall(encode_reply(200, {"answer_for": "slow"}) + b"\n")
        except OSError:
            pass
        with pytest.raises(TransactionError, match="unusable after a failed transaction"):
            transport.execute(build_request("fast", Method.GET))

        assert peer.recv(4096) == b'["slow","GET",null]\n'
        assert peer.recv(4096) == b""

    def test_truncated_raw_reply_discards_connection(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.sendall(encode_reply(200, "y" * 5000))
        transport = _transport(client_end, framing=Framing.RAW)

        with pytest.raises(TransactionError, match="truncated"):
            transport.execute(build_request("big", Method.GET))
        with pytest.raises(TransactionError, match="unusable"):
            transport.execute(build_request("next", Method.GET))

    def test_partial_newline_reply_is_not_reused(self, socket_pair) -> None:
        client_end, peer = socket_pair
        client_end.settimeout(0.2)
        peer.sendall(b'[200,"half')
        transport = _transport(client_end)

        with pytest.raises(TransactionError):
            transport.execute(build_request("a", Method.GET))
        with pytest.raises(TransactionError, match="unusable"):
            transport.execute(build_request("b", Method.GET))

    def test_close_after_failure_is_safe(self, socket_pair) -> None:
        client_end, peer = socket_pair
        peer.shutdown(socket.SHUT_WR)
        transport = _transport(client_end)

        with pytest.raises(TransactionError):
            transport.execute(build_request("a", Method.GET))
        transport.close()
        transport.close()
