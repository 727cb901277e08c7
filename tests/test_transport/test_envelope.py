"""Tests for the socket envelope codec."""

from __future__ import annotations

import json

import pytest

from reflect.exceptions import TransactionError
from reflect.models import Method
from reflect.transport.envelope import (
    decode_envelope,
    decode_reply,
    encode_envelope,
    encode_reply,
)


class TestRequestEnvelope:
    def test_compact_three_element_array(self) -> None:
        assert encode_envelope("echo", Method.POST, {"x": 1}) == b'["echo","POST",{"x":1}]'

    def test_absent_payload_is_null(self) -> None:
        assert encode_envelope("users", Method.GET, None) == b'["users","GET",null]'

    @pytest.mark.parametrize(
        "path, method, payload",
        [
            ("echo", Method.POST, {"x": 1}),
            ("users/42", Method.PATCH, {"name": "Zoë", "tags": ["a", "b"], "nested": {"n": None}}),
            ("", Method.OPTIONS, None),
        ],
    )
    def test_decode_inverts_encode(self, path: str, method: Method, payload: object) -> None:
        assert decode_envelope(encode_envelope(path, method, payload)) == (path, method, payload)

    def test_never_contains_raw_newline(self) -> None:
        data = encode_envelope("notes", Method.PUT, {"text": "line one\nline two"})
        assert b"\n" not in data

    def test_decode_rejects_wrong_shape(self) -> None:
        with pytest.raises(ValueError):
            decode_envelope(b'["echo","POST"]')
        with pytest.raises(ValueError):
            decode_envelope(b'["echo","FETCH",null]')


class TestReply:
    def test_status_and_string_body(self) -> None:
        result = decode_reply(b'[201,"{\\"id\\":1}"]')
        assert result.status == 201
        assert json.loads(result.body) == {"id": 1}
        assert result.headers == {}

    def test_structured_body_is_reencoded_as_text(self) -> None:
        result = decode_reply(b'[404,{"error":"not found"}]')
        assert result.status == 404
        assert json.loads(result.body) == {"error": "not found"}

    def test_encode_reply_round_trip(self) -> None:
        result = decode_reply(encode_reply(200, {"x": 1}))
        assert result.status == 200
        assert json.loads(result.body) == {"x": 1}

    @pytest.mark.parametrize(
        "data, body",
        [
            (b'{"hello":"world"}', '{"hello":"world"}'),
            (b"[1,2,3]", "[1,2,3]"),
            (b'"just text"', '"just text"'),
            (b'[true,"x"]', '[true,"x"]'),
            (b"[1, 2]", "[1, 2]"),
            (b'[600,"x"]', '[600,"x"]'),
        ],
    )
    def test_bare_values_are_a_200_body(self, data: bytes, body: str) -> None:
        result = decode_reply(data)
        assert result.status == 200
        assert result.body == body

    @pytest.mark.parametrize("data", [b"", b'[200,"trunc', b"\xff\xfe", b"not json"])
    def test_malformed_reply_raises(self, data: bytes) -> None:
        with pytest.raises(TransactionError, match="Malformed reply"):
            decode_reply(data)
