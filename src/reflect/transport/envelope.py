"""JSON envelope codec for the UNIX socket protocol.

A request travels as one compact JSON array::

    ["users/42", "PATCH", {"name": "x"}]

holding the normalized path, the verb, and the payload (``null`` when
absent). The reply is either a two-element array ``[status, body]`` or, for
peers that skip the status, any other JSON value which is then treated as
the body of a ``200`` reply.

Encoding is compact (no whitespace) so that the envelope never contains a
raw newline, which lets :attr:`~reflect.models.Framing.NEWLINE` framing use
``\\n`` as the message delimiter.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from reflect.exceptions import TransactionError
from reflect.models import Method
from reflect.transport.base import TransportResult

_SEPARATORS = (",", ":")


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=_SEPARATORS, ensure_ascii=False)


def encode_envelope(path: str, method: Method, payload: Optional[Any]) -> bytes:
    """Encode one request envelope as UTF-8 JSON, without any framing."""
    return _dumps([path, method.value, payload]).encode("utf-8")


def decode_envelope(data: bytes) -> tuple[str, Method, Optional[Any]]:
    """Decode a request envelope, as a peer would.

    Raises:
        ValueError: If *data* is not a ``[path, verb, payload]`` array.
    """
    value = json.loads(data.decode("utf-8"))
    if not isinstance(value, list) or len(value) != 3:
        raise ValueError("envelope must be a three-element JSON array")
    path, verb, payload = value
    if not isinstance(path, str):
        raise ValueError("envelope path must be a string")
    return path, Method(verb), payload


def encode_reply(status: int, body: Any) -> bytes:
    """Encode a ``[status, body]`` reply. Non-string bodies are JSON-encoded first."""
    if not isinstance(body, str):
        body = _dumps(body)
    return _dumps([status, body]).encode("utf-8")


def decode_reply(data: bytes) -> TransportResult:
    """Turn the bytes of one reply into a :class:`TransportResult`.

    A two-element array whose first item is an integer in 100..599 is read
    as ``[status, body]``. Anything else, including ``[1, 2]``, is a bare
    payload returned with status 200 and the reply text as body.

    Raises:
        TransactionError: If the reply is not UTF-8 encoded JSON.
    """
    try:
        text = data.decode("utf-8").strip()
        value = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TransactionError(f"Malformed reply from socket peer: {exc}") from exc

    if (
        isinstance(value, list)
        and len(value) == 2
        and isinstance(value[0], int)
        and not isinstance(value[0], bool)
        and 100 <= value[0] <= 599
    ):
        status, body = value
        if not isinstance(body, str):
            body = _dumps(body)
        return TransportResult(status=status, body=body)

    return TransportResult(status=200, body=text)
