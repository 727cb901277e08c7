"""Uniform response value and its bridge to the output system.

:class:`Response` wraps the status and raw body of one call, whichever
transport produced it. The body is decoded only when :meth:`Response.json`
is called, so a non-JSON body never fails the call itself.

:func:`format_api_response` renders a response for the CLI: the status
line goes to stderr, the body to stdout.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from reflect.exceptions import DecodeError
from reflect.output import get_output
from reflect.transport.base import TransportResult


@dataclass(frozen=True)
class Response:
    """Immutable result of one call.

    Attributes:
        status: Numeric status code.
        body: Raw response body.
        headers: Response headers (empty for socket replies).

    Example::

        resp = client.call("/users").get()
        if resp.ok:
            users = resp.json()
    """

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_result(cls, result: TransportResult) -> Response:
        return cls(status=result.status, body=result.body, headers=dict(result.headers))

    @property
    def ok(self) -> bool:
        """``True`` when the status is in the 2xx range."""
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            DecodeError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.body)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Response body is not valid JSON: {exc}") from exc

    def text(self) -> str:
        """Return the body unchanged."""
        return self.body


def extract_response_data(response: Response) -> Any:
    """Return the decoded JSON body, the raw text if it is not JSON, or ``None`` if empty."""
    if not response.body:
        return None
    try:
        return response.json()
    except DecodeError:
        return response.text()


def format_api_response(response: Response) -> None:
    """Print ``HTTP <status>`` to stderr and the body to stdout."""
    output = get_output()
    output.info(f"HTTP {response.status}")

    data = extract_response_data(response)
    if data is not None:
        output.format_response(data)
