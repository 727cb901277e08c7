"""HTTP(S) transport backed by :class:`httpx.Client`.

One :class:`httpx.Client` is created per :class:`HttpTransport` and reused
for every call. The transport:

- joins the normalized base URL, the request path and the query string,
- JSON-encodes the payload only when it is non-empty,
- returns 4xx and 5xx replies as ordinary results (the status never
  raises), and
- maps network-level failures (DNS, connection refused, TLS handshake,
  timeouts) to :class:`~reflect.exceptions.TransportError` without
  retrying.

TLS peer verification follows ``https_peer_verify``. Disabling it also
accepts self-signed certificates, since httpx turns off certificate and
hostname checks together.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Optional

import httpx

from reflect.exceptions import TransportError
from reflect.models import Connection
from reflect.output import debug
from reflect.request import normalize_base_url
from reflect.transport.base import Transport, TransportResult

if TYPE_CHECKING:
    from reflect.request import Request


class HttpTransport(Transport):
    """Execute requests over HTTP(S).

    Args:
        base_url: Absolute base URL; a trailing ``/`` is added if missing.
        verify: Verify TLS peers. ``False`` also accepts self-signed
            certificates.
        timeout: Timeout in seconds, or ``None`` for the httpx default.
        client: Pre-built :class:`httpx.Client`, mainly for tests using
            :class:`httpx.MockTransport`. When given, *verify* and *timeout*
            are ignored.
    """

    connection = Connection.HTTP

    def __init__(
        self,
        base_url: str,
        verify: bool = True,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = normalize_base_url(base_url)
        if client is None:
            kwargs: dict = {"verify": verify, "follow_redirects": False}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = httpx.Client(**kwargs)
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, request: Request) -> str:
        """Return the absolute URL for *request*, query string included."""
        return self._base_url + request.target

    def describe(self, request: Request) -> str:
        return f"{request.method.value} {self.url_for(request)}"

    def execute(self, request: Request) -> TransportResult:
        content: Optional[bytes] = None
        if request.has_body:
            content = json.dumps(request.payload, separators=(",", ":")).encode("utf-8")

        try:
            response = self._client.request(
                request.method.value,
                self.url_for(request),
                headers=dict(request.headers),
                content=content,
            )
        except httpx.TransportError as exc:
            raise TransportError(
                f"HTTP request to {self.url_for(request)} failed: {exc}"
            ) from exc

        debug(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())
        return TransportResult(
            status=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._client.close()
