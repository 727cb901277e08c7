"""The reflect client and its fluent request builder.

:class:`Client` holds the configuration, picks a transport once at
construction, and exposes two equivalent call shapes:

- the fluent builder, ``client.call("/users").params({...}).get()``, and
- the single entry point, ``client.request("/users", "POST", {...})``.

Every verb method on :class:`RequestBuilder` performs exactly one network
transaction. Builders are immutable: :meth:`RequestBuilder.params` returns
a new builder, and each call starts from a fresh one, so query parameters,
headers and bodies never carry over between calls on one client.

Construction has a side effect for socket endpoints: the socket is
connected immediately and stays open until :meth:`Client.close`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from reflect.client.response import Response
from reflect.exceptions import ConfigError
from reflect.models import ClientConfig, Connection, Method
from reflect.output import debug
from reflect.request import Request, build_request
from reflect.transport import Transport, create_transport
from reflect.transport.http import HttpTransport


class Client:
    """Issue calls against an HTTP base URL or a UNIX socket.

    Args:
        endpoint: Base URL (``https://api.example.com``) or socket path
            (``/run/reflect.sock``).
        key: Optional bearer token.
        connection: Force a transport instead of resolving it from
            *endpoint*.
        https_peer_verify: Verify TLS peers (HTTP only). ``False`` also
            accepts self-signed certificates.
        transport: Pre-built transport, mainly for tests. When given, no
            connection is opened.
        **settings: Remaining :class:`~reflect.models.ClientConfig` fields
            (``timeout``, ``read_bytes``, ``framing``, ``default_method``).

    Raises:
        ConfigError: If the endpoint or settings are invalid.
        ConnectionError_: If a socket endpoint cannot be connected.

    Example::

        with Client("https://api.example.com", key="abc123") as client:
            resp = client.call("/users").params({"active": "true"}).get()
    """

    def __init__(
        self,
        endpoint: str,
        key: Optional[str] = None,
        connection: Optional[Connection] = None,
        https_peer_verify: bool = True,
        transport: Optional[Transport] = None,
        **settings: Any,
    ) -> None:
        try:
            self._config = ClientConfig(
                endpoint=endpoint,
                key=key,
                connection=connection,
                https_peer_verify=https_peer_verify,
                **settings,
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid client configuration: {exc}") from exc
        self._transport = transport if transport is not None else create_transport(self._config)

    @classmethod
    def from_config(cls, config: ClientConfig, transport: Optional[Transport] = None) -> Client:
        """Build a client from a :class:`~reflect.models.ClientConfig`."""
        return cls(transport=transport, **config.model_dump())

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the socket or HTTP client. Calls after this fail."""
        self._transport.close()

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def connection(self) -> Connection:
        return self._transport.connection

    @property
    def base_url(self) -> str:
        """Effective base: the normalized URL for HTTP, the socket path otherwise."""
        if isinstance(self._transport, HttpTransport):
            return self._transport.base_url
        return self._config.endpoint

    @property
    def transport(self) -> Transport:
        return self._transport

    # ------------------------------------------------------------------ #
    # Call surface
    # ------------------------------------------------------------------ #

    def call(self, endpoint: str) -> RequestBuilder:
        """Begin a new request against *endpoint*, relative to the base."""
        return RequestBuilder(client=self, path=endpoint)

    def request(
        self,
        endpoint: str,
        method: Method | str | None = None,
        payload: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Response:
        """Execute one call in a single step.

        Args:
            endpoint: Path relative to the base.
            method: Verb or verb string; defaults to
                ``config.default_method``.
            payload: JSON-serialisable body mapping.
            params: Query parameters (HTTP only).

        Raises:
            InvalidUsageError: If *method* is not an allowed verb.
        """
        verb = self._config.default_method if method is None else method
        return self.call(endpoint).params(params).send(verb, payload)

    def execute(self, request: Request) -> Response:
        """Send an already-built :class:`~reflect.request.Request`."""
        debug(self._transport.describe(request))
        result = self._transport.execute(request)
        debug(f"Status {result.status}, {len(result.body)} characters")
        return Response.from_result(result)


@dataclass(frozen=True)
class RequestBuilder:
    """Immutable description of a call under construction.

    Obtained from :meth:`Client.call`. Chaining methods return new builders;
    verb methods execute immediately.
    """

    client: Client
    path: str
    query: Mapping[str, Any] = field(default_factory=dict)
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def params(self, params: Optional[Mapping[str, Any]] = None) -> RequestBuilder:
        """Return a builder with *params* as the query string. Empty means none."""
        return replace(self, query=dict(params or {}))

    def headers(self, headers: Mapping[str, str]) -> RequestBuilder:
        """Return a builder with *headers* added to the generated ones."""
        return replace(self, extra_headers={**self.extra_headers, **headers})

    def build(self, method: Method | str, payload: Optional[Any] = None) -> Request:
        return build_request(
            self.path,
            method,
            payload=payload,
            params=self.query,
            key=self.client.config.key,
            headers=self.extra_headers,
        )

    def send(self, method: Method | str, payload: Optional[Any] = None) -> Response:
        return self.client.execute(self.build(method, payload))

    def get(self) -> Response:
        return self.send(Method.GET)

    def post(self, payload: Optional[Any] = None) -> Response:
        return self.send(Method.POST, payload)

    def put(self, payload: Optional[Any] = None) -> Response:
        return self.send(Method.PUT, payload)

    def patch(self, payload: Optional[Any] = None) -> Response:
        return self.send(Method.PATCH, payload)

    def delete(self, payload: Optional[Any] = None) -> Response:
        return self.send(Method.DELETE, payload)

    def options(self) -> Response:
        return self.send(Method.OPTIONS)
