"""Transport layer for reflect.

Provides the connection resolver and the two transports that carry a
:class:`~reflect.request.Request` to the remote peer:

- :class:`HttpTransport` -- HTTP(S) via :mod:`httpx`.
- :class:`UnixSocketTransport` -- JSON envelopes over a UNIX-domain
  stream socket.

:func:`create_transport` picks one from a
:class:`~reflect.models.ClientConfig`, connecting the socket immediately
when the socket variant is selected.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from reflect.exceptions import ConfigError
from reflect.models import ClientConfig, Connection
from reflect.output import debug
from reflect.transport.base import Transport, TransportResult
from reflect.transport.http import HttpTransport
from reflect.transport.unix import UnixSocketTransport

_HTTP_SCHEMES = ("http", "https")


def is_absolute_url(endpoint: str) -> bool:
    """Return True if *endpoint* has both a scheme and an authority."""
    try:
        parts = urlsplit(endpoint)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def resolve_connection(endpoint: str) -> Connection:
    """Classify *endpoint* as an HTTP target or a UNIX socket path.

    A syntactically valid absolute URL is :attr:`Connection.HTTP`; anything
    else, including a URL missing its scheme, is treated as a socket path.
    Reachability is not checked.

    Raises:
        ConfigError: If *endpoint* is empty.
    """
    if not endpoint or not endpoint.strip():
        raise ConfigError("Endpoint must be a URL or a socket path, got an empty string")
    return Connection.HTTP if is_absolute_url(endpoint) else Connection.AF_UNIX


def create_transport(config: ClientConfig) -> Transport:
    """Build the transport for *config*.

    An explicit ``config.connection`` wins over resolution. The socket
    variant connects immediately.

    Raises:
        ConfigError: If the endpoint is empty, or an HTTP connection is
            requested for something that is not an http(s) URL.
        ConnectionError_: If the socket cannot be connected.
    """
    connection = config.connection or resolve_connection(config.endpoint)
    debug(f"Resolved {config.endpoint!r} to {connection.value} connection")

    if connection == Connection.AF_UNIX:
        if not config.endpoint:
            raise ConfigError("Socket path must not be empty")
        return UnixSocketTransport(
            config.endpoint,
            framing=config.framing,
            read_bytes=config.read_bytes,
            timeout=config.timeout,
        )

    if not is_absolute_url(config.endpoint):
        raise ConfigError(f"HTTP endpoint must be an absolute URL: {config.endpoint!r}")
    scheme = urlsplit(config.endpoint).scheme.lower()
    if scheme not in _HTTP_SCHEMES:
        raise ConfigError(f"Unsupported URL scheme {scheme!r}; expected http or https")
    return HttpTransport(
        config.endpoint,
        verify=config.https_peer_verify,
        timeout=config.timeout,
    )


__all__ = [
    "HttpTransport",
    "Transport",
    "TransportResult",
    "UnixSocketTransport",
    "create_transport",
    "is_absolute_url",
    "resolve_connection",
]
