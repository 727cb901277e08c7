"""reflect -- call Reflect endpoints over HTTP(S) or a UNIX socket.

A :class:`Client` is pointed at a base endpoint: an absolute URL selects
the HTTP transport, anything else is treated as the path of a UNIX-domain
socket speaking compact JSON envelopes (``[path, verb, payload]``). Both
transports return the same :class:`Response`.

Typical use::

    from reflect import Client

    client = Client("https://api.example.com", key="abc123")
    resp = client.call("/users").params({"active": "true"}).get()
    if resp.ok:
        print(resp.json())

Modules:
    client: :class:`Client`, the fluent request builder, :class:`Response`.
    transport: connection resolution, HTTP and UNIX socket transports.
    models: Pydantic models and enums shared across the package.
    config: XDG-aware profile storage and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr discipline and debug diagnostics.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from reflect.client import Client, RequestBuilder, Response  # noqa: E402
from reflect.models import ClientConfig, Connection, Framing, Method  # noqa: E402

__all__ = [
    "Client",
    "ClientConfig",
    "Connection",
    "Framing",
    "Method",
    "RequestBuilder",
    "Response",
    "__version__",
]
