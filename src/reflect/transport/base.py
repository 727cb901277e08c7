"""Abstract transport interface and its structured result.

This module defines the two foundational types of the transport layer:

- :class:`TransportResult` -- the status, raw body and headers produced by
  one request/response cycle. Every transport returns one explicitly;
  nothing is read back from implicit post-call state.
- :class:`Transport` -- the abstract base class that the HTTP and UNIX
  socket transports extend.

See Also:
    :func:`reflect.transport.create_transport` for transport selection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reflect.models import Connection

if TYPE_CHECKING:
    from reflect.request import Request


@dataclass(frozen=True)
class TransportResult:
    """Outcome of one transaction.

    Attributes:
        status: Numeric status code (HTTP status, or the first slot of a
            socket reply).
        body: Raw, undecoded response body.
        headers: Response headers. Always empty for the socket transport.
    """

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)


class Transport(ABC):
    """Abstract base class for transports.

    A transport owns whatever resource it needs (an :class:`httpx.Client`
    or a connected socket) for its whole lifetime. :meth:`execute` performs
    exactly one network transaction and never retries or reconnects.
    """

    connection: Connection

    @abstractmethod
    def execute(self, request: Request) -> TransportResult:
        """Send *request* and return the peer's reply.

        Non-success statuses are returned, not raised. Only transport-level
        failures raise.
        """

    @abstractmethod
    def describe(self, request: Request) -> str:
        """Return a one-line description of where *request* goes, for diagnostics."""

    def close(self) -> None:
        """Release the transport's resources. Safe to call more than once."""
