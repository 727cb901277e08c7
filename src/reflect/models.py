"""Canonical Pydantic models and enums shared across all reflect modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Wire vocabulary** -- enums that appear on the wire or select behaviour:
    :class:`Method`, :class:`Connection`, and :class:`Framing`.

**Configuration models** -- passed to :class:`~reflect.client.Client` or
serialised as JSON profiles in the user's config directory:
    :class:`ConnectionSettings`, :class:`ClientConfig`, and :class:`Profile`.

Defaults that older clients kept as class constants (the default verb and
the socket read size) live here as documented field defaults instead.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from reflect.exceptions import InvalidUsageError


DEFAULT_READ_BYTES = 2048
"""Chunk size for socket reads; the whole reply size in :attr:`Framing.RAW` mode."""


class Method(str, enum.Enum):
    """Allowed request verbs.

    The value is the upper-case verb as it appears on the wire, both in the
    HTTP request line and in the second slot of the socket envelope.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, value: Method | str) -> Method:
        """Map *value* to a :class:`Method`.

        Strings are matched case-insensitively. Unknown verbs are rejected
        rather than silently replaced with a default.

        Args:
            value: A :class:`Method` member or a verb string such as ``"post"``.

        Returns:
            The matching :class:`Method` member.

        Raises:
            InvalidUsageError: If *value* does not name one of the allowed verbs.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        allowed = ", ".join(m.value for m in cls)
        raise InvalidUsageError(f"Invalid method {value!r}; expected one of: {allowed}")


class Connection(str, enum.Enum):
    """Transport used to reach the base endpoint."""

    HTTP = "http"
    AF_UNIX = "af_unix"


class Framing(str, enum.Enum):
    """Message framing on the UNIX socket transport.

    ``NEWLINE`` terminates every envelope and every reply with ``\\n`` and
    reads until the delimiter arrives, so replies of any size are received
    whole. ``RAW`` reproduces the legacy wire behaviour: one undelimited
    write and one bounded read of ``read_bytes``. Replies at least that
    large are truncated in ``RAW`` mode.

    Peers that do not end their replies with ``\\n`` need ``RAW``: under
    ``NEWLINE`` the client keeps waiting for the delimiter, and with
    ``timeout=None`` that wait never ends.
    """

    NEWLINE = "newline"
    RAW = "raw"


class ConnectionSettings(BaseModel):
    """Non-secret settings shared by :class:`ClientConfig` and :class:`Profile`.

    Unknown fields are rejected, so a misspelled setting fails instead of
    silently keeping its default.
    """

    model_config = ConfigDict(extra="forbid")

    endpoint: str = Field(description="Base URL or filesystem path to a UNIX socket")
    connection: Optional[Connection] = Field(
        default=None,
        description="Force a transport instead of resolving it from the endpoint",
    )
    https_peer_verify: bool = Field(
        default=True,
        description="Verify TLS peers; disabling also accepts self-signed certificates",
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="I/O timeout in seconds (None keeps the transport default)",
    )
    read_bytes: int = Field(
        default=DEFAULT_READ_BYTES,
        gt=0,
        description="Socket read chunk size in bytes",
    )
    framing: Framing = Field(
        default=Framing.NEWLINE, description="Socket message framing"
    )
    default_method: Method = Field(
        default=Method.GET,
        description="Verb used by Client.request() when none is given",
    )


class ClientConfig(ConnectionSettings):
    """Everything a :class:`~reflect.client.Client` needs at construction.

    Example::

        ClientConfig(endpoint="https://api.example.com", key="abc123")
        ClientConfig(endpoint="/run/reflect.sock", framing=Framing.RAW)
    """

    key: Optional[str] = Field(
        default=None, description="Bearer token sent as 'Authorization: Bearer <key>'"
    )


class Profile(ConnectionSettings):
    """A named, persisted connection target.

    Profiles never store the bearer key itself. ``key_source`` names where
    to read it from (``env:VAR`` or ``file:/path``) and is resolved by
    :func:`~reflect.config.resolve_config` each time the profile is used.
    """

    name: str = Field(description="Profile name, also used as the file stem")
    key_source: Optional[str] = Field(
        default=None, description="Credential source: env:VAR or file:/path"
    )

    def to_client_config(self, key: Optional[str] = None) -> ClientConfig:
        """Build a :class:`ClientConfig` from this profile and an already-resolved *key*."""
        data = self.model_dump(exclude={"name", "key_source"})
        return ClientConfig(**data, key=key)
