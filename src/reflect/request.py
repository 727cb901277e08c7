"""Per-call request values and the normalization rules that build them.

A :class:`Request` is constructed fresh for every call by
:func:`build_request` and never mutated afterwards, so nothing can leak
from one call to the next on the same :class:`~reflect.client.Client`.

Normalization rules:

* The HTTP base endpoint always ends in exactly one ``/``
  (:func:`normalize_base_url`).
* A call path has exactly one leading ``/`` stripped
  (:func:`normalize_path`) so that ``base + path`` never doubles the
  separator.
* ``Content-Type: application/json`` is set only when there is a body, and
  ``Authorization: Bearer <key>`` only when a key is configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from reflect.models import Method


def normalize_base_url(endpoint: str) -> str:
    """Return *endpoint* with a trailing ``/`` appended if it is absent."""
    return endpoint if endpoint.endswith("/") else endpoint + "/"


def normalize_path(path: str) -> str:
    """Strip a single leading ``/`` from *path*.

    Only one slash is removed: ``"//x"`` becomes ``"/x"``.
    """
    return path[1:] if path.startswith("/") else path


def encode_query(params: Optional[Mapping[str, Any]]) -> str:
    """URL-encode *params*, returning ``""`` (no ``?`` at all) when empty."""
    if not params:
        return ""
    return "?" + urlencode(params, doseq=True)


@dataclass(frozen=True)
class Request:
    """One immutable request, shared by both transports.

    Attributes:
        method: The verb to execute.
        path: Normalized path, relative to the base endpoint.
        params: Query parameters (HTTP only).
        headers: Request headers (HTTP only).
        payload: The body mapping as given by the caller, or ``None``.
    """

    method: Method
    path: str
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: Optional[Any] = None

    @property
    def has_body(self) -> bool:
        # Empty mappings are sent as no body at all.
        return bool(self.payload)

    @property
    def target(self) -> str:
        """Relative path plus query string, e.g. ``users?active=true``."""
        return self.path + encode_query(self.params)


def build_headers(
    key: Optional[str],
    has_body: bool,
    extra: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Build the header block for one request.

    Caller-supplied *extra* headers are applied last and may override the
    generated ones.
    """
    headers: dict[str, str] = {}
    if has_body:
        headers["Content-Type"] = "application/json"
    if key:
        headers["Authorization"] = f"Bearer {key}"
    headers.update(extra or {})
    return headers


def build_request(
    path: str,
    method: Method | str,
    payload: Optional[Any] = None,
    params: Optional[Mapping[str, Any]] = None,
    key: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Request:
    """Normalize call inputs into a :class:`Request`.

    Args:
        path: Call path relative to the base endpoint; one leading ``/`` is
            stripped.
        method: A :class:`~reflect.models.Method` or verb string.
        payload: JSON-serialisable body mapping, or ``None``.
        params: Query parameters; empty or ``None`` means no query string.
        key: Bearer token, or ``None`` for unauthenticated calls.
        headers: Extra headers merged over the generated ones.

    Raises:
        InvalidUsageError: If *method* is not an allowed verb.
    """
    return Request(
        method=Method.parse(method),
        path=normalize_path(path),
        params=dict(params or {}),
        headers=build_headers(key, bool(payload), headers),
        payload=payload,
    )
