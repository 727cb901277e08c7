"""Exception hierarchy for reflect.

All exceptions inherit from :class:`ReflectError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`reflect.exit_codes`.
The CLI entry point in :func:`reflect.app.main` catches ``ReflectError``
and exits with the appropriate code.

Non-2xx HTTP statuses are *not* errors: they produce a normal
:class:`~reflect.client.response.Response` with ``ok`` set to ``False``.
Only configuration, connection and transaction failures raise.

Subclass hierarchy::

    ReflectError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- ConnectionError_    (exit 6)
    +-- TransportError      (exit 6)
    +-- TransactionError    (exit 7)
    +-- DecodeError         (exit 8)
"""

from reflect.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TRANSACTION_ERROR,
)


class ReflectError(Exception):
    """Base exception for all reflect errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`reflect.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ReflectError):
    """Raised for invalid arguments such as an unknown HTTP verb."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ReflectError):
    """Raised for configuration problems (bad endpoint form, missing profiles, bad key sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class ConnectionError_(ReflectError):
    """Raised when the UNIX socket cannot be connected at client construction.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class TransportError(ReflectError):
    """Raised on HTTP network-level failures (DNS, connection refused, TLS handshake, timeout)."""

    exit_code = EXIT_CONNECTION_ERROR


class TransactionError(ReflectError):
    """Raised when a socket write or read fails mid-call, or the reply cannot be decoded."""

    exit_code = EXIT_TRANSACTION_ERROR


class DecodeError(ReflectError):
    """Raised by :meth:`Response.json` when the body is not valid JSON."""

    exit_code = EXIT_DECODE_ERROR
