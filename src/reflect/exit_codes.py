"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~reflect.exceptions.ReflectError` subclass.
Shell scripts wrapping ``reflect call`` can inspect the exit code to tell a
rejected request apart from a dead socket without parsing stderr.

Example::

    $ reflect call /users --endpoint /run/reflect.sock
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the socket could not be opened
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the remote returned a non-2xx status."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. an unknown verb)."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (socket unreachable, DNS failure, TLS failure)."""

EXIT_TRANSACTION_ERROR = 7
"""A socket write or read failed mid-call, or the reply was malformed."""

EXIT_DECODE_ERROR = 8
"""A response body could not be decoded as JSON."""
