"""Call command -- issue one request from the command line.

Resolves the target from ``--endpoint``, ``REFLECT_ENDPOINT`` or the active
profile, sends one request, prints ``HTTP <status>`` to stderr and the body
to stdout.

Example::

    reflect call /users -P active=true --endpoint https://api.example.com
    reflect call /echo -X POST -d '{"x": 1}' --endpoint /run/reflect.sock
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from reflect.exceptions import InvalidUsageError, ReflectError
from reflect.exit_codes import EXIT_GENERIC_FAILURE
from reflect.output import error, warning


def _parse_body(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--data is not valid JSON: {exc}") from exc


def _parse_params(pairs: Optional[list[str]]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise InvalidUsageError(f"Query parameter must be key=value, got: {pair!r}")
        params[name] = value
    return params


def call_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path relative to the base, e.g. /users."),
    method: str = typer.Option("GET", "--method", "-X", help="Request verb."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as key=value (repeatable)."
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Base URL or socket path."
    ),
    key: Optional[str] = typer.Option(None, "--key", help="Bearer token."),
    insecure: bool = typer.Option(
        False, "--insecure", "-k", help="Skip TLS peer verification."
    ),
) -> None:
    """Send one request and print the response.

    Exits 0 for 2xx responses and 1 for any other status. Transport
    failures exit with the code of the corresponding error.
    """
    from reflect.client import Client
    from reflect.client.response import format_api_response
    from reflect.config import resolve_config
    from reflect.models import Method

    profile = ctx.obj.get("profile") if ctx.obj else None
    if insecure:
        warning("TLS peer verification is disabled")

    try:
        config = resolve_config(
            cli_profile=profile,
            cli_endpoint=endpoint,
            cli_key=key,
            cli_insecure=insecure,
        )
        verb = Method.parse(method)
        payload = _parse_body(data)
        params = _parse_params(param)

        with Client.from_config(config) as client:
            response = client.call(path).params(params).send(verb, payload)
    except ReflectError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_api_response(response)
    if not response.ok:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
