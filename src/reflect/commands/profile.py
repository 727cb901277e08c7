"""Profile commands -- save, inspect, list and delete connection profiles.

Provides the ``reflect profile`` sub-command group. A profile stores a base
endpoint and connection settings under a name, plus where to read the
bearer key from, so ``reflect --profile NAME call ...`` needs no further
flags.

Example::

    reflect profile save prod --endpoint https://api.example.com --key-source env:API_KEY
    reflect profile save local --endpoint /run/reflect.sock --framing raw
    reflect profile list
"""

from __future__ import annotations

from typing import Optional

import typer

from reflect.exceptions import ReflectError
from reflect.exit_codes import EXIT_INVALID_USAGE
from reflect.models import DEFAULT_READ_BYTES
from reflect.output import error, format_response, info, print_table, success, suggest


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("save")
def profile_save(
    name: str = typer.Argument(help="Profile name."),
    endpoint: str = typer.Option(..., "--endpoint", "-e", help="Base URL or socket path."),
    key_source: Optional[str] = typer.Option(
        None, "--key-source", help="Where to read the bearer key: env:VAR or file:/path."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", "-k", help="Skip TLS peer verification."
    ),
    framing: str = typer.Option(
        "newline",
        "--framing",
        help=(
            "Socket framing: newline or raw. Use raw for peers that do not end "
            "replies with a newline; newline framing hangs waiting for one "
            "unless --timeout is set."
        ),
    ),
    read_bytes: int = typer.Option(DEFAULT_READ_BYTES, "--read-bytes", help="Socket read chunk size."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="I/O timeout in seconds."),
) -> None:
    """Create or overwrite a profile.

    The endpoint's transport is not checked here; it is resolved each time
    the profile is used.
    """
    from reflect.config import save_profile
    from reflect.models import Profile

    try:
        profile = Profile(
            name=name,
            endpoint=endpoint,
            key_source=key_source,
            https_peer_verify=not insecure,
            framing=framing,
            read_bytes=read_bytes,
            timeout=timeout,
        )
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    try:
        save_profile(profile)
    except ReflectError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f"Saved profile '{name}'")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Print a profile as JSON."""
    from reflect.config import load_profile

    try:
        profile = load_profile(name)
    except ReflectError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    format_response(profile.model_dump(mode="json"))


@profile_app.command("list")
def profile_list() -> None:
    """List saved profiles with their endpoints."""
    from reflect.config import get_profiles_dir, list_profiles, load_profile

    names = list_profiles()
    if not names:
        info(f"No profiles in {get_profiles_dir()}")
        suggest("Create one with: reflect profile save NAME --endpoint URL")
        return

    rows: list[list[str]] = []
    for name in names:
        try:
            rows.append([name, load_profile(name).endpoint])
        except ReflectError as exc:
            rows.append([name, f"<invalid: {exc}>"])
    print_table(["name", "endpoint"], rows, title="Profiles")


@profile_app.command("delete")
def profile_delete(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a saved profile."""
    from reflect.config import delete_profile

    try:
        delete_profile(name)
    except ReflectError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f"Deleted profile '{name}'")
