"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles persistent configuration for reflect:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.reflect/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_profiles_dir`.
* **Profiles** -- One JSON file per connection target, each deserialised
  into a :class:`~reflect.models.Profile`. Managed via
  :func:`load_profile`, :func:`save_profile`, :func:`delete_profile`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the selected profile into the
  :class:`~reflect.models.ClientConfig` handed to the client.
* **Credential resolution** -- :func:`resolve_credential` reads bearer keys
  from env vars or files, so profiles never hold secrets.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from reflect.exceptions import ConfigError
from reflect.models import ClientConfig, Profile

_APP_NAME = "reflect"

ENV_PROFILE = "REFLECT_PROFILE"
ENV_ENDPOINT = "REFLECT_ENDPOINT"
ENV_KEY = "REFLECT_KEY"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/reflect/`` (default ``~/.config/reflect/``).
    On macOS/Windows: ``~/.reflect/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return ``<config_dir>/profiles/``, creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Profiles ---


def _profile_path(name: str) -> Path:
    if not name or "/" in name or name.startswith("."):
        raise ConfigError(f"Invalid profile name: {name!r}")
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names, sorted alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load and validate a profile from disk.

    Raises:
        ConfigError: If the profile does not exist, contains invalid JSON,
            or fails validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Profile.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> None:
    """Persist a profile atomically; the file name is ``<profile.name>.json``."""
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a bearer key from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Precedence resolution ---


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_endpoint: Optional[str] = None,
    cli_key: Optional[str] = None,
    cli_insecure: bool = False,
) -> ClientConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. CLI flags (``cli_profile``, ``cli_endpoint``, ``cli_key``,
           ``cli_insecure``)
        2. Environment variables (``REFLECT_PROFILE``, ``REFLECT_ENDPOINT``,
           ``REFLECT_KEY``)
        3. The selected profile (its ``key_source`` is resolved here)
        4. :class:`~reflect.models.ClientConfig` defaults

    Raises:
        ConfigError: If no endpoint can be determined, or the profile or its
            key source cannot be loaded.
    """
    profile_name = cli_profile or os.environ.get(ENV_PROFILE) or None
    profile = load_profile(profile_name) if profile_name else None

    endpoint = cli_endpoint or os.environ.get(ENV_ENDPOINT) or (profile.endpoint if profile else None)
    if not endpoint:
        raise ConfigError(
            f"No endpoint configured; pass --endpoint, set {ENV_ENDPOINT}, or select a profile"
        )

    key = cli_key or os.environ.get(ENV_KEY) or None
    if key is None and profile is not None and profile.key_source:
        key = resolve_credential(profile.key_source)

    if profile is not None:
        config = profile.to_client_config(key)
        config = config.model_copy(update={"endpoint": endpoint})
    else:
        try:
            config = ClientConfig(endpoint=endpoint, key=key)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    if cli_insecure:
        config = config.model_copy(update={"https_peer_verify": False})
    return config
