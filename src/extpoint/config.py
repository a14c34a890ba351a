"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles the persistent configuration used by the ``extpoint``
CLI and by :func:`~extpoint.discovery.discover`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.extpoint/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- A single :class:`~extpoint.models.GlobalConfig`
  JSON file storing defaults (entry-point group, default position,
  plugin allow/deny lists, output format).
* **Project config** -- An optional ``./extpoint.json`` holding the same
  keys, layered over the global config.
* **Precedence resolution** -- :func:`resolve_config` merges explicit
  overrides, environment variables, project-local config, and global config
  into the final effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import contextlib
import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import pydantic

from extpoint.exceptions import ConfigError
from extpoint.models import GlobalConfig

_APP_NAME = "extpoint"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "extpoint.json"

ENV_GROUP = "EXTPOINT_GROUP"
ENV_DEFAULT_POSITION = "EXTPOINT_DEFAULT_POSITION"


# --- Paths ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG Base Directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def get_config_dir() -> Path:
    """Return (and create) the directory holding ``config.json``.

    ``$XDG_CONFIG_HOME/extpoint`` (default ``~/.config/extpoint``) on XDG
    platforms, ``~/.extpoint`` elsewhere.
    """
    if _is_xdg_platform():
        xdg_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        path = Path(xdg_home) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a synced sibling temp file and ``os.replace``.

    Readers see either the old file or the new one, never a partial write.
    The temp file is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp.name)
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~extpoint.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./extpoint.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not valid JSON or not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    group: Optional[str] = None,
    default_position: Optional[str] = None,
    output_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. Explicit arguments (CLI flags)
        2. Environment variables (``EXTPOINT_GROUP``, ``EXTPOINT_DEFAULT_POSITION``)
        3. Project config (``./extpoint.json``)
        4. User config (``~/.config/extpoint/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~extpoint.models.GlobalConfig`.

    Raises:
        ConfigError: If any layer fails validation.
    """
    # 5 + 4. Base global config (fills in defaults automatically)
    data = load_global_config().model_dump(mode="json")

    # 3. Project-local config, merged one level deep
    project = load_project_config()
    if project is not None:
        for key, value in project.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    # 2. Environment variables
    env_group = os.environ.get(ENV_GROUP)
    if env_group:
        data["entry_point_group"] = env_group
    env_position = os.environ.get(ENV_DEFAULT_POSITION)
    if env_position:
        data["default_position"] = env_position

    # 1. Explicit overrides
    if group is not None:
        data["entry_point_group"] = group
    if default_position is not None:
        data["default_position"] = default_position
    if output_format is not None:
        data["output"] = {**data["output"], "format": output_format}

    try:
        return GlobalConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid effective configuration: {exc}") from exc
