"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for jsonshelf:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.jsonshelf/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~jsonshelf.models.GlobalConfig`
  JSON file storing the cache root and namespace TTL/capacity settings.
* **Precedence resolution** -- :func:`resolve_config` merges the CLI flag,
  environment, project-local config, and global config into the effective
  cache root.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`); the cache store uses the same helper for entry files
so that concurrent readers never observe a partial write.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from jsonshelf.exceptions import ConfigError
from jsonshelf.models import GlobalConfig

_APP_NAME = "jsonshelf"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "jsonshelf.json"
_ROOT_ENV_VAR = "JSONSHELF_ROOT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/jsonshelf/`` (default ``~/.config/jsonshelf/``).
    On macOS/Windows: ``~/.jsonshelf/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default cache root.

    On Linux/BSD: ``$XDG_CACHE_HOME/jsonshelf/`` (default ``~/.cache/jsonshelf/``).
    On macOS/Windows: ``~/.jsonshelf/cache/``.

    Unlike the other directory helpers this one does *not* create the
    directory: the store creates namespace directories itself and must be
    able to degrade gracefully when it cannot.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/jsonshelf/`` (default ``~/.local/share/jsonshelf/``).
    On macOS/Windows: ``~/.jsonshelf/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mtime_ns: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* with a
    leading dot and a ``.tmp`` suffix, so that ``os.replace`` is an atomic
    rename on POSIX systems and directory listings can skip in-flight
    writes. When *mtime_ns* is given, the temp file's access and
    modification times are set to it before the rename.

    On any failure the temp file is removed and the exception re-raised.
    The parent directory must already exist.
    """
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
        fd = None  # prevent double-close in finally
        if mtime_ns is not None:
            os.utime(tmp_path, ns=(mtime_ns, mtime_ns))
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~jsonshelf.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./jsonshelf.json``.

    A project can pin its cache root by setting ``root_dir`` here.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but does not contain a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(cli_root: Optional[str] = None) -> tuple[GlobalConfig, Path]:
    """Resolve the global config and the effective cache root.

    Root precedence (high to low):
        1. CLI flag (``cli_root``)
        2. Environment variable ``JSONSHELF_ROOT``
        3. Project config (``./jsonshelf.json`` ``root_dir``)
        4. User config (``~/.config/jsonshelf/config.json`` ``root_dir``)
        5. :func:`get_cache_dir`

    Returns:
        A tuple of ``(global_config, root_path)``. ``root_path`` is
        expanded (``~``) but not created.
    """
    global_cfg = load_global_config()

    root: Optional[str] = global_cfg.root_dir
    project = load_project_config()
    if project is not None and project.get("root_dir"):
        root = str(project["root_dir"])
    env_root = os.environ.get(_ROOT_ENV_VAR)
    if env_root:
        root = env_root
    if cli_root is not None:
        root = cli_root

    root_path = Path(root).expanduser() if root else get_cache_dir()
    return global_cfg, root_path
