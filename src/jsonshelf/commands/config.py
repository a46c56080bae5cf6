"""Config commands -- view and modify global configuration.

Provides the ``jsonshelf config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~jsonshelf.models.GlobalConfig`): the cache root, the default
TTL and capacity, and per-namespace overrides.
"""

from __future__ import annotations

from typing import Optional

import typer

from jsonshelf.exit_codes import EXIT_INVALID_USAGE
from jsonshelf.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        jsonshelf config show
        jsonshelf --json config show
    """
    from jsonshelf.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'defaults.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (int, float, or str) and the result is validated
    against :class:`~jsonshelf.models.GlobalConfig` before saving.

    Example::

        jsonshelf config set root_dir ~/.cache/recipes
        jsonshelf config set defaults.max_entries 500
    """
    from jsonshelf.config import load_global_config, save_global_config
    from jsonshelf.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    coerced: object = value
    try:
        if isinstance(current, bool):
            coerced = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            coerced = int(value)
        elif isinstance(current, float):
            coerced = float(value)
    except ValueError:
        error(f"Expected {type(current).__name__} for {key}, got: {value}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except Exception as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("namespace")
def config_namespace(
    name: str = typer.Argument(help="Namespace, e.g. 'recipes/search'."),
    ttl_seconds: Optional[float] = typer.Option(None, "--ttl", help="TTL in seconds."),
    max_entries: Optional[int] = typer.Option(None, "--max-entries", help="Capacity."),
    remove: bool = typer.Option(False, "--remove", help="Drop the override."),
) -> None:
    """Create, update, or remove a per-namespace override.

    Unset options start from the current defaults.

    Example::

        jsonshelf config namespace recipes/info --ttl 3600 --max-entries 50
        jsonshelf config namespace recipes/info --remove
    """
    from jsonshelf.cache.manager import validate_namespace
    from jsonshelf.config import load_global_config, save_global_config
    from jsonshelf.exceptions import NamespaceError
    from jsonshelf.models import NamespaceConfig

    try:
        validate_namespace(name)
    except NamespaceError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    config = load_global_config()
    if remove:
        if config.namespaces.pop(name, None) is None:
            info(f"No override for '{name}'")
            return
        save_global_config(config)
        success(f"Removed override for '{name}'")
        return

    current = config.namespace_config(name).model_dump()
    if ttl_seconds is not None:
        current["ttl_seconds"] = ttl_seconds
    if max_entries is not None:
        current["max_entries"] = max_entries
    try:
        config.namespaces[name] = NamespaceConfig.model_validate(current)
    except Exception as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(config)
    success(f"Saved override for '{name}'")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        jsonshelf config reset
        jsonshelf --force config reset
    """
    from jsonshelf.config import save_global_config
    from jsonshelf.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
