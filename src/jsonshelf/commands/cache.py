"""Cache commands -- inspect and maintain namespaces under the cache root.

Every command resolves the cache root with
:func:`~jsonshelf.config.resolve_config` (``--root`` flag, then
``JSONSHELF_ROOT``, then project and global config) and works through a
:class:`~jsonshelf.cache.manager.CacheManager`, so TTL and capacity
settings from the config file apply here exactly as they do in library use.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from jsonshelf.cache import CacheManager, FileCacheStore, derive_key
from jsonshelf.exceptions import NamespaceError
from jsonshelf.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND
from jsonshelf.output import error, format_response, info, print_data, print_stats, success


def _manager(ctx: typer.Context) -> CacheManager:
    from jsonshelf.config import resolve_config

    cli_root = ctx.obj.get("root") if ctx.obj else None
    config, root = resolve_config(cli_root)
    return CacheManager(root, config)


def _store(ctx: typer.Context, namespace: str) -> FileCacheStore[Any]:
    try:
        return _manager(ctx).namespace(namespace)
    except NamespaceError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


def _parse_literal(text: str) -> Any:
    """Parse *text* as a JSON literal, falling back to the raw string."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return text


def namespaces_command(ctx: typer.Context) -> None:
    """List namespaces that hold entry files under the cache root.

    Example::

        jsonshelf namespaces
        jsonshelf --root ./cache namespaces
    """
    manager = _manager(ctx)
    info(f"Cache root: {manager.root}")
    for name in manager.list_namespaces():
        print_data(name)


def stats_command(
    ctx: typer.Context,
    namespace: Optional[str] = typer.Argument(
        None, help="Namespace to report on (default: all)."
    ),
) -> None:
    """Show entry counts, sizes and limits per namespace.

    Example::

        jsonshelf stats
        jsonshelf --json stats recipes/search
    """
    if namespace is not None:
        all_stats = [_store(ctx, namespace).stats()]
    else:
        all_stats = _manager(ctx).stats()

    print_stats(all_stats, title="Cache namespaces")


def get_command(
    ctx: typer.Context,
    namespace: str = typer.Argument(help="Namespace, e.g. 'recipes/search'."),
    key: str = typer.Argument(help="Entry key."),
) -> None:
    """Print the payload stored under KEY. Exits with code 4 on a miss.

    Example::

        jsonshelf --json get recipes/search 5d41402abc4b2a76b9719d911017c592
    """
    payload = _store(ctx, namespace).get(key)
    if payload is None:
        error(f"No live entry for '{key}' in '{namespace}'")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    format_response(payload)


def put_command(
    ctx: typer.Context,
    namespace: str = typer.Argument(help="Namespace, e.g. 'recipes/search'."),
    key: str = typer.Argument(help="Entry key."),
    value: str = typer.Argument(help="Payload as JSON."),
) -> None:
    """Store a JSON payload under KEY.

    Example::

        jsonshelf put recipes/search manual-1 '{"results": []}'
    """
    try:
        payload = json.loads(value)
    except json.JSONDecodeError as exc:
        error(f"VALUE is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    _store(ctx, namespace).put(key, payload)
    success(f"Stored '{key}' in '{namespace}'")


def invalidate_command(
    ctx: typer.Context,
    namespace: str = typer.Argument(help="Namespace, e.g. 'recipes/search'."),
    key: str = typer.Argument(help="Entry key."),
) -> None:
    """Delete the entry stored under KEY.

    Example::

        jsonshelf invalidate recipes/search 5d41402abc4b2a76b9719d911017c592
    """
    if _store(ctx, namespace).invalidate(key):
        success(f"Removed '{key}' from '{namespace}'")
    else:
        info(f"No entry for '{key}' in '{namespace}'")


def clear_command(
    ctx: typer.Context,
    namespace: Optional[str] = typer.Argument(None, help="Namespace to clear."),
    all_namespaces: bool = typer.Option(
        False, "--all", help="Clear every namespace under the root."
    ),
) -> None:
    """Delete every entry in a namespace, or in all namespaces with --all.

    Asks for confirmation unless ``--force`` is active.

    Example::

        jsonshelf clear recipes/search
        jsonshelf --force clear --all
    """
    if (namespace is None) == (not all_namespaces):
        error("Pass either a NAMESPACE or --all")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    force = ctx.obj.get("force", False) if ctx.obj else False
    target = "all namespaces" if all_namespaces else f"'{namespace}'"
    if not force:
        confirmed = typer.confirm(f"Delete every entry in {target}?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    if all_namespaces:
        _manager(ctx).clear_all()
    elif namespace is not None:
        _store(ctx, namespace).clear()
    success(f"Cleared {target}")


def key_command(
    params: Optional[list[str]] = typer.Argument(
        None,
        help="Call parameters in order. Each is parsed as a JSON literal when "
        "possible (null, 12, true, '\"null\"'), otherwise used as a string.",
    ),
) -> None:
    """Derive the cache key for an ordered parameter tuple.

    Example::

        jsonshelf key pasta 12 null
    """
    values = [_parse_literal(p) for p in (params or [])]
    print_data(derive_key(values))
