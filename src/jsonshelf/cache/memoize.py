"""Decorator that puts a :class:`FileCacheStore` in front of a function.

This is the usual way a service wraps a slow upstream call::

    search_cache = manager.namespace("recipes/search")

    @cached(search_cache)
    def search_recipes(query: str, number: int = 10, cuisine: str | None = None) -> dict:
        return api.search_recipes(query=query, number=number, cuisine=cuisine)

The key is derived from the function's qualified name and its arguments
*after* binding them to the signature and applying defaults, so
``search_recipes("pasta")``, ``search_recipes("pasta", 10)`` and
``search_recipes(query="pasta")`` share one entry.
"""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from jsonshelf.cache.keys import derive_key
from jsonshelf.cache.store import FileCacheStore

F = TypeVar("F", bound=Callable[..., Any])


def call_key(func: Callable[..., Any], args: tuple, kwargs: dict, prefix: Optional[str] = None) -> str:
    """Derive the cache key for calling *func* with *args* and *kwargs*."""
    bound = inspect.signature(func).bind(*args, **kwargs)
    bound.apply_defaults()
    name = prefix if prefix is not None else f"{func.__module__}.{func.__qualname__}"
    return derive_key([name, *bound.arguments.items()])


def cached(store: FileCacheStore[Any], *, key_prefix: Optional[str] = None) -> Callable[[F], F]:
    """Cache the return value of the decorated function in *store*.

    Args:
        store: Namespace store to read from and write to.
        key_prefix: Replaces the function's qualified name in the key. Set
            it when a function is renamed but its cache should survive.

    ``None`` results are returned but not cached. Exceptions from the
    wrapped function propagate and nothing is stored. The wrapper exposes
    ``cache_key(*args, **kwargs)`` and ``cache_store``.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = call_key(func, args, kwargs, key_prefix)
            return store.get_or_fetch(key, lambda: func(*args, **kwargs))

        wrapper.cache_key = lambda *a, **kw: call_key(func, a, kw, key_prefix)  # type: ignore[attr-defined]
        wrapper.cache_store = store  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
