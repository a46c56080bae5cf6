"""jsonshelf -- a file-backed, time- and capacity-bounded cache for slow APIs.

The cache sits in front of outbound calls to a slow or rate-limited upstream
service. Each logical cache is a *namespace* directory; each entry is a JSON
file named after a key derived from the call's parameters::

    from jsonshelf import CacheManager, derive_key

    manager = CacheManager("./cache")
    search = manager.namespace("recipes/search", ttl_seconds=86400, max_entries=100)

    key = derive_key(["pasta", 12, None])
    results = search.get(key)
    if results is None:
        results = api.search_recipes("pasta", 12, None)
        search.put(key, results)

A small admin CLI (``jsonshelf``) inspects and clears namespaces.

Modules:
    cache: Key derivation, the store, eviction, and the namespace manager.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and root resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting for the admin CLI.
    app: Typer application and CLI entry point.
"""

from jsonshelf.cache import CacheManager, FileCacheStore, KeyDeriver, cached, derive_key

__version__ = "0.1.0"

__all__ = [
    "CacheManager",
    "FileCacheStore",
    "KeyDeriver",
    "__version__",
    "cached",
    "derive_key",
]
