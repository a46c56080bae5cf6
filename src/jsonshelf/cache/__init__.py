"""File-backed, expiring, bounded caching for slow upstream calls.

This package provides:

* :func:`derive_key` / :class:`KeyDeriver` -- stable, filesystem-safe keys
  from ordered call parameters.
* :class:`FileCacheStore` -- one namespace directory with ``get``, ``put``
  and ``clear``, lazy TTL expiry, and LRU-by-write eviction.
* :class:`CacheManager` -- one store per namespace under a shared root,
  configured from :class:`~jsonshelf.models.GlobalConfig`.
* :func:`cached` -- decorator that wraps a function with a store.
"""

from jsonshelf.cache.keys import KeyDeriver, derive_key
from jsonshelf.cache.manager import CacheManager
from jsonshelf.cache.memoize import cached
from jsonshelf.cache.store import FileCacheStore

__all__ = ["CacheManager", "FileCacheStore", "KeyDeriver", "cached", "derive_key"]
