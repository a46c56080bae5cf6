"""File-backed, expiring, bounded key/value store for one namespace.

Each entry is a small JSON file ``<key>.json`` holding the creation
timestamp and the payload. The store keeps no in-memory index and takes no
locks: the directory *is* the state, so several threads or processes can
share a namespace.

* **Expiry is lazy.** An entry older than the TTL is reported as a miss and
  deleted by the ``get`` that notices it. Nothing sweeps in the background.
* **Capacity is enforced before writing.** ``put`` evicts the oldest
  entries by modification time until the new entry fits, then writes.
* **Writes are atomic.** Content goes to a dot-prefixed temp file in the
  same directory and is renamed over the target, so readers see either the
  old entry or the new one.
* **Faults never escape.** Unreadable or corrupt files, full disks, and
  permission problems are logged and turned into a miss or a no-op. A
  cache that cannot do its job must not break the call it was meant to
  speed up.

See Also:
    :mod:`jsonshelf.cache.eviction` -- the capacity policy.
    :class:`~jsonshelf.cache.manager.CacheManager` -- one store per namespace
    under a shared root.
"""

from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from jsonshelf.cache.eviction import enforce_capacity, list_entries
from jsonshelf.cache.keys import derive_key
from jsonshelf.cache.serializer import EntryDecodeError, EntrySerializer
from jsonshelf.config import atomic_write
from jsonshelf.models import NamespaceStats

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_MAX_ENTRIES = 100

_KEY_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]{0,199}$")


class FileCacheStore(Generic[T]):
    """Durable, bounded, expiring key/value store scoped to one directory.

    Args:
        directory: Namespace directory. Created (with parents) if missing.
        ttl_seconds: Maximum entry age. An entry is live while
            ``now - created_at <= ttl``. Both instants are truncated to whole
            epoch milliseconds, so with ``0`` an entry stays live until the
            clock reaches the next millisecond.
        max_entries: Maximum number of entry files after a ``put`` returns.
        payload_type: Optional pydantic-compatible type of the payload.
        extension: Entry file extension.
        clock: Returns the current time in epoch seconds. Injected in tests.
        namespace: Display name used in logs and :meth:`stats`.

    Raises:
        ValueError: If ``ttl_seconds`` is negative or ``max_entries`` is
            less than 1.

    Example::

        store = FileCacheStore(root / "recipes" / "search", ttl_seconds=86400, max_entries=100)
        key = store.derive_key("pasta", 12, None)
        result = store.get(key)
        if result is None:
            result = api.search_recipes("pasta", 12, None)
            store.put(key, result)
    """

    def __init__(
        self,
        directory: str | Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        payload_type: Optional[type[T]] = None,
        extension: str = ".json",
        clock: Callable[[], float] = time.time,
        namespace: Optional[str] = None,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")

        self._directory = Path(directory)
        self._ttl_seconds = ttl_seconds
        self._ttl_ms = int(ttl_seconds * 1000)
        self._max_entries = max_entries
        self._extension = extension
        self._clock = clock
        self._serializer: EntrySerializer[T] = EntrySerializer(payload_type)
        self._namespace = namespace or self._directory.name
        self._available = self._ensure_directory()

    def _ensure_directory(self) -> bool:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning(
                "Could not create cache directory %s, caching disabled for '%s': %s",
                self._directory,
                self._namespace,
                exc,
            )
            return False
        return True

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def directory(self) -> Path:
        """The namespace directory."""
        return self._directory

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def available(self) -> bool:
        """``False`` when the directory could not be created (always-miss mode)."""
        return self._available

    # ------------------------------------------------------------------ #
    # Core operations
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> Optional[T]:
        """Return the live payload for *key*, or ``None`` on a miss.

        Misses include: no entry file, an unreadable or corrupt file
        (which is removed), and an expired entry (which is removed).
        A file is only removed if it is still the one that was read, so a
        concurrent ``put`` of a fresh entry for *key* is never discarded.
        """
        path = self._path_for(key)
        if path is None:
            return None

        try:
            with path.open(encoding="utf-8") as fh:
                read_mtime_ns = os.fstat(fh.fileno()).st_mtime_ns
                text = fh.read()
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            logger.warning("Discarding corrupt cache file %s: %s", path, exc)
            self._discard_if_unchanged(path, read_mtime_ns)
            return None
        except OSError as exc:
            logger.warning("Could not read cache file %s: %s", path, exc)
            return None

        try:
            entry = self._serializer.decode(text)
        except EntryDecodeError as exc:
            logger.warning("Discarding corrupt cache file %s: %s", path, exc)
            self._discard_if_unchanged(path, read_mtime_ns)
            return None

        if entry.is_expired(self._now_ms(), self._ttl_ms):
            logger.debug("Cache entry %s in '%s' expired", key, self._namespace)
            self._discard_if_unchanged(path, read_mtime_ns)
            return None

        return entry.payload

    def put(self, key: str, value: T) -> None:
        """Store *value* under *key*, replacing any existing entry.

        Capacity is enforced first, so at most ``max_entries`` entry files
        remain once this returns (barring concurrent writers). Failures are
        logged and swallowed.
        """
        path = self._path_for(key)
        if path is None:
            return

        now = self._clock()
        created_at = int(now * 1000)
        try:
            text = self._serializer.encode(created_at, value)
        except (TypeError, ValueError, RecursionError) as exc:
            logger.warning("Could not serialise cache entry %s in '%s': %s", key, self._namespace, exc)
            return

        try:
            removed = enforce_capacity(
                self._directory, self._max_entries, self._extension, incoming=key
            )
            if removed:
                logger.debug("Evicted %d entries from '%s'", removed, self._namespace)
        except OSError as exc:
            logger.warning("Could not enforce cache size limit for '%s': %s", self._namespace, exc)

        try:
            atomic_write(path, text, mtime_ns=int(now * 1_000_000_000))
        except OSError as exc:
            logger.warning("Could not write cache file %s: %s", path, exc)

    def clear(self) -> None:
        """Delete every entry file in the namespace. Never raises."""
        if not self._available:
            return
        try:
            entries = list_entries(self._directory, self._extension)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Could not clear cache '%s': %s", self._namespace, exc)
            return
        for entry in entries:
            try:
                entry.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Could not delete cache file %s: %s", entry.path, exc)

    # ------------------------------------------------------------------ #
    # Convenience
    # ------------------------------------------------------------------ #

    def invalidate(self, key: str) -> bool:
        """Delete the entry for *key*. Returns ``True`` if a file was removed."""
        path = self._path_for(key)
        if path is None:
            return False
        return self._discard(path)

    def contains(self, key: str) -> bool:
        """Return ``True`` if *key* has a live entry (applies lazy expiry)."""
        return self.get(key) is not None

    def keys(self) -> list[str]:
        """Return the keys of the entry files on disk, sorted, without expiry checks."""
        if not self._available:
            return []
        try:
            return sorted(e.key for e in list_entries(self._directory, self._extension))
        except OSError as exc:
            logger.warning("Could not list cache '%s': %s", self._namespace, exc)
            return []

    def get_or_fetch(self, key: str, fetch: Callable[[], T]) -> T:
        """Return the cached payload for *key*, calling *fetch* on a miss.

        A fetched value is stored unless it is ``None`` (which would be
        indistinguishable from a miss on the next read). Exceptions raised
        by *fetch* propagate unchanged.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = fetch()
        if value is not None:
            self.put(key, value)
        return value

    def derive_key(self, *params: Any) -> str:
        """Derive a key from positional call parameters (see :mod:`jsonshelf.cache.keys`)."""
        return derive_key(params)

    def stats(self) -> NamespaceStats:
        """Summarise the namespace directory."""
        stats = NamespaceStats(
            namespace=self._namespace,
            directory=str(self._directory),
            available=self._available,
            ttl_seconds=self._ttl_seconds,
            max_entries=self._max_entries,
        )
        if not self._available:
            return stats
        try:
            entries = list_entries(self._directory, self._extension)
        except OSError as exc:
            logger.warning("Could not list cache '%s': %s", self._namespace, exc)
            return stats
        if entries:
            stats.entries = len(entries)
            stats.total_bytes = sum(e.size for e in entries)
            stats.oldest_mtime = min(e.mtime_ns for e in entries) / 1e9
            stats.newest_mtime = max(e.mtime_ns for e in entries) / 1e9
        return stats

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _path_for(self, key: str) -> Optional[Path]:
        """Map *key* to its entry file, or ``None`` if unusable."""
        if not self._available:
            return None
        if not isinstance(key, str) or not _KEY_RE.match(key):
            logger.warning("Ignoring invalid cache key %r for '%s'", key, self._namespace)
            return None
        return self._directory / f"{key}{self._extension}"

    def _discard(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not delete cache file %s: %s", path, exc)
            return False
        return True

    def _discard_if_unchanged(self, path: Path, mtime_ns: int) -> bool:
        """Remove *path* only if its mtime still matches the copy that was read."""
        try:
            if path.stat().st_mtime_ns != mtime_ns:
                return False
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not stat cache file %s: %s", path, exc)
            return False
        return self._discard(path)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def __repr__(self) -> str:
        return (
            f"FileCacheStore(namespace={self._namespace!r}, directory={str(self._directory)!r}, "
            f"ttl_seconds={self._ttl_seconds}, max_entries={self._max_entries})"
        )
