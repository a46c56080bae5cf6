"""Namespace registry over a single cache root.

A deployment has one root directory; every logical cache (``recipes/search``,
``recipes/info``, ``ingredients/substitutes`` ...) is a namespace mapped to a
subdirectory of it. :class:`CacheManager` validates namespace names, applies
the TTL/capacity settings from :class:`~jsonshelf.models.GlobalConfig`, and
hands out one :class:`~jsonshelf.cache.store.FileCacheStore` per namespace.

The manager is an ordinary object the caller constructs and passes to the
components that need it; there is no process-wide instance.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from pathlib import Path
from typing import Any, Optional

from jsonshelf.cache.eviction import is_entry_name
from jsonshelf.cache.store import FileCacheStore
from jsonshelf.exceptions import NamespaceError
from jsonshelf.models import GlobalConfig, NamespaceStats

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def validate_namespace(name: str) -> tuple[str, ...]:
    """Split *name* on ``/`` and check every segment.

    Returns:
        The segments, in order.

    Raises:
        NamespaceError: If the name is empty, absolute, or contains an empty,
            ``.``, ``..`` or otherwise unsafe segment.
    """
    if not name or name.startswith("/"):
        raise NamespaceError(f"Invalid namespace name: {name!r}")
    segments = tuple(name.split("/"))
    for seg in segments:
        if seg in ("", ".", "..") or seg.startswith(".") or not _SEGMENT_RE.match(seg):
            raise NamespaceError(f"Invalid namespace segment {seg!r} in {name!r}")
    return segments


class CacheManager:
    """Hands out :class:`FileCacheStore` instances under one root directory.

    Stores are memoised per namespace name, so repeated lookups return the
    same object. Explicit ``ttl_seconds``/``max_entries`` arguments take
    precedence over the configured values the first time a namespace is
    opened; later calls get the memoised store as-is.

    Args:
        root: The cache root directory.
        config: Global configuration supplying defaults and per-namespace
            overrides. A default :class:`GlobalConfig` is used if omitted.

    Example::

        manager = CacheManager(Path("./cache"))
        search = manager.namespace("recipes/search", payload_type=SearchResults)
        info = manager.namespace("recipes/info", ttl_seconds=3600)
    """

    def __init__(self, root: str | Path, config: Optional[GlobalConfig] = None) -> None:
        self._root = Path(root)
        self._config = config or GlobalConfig()
        self._stores: dict[str, FileCacheStore[Any]] = {}
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config(self) -> GlobalConfig:
        return self._config

    def namespace(
        self,
        name: str,
        *,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        payload_type: Optional[type] = None,
    ) -> FileCacheStore[Any]:
        """Return the store for namespace *name*, creating it on first use.

        Raises:
            NamespaceError: If *name* is not a safe namespace name.
        """
        segments = validate_namespace(name)
        with self._lock:
            store = self._stores.get(name)
            if store is None:
                ns_cfg = self._config.namespace_config(name)
                store = FileCacheStore(
                    self._root.joinpath(*segments),
                    ttl_seconds=ns_cfg.ttl_seconds if ttl_seconds is None else ttl_seconds,
                    max_entries=ns_cfg.max_entries if max_entries is None else max_entries,
                    payload_type=payload_type,
                    extension=ns_cfg.extension,
                    namespace=name,
                )
                self._stores[name] = store
                logger.debug("Opened cache namespace '%s' at %s", name, store.directory)
        return store

    def list_namespaces(self) -> list[str]:
        """Return every namespace that has a directory holding entry files,
        plus every namespace opened through this manager, sorted.
        """
        found: set[str] = set(self._stores)
        if self._root.is_dir():
            extensions = {self._config.defaults.extension} | {
                c.extension for c in self._config.namespaces.values()
            }
            for dirpath, dirnames, filenames in os.walk(self._root):
                dirnames[:] = [d for d in dirnames if not d.startswith(".")]
                if any(is_entry_name(f, ext) for f in filenames for ext in extensions):
                    rel = Path(dirpath).relative_to(self._root)
                    if rel.parts:
                        found.add(rel.as_posix())
        return sorted(found)

    def clear_all(self) -> None:
        """Clear every namespace found by :meth:`list_namespaces`. Never raises."""
        for name in self.list_namespaces():
            try:
                store = self.namespace(name)
            except NamespaceError as exc:
                logger.warning("Skipping unexpected directory under cache root: %s", exc)
                continue
            store.clear()

    def stats(self) -> list[NamespaceStats]:
        """Return :meth:`FileCacheStore.stats` for every known namespace."""
        result: list[NamespaceStats] = []
        for name in self.list_namespaces():
            try:
                result.append(self.namespace(name).stats())
            except NamespaceError as exc:
                logger.warning("Skipping unexpected directory under cache root: %s", exc)
        return result

    def __repr__(self) -> str:
        return f"CacheManager(root={str(self._root)!r}, namespaces={sorted(self._stores)})"
