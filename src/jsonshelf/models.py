"""Canonical Pydantic models shared across all jsonshelf modules.

The models fall into two groups:

**Storage models** -- what lives on disk and what the store reports:
    :class:`CacheEntry` and :class:`NamespaceStats`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`NamespaceConfig` and :class:`GlobalConfig`.

:class:`CacheEntry` is deliberately lenient on input: unknown fields are
ignored and a handful of legacy field names are accepted, so that entry
files written by older producers still decode instead of counting as
corrupt.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# --- Storage ---


class CacheEntry(BaseModel):
    """A single ``(created_at, payload)`` pair stored in one entry file.

    Owned exclusively by :class:`~jsonshelf.cache.store.FileCacheStore`.
    Created on ``put``, read on ``get``, and destroyed (its file deleted)
    when it expires or is evicted.

    Example::

        {"created_at": 1767225600000, "payload": {"results": [], "totalResults": 0}}
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    created_at: int = Field(
        validation_alias=AliasChoices("created_at", "createdAt", "timestamp"),
        description="Creation instant in epoch milliseconds",
    )
    payload: Any = Field(
        default=None,
        validation_alias=AliasChoices("payload", "data"),
        description="Opaque payload in the namespace's declared shape",
    )

    def age_ms(self, now_ms: int) -> int:
        """Return how many milliseconds ago this entry was created."""
        return now_ms - self.created_at

    def is_expired(self, now_ms: int, ttl_ms: int) -> bool:
        """Return ``True`` if the entry is strictly older than *ttl_ms*."""
        return self.age_ms(now_ms) > ttl_ms


class NamespaceStats(BaseModel):
    """Point-in-time summary of one namespace directory."""

    namespace: str
    directory: str
    available: bool = True
    entries: int = 0
    total_bytes: int = 0
    oldest_mtime: Optional[float] = Field(
        default=None, description="Epoch seconds of the oldest entry file"
    )
    newest_mtime: Optional[float] = Field(
        default=None, description="Epoch seconds of the newest entry file"
    )
    ttl_seconds: float
    max_entries: int


# --- Configuration ---


class NamespaceConfig(BaseModel):
    """TTL and capacity settings for one namespace.

    Used both as the global ``defaults`` block and as a per-namespace
    override inside :class:`GlobalConfig`.
    """

    ttl_seconds: float = Field(
        default=24 * 60 * 60.0, ge=0, description="Entry time-to-live in seconds"
    )
    max_entries: int = Field(
        default=100, ge=1, description="Maximum entry files kept in the namespace"
    )
    extension: str = Field(
        default=".json",
        pattern=r"^\.[A-Za-z0-9]+$",
        description="File extension for entry files",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/jsonshelf/config.json``.

    Loaded and saved by :func:`~jsonshelf.config.load_global_config` and
    :func:`~jsonshelf.config.save_global_config`. ``root_dir`` has the lowest
    precedence; see :func:`~jsonshelf.config.resolve_config`.
    """

    root_dir: Optional[str] = Field(
        default=None, description="Cache root directory (default: XDG cache dir)"
    )
    defaults: NamespaceConfig = Field(default_factory=NamespaceConfig)
    namespaces: dict[str, NamespaceConfig] = Field(default_factory=dict)

    def namespace_config(self, name: str) -> NamespaceConfig:
        """Return the override for *name*, or the defaults if there is none."""
        return self.namespaces.get(name, self.defaults)
