"""Tests for CacheManager and namespace validation."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from jsonshelf.cache import CacheManager
from jsonshelf.cache.manager import validate_namespace
from jsonshelf.exceptions import InvalidUsageError, NamespaceError
from jsonshelf.exit_codes import EXIT_INVALID_USAGE
from jsonshelf.models import GlobalConfig, NamespaceConfig


# ------------------------------------------------------------------ #
# Namespace names
# ------------------------------------------------------------------ #


class TestValidateNamespace:
    @pytest.mark.parametrize(
        "name,segments",
        [
            ("recipes", ("recipes",)),
            ("recipes/search", ("recipes", "search")),
            ("ingredients/substitutes_v2", ("ingredients", "substitutes_v2")),
            ("a-b/c.d", ("a-b", "c.d")),
        ],
    )
    def test_valid(self, name: str, segments: tuple[str, ...]) -> None:
        assert validate_namespace(name) == segments

    @pytest.mark.parametrize(
        "name",
        ["", "/etc", "recipes/", "recipes//search", "..", "recipes/../x", "./x", ".hidden", "a b", "a\\b"],
    )
    def test_invalid(self, name: str) -> None:
        with pytest.raises(NamespaceError):
            validate_namespace(name)

    def test_namespace_error_is_usage_error(self) -> None:
        with pytest.raises(InvalidUsageError) as exc_info:
            validate_namespace("..")
        assert exc_info.value.exit_code == EXIT_INVALID_USAGE


# ------------------------------------------------------------------ #
# Manager
# ------------------------------------------------------------------ #


class TestCacheManager:
    def test_namespace_maps_to_subdirectory(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        store = manager.namespace("recipes/search")
        assert store.directory == tmp_path / "recipes" / "search"
        assert store.directory.is_dir()
        assert store.namespace == "recipes/search"

    def test_namespace_is_memoised(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        assert manager.namespace("recipes/info") is manager.namespace("recipes/info")

    def test_invalid_namespace_raises(self, tmp_path: Path) -> None:
        with pytest.raises(NamespaceError):
            CacheManager(tmp_path).namespace("../escape")
        assert not (tmp_path.parent / "escape").exists()

    def test_uses_configured_defaults(self, tmp_path: Path) -> None:
        config = GlobalConfig(defaults=NamespaceConfig(ttl_seconds=60, max_entries=5))
        store = CacheManager(tmp_path, config).namespace("recipes/search")
        assert store.ttl_seconds == 60
        assert store.max_entries == 5

    def test_uses_namespace_override(self, tmp_path: Path) -> None:
        config = GlobalConfig(
            namespaces={"recipes/info": NamespaceConfig(ttl_seconds=3600, max_entries=50)}
        )
        manager = CacheManager(tmp_path, config)
        assert manager.namespace("recipes/info").max_entries == 50
        assert manager.namespace("recipes/search").max_entries == 100

    def test_explicit_arguments_win(self, tmp_path: Path) -> None:
        config = GlobalConfig(defaults=NamespaceConfig(ttl_seconds=60, max_entries=5))
        store = CacheManager(tmp_path, config).namespace("ns", ttl_seconds=10, max_entries=2)
        assert store.ttl_seconds == 10
        assert store.max_entries == 2

    def test_concurrent_lookup_yields_one_store(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        results: list[object] = []

        def worker() -> None:
            results.append(manager.namespace("shared"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(r) for r in results}) == 1


class TestListingAndMaintenance:
    def test_list_namespaces_finds_directories_with_entries(self, tmp_path: Path) -> None:
        (tmp_path / "recipes" / "search").mkdir(parents=True)
        (tmp_path / "recipes" / "search" / "abc.json").write_text('{"created_at": 1}')
        (tmp_path / "empty").mkdir()
        (tmp_path / ".hidden").mkdir()
        (tmp_path / ".hidden" / "x.json").write_text("{}")

        assert CacheManager(tmp_path).list_namespaces() == ["recipes/search"]

    def test_list_namespaces_includes_opened(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        manager.namespace("recipes/info")
        assert manager.list_namespaces() == ["recipes/info"]

    def test_list_namespaces_missing_root(self, tmp_path: Path) -> None:
        assert CacheManager(tmp_path / "nope").list_namespaces() == []

    def test_clear_all(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        manager.namespace("recipes/search").put("a", 1)
        manager.namespace("recipes/info").put("b", 2)

        manager.clear_all()

        assert manager.namespace("recipes/search").keys() == []
        assert manager.namespace("recipes/info").keys() == []

    def test_clear_all_picks_up_unopened_namespaces(self, tmp_path: Path) -> None:
        CacheManager(tmp_path).namespace("recipes/search").put("a", 1)

        fresh = CacheManager(tmp_path)
        fresh.clear_all()

        assert list((tmp_path / "recipes" / "search").glob("*.json")) == []

    def test_stats(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        manager.namespace("a").put("k1", {"x": 1})
        manager.namespace("a").put("k2", {"x": 2})
        manager.namespace("b")

        stats = {s.namespace: s for s in manager.stats()}

        assert stats["a"].entries == 2
        assert stats["a"].total_bytes > 0
        assert stats["b"].entries == 0
        assert stats["b"].oldest_mtime is None

    def test_repr(self, tmp_path: Path) -> None:
        manager = CacheManager(tmp_path)
        manager.namespace("a")
        assert "namespaces=['a']" in repr(manager)
