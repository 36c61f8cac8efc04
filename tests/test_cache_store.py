# tests/test_cache_store.py
# State key-value store and per-source cache files.

import os

from project_switcher.cache_store import CacheStore, SourceCache, atomic_write_file


class TestAtomicWrite:
    def test_creates_parent_and_leaves_no_temp_files(self, tmp_path):
        target = tmp_path / "nested" / "state.toml"
        atomic_write_file(target, "a = 1\n")

        assert target.read_text() == "a = 1\n"
        assert os.listdir(target.parent) == ["state.toml"]


class TestCacheStore:
    def test_get_set_round_trip(self, tmp_path):
        store = CacheStore(tmp_path / "data", tmp_path / "cache")
        store.set("theme_id", 'theme "quoted" \\ name')

        assert store.get("theme_id") == 'theme "quoted" \\ name'
        assert store.get("missing") is None

    def test_no_state_file(self, tmp_path):
        assert CacheStore(tmp_path / "data", tmp_path / "cache").load_state() is None

    def test_none_removes_key(self, tmp_path):
        store = CacheStore(tmp_path / "data", tmp_path / "cache")
        store.set_many({"a": "1", "b": "2"})
        store.set("a", None)

        assert store.load_state() == {"b": "2"}

    def test_corrupt_state_treated_as_empty(self, tmp_path):
        store = CacheStore(tmp_path / "data", tmp_path / "cache")
        store.state_path.parent.mkdir(parents=True)
        store.state_path.write_text("this is = = not toml")

        assert store.load_state() == {}

    def test_clear_cached_entries_only_touches_entry_files(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / "entries-configured-default.json").write_text("{}")
        (cache_dir / "watch-theme.json").write_text("{}")
        store = CacheStore(tmp_path / "data", cache_dir)

        assert store.clear_cached_entries() == 1
        assert sorted(os.listdir(cache_dir)) == ["watch-theme.json"]


class TestSourceCache:
    def test_builds_once_until_source_changes(self, tmp_path):
        source = tmp_path / "config.toml"
        source.write_text("a = 1")
        calls = []
        fired = []

        cache = SourceCache(tmp_path / "cache", "entries-test", [source])
        cache.on_change(fired.append)

        def builder():
            calls.append(1)
            return [len(calls)]

        assert cache.get_cached() is None
        assert cache.refresh(builder) == [1]
        assert cache.refresh(builder) == [1]
        assert cache.get_cached() == [1]
        assert len(calls) == 1

        source.write_text("a = 22")
        assert cache.refresh(builder) == [2]
        assert fired == [[1], [2]]

    def test_missing_source_is_part_of_signature(self, tmp_path):
        source = tmp_path / "workspaces-extra.toml"
        cache = SourceCache(tmp_path / "cache", "entries-test", [source])
        cache.refresh(lambda: "none")

        assert not cache.has_changed()
        source.write_text("x = 1")
        assert cache.has_changed()

    def test_corrupt_cache_file_rebuilds(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / "entries-test.json").write_text("{not json")

        cache = SourceCache(cache_dir, "entries-test", [])
        assert cache.refresh(lambda: "fresh") == "fresh"
