# tests/test_fingerprint.py
# Fingerprint comparison and persistence.

import pytest

from project_switcher.cache_store import CacheStore
from project_switcher.fingerprint import FingerprintTracker, assess, current_fingerprint
from project_switcher.models import Fingerprint, InvalidationLevel as Level

STORED = Fingerprint("T1", "V1", "H1")


class TestAssess:
    def test_no_stored_fingerprint_is_full(self):
        assert assess(STORED, None) == Level.FULL

    def test_missing_icons_dir_is_full(self):
        assert assess(STORED, STORED, icons_present=False) == Level.FULL

    @pytest.mark.parametrize("current, expected", [
        (Fingerprint("T1", "V1", "H1"), Level.NONE),
        (Fingerprint("T1", "V2", "H1"), Level.FULL),
        (Fingerprint("T2", "V1", "H1"), Level.FULL),
        (Fingerprint("T1", "V1", "H2"), Level.ICONS_ONLY),
        (Fingerprint("T1", "V2", "H2"), Level.FULL),
        (Fingerprint("T1", "V1", None), Level.ICONS_ONLY),
    ])
    def test_field_changes(self, current, expected):
        assert assess(current, STORED) == expected


class TestFingerprintTracker:
    def test_first_run_then_steady_state(self, ctx):
        tracker = FingerprintTracker(CacheStore(ctx.data_dir, ctx.cache_dir))
        ctx.icons_dir.mkdir(parents=True)
        current = current_fingerprint(ctx)

        assert tracker.observe(current, ctx.icons_root) == Level.FULL
        assert tracker.observe(current, ctx.icons_root) == Level.NONE

    def test_persists_latest_values_unconditionally(self, ctx):
        tracker = FingerprintTracker(CacheStore(ctx.data_dir, ctx.cache_dir))
        ctx.icons_dir.mkdir(parents=True)
        tracker.observe(Fingerprint("T1", "V1", "H1"), ctx.icons_root)

        assert tracker.observe(Fingerprint("T1", "V1", "H2"), ctx.icons_root) == Level.ICONS_ONLY
        assert tracker.load_stored() == Fingerprint("T1", "V1", "H2")
        assert tracker.observe(Fingerprint("T1", "V1", "H2"), ctx.icons_root) == Level.NONE

    def test_unrendered_theme_is_icons_only(self, ctx):
        """Only the shared icon storage must exist, not the new theme's folder."""
        tracker = FingerprintTracker(CacheStore(ctx.data_dir, ctx.cache_dir))
        ctx.icons_dir.mkdir(parents=True)
        tracker.observe(Fingerprint("T1", "V1", "H1"), ctx.icons_root)

        assert not (ctx.icons_root / "h2").exists()
        assert tracker.observe(Fingerprint("T1", "V1", "H2"), ctx.icons_root) == Level.ICONS_ONLY

    def test_missing_optional_field_round_trips_as_none(self, ctx):
        tracker = FingerprintTracker(CacheStore(ctx.data_dir, ctx.cache_dir))
        tracker.save(Fingerprint("T1", None, "H1"))

        assert tracker.load_stored() == Fingerprint("T1", None, "H1")

    def test_current_fingerprint_from_context(self, ctx):
        assert current_fingerprint(ctx) == Fingerprint("iTerm", "1.4.0", "theme.bundled.dark")
