# =============================================================================
# Fingerprint Tracking
# =============================================================================
# Decides how much cached state a run must throw away:
#   no stored fingerprint / icon storage missing -> FULL
#   terminal app or workflow version changed     -> FULL
#   theme changed                                -> ICONS_ONLY
#   otherwise                                    -> NONE

from pathlib import Path

from loguru import logger

from project_switcher.cache_store import CacheStore
from project_switcher.environment import RunContext
from project_switcher.models import Fingerprint, InvalidationLevel

FINGERPRINT_KEYS = ("terminal_app_id", "workflow_version", "theme_id")


def current_fingerprint(ctx: RunContext) -> Fingerprint:
    return Fingerprint(
        terminal_app_id=ctx.terminal_app,
        workflow_version=ctx.workflow_version,
        theme_id=ctx.theme_id,
    )


def assess(
    current: Fingerprint,
    stored: Fingerprint | None,
    icons_present: bool = True,
) -> InvalidationLevel:
    """Compare fingerprints field by field and return the widest invalidation."""
    if stored is None or not icons_present:
        return InvalidationLevel.FULL

    levels = [InvalidationLevel.NONE]
    if current.terminal_app_id != stored.terminal_app_id:
        levels.append(InvalidationLevel.FULL)
    if current.workflow_version != stored.workflow_version:
        levels.append(InvalidationLevel.FULL)
    if current.theme_id != stored.theme_id:
        levels.append(InvalidationLevel.ICONS_ONLY)
    return max(levels)


class FingerprintTracker:
    """Persists the last observed fingerprint in a CacheStore."""

    def __init__(self, store: CacheStore):
        self.store = store

    def load_stored(self) -> Fingerprint | None:
        """The stored fingerprint, or None when none of its fields were ever saved."""
        values = {key: self.store.get(key) for key in FINGERPRINT_KEYS}
        if all(value is None for value in values.values()):
            return None
        return Fingerprint(**values)

    def save(self, fingerprint: Fingerprint) -> None:
        self.store.set_many({
            "terminal_app_id": fingerprint.terminal_app_id,
            "workflow_version": fingerprint.workflow_version,
            "theme_id": fingerprint.theme_id,
        })

    def observe(self, current: Fingerprint, icons_root: Path) -> InvalidationLevel:
        """
        Assess `current` against the stored fingerprint, then store `current`.

        The new fingerprint is saved whatever the outcome, so the next run
        compares against the latest observed values. `icons_root` is the icon
        storage directory shared by all themes; a theme that has not been
        rendered yet still counts as a theme change.
        """
        stored = self.load_stored()
        level = assess(current, stored, icons_present=icons_root.is_dir())
        self.save(current)

        logger.info(
            "Fingerprint assessed",
            operation="fingerprint_observe",
            status=level.name.lower(),
            first_run=stored is None,
            theme_id=current.theme_id,
            workflow_version=current.workflow_version
        )
        return level
