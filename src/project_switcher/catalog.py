# =============================================================================
# Catalog Orchestration
# =============================================================================
# One run: fingerprint -> load config -> normalize -> discover + dedupe ->
# sort -> schedule icon rendering -> feedback items.

import time
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from loguru import logger

from project_switcher.cache_store import CacheStore, SourceCache
from project_switcher.config_loader import (
    DEFAULT_CONFIG,
    load_config_from_path,
    load_workspace_definitions,
    workspace_sources,
)
from project_switcher.discovery import dedupe_discovered, discover_git_repos
from project_switcher.environment import RunContext, theme_slug
from project_switcher.errors import ErrorReport, ErrorType
from project_switcher.feedback import build_items
from project_switcher.fingerprint import FingerprintTracker, current_fingerprint
from project_switcher.icons import expand_home
from project_switcher.logging_config import trace_id_var
from project_switcher.models import InvalidationLevel, LauncherEntry
from project_switcher.normalizer import ActionApps, normalize_all
from project_switcher.renderer import IconRenderer, diagnostic_item

THEME_WATCH_NAME = "watch-theme"
GLYPH_SOURCE_DIRNAME = "octicons"


def sort_entries(entries: list[LauncherEntry]) -> list[LauncherEntry]:
    """Case-insensitive title order; equal titles keep their relative order."""
    return sorted(entries, key=lambda entry: entry.title.lower())


def filter_entries(entries: list[LauncherEntry], query: str | None) -> list[LauncherEntry]:
    """Keep entries whose title or subtitle contains every query word."""
    words = (query or "").lower().split()
    if not words:
        return list(entries)
    return [
        entry for entry in entries
        if all(word in f"{entry.title} {entry.subtitle}".lower() for word in words)
    ]


@dataclass
class CatalogResult:
    entries: list[LauncherEntry]
    level: InvalidationLevel
    diagnostics: list[dict] = field(default_factory=list)

    def items(self) -> list[dict]:
        return build_items(self.entries, self.diagnostics)


class CatalogOrchestrator:
    """Builds the launcher catalog for one invocation."""

    def __init__(
        self,
        ctx: RunContext,
        store: CacheStore | None = None,
        renderer: IconRenderer | None = None,
        report: ErrorReport | None = None,
    ):
        self.ctx = ctx
        self.store = store or CacheStore(ctx.data_dir, ctx.cache_dir)
        self.tracker = FingerprintTracker(self.store)
        self.report = report or ErrorReport()
        self._renderer = renderer
        self.config = DEFAULT_CONFIG

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_config(self) -> dict:
        """
        Load config.toml into self.config.

        A missing or unparseable config yields the defaults; the extra
        workspaces files are still read by configured_entries(). Wrongly
        typed settings fall back to their defaults with a warning.
        """
        config_result = load_config_from_path(self.ctx.config_path, report=self.report)
        if config_result.is_ok():
            self.config = config_result.value
        else:
            self.config = DEFAULT_CONFIG
            if config_result.error.error_type == ErrorType.FILE_NOT_FOUND:
                logger.info(
                    "No config file, using defaults",
                    operation="load_config",
                    status="default",
                    config_path=str(self.ctx.config_path)
                )
            else:
                self.report.collect_result(config_result)

        return self.config

    def renderer(self) -> IconRenderer:
        if self._renderer is None:
            icons = self.config.get("icons", {})
            source_dir = icons.get("glyph_source_dir")
            self._renderer = IconRenderer(
                icons_dir=self.ctx.icons_dir,
                glyph_source_dir=(
                    Path(expand_home(source_dir, self.ctx.home)) if source_dir
                    else self.ctx.workflow_dir / GLYPH_SOURCE_DIRNAME
                ),
                workflow_dir=self.ctx.workflow_dir,
                theme_file=self.ctx.theme_file,
                size=int(icons.get("size") or 128),
                default_glyph=icons.get("default_glyph") or "file-directory",
                report=self.report,
            )
        return self._renderer

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def configured_entries(self, apps: ActionApps) -> list[LauncherEntry]:
        """Normalized configured workspaces, cached until a config file changes."""
        cache = SourceCache(
            self.ctx.cache_dir,
            f"entries-configured-{theme_slug(self.ctx.theme_id)}",
            workspace_sources(self.ctx.config_path),
        )
        cache.on_change(lambda value: logger.info(
            "Configured entries rebuilt",
            operation="configured_entries",
            status="rebuilt",
            metrics={"entries": len(value)}
        ))

        def build() -> list[dict]:
            definitions = load_workspace_definitions(self.config, self.ctx.config_path)
            entries = normalize_all(definitions, apps, self.ctx.icons_dir, self.ctx.home, self.report)
            return [entry.to_dict() for entry in entries]

        return [LauncherEntry.from_dict(data) for data in cache.refresh(build)]

    def discovered_entries(self, apps: ActionApps, existing: list[LauncherEntry]) -> list[LauncherEntry]:
        options = self.config.get("options", {})
        if not options.get("include_discovered_repositories"):
            return []

        root = expand_home(options.get("discovery_root") or DEFAULT_CONFIG["options"]["discovery_root"], self.ctx.home)
        definitions = discover_git_repos(root, prettify=bool(options.get("prettify_discovered_titles", True)))
        discovered = normalize_all(definitions, apps, self.ctx.icons_dir, self.ctx.home, self.report)
        return dedupe_discovered(discovered, existing)

    # -------------------------------------------------------------------------
    # Icons
    # -------------------------------------------------------------------------

    def theme_file_changed(self) -> bool:
        """True when the active theme's file was edited since the last run."""
        if self.ctx.theme_file is None:
            return False

        watch = SourceCache(self.ctx.cache_dir, THEME_WATCH_NAME, [self.ctx.theme_file])
        if not watch.has_changed():
            return False

        previous_theme = watch.get_cached()
        watch.refresh(lambda: self.ctx.theme_id)
        return previous_theme == self.ctx.theme_id

    def schedule_icons(self, entries: list[LauncherEntry], level: InvalidationLevel) -> list[dict]:
        """
        Ask the renderer for the icons this level requires.

        FULL re-renders everything; ICONS_ONLY and NONE render only missing
        icons, ICONS_ONLY also dropping other themes' icon sets and re-tinting
        the shared icon.png. An edited theme file forces a full re-render for
        the current theme.

        Returns:
            Diagnostic feedback items (converter missing), possibly empty.
        """
        renderer = self.renderer()
        if not renderer.is_available():
            logger.warning(
                "Icon renderer unavailable",
                operation="schedule_icons",
                status="collaborator_unavailable"
            )
            return [diagnostic_item()]

        force = self.theme_file_changed()
        if level == InvalidationLevel.ICONS_ONLY:
            renderer.prune_stale_themes()

        renderer.rebuild(
            entries,
            only_missing=level != InvalidationLevel.FULL and not force,
            refresh_sentinel=level == InvalidationLevel.ICONS_ONLY,
        )
        return []

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    def assess(self) -> InvalidationLevel:
        level = self.tracker.observe(current_fingerprint(self.ctx), self.ctx.icons_root)
        if level == InvalidationLevel.FULL:
            self.store.clear_cached_entries()

        # Icon storage exists from the first run on, with or without glyphs
        self.ctx.icons_dir.mkdir(parents=True, exist_ok=True)
        return level

    def build(self) -> CatalogResult:
        """Run the whole pipeline and return sorted entries plus diagnostics."""
        start_time = time.perf_counter()
        op_trace_id = trace_id_var.get() or str(uuid4())

        level = self.assess()

        # Config is needed for apps/options even when entries come from cache
        self.load_config()
        apps = ActionApps.from_config(self.config, self.ctx.terminal_app)

        entries = self.configured_entries(apps)
        entries = entries + self.discovered_entries(apps, entries)
        entries = sort_entries(entries)

        diagnostics = self.schedule_icons(entries, level)

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Catalog built",
            operation="catalog_build",
            status="success",
            trace_id=op_trace_id,
            invalidation=level.name.lower(),
            metrics={"entries": len(entries), "diagnostics": len(diagnostics), "duration_ms": duration_ms}
        )
        return CatalogResult(entries=entries, level=level, diagnostics=diagnostics)

    def handle_theme_change(self) -> InvalidationLevel:
        """
        Theme file-watch callback: re-render the current theme's icons.

        Safe to run repeatedly or alongside a normal run; renders replace
        their targets atomically.
        """
        level = self.assess()
        self.load_config()
        apps = ActionApps.from_config(self.config, self.ctx.terminal_app)
        entries = self.configured_entries(apps)
        entries = entries + self.discovered_entries(apps, entries)

        renderer = self.renderer()
        if not renderer.is_available():
            logger.warning(
                "Icon renderer unavailable",
                operation="handle_theme_change",
                status="collaborator_unavailable"
            )
            return level

        if level == InvalidationLevel.ICONS_ONLY:
            renderer.prune_stale_themes()
        renderer.rebuild(entries, only_missing=False)
        return level
