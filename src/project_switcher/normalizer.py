# =============================================================================
# Record Normalization
# =============================================================================

import base64
import shlex
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from project_switcher.errors import Error, ErrorReport, ErrorType, Result
from project_switcher.icons import expand_home, resolve_icon
from project_switcher.models import ActionSpec, LauncherEntry, ModifierKey, WorkspaceDefinition

SUBTITLE_SEPARATOR = ", "
GROUP_SEPARATOR = " - "


@dataclass(frozen=True)
class ActionApps:
    """Applications the open commands are built for."""
    editor: str = "Visual Studio Code"
    editor_cli: str = "code"
    terminal: str = "Terminal"
    file_browser: str = "Finder"

    @classmethod
    def from_config(cls, config: dict, terminal: str) -> "ActionApps":
        apps = config.get("apps", {})
        return cls(
            editor=apps.get("editor") or cls.editor,
            editor_cli=apps.get("editor_cli") or cls.editor_cli,
            terminal=terminal or cls.terminal,
            file_browser=apps.get("file_browser") or cls.file_browser,
        )


def build_title(definition: WorkspaceDefinition) -> str:
    if definition.group:
        return f"{definition.title}{GROUP_SEPARATOR}{definition.group}"
    return definition.title


def build_subtitle(paths) -> str:
    return SUBTITLE_SEPARATOR.join(paths or ())


def build_identity(title: str, subtitle: str) -> str:
    """
    Stable cache key for a (title, subtitle) pair.

    Base64 of the newline-joined UTF-8 text: deterministic across runs and
    reversible, so distinct pairs never share a key.
    """
    raw = f"{title}\n{subtitle}".encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _quoted(paths) -> str:
    return " ".join(shlex.quote(p) for p in paths)


def open_with_app(app: str, paths) -> str:
    """`open -a <app> <paths...>` with every argument shell-quoted."""
    return f"open -a {shlex.quote(app)} {_quoted(paths)}"


def editor_cli_command(cli: str, flags: list[str], paths) -> str:
    parts = [shlex.quote(cli), *flags, _quoted(paths)]
    return " ".join(parts)


def build_modifier_actions(paths, apps: ActionApps) -> dict[ModifierKey, ActionSpec]:
    """One enabled action per modifier key, in ModifierKey order."""
    dev_flags = [shlex.quote(f"--extensionDevelopmentPath={p}") for p in paths]
    return {
        ModifierKey.ALT: ActionSpec(
            label=f"Open in {apps.terminal}",
            command=open_with_app(apps.terminal, paths),
        ),
        ModifierKey.CMD: ActionSpec(
            label=f"Open in new {apps.editor} window",
            command=editor_cli_command(apps.editor_cli, ["--new-window"], paths),
        ),
        ModifierKey.CTRL: ActionSpec(
            label=f"Open in {apps.editor} extension development mode",
            command=f"{shlex.quote(apps.editor_cli)} {' '.join(dev_flags)}",
        ),
        ModifierKey.FN: ActionSpec(
            label=f"Add to last {apps.editor} window",
            command=editor_cli_command(apps.editor_cli, ["--add"], paths),
        ),
        ModifierKey.SHIFT: ActionSpec(
            label=f"Reveal in {apps.file_browser}",
            command=open_with_app(apps.file_browser, paths),
        ),
    }


def normalize(
    definition: WorkspaceDefinition,
    apps: ActionApps,
    icons_dir: Path,
    home: str,
) -> Result[LauncherEntry]:
    """
    Turn one workspace definition into a launcher entry.

    Definitions without paths are templates: they come back as a
    SKIPPED_RECORD error for the caller to log, never as an exception.

    Args:
        definition: Raw workspace definition.
        apps: Applications used for the open commands.
        icons_dir: Rendered glyph directory for the active theme.
        home: Home directory captured for this run.

    Returns:
        Result[LauncherEntry]
    """
    if not definition.paths:
        return Result.err(Error(
            error_type=ErrorType.SKIPPED_RECORD,
            message="Skipping workspace without paths",
            context={"workspace_title": definition.title}
        ))

    paths = [expand_home(p, home) for p in definition.paths]
    title = build_title(definition)
    subtitle = build_subtitle(definition.paths)

    return Result.ok(LauncherEntry(
        identity=build_identity(title, subtitle),
        title=title,
        subtitle=subtitle,
        icon_path=resolve_icon(definition, icons_dir, home),
        default_action=ActionSpec(
            label=f"Open in {apps.editor}",
            command=open_with_app(apps.editor, paths),
        ),
        modifier_actions=build_modifier_actions(paths, apps),
    ))


def normalize_all(
    definitions: list[WorkspaceDefinition],
    apps: ActionApps,
    icons_dir: Path,
    home: str,
    report: ErrorReport | None = None,
) -> list[LauncherEntry]:
    """Normalize a batch, dropping (and reporting) skipped records."""
    entries = []
    skipped = 0
    for definition in definitions:
        result = normalize(definition, apps, icons_dir, home)
        if result.is_ok():
            entries.append(result.value)
            continue
        skipped += 1
        if report is not None:
            report.collect_result(result, as_warning=True)

    logger.debug(
        "Normalized workspace definitions",
        operation="normalize_all",
        status="success",
        metrics={"entries": len(entries), "skipped": skipped}
    )
    return entries
