# =============================================================================
# Icon Resolution
# =============================================================================
# Picks one icon path per workspace definition. First match wins:
#   1. "icon-<glyph>" naming a registered glyph -> rendered glyph path
#   2. "~" prefix expanded against the run's home directory
#   3./4. absolute icon checked directly, relative icon checked against each
#         workspace path in order
#   5. <path>/icon.png for each workspace path in order
#   6. bare DEFAULT_ICON sentinel (no directory)
#
# Known edge case: an absolute icon that does not exist never falls back to a
# same-named file inside the workspace paths; it goes straight to step 5.

import os
from pathlib import Path

from project_switcher.models import WorkspaceDefinition

GLYPH_PREFIX = "icon-"
DEFAULT_ICON = "icon.png"
GLYPH_EXTENSION = ".png"

# Octicons the renderer knows how to draw
GLYPH_REGISTRY = frozenset({
    "alert", "archive", "beaker", "bell", "book", "bookmark", "briefcase",
    "broadcast", "bug", "calendar", "checklist", "circuit-board", "cloud",
    "code", "code-square", "command-palette", "container", "cpu", "database",
    "desktop-download", "device-camera", "device-desktop", "device-mobile",
    "file", "file-code", "file-directory", "file-media", "file-submodule",
    "flame", "gear", "gift", "git-branch", "git-commit", "git-merge",
    "globe", "graph", "heart", "home", "hubot", "inbox", "infinity", "key",
    "law", "light-bulb", "link", "lock", "mail", "markdown", "megaphone",
    "mortar-board", "mark-github", "note", "organization", "package", "paintbrush",
    "paper-airplane", "person", "pin", "play", "plug", "project", "pulse",
    "rocket", "ruby", "server", "shield", "squirrel", "star", "stack",
    "terminal", "tools", "trophy", "workflow", "zap",
})


def glyph_name(icon: str | None) -> str | None:
    """Return the glyph name if `icon` is a registered "icon-<name>" reference."""
    if not icon or not icon.startswith(GLYPH_PREFIX):
        return None
    name = icon[len(GLYPH_PREFIX):]
    return name if name in GLYPH_REGISTRY else None


def glyph_icon_path(name: str, icons_dir: Path) -> Path:
    return icons_dir / f"{name}{GLYPH_EXTENSION}"


def expand_home(path: str, home: str) -> str:
    """Expand a leading "~" or "~/" against `home`. Returns a new string."""
    if path == "~":
        return home
    if path.startswith("~/"):
        return os.path.join(home, path[2:])
    return path


def resolve_icon(definition: WorkspaceDefinition, icons_dir: Path, home: str) -> str:
    """
    Resolve the icon path for one workspace definition.

    Never raises and never returns an empty string. The definition is not
    modified; tilde expansion produces a local value.

    Args:
        definition: Workspace definition to resolve for.
        icons_dir: Directory holding rendered glyphs for the active theme.
        home: Home directory captured for this run.

    Returns:
        Absolute icon path, or DEFAULT_ICON when nothing on disk matched.
    """
    paths = [expand_home(p, home) for p in (definition.paths or ())]
    icon = definition.icon

    if icon:
        name = glyph_name(icon)
        if name is not None:
            return str(glyph_icon_path(name, icons_dir))

        icon = expand_home(icon, home)

        if os.path.isabs(icon):
            candidates = [icon]
        else:
            candidates = [os.path.join(p, icon) for p in paths]

        for candidate in candidates:
            if _exists(candidate):
                return candidate

    for path in paths:
        candidate = os.path.join(path, DEFAULT_ICON)
        if _exists(candidate):
            return candidate

    return DEFAULT_ICON


def _exists(path: str) -> bool:
    try:
        return os.path.isfile(path)
    except (OSError, ValueError):
        return False
