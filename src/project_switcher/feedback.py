# =============================================================================
# Launcher Feedback (Alfred Script Filter JSON)
# =============================================================================

import json
import sys

from project_switcher.icons import DEFAULT_ICON
from project_switcher.models import LauncherEntry

NO_RESULTS_ITEM = {
    "uid": "project-switcher-no-results",
    "title": "No projects found",
    "subtitle": "Add [[workspaces]] to your config or enable repository discovery",
    "valid": False,
    "icon": {"path": DEFAULT_ICON},
}


def entry_to_item(entry: LauncherEntry) -> dict:
    return {
        "uid": entry.identity,
        "title": entry.title,
        "subtitle": entry.subtitle,
        "arg": entry.default_action.command,
        "valid": entry.default_action.enabled,
        "icon": {"path": entry.icon_path},
        "text": {"copy": entry.subtitle, "largetype": entry.title},
        "mods": {
            key.value: {
                "arg": action.command,
                "subtitle": action.label,
                "valid": action.enabled,
            }
            for key, action in entry.modifier_actions.items()
        },
    }


def build_items(entries: list[LauncherEntry], diagnostics: list[dict] | None = None) -> list[dict]:
    """Diagnostics first, then entries; the no-results item when there are no entries."""
    items = list(diagnostics or [])
    if entries:
        items.extend(entry_to_item(entry) for entry in entries)
    else:
        items.append(dict(NO_RESULTS_ITEM))
    return items


def emit(items: list[dict], stream=None) -> None:
    stream = sys.stdout if stream is None else stream
    stream.write(json.dumps({"items": items}))
    stream.write("\n")
    stream.flush()
