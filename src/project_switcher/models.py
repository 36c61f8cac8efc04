# =============================================================================
# Data Models
# =============================================================================
# Value objects shared by the pipeline. All of them are frozen once built;
# entries never hold a reference back to the definition they came from.

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class ModifierKey(str, Enum):
    ALT = "alt"
    CMD = "cmd"
    CTRL = "ctrl"
    FN = "fn"
    SHIFT = "shift"


class InvalidationLevel(IntEnum):
    """Ordered by severity so assessments combine with max()."""
    NONE = 0
    ICONS_ONLY = 1
    FULL = 2


@dataclass(frozen=True)
class WorkspaceDefinition:
    """One raw workspace record, as authored by the user or by discovery."""
    title: str
    group: str | None = None
    paths: tuple[str, ...] | None = None
    icon: str | None = None

    @classmethod
    def from_raw(cls, raw: dict) -> "WorkspaceDefinition":
        """
        Build a definition from an untrusted mapping.

        A string `paths` becomes a one-element tuple and non-string members
        are dropped. A missing `paths` key stays None (template record).
        """
        paths = raw.get("paths")
        if isinstance(paths, str):
            paths = (paths,)
        elif isinstance(paths, (list, tuple)):
            paths = tuple(p for p in paths if isinstance(p, str))
        else:
            paths = None

        group = raw.get("group")
        icon = raw.get("icon")
        return cls(
            title=str(raw.get("title") or ""),
            group=group if isinstance(group, str) and group else None,
            paths=paths,
            icon=icon if isinstance(icon, str) and icon else None,
        )


@dataclass(frozen=True)
class ActionSpec:
    label: str
    command: str
    enabled: bool = True

    def to_dict(self) -> dict:
        return {"label": self.label, "command": self.command, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: dict) -> "ActionSpec":
        return cls(
            label=data["label"],
            command=data["command"],
            enabled=bool(data.get("enabled", True)),
        )


@dataclass(frozen=True)
class LauncherEntry:
    identity: str
    title: str
    subtitle: str
    icon_path: str
    default_action: ActionSpec
    modifier_actions: dict[ModifierKey, ActionSpec] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "title": self.title,
            "subtitle": self.subtitle,
            "icon_path": self.icon_path,
            "default_action": self.default_action.to_dict(),
            "modifier_actions": {
                key.value: action.to_dict()
                for key, action in self.modifier_actions.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LauncherEntry":
        return cls(
            identity=data["identity"],
            title=data["title"],
            subtitle=data["subtitle"],
            icon_path=data["icon_path"],
            default_action=ActionSpec.from_dict(data["default_action"]),
            modifier_actions={
                ModifierKey(key): ActionSpec.from_dict(action)
                for key, action in data.get("modifier_actions", {}).items()
            },
        )


@dataclass(frozen=True)
class Fingerprint:
    terminal_app_id: str | None = None
    workflow_version: str | None = None
    theme_id: str | None = None

    def is_empty(self) -> bool:
        return (
            self.terminal_app_id is None
            and self.workflow_version is None
            and self.theme_id is None
        )
