# tests/test_normalizer.py
# Workspace definition -> launcher entry.

import base64

import pytest

from project_switcher.errors import ErrorReport, ErrorType
from project_switcher.icons import DEFAULT_ICON
from project_switcher.models import ModifierKey, WorkspaceDefinition
from project_switcher.normalizer import (
    ActionApps,
    build_identity,
    build_title,
    normalize,
    normalize_all,
)


@pytest.fixture
def icons_dir(tmp_path):
    return tmp_path / "icons"


class TestNormalizeSkips:
    @pytest.mark.parametrize("paths", [None, ()])
    def test_missing_or_empty_paths_are_skipped(self, paths, apps, icons_dir):
        result = normalize(WorkspaceDefinition(title="Template", paths=paths), apps, icons_dir, "/home")

        assert result.is_err()
        assert result.error.error_type == ErrorType.SKIPPED_RECORD


class TestNormalizeEntry:
    def test_title_with_group(self):
        assert build_title(WorkspaceDefinition(title="Api", group="Work")) == "Api - Work"

    def test_title_without_group(self):
        assert build_title(WorkspaceDefinition(title="Api")) == "Api"

    def test_subtitle_joins_paths(self, apps, icons_dir):
        definition = WorkspaceDefinition(title="Mono", paths=("/src/a", "/src/b"))
        entry = normalize(definition, apps, icons_dir, "/home").value

        assert entry.subtitle == "/src/a, /src/b"
        assert entry.icon_path == DEFAULT_ICON

    def test_all_five_modifiers_enabled(self, apps, icons_dir):
        entry = normalize(WorkspaceDefinition(title="A", paths=("/a",)), apps, icons_dir, "/home").value

        assert set(entry.modifier_actions) == set(ModifierKey)
        assert all(action.enabled for action in entry.modifier_actions.values())

    def test_commands_quote_paths_with_spaces(self, apps, icons_dir):
        entry = normalize(
            WorkspaceDefinition(title="A", paths=("/my projects/app",)), apps, icons_dir, "/home"
        ).value

        assert entry.default_action.command == "open -a 'Visual Studio Code' '/my projects/app'"
        assert entry.modifier_actions[ModifierKey.ALT].command == "open -a iTerm '/my projects/app'"
        assert entry.modifier_actions[ModifierKey.SHIFT].command == "open -a Finder '/my projects/app'"

    def test_editor_flag_actions(self, apps, icons_dir):
        entry = normalize(WorkspaceDefinition(title="A", paths=("/a", "/b")), apps, icons_dir, "/home").value
        mods = entry.modifier_actions

        assert mods[ModifierKey.CMD].command == "code --new-window /a /b"
        assert mods[ModifierKey.FN].command == "code --add /a /b"
        assert mods[ModifierKey.CTRL].command == (
            "code --extensionDevelopmentPath=/a --extensionDevelopmentPath=/b"
        )

    def test_tilde_paths_expanded_in_commands_only(self, apps, icons_dir):
        entry = normalize(WorkspaceDefinition(title="A", paths=("~/code",)), apps, icons_dir, "/Users/me").value

        assert entry.subtitle == "~/code"
        assert entry.default_action.command.endswith("/Users/me/code")

    def test_custom_apps_from_config(self, icons_dir):
        apps = ActionApps.from_config({"apps": {"editor": "Cursor", "editor_cli": "cursor"}}, "Warp")
        entry = normalize(WorkspaceDefinition(title="A", paths=("/a",)), apps, icons_dir, "/home").value

        assert entry.default_action.command == "open -a Cursor /a"
        assert entry.modifier_actions[ModifierKey.CMD].command == "cursor --new-window /a"
        assert entry.modifier_actions[ModifierKey.ALT].command == "open -a Warp /a"


class TestIdentity:
    def test_deterministic(self):
        assert build_identity("A", "/a") == build_identity("A", "/a")

    def test_reversible_encoding(self):
        decoded = base64.urlsafe_b64decode(build_identity("Ünï", "/a, /b")).decode("utf-8")
        assert decoded == "Ünï\n/a, /b"

    def test_boundary_does_not_collide(self):
        assert build_identity("ab", "c") != build_identity("a", "bc")

    def test_same_title_and_subtitle_share_identity(self, apps, icons_dir):
        one = normalize(WorkspaceDefinition(title="A", group="G", paths=("/a",)), apps, icons_dir, "/home").value
        two = normalize(WorkspaceDefinition(title="A - G", paths=("/a",)), apps, icons_dir, "/home").value

        assert one.identity == two.identity


class TestNormalizeAll:
    def test_drops_templates_and_reports_warning(self, apps, icons_dir):
        report = ErrorReport()
        definitions = [
            WorkspaceDefinition(title="Foo", paths=("/a",)),
            WorkspaceDefinition(title="", paths=()),
        ]

        entries = normalize_all(definitions, apps, icons_dir, "/home", report)

        assert [e.title for e in entries] == ["Foo"]
        assert len(report.warnings) == 1
        assert not report.has_errors()
