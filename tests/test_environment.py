# tests/test_environment.py
# Run context capture and PATH augmentation.

import os
from pathlib import Path

from project_switcher import environment
from project_switcher.environment import augment_path, capture_context, theme_slug


class TestCaptureContext:
    def test_launcher_variables(self, tmp_path):
        environ = {
            "HOME": "/Users/me",
            "alfred_workflow_version": "2.1",
            "alfred_theme": "theme.custom.Night Owl",
            "alfred_preferences": "/prefs",
            "alfred_workflow_cache": str(tmp_path / "cache"),
            "alfred_workflow_data": str(tmp_path / "data"),
            "PROJECT_SWITCHER_TERMINAL": "iTerm",
        }

        ctx = capture_context(environ, cwd=tmp_path)

        assert ctx.home == "/Users/me"
        assert ctx.terminal_app == "iTerm"
        assert ctx.workflow_version == "2.1"
        assert ctx.theme_file == Path("/prefs/themes/theme.custom.Night Owl/theme.json")
        assert ctx.icons_dir == tmp_path / "cache" / "icons" / "theme.custom.Night_Owl"
        assert ctx.config_path == Path("/Users/me/.config/project-switcher/config.toml")
        assert ctx.workflow_dir == tmp_path

    def test_defaults_outside_launcher(self, tmp_path):
        ctx = capture_context({"HOME": str(tmp_path)}, cwd=tmp_path)

        assert ctx.terminal_app == "Terminal"
        assert ctx.workflow_version is None
        assert ctx.theme_id is None
        assert ctx.theme_file is None
        assert ctx.icons_dir.name == "default"

    def test_config_override(self, tmp_path):
        ctx = capture_context(
            {"HOME": str(tmp_path), "PROJECT_SWITCHER_CONFIG": str(tmp_path / "alt.toml")},
            cwd=tmp_path,
        )
        assert ctx.config_path == tmp_path / "alt.toml"


class TestThemeSlug:
    def test_slug(self):
        assert theme_slug(None) == "default"
        assert theme_slug("a/b c") == "a_b_c"


class TestAugmentPath:
    def test_prepends_existing_dirs_once(self, tmp_path, monkeypatch):
        extra = tmp_path / "bin"
        extra.mkdir()
        monkeypatch.setattr(environment, "_ADDITIONAL_PATHS", [str(extra), str(tmp_path / "missing")])
        environ = {"PATH": "/usr/bin:/bin"}

        augment_path(environ)
        augment_path(environ)

        assert environ["PATH"].split(os.pathsep) == [str(extra), "/usr/bin", "/bin"]
