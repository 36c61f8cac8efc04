# tests/conftest.py
# Shared fixtures: an isolated run context with every directory under tmp_path.

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from project_switcher import renderer as renderer_module
from project_switcher.environment import RunContext
from project_switcher.normalizer import ActionApps

GLYPH_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16"><path d="M0 0h16v16H0z"/></svg>'


@pytest.fixture
def ctx(tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    workflow_dir = tmp_path / "workflow"
    workflow_dir.mkdir()
    return RunContext(
        home=str(home),
        terminal_app="iTerm",
        workflow_version="1.4.0",
        theme_id="theme.bundled.dark",
        theme_file=None,
        workflow_dir=workflow_dir,
        cache_dir=tmp_path / "cache",
        data_dir=tmp_path / "data",
        config_path=home / ".config" / "project-switcher" / "config.toml",
    )


@pytest.fixture
def apps():
    return ActionApps(terminal="iTerm")


@pytest.fixture
def write_config(ctx):
    def _write(text: str):
        ctx.config_path.parent.mkdir(parents=True, exist_ok=True)
        ctx.config_path.write_text(text)
        return ctx.config_path
    return _write


@pytest.fixture
def glyph_dir(tmp_path):
    path = tmp_path / "octicons"
    path.mkdir()
    for name in ("star", "file-directory"):
        (path / f"{name}.svg").write_text(GLYPH_SVG)
    return path


@pytest.fixture
def fake_converter(monkeypatch):
    """Pretend rsvg-convert exists; each output holds the tinted SVG it was given."""
    monkeypatch.setattr(renderer_module, "find_converter_path", lambda: "/usr/local/bin/rsvg-convert")
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        out = cmd[cmd.index("-o") + 1]
        Path(out).write_text(Path(cmd[-1]).read_text())
        return MagicMock(returncode=0, stderr="")

    monkeypatch.setattr(subprocess, "run", run)
    return calls


@pytest.fixture(autouse=True)
def reset_converter_cache():
    renderer_module.reset_converter_cache()
    yield
    renderer_module.reset_converter_cache()
