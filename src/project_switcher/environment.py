# =============================================================================
# Run Context
# =============================================================================
# Environment reads happen once per run, here. Everything downstream gets the
# captured RunContext instead of touching os.environ itself.

import os
import re
from dataclasses import dataclass
from pathlib import Path

import platformdirs

APP_NAME = "project-switcher"

CONFIG_SUBDIR = Path(".config") / "project-switcher"
CONFIG_FILENAME = "config.toml"
CONFIG_ENV_VAR = "PROJECT_SWITCHER_CONFIG"
TERMINAL_ENV_VAR = "PROJECT_SWITCHER_TERMINAL"
DEFAULT_TERMINAL_APP = "Terminal"

# =============================================================================
# PATH Augmentation for Launcher Environment
# =============================================================================
# Launcher-spawned scripts get a minimal PATH (/usr/bin:/bin:/usr/sbin:/sbin),
# so shutil.which() would miss Homebrew-installed tools like rsvg-convert.

_ADDITIONAL_PATHS = [
    "/opt/homebrew/bin",      # Homebrew on Apple Silicon
    "/usr/local/bin",         # Homebrew on Intel / user binaries
    os.path.expanduser("~/.local/bin"),
    os.path.expanduser("~/bin"),
]


def augment_path(environ: dict | None = None) -> None:
    """Prepend common tool locations to PATH if they exist and are missing."""
    environ = os.environ if environ is None else environ
    current_path = environ.get("PATH", "")
    path_dirs = [d for d in current_path.split(os.pathsep) if d]

    for additional in reversed(_ADDITIONAL_PATHS):
        if additional not in path_dirs and os.path.isdir(additional):
            path_dirs.insert(0, additional)

    environ["PATH"] = os.pathsep.join(path_dirs)


def theme_slug(theme_id: str | None) -> str:
    """Filesystem-safe directory name for a theme identifier."""
    if not theme_id:
        return "default"
    return re.sub(r"[^A-Za-z0-9._-]+", "_", theme_id)


@dataclass(frozen=True)
class RunContext:
    home: str
    terminal_app: str
    workflow_version: str | None
    theme_id: str | None
    theme_file: Path | None
    workflow_dir: Path
    cache_dir: Path
    data_dir: Path
    config_path: Path

    @property
    def config_dir(self) -> Path:
        return self.config_path.parent

    @property
    def icons_root(self) -> Path:
        return self.cache_dir / "icons"

    @property
    def icons_dir(self) -> Path:
        """Rendered glyphs for the active theme."""
        return self.icons_root / theme_slug(self.theme_id)


def capture_context(environ: dict | None = None, cwd: Path | None = None) -> RunContext:
    """
    Snapshot the process environment into a RunContext.

    Recognized variables (Alfred sets the alfred_* ones for workflow scripts):
        alfred_workflow_version, alfred_theme, alfred_preferences,
        alfred_workflow_cache, alfred_workflow_data,
        PROJECT_SWITCHER_TERMINAL, PROJECT_SWITCHER_CONFIG, HOME

    Args:
        environ: Mapping to read instead of os.environ (tests).
        cwd: Workflow directory; defaults to the current directory.

    Returns:
        Frozen RunContext for the rest of the run.
    """
    environ = os.environ if environ is None else environ

    home = environ.get("HOME") or str(Path.home())
    theme_id = environ.get("alfred_theme") or None

    theme_file = None
    prefs_dir = environ.get("alfred_preferences")
    if prefs_dir and theme_id:
        theme_file = Path(prefs_dir) / "themes" / theme_id / "theme.json"

    cache_dir = environ.get("alfred_workflow_cache")
    data_dir = environ.get("alfred_workflow_data")
    config_path = environ.get(CONFIG_ENV_VAR)

    return RunContext(
        home=home,
        terminal_app=environ.get(TERMINAL_ENV_VAR) or DEFAULT_TERMINAL_APP,
        workflow_version=environ.get("alfred_workflow_version") or None,
        theme_id=theme_id,
        theme_file=theme_file,
        workflow_dir=cwd if cwd is not None else Path.cwd(),
        cache_dir=Path(cache_dir) if cache_dir else Path(platformdirs.user_cache_dir(APP_NAME)),
        data_dir=Path(data_dir) if data_dir else Path(platformdirs.user_data_dir(APP_NAME)),
        config_path=Path(config_path).expanduser() if config_path else Path(home) / CONFIG_SUBDIR / CONFIG_FILENAME,
    )
