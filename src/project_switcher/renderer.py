# =============================================================================
# Icon Rendering (rsvg-convert)
# =============================================================================
# Rasterizes octicon SVGs into the active theme's icons dir. The catalog only
# decides when to call rebuild() and with which scope.

import json
import os
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from project_switcher.errors import Error, ErrorReport, ErrorType
from project_switcher.icons import DEFAULT_ICON, GLYPH_EXTENSION, GLYPH_REGISTRY, glyph_icon_path
from project_switcher.models import LauncherEntry

CONVERTER_BINARY = "rsvg-convert"
CONVERTER_BREW_PACKAGE = "librsvg"
FALLBACK_COLOUR = "#808080"
RENDER_TIMEOUT_SECONDS = 10

# Cached converter path (None = not checked yet, False = not found)
_converter_path_cache: str | None | bool = None


def find_converter_path() -> str | None:
    """
    Find rsvg-convert across Intel and Apple Silicon Homebrew paths.

    Search order:
    1. /opt/homebrew/bin/rsvg-convert (Apple Silicon Homebrew)
    2. /usr/local/bin/rsvg-convert (Intel Homebrew)
    3. shutil.which("rsvg-convert") (fallback to PATH)

    Returns:
        Path to the converter binary, or None if not found
    """
    global _converter_path_cache

    if _converter_path_cache is not None:
        return _converter_path_cache if _converter_path_cache else None

    search_paths = [
        f"/opt/homebrew/bin/{CONVERTER_BINARY}",
        f"/usr/local/bin/{CONVERTER_BINARY}",
    ]

    for path in search_paths:
        if Path(path).exists():
            _converter_path_cache = path
            logger.debug("Found icon converter", path=path, operation="find_converter_path")
            return path

    path_result = shutil.which(CONVERTER_BINARY)
    if path_result:
        _converter_path_cache = path_result
        logger.debug("Found icon converter via PATH", path=path_result, operation="find_converter_path")
        return path_result

    _converter_path_cache = False
    logger.debug("Icon converter not found", searched=search_paths, operation="find_converter_path")
    return None


def reset_converter_cache() -> None:
    global _converter_path_cache
    _converter_path_cache = None


def read_theme_colour(theme_file: Path | None) -> str:
    """
    Result text colour from an Alfred theme JSON file.

    Looks up alfredtheme.result.text.color and returns it as #RRGGBB (alpha
    dropped). Falls back to grey when the file or key is missing.
    """
    if theme_file is None:
        return FALLBACK_COLOUR
    try:
        with open(theme_file, "r", encoding="utf-8") as f:
            theme = json.load(f)
        colour = theme["alfredtheme"]["result"]["text"]["color"]
    except (OSError, json.JSONDecodeError, KeyError, TypeError):
        return FALLBACK_COLOUR

    if isinstance(colour, str) and re.fullmatch(r"#[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?", colour):
        return colour[:7].upper()
    return FALLBACK_COLOUR


def tint_svg(svg: str, colour: str) -> str:
    """Set the fill of the root <svg> element, replacing currentColor uses."""
    svg = svg.replace("currentColor", colour)
    if re.search(r"<svg\b[^>]*\bfill=", svg):
        return re.sub(r'(<svg\b[^>]*\bfill=)"[^"]*"', rf'\1"{colour}"', svg, count=1)
    return re.sub(r"<svg\b", f'<svg fill="{colour}"', svg, count=1)


@dataclass
class RebuildResult:
    rendered: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class IconRenderer:
    """Renders glyph icons needed by a set of launcher entries."""

    def __init__(
        self,
        icons_dir: Path,
        glyph_source_dir: Path,
        workflow_dir: Path,
        theme_file: Path | None = None,
        size: int = 128,
        default_glyph: str = "file-directory",
        report: ErrorReport | None = None,
    ):
        self.icons_dir = icons_dir
        self.glyph_source_dir = glyph_source_dir
        self.workflow_dir = workflow_dir
        self.theme_file = theme_file
        self.size = size
        self.default_glyph = default_glyph
        self.report = report

    def is_available(self) -> bool:
        return find_converter_path() is not None

    def targets_for(self, entries: list[LauncherEntry]) -> dict[Path, str]:
        """
        Map output file -> glyph name for the icons `entries` need.

        Entries on a glyph path in icons_dir need that glyph; entries on the
        bare DEFAULT_ICON sentinel need the default glyph in the workflow dir.
        """
        targets: dict[Path, str] = {}
        for entry in entries:
            if entry.icon_path == DEFAULT_ICON:
                if self.default_glyph in GLYPH_REGISTRY:
                    targets[self.workflow_dir / DEFAULT_ICON] = self.default_glyph
                continue

            icon_path = Path(entry.icon_path)
            if icon_path.parent == self.icons_dir and icon_path.suffix == GLYPH_EXTENSION:
                name = icon_path.stem
                if name in GLYPH_REGISTRY:
                    targets[glyph_icon_path(name, self.icons_dir)] = name
        return targets

    def rebuild(
        self,
        entries: list[LauncherEntry],
        only_missing: bool = True,
        refresh_sentinel: bool = False,
    ) -> RebuildResult:
        """
        Render every glyph the entries need.

        Args:
            entries: Launcher entries to render icons for.
            only_missing: Skip outputs that already exist on disk.
            refresh_sentinel: Re-render the workflow dir icon.png even when
                only_missing is set. It is shared by all themes, so a theme
                switch must re-tint it.

        Returns:
            RebuildResult listing rendered, skipped and failed outputs.
        """
        result = RebuildResult()
        converter = find_converter_path()
        if converter is None:
            self._note(Error(
                error_type=ErrorType.COLLABORATOR_UNAVAILABLE,
                message="Icon converter not installed",
                context={"binary": CONVERTER_BINARY}
            ))
            return result

        colour = read_theme_colour(self.theme_file)
        sentinel = self.workflow_dir / DEFAULT_ICON
        for output, name in self.targets_for(entries).items():
            keep = only_missing and not (refresh_sentinel and output == sentinel)
            if keep and output.exists():
                result.skipped.append(str(output))
                continue
            if self.render_glyph(converter, name, output, colour):
                result.rendered.append(str(output))
            else:
                result.failed.append(str(output))

        logger.info(
            "Icon rebuild complete",
            operation="icon_rebuild",
            status="success" if not result.failed else "partial",
            only_missing=only_missing,
            refresh_sentinel=refresh_sentinel,
            icons_dir=str(self.icons_dir),
            metrics={
                "rendered": len(result.rendered),
                "skipped": len(result.skipped),
                "failed": len(result.failed),
            }
        )
        return result

    def render_glyph(self, converter: str, name: str, output: Path, colour: str) -> bool:
        source = self.glyph_source_dir / f"{name}.svg"
        try:
            svg = source.read_text(encoding="utf-8")
        except OSError:
            self._note(Error(
                error_type=ErrorType.MISSING_RESOURCE,
                message="Glyph source missing",
                context={"glyph": name, "source": str(source)}
            ))
            return False

        output.parent.mkdir(parents=True, exist_ok=True)
        svg_path = None
        png_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w", suffix=".svg", delete=False, encoding="utf-8"
            ) as f:
                f.write(tint_svg(svg, colour))
                svg_path = f.name

            # Render next to the target, then rename over it
            fd, png_path = tempfile.mkstemp(dir=output.parent, prefix=f".{output.stem}.", suffix=".png")
            os.close(fd)

            completed = subprocess.run(
                [converter, "-w", str(self.size), "-h", str(self.size), "-o", png_path, svg_path],
                capture_output=True,
                text=True,
                timeout=RENDER_TIMEOUT_SECONDS,
                check=False
            )
            if completed.returncode != 0:
                logger.warning(
                    "Icon converter failed",
                    operation="render_glyph",
                    status="failed",
                    glyph=name,
                    return_code=completed.returncode,
                    stderr=completed.stderr.strip()[:200] if completed.stderr else None
                )
                return False

            os.replace(png_path, output)
            png_path = None
            return True

        except subprocess.TimeoutExpired:
            self._note(Error(
                error_type=ErrorType.TIMEOUT_ERROR,
                message="Icon converter timed out",
                context={"glyph": name, "timeout_seconds": RENDER_TIMEOUT_SECONDS}
            ))
            return False
        except OSError as e:
            logger.error(
                "Icon converter execution failed",
                operation="render_glyph",
                status="exec_error",
                glyph=name,
                error=str(e)
            )
            return False
        finally:
            for leftover in (svg_path, png_path):
                if leftover:
                    Path(leftover).unlink(missing_ok=True)

    def prune_stale_themes(self) -> list[str]:
        """Delete rendered icon sets belonging to other themes."""
        removed = []
        root = self.icons_dir.parent
        if not root.is_dir():
            return removed
        for theme_dir in root.iterdir():
            if theme_dir == self.icons_dir or not theme_dir.is_dir():
                continue
            shutil.rmtree(theme_dir, ignore_errors=True)
            removed.append(theme_dir.name)

        if removed:
            logger.info(
                "Removed icons of previous themes",
                operation="prune_stale_themes",
                themes=removed
            )
        return removed

    def _note(self, error: Error) -> None:
        if self.report is not None:
            self.report.add_warning(error)
        else:
            logger.warning(
                error.message,
                operation="icon_rebuild",
                error_type=error.error_type.value,
                **error.context
            )


def diagnostic_item() -> dict:
    """Feedback item offering to install the missing icon converter."""
    return {
        "uid": "project-switcher-icon-converter-missing",
        "title": "Icon renderer not installed",
        "subtitle": f"Press Enter to install {CONVERTER_BREW_PACKAGE} with Homebrew, or icons will stay blank",
        "arg": f"brew install {CONVERTER_BREW_PACKAGE}",
        "valid": True,
        "icon": {"path": DEFAULT_ICON},
    }
