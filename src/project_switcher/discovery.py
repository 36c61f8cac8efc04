# =============================================================================
# Git Repository Discovery
# =============================================================================

import os
import re
import time
from pathlib import Path
from uuid import uuid4

from loguru import logger

from project_switcher.models import LauncherEntry, WorkspaceDefinition
from project_switcher.normalizer import SUBTITLE_SEPARATOR

DISCOVERED_GROUP = "Discovered"
VCS_MARKER = ".git"


def prettify_title(name: str) -> str:
    """
    Turn a directory name into title-case words.

    Example: my-cool_repo.py -> My Cool Repo Py
    """
    words = [w for w in re.split(r"[-_.\s]+", name) if w]
    if not words:
        return name
    return " ".join(w[:1].upper() + w[1:] for w in words)


def discover_git_repos(root_dir: str | Path, prettify: bool = True) -> list[WorkspaceDefinition]:
    """
    Find git repositories among the immediate children of `root_dir`.

    Children whose `.git` is a directory count as repositories; worktrees
    (where `.git` is a file) are not listed. Order follows directory
    enumeration; sorting happens later in the catalog.

    Args:
        root_dir: Directory to scan (already home-expanded).
        prettify: Title-case the directory name for the entry title.

    Returns:
        Workspace definitions in the "Discovered" group. Empty when the root
        is missing or unreadable.
    """
    start_time = time.perf_counter()
    op_trace_id = str(uuid4())
    root = Path(root_dir)

    logger.debug(
        "Starting git repo discovery",
        operation="discover_git_repos",
        status="started",
        trace_id=op_trace_id,
        directory=str(root)
    )

    repos = []
    try:
        children = list(root.iterdir())
    except OSError as e:
        logger.debug(
            "Discovery directory not readable",
            operation="discover_git_repos",
            status="skip",
            trace_id=op_trace_id,
            directory=str(root),
            error=str(e)
        )
        return []

    for child in children:
        try:
            if not child.is_dir() or not (child / VCS_MARKER).is_dir():
                continue
        except OSError:
            continue

        repos.append(WorkspaceDefinition(
            title=prettify_title(child.name) if prettify else child.name,
            group=DISCOVERED_GROUP,
            paths=(os.path.abspath(child),),
        ))

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Git repo discovery complete",
        operation="discover_git_repos",
        status="success",
        trace_id=op_trace_id,
        metrics={"repos_found": len(repos), "duration_ms": duration_ms}
    )
    return repos


def known_paths(entries: list[LauncherEntry]) -> set[str]:
    """Every path string listed in the subtitles of `entries`."""
    paths = set()
    for entry in entries:
        if entry.subtitle:
            paths.update(entry.subtitle.split(SUBTITLE_SEPARATOR))
    return paths


def dedupe_discovered(
    discovered: list[LauncherEntry],
    existing: list[LauncherEntry],
) -> list[LauncherEntry]:
    """
    Drop discovered entries already listed by a configured workspace.

    Comparison is exact string membership of the discovered subtitle in the
    set of configured paths. Symlinks, trailing slashes and case differences
    are not reconciled.
    """
    seen = known_paths(existing)
    kept = [entry for entry in discovered if entry.subtitle not in seen]

    if len(kept) != len(discovered):
        logger.debug(
            "Dropped discovered repos already configured",
            operation="dedupe_discovered",
            metrics={"dropped": len(discovered) - len(kept), "kept": len(kept)}
        )
    return kept
