"""
Project Switcher entry point.

Usage:
    project-switcher [query]            # print launcher feedback JSON
    project-switcher --theme-changed    # theme watch callback: re-render icons

Flow:
1. Capture run context (environment read once)
2. Assess fingerprint, clear caches if needed
3. Load config, normalize workspaces, merge discovered repos
4. Sort, schedule icon rendering, emit feedback
"""

import argparse
import sys
from uuid import uuid4

from loguru import logger

from project_switcher import __version__
from project_switcher.catalog import CatalogOrchestrator, filter_entries
from project_switcher.environment import augment_path, capture_context
from project_switcher.errors import ErrorReport
from project_switcher.feedback import build_items, emit
from project_switcher.logging_config import setup_logger, trace_id_var


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="project-switcher",
        description="List editor workspaces as launcher entries.",
    )
    parser.add_argument("query", nargs="*", help="Filter entries by title or path words")
    parser.add_argument(
        "--theme-changed",
        action="store_true",
        help="Re-render icons for the current theme and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, stdout=None) -> int:
    args = parse_args(argv)

    augment_path()
    setup_logger()

    main_trace_id = str(uuid4())
    trace_id_var.set(main_trace_id)
    report = ErrorReport()

    logger.info(
        "Project Switcher starting",
        operation="main",
        status="started",
        trace_id=main_trace_id,
        version=__version__,
        theme_changed=args.theme_changed
    )

    ctx = capture_context()
    orchestrator = CatalogOrchestrator(ctx, report=report)

    try:
        if args.theme_changed:
            orchestrator.handle_theme_change()
            report.log_summary(main_trace_id)
            return 0

        result = orchestrator.build()
    except Exception:
        # A failed run emits nothing; the launcher keeps its previous state
        logger.exception(
            "Catalog build failed",
            operation="main",
            status="failed",
            trace_id=main_trace_id
        )
        report.log_summary(main_trace_id)
        return 1

    entries = filter_entries(result.entries, " ".join(args.query))
    emit(build_items(entries, result.diagnostics), stream=stdout)

    report.log_summary(main_trace_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
