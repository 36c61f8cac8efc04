# =============================================================================
# Structured Logging Setup (JSONL format)
# =============================================================================

import json
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path

import platformdirs
from loguru import logger

LOG_APP_NAME = "project-switcher"

# Correlation ID for one launcher invocation
trace_id_var: ContextVar[str] = ContextVar('trace_id', default=None)


def json_sink(message):
    """JSONL sink - writes to stderr so stdout stays free for launcher feedback."""
    record = message.record
    log_entry = {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        "level": record["level"].name.lower(),
        "component": record["function"],
        "operation": record["extra"].get("operation", "unknown"),
        "operation_status": record["extra"].get("status", None),
        "trace_id": record["extra"].get("trace_id") or trace_id_var.get(),
        "message": record["message"],
        "context": {k: v for k, v in record["extra"].items()
                   if k not in ("operation", "status", "trace_id", "metrics")},
        "metrics": record["extra"].get("metrics", {}),
        "error": None
    }

    if record["exception"]:
        exc_type, exc_value, exc_tb = record["exception"]
        tb_lines = []
        if exc_tb:
            tb_lines = traceback.format_tb(exc_tb)

        log_entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "Unknown error",
            "traceback_lines": tb_lines
        }

    sys.stderr.write(json.dumps(log_entry, default=str) + "\n")


def setup_logger(log_dir: Path | None = None, console_level: str = "INFO"):
    """
    Configure Loguru for machine-readable JSONL output.

    Args:
        log_dir: Directory for the rotating log file. Defaults to the
            platform log dir (macOS: ~/Library/Logs/project-switcher/).
        console_level: Minimum level for the stderr sink.
    """
    logger.remove()

    logger.add(
        json_sink,
        level=console_level
    )

    if log_dir is None:
        log_dir = Path(platformdirs.user_log_dir(
            appname=LOG_APP_NAME,
            ensure_exists=True
        ))
    else:
        log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_dir / "switcher.jsonl"),
        format="{message}",
        serialize=True,
        rotation="10 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG"
    )

    return logger
