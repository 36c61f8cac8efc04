# =============================================================================
# Cache and State Storage
# =============================================================================
# CacheStore: small key-value state (fingerprint fields) in state.toml, plus
# the "clear all cached entries" switch.
# SourceCache: one cached value tied to the signature of its source files.

import errno
import json
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Callable

from loguru import logger

STATE_FILENAME = "state.toml"
ENTRIES_CACHE_PATTERN = "entries-*.json"


def atomic_write_file(path: Path, content: str) -> None:
    """
    Write file atomically using temp file → fsync → rename pattern.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: If write fails (including disk full - errno.ENOSPC)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in same directory so the rename stays on one filesystem
    temp_fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(temp_fd, "w") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, path)

        logger.debug(
            "Atomic file write successful",
            operation="atomic_write_file",
            path=str(path)
        )

    except OSError as e:
        try:
            os.unlink(temp_path)
        except OSError:
            pass

        if e.errno == errno.ENOSPC:
            raise OSError(f"Disk full - cannot write to {path}") from e
        raise


class CacheStore:
    """Key-value state persisted between runs, plus cached entry files."""

    def __init__(self, data_dir: Path, cache_dir: Path):
        self.data_dir = data_dir
        self.cache_dir = cache_dir
        self.state_path = data_dir / STATE_FILENAME

    def load_state(self) -> dict | None:
        """
        Read state.toml.

        Returns:
            dict of stored keys, or None when the file does not exist.
            An unreadable file is logged and treated as empty.
        """
        if not self.state_path.exists():
            return None

        try:
            with open(self.state_path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(
                "Failed to load state, using empty state",
                operation="load_state",
                status="fallback",
                file=str(self.state_path),
                error=str(e),
                error_type=type(e).__name__
            )
            return {}

    def get(self, key: str) -> str | None:
        state = self.load_state() or {}
        value = state.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str | None) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, str | None]) -> None:
        """Update several keys in one write. None removes a key."""
        state = dict(self.load_state() or {})
        for key, value in values.items():
            if value is None:
                state.pop(key, None)
            else:
                state[key] = value
        self._save_state(state)

    def _save_state(self, state: dict) -> None:
        lines = [
            "# Project Switcher state",
            "# Auto-generated - delete this file to force a full rebuild",
            "",
        ]
        for key in sorted(state):
            value = state[key]
            if isinstance(value, str):
                # JSON string escapes are valid TOML basic-string escapes
                lines.append(f"{key} = {json.dumps(value)}")

        try:
            atomic_write_file(self.state_path, "\n".join(lines) + "\n")
        except OSError as e:
            logger.error(
                "Failed to save state - next run will rebuild",
                operation="save_state",
                status="failed",
                file=str(self.state_path),
                error=str(e)
            )

    def clear_cached_entries(self) -> int:
        """Delete every cached entry list. Returns the number removed."""
        removed = 0
        if not self.cache_dir.is_dir():
            return removed

        for path in self.cache_dir.glob(ENTRIES_CACHE_PATTERN):
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(
                    "Could not delete cached entries",
                    operation="clear_cached_entries",
                    file=path.name,
                    error=str(e)
                )

        logger.info(
            "Cached entries cleared",
            operation="clear_cached_entries",
            status="success",
            metrics={"removed": removed}
        )
        return removed


def source_signature(sources: list[Path]) -> list[list]:
    """[path, mtime_ns, size] per source; missing files keep None fields."""
    signature = []
    for path in sources:
        try:
            stat = path.stat()
            signature.append([str(path), stat.st_mtime_ns, stat.st_size])
        except OSError:
            signature.append([str(path), None, None])
    return signature


class SourceCache:
    """
    A cached value derived from a set of source files.

    The value is rebuilt only when the sources' signature changes; listeners
    registered with on_change() fire after each rebuild.
    """

    def __init__(self, cache_dir: Path, name: str, sources: list[Path]):
        self.path = cache_dir / f"{name}.json"
        self.sources = list(sources)
        self._listeners: list[Callable[[Any], None]] = []

    def on_change(self, callback: Callable[[Any], None]) -> None:
        self._listeners.append(callback)

    def _read(self) -> dict | None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(
                "Ignoring unreadable cache file",
                operation="source_cache",
                file=self.path.name,
                error=str(e)
            )
            return None
        if not isinstance(data, dict) or "signature" not in data:
            return None
        return data

    def get_cached(self) -> Any:
        """Last cached value, or None."""
        data = self._read()
        return data.get("value") if data else None

    def has_changed(self) -> bool:
        data = self._read()
        return data is None or data["signature"] != source_signature(self.sources)

    def refresh(self, builder: Callable[[], Any]) -> Any:
        """
        Return the cached value, rebuilding it first if the sources changed.

        Args:
            builder: Zero-argument callable producing a JSON-serializable value.
        """
        signature = source_signature(self.sources)
        data = self._read()
        if data is not None and data["signature"] == signature:
            return data.get("value")

        value = builder()
        try:
            atomic_write_file(self.path, json.dumps({"signature": signature, "value": value}))
        except OSError as e:
            logger.warning(
                "Could not write cache file",
                operation="source_cache",
                file=self.path.name,
                error=str(e)
            )

        for callback in self._listeners:
            callback(value)
        return value
