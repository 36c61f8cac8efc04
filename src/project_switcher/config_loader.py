# =============================================================================
# Configuration Loading
# =============================================================================

import re
import time
import tomllib
from pathlib import Path

from loguru import logger

from project_switcher.errors import Error, ErrorReport, ErrorType, Result
from project_switcher.models import WorkspaceDefinition

EXTRA_WORKSPACES_PATTERN = "workspaces-*.toml"

# Default configuration - safe values that work without user config
DEFAULT_CONFIG = {
    "options": {
        "include_discovered_repositories": False,
        "discovery_root": "~/Projects",
        "prettify_discovered_titles": True,
    },
    "apps": {
        "editor": "Visual Studio Code",
        "editor_cli": "code",
        "file_browser": "Finder",
    },
    "icons": {
        "size": 128,
        "glyph_source_dir": None,  # None = <workflow dir>/octicons
        "default_glyph": "file-directory",
    },
    "workspaces": [],
}

# Expected value types per section; glyph_source_dir may stay unset
CONFIG_TYPES = {
    "options": {
        "include_discovered_repositories": bool,
        "discovery_root": str,
        "prettify_discovered_titles": bool,
    },
    "apps": {
        "editor": str,
        "editor_cli": str,
        "file_browser": str,
    },
    "icons": {
        "size": int,
        "glyph_source_dir": (str, type(None)),
        "default_glyph": str,
    },
}


def extract_toml_error_context(error: tomllib.TOMLDecodeError, file_path: Path) -> dict:
    """
    Extract line context from TOML parse error.

    Args:
        error: The TOMLDecodeError exception
        file_path: Path to the TOML file

    Returns:
        Dict with line_number, line_content, and formatted_message
    """
    error_str = str(error)
    line_number = None
    line_content = None

    # Common formats: "line 15", "at line 15", "(line 15)"
    line_match = re.search(r'line\s+(\d+)', error_str, re.IGNORECASE)
    if line_match:
        line_number = int(line_match.group(1))

    if line_number and file_path.exists():
        try:
            with open(file_path, "r") as f:
                lines = f.readlines()
                if 0 < line_number <= len(lines):
                    line_content = lines[line_number - 1].rstrip()
        except OSError:
            pass

    if line_number:
        formatted = f"Error on line {line_number}"
        if line_content:
            display_line = line_content[:50] + "..." if len(line_content) > 50 else line_content
            formatted += f": {display_line}"
        formatted += f"\n\nDetails: {error_str}"
    else:
        formatted = f"TOML parse error: {error_str}"

    return {
        "line_number": line_number,
        "line_content": line_content,
        "formatted_message": formatted,
        "raw_error": error_str
    }


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dictionary."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _valid_value(value, expected) -> bool:
    # bool is an int subclass; a size of `true` is not a size
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    if expected is str:
        return isinstance(value, str) and bool(value.strip())
    return isinstance(value, expected)


def validate_config(config: dict) -> tuple[dict, list[Error]]:
    """
    Replace wrongly typed settings with their defaults.

    Args:
        config: Config already merged over DEFAULT_CONFIG

    Returns:
        (config with every known setting of the expected type, one
        VALIDATION_ERROR per replaced section or value)
    """
    validated = dict(config)
    errors = []

    for section, types in CONFIG_TYPES.items():
        values = validated.get(section)
        if not isinstance(values, dict):
            errors.append(Error(
                error_type=ErrorType.VALIDATION_ERROR,
                message="Config section is not a table, using defaults",
                context={"section": section, "found": type(values).__name__}
            ))
            validated[section] = dict(DEFAULT_CONFIG[section])
            continue

        values = dict(values)
        for key, expected in types.items():
            if key in values and not _valid_value(values[key], expected):
                errors.append(Error(
                    error_type=ErrorType.VALIDATION_ERROR,
                    message="Invalid config value, using default",
                    context={"section": section, "key": key, "found": type(values[key]).__name__}
                ))
                values[key] = DEFAULT_CONFIG[section][key]
        validated[section] = values

    if not isinstance(validated.get("workspaces"), list):
        errors.append(Error(
            error_type=ErrorType.VALIDATION_ERROR,
            message="Config workspaces is not an array of tables, ignoring it",
            context={"section": "workspaces", "found": type(validated.get("workspaces")).__name__}
        ))
        validated["workspaces"] = []

    return validated, errors


def _read_toml(config_path: Path) -> Result[dict]:
    if not config_path.exists():
        return Result.err(Error(
            error_type=ErrorType.FILE_NOT_FOUND,
            message="Config file not found",
            context={"config_path": str(config_path)}
        ))

    try:
        with open(config_path, "rb") as f:
            return Result.ok(tomllib.load(f))
    except tomllib.TOMLDecodeError as e:
        error_context = extract_toml_error_context(e, config_path)
        logger.error(
            "Invalid TOML syntax in configuration file",
            operation="load_config",
            status="failed",
            file=str(config_path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"]
        )
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message="Invalid TOML syntax in configuration file",
            context={"config_path": str(config_path), "line_number": error_context["line_number"]},
            original_exception=e
        ))
    except OSError as e:
        return Result.err(Error(
            error_type=ErrorType.PERMISSION_ERROR,
            message="Config file could not be read",
            context={"config_path": str(config_path), "detail": str(e)},
            original_exception=e
        ))


def load_config_from_path(config_path: Path, report: ErrorReport | None = None) -> Result[dict]:
    """
    Load configuration from a TOML file merged over DEFAULT_CONFIG.

    Wrongly typed settings are replaced by their defaults and reported as
    warnings (logged directly when no report is given).

    Args:
        config_path: Path to config.toml
        report: Collects validation warnings

    Returns:
        Result[dict]: Ok with merged config, or Err with error details.
        Callers treat Err as "defaults and no workspaces".
    """
    start_time = time.perf_counter()
    read_result = _read_toml(config_path)
    if read_result.is_err():
        return read_result

    merged, problems = validate_config(deep_merge(DEFAULT_CONFIG, read_result.value))
    for problem in problems:
        if report is not None:
            report.add_warning(problem)
        else:
            logger.warning(
                problem.message,
                operation="load_config_from_path",
                error_type=problem.error_type.value,
                **problem.context
            )
    duration_ms = int((time.perf_counter() - start_time) * 1000)

    logger.debug(
        "Config loaded successfully",
        operation="load_config_from_path",
        status="success",
        config_path=str(config_path),
        metrics={
            "workspaces_count": len(merged["workspaces"]),
            "invalid_settings": len(problems),
            "duration_ms": duration_ms
        }
    )
    return Result.ok(merged)


def workspace_sources(config_path: Path) -> list[Path]:
    """Every file that contributes workspace definitions, main config first."""
    extra = sorted(config_path.parent.glob(EXTRA_WORKSPACES_PATTERN)) if config_path.parent.is_dir() else []
    return [config_path, *extra]


def parse_workspace_records(raw_records) -> list[WorkspaceDefinition]:
    """Turn a raw `workspaces` array into definitions, ignoring non-table items."""
    if not isinstance(raw_records, list):
        return []
    return [WorkspaceDefinition.from_raw(raw) for raw in raw_records if isinstance(raw, dict)]


def load_workspace_definitions(config: dict, config_path: Path) -> list[WorkspaceDefinition]:
    """
    Collect workspace definitions from the merged config and every
    workspaces-*.toml file beside it.

    Unparseable extra files are logged and contribute nothing.
    """
    definitions = parse_workspace_records(config.get("workspaces", []))

    for path in workspace_sources(config_path)[1:]:
        read_result = _read_toml(path)
        if read_result.is_err():
            logger.warning(
                "Skipping workspaces file",
                operation="load_workspace_definitions",
                status="skip",
                file=path.name,
                error_type=read_result.error.error_type.value
            )
            continue
        extra = parse_workspace_records(read_result.value.get("workspaces", []))
        logger.debug(
            "Loaded workspaces file",
            operation="load_workspace_definitions",
            file=path.name,
            metrics={"workspaces_count": len(extra)}
        )
        definitions.extend(extra)

    return definitions
