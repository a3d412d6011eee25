# =============================================================================
# Configuration Loading
# =============================================================================

import copy
import os
import re
import time
import tomllib
from pathlib import Path

import platformdirs
from loguru import logger

from .errors import Error, ErrorType, Result
from .logging_config import APP_NAME

CONFIG_ENV = "BROWSER_TABS_CONFIG"
APPLICATION_ENV = "BROWSER_TABS_APPLICATION"
CONFIG_PATH = Path(platformdirs.user_config_dir(APP_NAME)) / "config.toml"

# Default configuration - works without any user config file
DEFAULT_CONFIG = {
    "browser": {
        "application": "Google Chrome",
    },
    "bridge": {
        "command": "osascript",
        "timeout": 0,  # seconds; 0 = wait for the bridge indefinitely
    },
    "activation": {
        "verify": True,
    },
    "logging": {
        "level": "INFO",
        "file": True,
    },
}

# Application names end up inside `tell application "..."`; keep them boring
APPLICATION_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 ._-]{0,63}$")

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def default_config() -> dict:
    """Fresh copy of DEFAULT_CONFIG; callers never share its section tables."""
    return copy.deepcopy(DEFAULT_CONFIG)


def default_config_path() -> Path:
    """Config path, honouring the BROWSER_TABS_CONFIG override."""
    override = os.environ.get(CONFIG_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH


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


def validate_config(config: dict) -> Result[dict]:
    """
    Check the values that flow into scripts and subprocess calls.

    Returns:
        Result[dict]: Ok with the same config, or Err(VALIDATION_ERROR)
    """
    problems = [
        f"[{section}] must be a table"
        for section in DEFAULT_CONFIG
        if not isinstance(config.get(section), dict)
    ]
    if problems:
        return Result.err(Error(
            error_type=ErrorType.VALIDATION_ERROR,
            message="; ".join(problems),
            context={"problems": problems}
        ))

    application = config["browser"].get("application")
    if not isinstance(application, str) or not APPLICATION_NAME_RE.match(application):
        problems.append(f"browser.application is not a valid application name: {application!r}")

    command = config["bridge"].get("command")
    if not isinstance(command, str) or not command.strip():
        problems.append("bridge.command must be a non-empty string")

    timeout = config["bridge"].get("timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0:
        problems.append(f"bridge.timeout must be a non-negative number, got {timeout!r}")

    if not isinstance(config["activation"].get("verify"), bool):
        problems.append("activation.verify must be true or false")

    level = config["logging"].get("level")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        problems.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}")

    if problems:
        return Result.err(Error(
            error_type=ErrorType.VALIDATION_ERROR,
            message="; ".join(problems),
            context={"problems": problems}
        ))
    return Result.ok(config)


def load_config_from_path(config_path: Path) -> Result[dict]:
    """
    Load configuration from specified TOML file with defaults fallback.

    Args:
        config_path: Path to the TOML file

    Returns:
        Result[dict]: Ok with merged config, or Err with error details
    """
    start_time = time.perf_counter()
    logger.debug(
        "Loading config from path",
        operation="load_config_from_path",
        status="started",
        config_path=str(config_path)
    )

    if not config_path.exists():
        logger.error(
            "Config file not found",
            operation="load_config_from_path",
            status="failed",
            config_path=str(config_path)
        )
        return Result.err(Error(
            error_type=ErrorType.FILE_NOT_FOUND,
            message=f"Config file not found: {config_path}",
            context={"config_path": str(config_path)}
        ))

    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        error_context = extract_toml_error_context(e, config_path)
        logger.error(
            "Invalid TOML syntax in configuration file",
            operation="load_config_from_path",
            status="failed",
            file=str(config_path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"]
        )
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=error_context["formatted_message"],
            context={"config_path": str(config_path), "line_number": error_context["line_number"]},
            original_exception=e
        ))

    merged = deep_merge(default_config(), user_config)
    validated = validate_config(merged)
    if validated.is_err():
        logger.error(
            "Invalid values in configuration file",
            operation="load_config_from_path",
            status="failed",
            file=str(config_path),
            error=validated.error.message
        )
        validated.error.context["config_path"] = str(config_path)
        return validated

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Config loaded successfully",
        operation="load_config_from_path",
        status="success",
        config_path=str(config_path),
        metrics={"duration_ms": duration_ms}
    )
    return Result.ok(merged)


def load_config(config_path: Path | None = None) -> Result[dict]:
    """
    Load the effective configuration.

    A missing file is not an error: defaults apply. The
    BROWSER_TABS_APPLICATION environment variable wins over the file.

    Returns:
        Result[dict]: Ok with the effective config, or Err if the file
        exists but is invalid
    """
    path = config_path or default_config_path()

    if path.exists():
        loaded = load_config_from_path(path)
        if loaded.is_err():
            return loaded
        config = loaded.value
    else:
        logger.debug(
            "Config file does not exist, using defaults",
            operation="load_config",
            status="default",
            file=str(path)
        )
        config = default_config()

    application = os.environ.get(APPLICATION_ENV, "").strip()
    if application:
        config = deep_merge(config, {"browser": {"application": application}})
        return validate_config(config)

    return Result.ok(config)
