"""Shared plumbing for the CLI commands: logging state, exit codes, and
turning a rule file into a classifier or a clean exit.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from retryrules.core.logging import LogFormat, configure_logging, get_logger
from retryrules.core.rules import (
    ExceptionClassifier,
    RuleConfigurationError,
    RuleSourceError,
)

from .output import console, print_json

_logger = get_logger("cli")


class ExitCodes:
    """Process exit codes shared by the commands."""

    OK = 0
    INVALID_RULES = 1
    UNREADABLE = 2


# =============================================================================
# Logging state
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging options collected from the global flags.

    Applied at most once per process by configure_global_logging().
    """

    level: str = "WARNING"
    file: Path | None = None
    format: LogFormat = "console"
    configured: bool = False


_log_config = CliLoggingConfig()


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()


def set_log_file(path: Path | None) -> None:
    _log_config.file = path


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]


def configure_global_logging(console: Console) -> None:
    """Apply the collected logging options, once.

    Every command calls this, so logging is configured even when the app
    callback is bypassed.

    Raises:
        typer.Exit: With code 1 if the level or format is not recognized.
    """
    if _log_config.configured:
        return
    try:
        configure_logging(
            level=_log_config.level,  # type: ignore[arg-type]
            format=_log_config.format,
            file_path=_log_config.file,
        )
    except ValueError as e:
        console.print(f"[red]Logging configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    _log_config.configured = True


def reset_logging_state() -> None:
    """Forget all collected options (used by the test suite)."""
    global _log_config
    _log_config = CliLoggingConfig()


# =============================================================================
# Rule loading
# =============================================================================


def load_classifier(rules_file: Path, json_output: bool) -> ExceptionClassifier:
    """Build a classifier from a rule file, exiting on failure.

    Exit code 2 means the file could not be read or parsed; exit code 1
    means it was read but the rules are invalid.
    """
    try:
        return ExceptionClassifier.from_file(rules_file)
    except RuleSourceError as e:
        _logger.debug("rule_file_unreadable", path=str(rules_file), error=str(e))
        _report_failure("Cannot read rule file", e, json_output)
        raise typer.Exit(ExitCodes.UNREADABLE) from None
    except RuleConfigurationError as e:
        _logger.debug("rule_file_invalid", path=str(rules_file), error=str(e))
        _report_failure("Invalid rules", e, json_output)
        raise typer.Exit(ExitCodes.INVALID_RULES) from None


def _report_failure(title: str, error: Exception, json_output: bool) -> None:
    if json_output:
        print_json({"valid": False, "error": f"{title}: {error}"})
    else:
        console.print(f"[red]{title}:[/red] {escape(str(error))}")
