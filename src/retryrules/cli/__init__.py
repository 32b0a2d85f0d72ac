"""retryrules CLI.

Inspects rule files from the shell: validate them, list their rules in
evaluation order, and explain how a given exception type is classified.

Layout:
    cli/
    ├── __init__.py           # Typer app and global logging options
    ├── helpers.py            # Logging state, rule file loading, exit codes
    ├── output.py             # Rich tables and JSON printing
    └── commands/             # One module per command
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from retryrules import __version__

from .commands import explain, show, validate
from .helpers import (
    configure_global_logging,
    set_log_file,
    set_log_format,
    set_log_level,
)
from .output import console

app = typer.Typer(
    name="retryrules",
    help="Inspect and check exception retry rule files",
    add_completion=False,
    no_args_is_help=True,
)


def _print_version(value: bool) -> None:
    if value:
        console.print(f"retryrules v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=_print_version,
            is_eager=True,
            help="Print the version and exit",
        ),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            envvar="RETRYRULES_LOG_LEVEL",
            help="DEBUG shows every parsed rule and classification step",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            envvar="RETRYRULES_LOG_FORMAT",
            help="console or json",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            envvar="RETRYRULES_LOG_FILE",
            help="Write logs to this file (rotated) instead of stderr",
        ),
    ] = None,
) -> None:
    """retryrules - decide which database errors are worth retrying."""
    if log_level:
        set_log_level(log_level)
    if log_format:
        set_log_format(log_format)
    if log_file:
        set_log_file(log_file)
    configure_global_logging(console)


app.command()(validate)
app.command()(show)
app.command()(explain)


__all__ = ["app"]
