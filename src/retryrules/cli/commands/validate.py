"""Validate command for the retryrules CLI.

Exit codes:
  0: Valid
  1: Invalid (bad action, unknown type, bad pattern, conflicting rules)
  2: Cannot validate (file missing or unreadable, unsupported suffix, YAML unparseable)
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from ..helpers import configure_global_logging, load_classifier
from ..output import console, print_json


def validate(
    rules_file: Path = typer.Argument(
        ...,
        help="Path to a .properties or YAML rule file",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output validation results as JSON",
    ),
) -> None:
    """Validate a rule file by building a classifier from it."""
    configure_global_logging(console)

    classifier = load_classifier(rules_file, json_output)

    if json_output:
        print_json({"valid": True, "rules": len(classifier)})
        return

    console.print(f"[green]✓[/green] Valid rules: {escape(str(rules_file))}")
    console.print(f"  Rules: {len(classifier)}")
