"""Show command for the retryrules CLI.

Prints a rule file's rules in the order the classifier evaluates them.
"""

from __future__ import annotations

from pathlib import Path

import typer

from ..helpers import configure_global_logging, load_classifier
from ..output import add_rule_row, console, create_rules_table, print_json, rule_to_dict


def show(
    rules_file: Path = typer.Argument(
        ...,
        help="Path to a .properties or YAML rule file",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output rules as JSON",
    ),
) -> None:
    """Show rules in precedence order."""
    configure_global_logging(console)

    classifier = load_classifier(rules_file, json_output)

    if json_output:
        print_json([rule_to_dict(rule, i) for i, rule in enumerate(classifier.rules, 1)])
        return

    if not classifier.rules:
        console.print("[dim]No rules defined; nothing will be retried.[/dim]")
        return

    table = create_rules_table()
    for i, rule in enumerate(classifier.rules, 1):
        add_rule_row(table, rule, i)
    console.print(table)
