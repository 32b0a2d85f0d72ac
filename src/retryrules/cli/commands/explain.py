"""Explain command for the retryrules CLI.

Shows which rules apply to an exception type and which one decides, given
an optional SQL state and message. No exception is instantiated; the rules
are evaluated against the described facts directly.

Exit codes:
  0: The exception would be retried
  1: The exception would not be retried
  2: The rule file or type name could not be loaded
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.text import Text

from retryrules.core.rules import Action, ImportTypeResolver, TypeResolutionError, type_name

from ..helpers import ExitCodes, configure_global_logging, load_classifier
from ..output import console, create_explain_table, format_action, print_json


def explain(
    rules_file: Path = typer.Argument(
        ...,
        help="Path to a .properties or YAML rule file",
    ),
    type_name_arg: str = typer.Argument(
        ...,
        metavar="TYPE_NAME",
        help="Qualified exception class name, e.g. psycopg.errors.SerializationFailure",
    ),
    sqlstate: str | None = typer.Option(
        None,
        "--sqlstate",
        "-s",
        help="SQL state the exception carries",
    ),
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Exception message",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the explanation as JSON",
    ),
) -> None:
    """Explain how a rule file classifies an exception type."""
    configure_global_logging(console)

    classifier = load_classifier(rules_file, json_output)

    try:
        cls = ImportTypeResolver().resolve(type_name_arg)
    except TypeResolutionError as e:
        if json_output:
            print_json({"error": str(e)})
        else:
            console.print(f"[red]Cannot resolve type:[/red] {escape(str(e))}")
        raise typer.Exit(ExitCodes.UNREADABLE) from None

    decision = Action.IGNORE
    results: list[tuple[str, Action | None]] = []
    for rule in classifier.find_rules_for(cls):
        if decision is not Action.IGNORE:
            results.append((str(rule), None))
            continue
        action = rule.evaluate(cls, sqlstate, message)
        results.append((str(rule), action))
        if action is not Action.IGNORE:
            decision = action

    retry = decision is Action.RETRY

    if json_output:
        print_json({
            "type": type_name(cls),
            "sqlstate": sqlstate,
            "message": message,
            "rules": [
                {"rule": rule, "result": action.value if action is not None else None}
                for rule, action in results
            ],
            "decision": decision.value,
            "retry": retry,
        })
    else:
        console.print(f"Exception type: [cyan]{escape(type_name(cls))}[/cyan]")
        if results:
            table = create_explain_table()
            for i, (rule, action) in enumerate(results, 1):
                if action is None:
                    result = "[dim]not reached[/dim]"
                elif action is Action.IGNORE:
                    result = "[dim]no match[/dim]"
                else:
                    result = format_action(action)
                table.add_row(str(i), Text(rule), result)
            console.print(table)
        else:
            console.print("[dim]No rule applies to this type.[/dim]")

        if decision is Action.IGNORE:
            console.print("Decision: [red]do not retry[/red] (no rule matched)")
        elif retry:
            console.print("Decision: [green]retry[/green]")
        else:
            console.print("Decision: [red]do not retry[/red]")

    if not retry:
        raise typer.Exit(1)
