"""Rich output formatting for the retryrules CLI.

This module centralizes the Rich-based formatting used by the commands:
- Color scheme for actions
- Table builders with consistent styling
- JSON printing that bypasses Rich markup
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from retryrules.core.rules import Action, Rule

# =============================================================================
# Shared console instance
# =============================================================================

console = Console()


# =============================================================================
# Color schemes
# =============================================================================


class ActionColors:
    """Color mappings for rule actions."""

    ACTION: dict[Action, str] = {
        Action.RETRY: "green",
        Action.THROW: "red",
        Action.IGNORE: "dim",
    }

    @classmethod
    def get(cls, action: Action) -> str:
        """Get color for an action."""
        return cls.ACTION.get(action, "white")


def format_action(action: Action) -> str:
    """Format an action with its color markup."""
    color = ActionColors.get(action)
    return f"[{color}]{action.value}[/{color}]"


# =============================================================================
# JSON output
# =============================================================================


def print_json(data: Any) -> None:
    """Print ``data`` as JSON.

    Markup and wrapping are disabled so regex patterns with brackets and long
    strings come out verbatim.
    """
    console.print(
        json.dumps(data, indent=2),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def rule_to_dict(rule: Rule, position: int) -> dict[str, Any]:
    """Serialize a rule for JSON output."""
    return {
        "position": position,
        "key": rule.key,
        "target": rule.target_name,
        "error_code": rule.error_code,
        "pattern": rule.pattern.pattern if rule.pattern is not None else None,
        "action": rule.action.value,
    }


# =============================================================================
# Table builders
# =============================================================================


def create_rules_table(title: str = "Rules in precedence order") -> Table:
    """Create a styled table for a rule listing.

    Returns:
        Rich Table configured for rule display.
    """
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="cyan", width=4)
    table.add_column("Target", no_wrap=False)
    table.add_column("Code", width=8)
    table.add_column("Pattern", style="dim", no_wrap=False)
    table.add_column("Action", width=7)
    return table


def create_explain_table() -> Table:
    """Create a styled table for the rules considered for one type.

    Returns:
        Rich Table configured for explain output.
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="cyan", width=4)
    table.add_column("Rule", no_wrap=False)
    table.add_column("Result", width=12)
    return table


def add_rule_row(table: Table, rule: Rule, position: int) -> None:
    """Append one rule to a table built by create_rules_table()."""
    table.add_row(
        str(position),
        Text(rule.target_name),
        Text(rule.error_code or ""),
        Text(rule.pattern.pattern if rule.pattern is not None else ""),
        format_action(rule.action),
    )
