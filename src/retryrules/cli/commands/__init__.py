# retryrules/cli/commands: Command modules for the retryrules CLI.
#
# Each module in this package provides one CLI command.

from .explain import explain
from .show import show
from .validate import validate

__all__ = [
    "explain",
    "show",
    "validate",
]
