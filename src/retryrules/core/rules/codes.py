"""Outcomes a rule can produce.

Two of them are user-facing (``RETRY`` and ``THROW``) and may appear as the
value of a configured rule. ``IGNORE`` is the internal "this rule has no
opinion" result of a match attempt and is never accepted from configuration.
"""

from __future__ import annotations

from enum import Enum

from .exceptions import UnknownActionError


class Action(str, Enum):
    """Result of evaluating a rule against an exception."""

    RETRY = "RETRY"
    """The failed operation should be attempted again."""

    THROW = "THROW"
    """The failure is permanent; surface it to the caller."""

    IGNORE = "IGNORE"
    """The rule does not apply; keep looking."""

    @classmethod
    def parse(cls, value: str, *, key: str | None = None) -> Action:
        """Parse a configured action token.

        Tokens are trimmed and matched case-insensitively. Only RETRY and
        THROW are accepted.

        Args:
            value: The raw configured value (e.g. ``" retry "``).
            key: The rule key the value belongs to, for error reporting.

        Returns:
            Action.RETRY or Action.THROW.

        Raises:
            UnknownActionError: If the token names no configurable action.
        """
        token = value.strip().upper() if isinstance(value, str) else ""
        if token == cls.RETRY.value:
            return cls.RETRY
        if token == cls.THROW.value:
            return cls.THROW
        raise UnknownActionError(
            f"unknown action {value!r}; expected RETRY or THROW",
            key=key,
            value=value,
        )
