"""Exception hierarchy for retryrules.

All retryrules exceptions inherit from RetryRulesError, enabling callers
to catch broad (RetryRulesError) or narrow (e.g., TypeResolutionError).
Construction-time problems with a rule set are RuleConfigurationErrors,
which are also ValueErrors so code that validates plain input keeps working.
"""

from __future__ import annotations


class RetryRulesError(Exception):
    """Base exception for all retryrules errors."""


class RuleConfigurationError(RetryRulesError, ValueError):
    """Raised when a rule set cannot be turned into a classifier.

    Attributes:
        key: The offending rule key, if known.
        value: The offending rule value, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        value: str | None = None,
    ) -> None:
        self.key = key
        self.value = value
        if key is not None:
            message = f"{message} (rule {key!r} = {value!r})"
        super().__init__(message)


class UnknownActionError(RuleConfigurationError):
    """Raised when a rule value is not RETRY or THROW."""


class InvalidPatternError(RuleConfigurationError):
    """Raised when the message pattern of a rule key is not a valid regex."""


class TypeResolutionError(RuleConfigurationError):
    """Raised when a rule target names no exception type.

    Covers both unknown names and names that resolve to something other
    than an exception class.
    """


class ConflictingRulesError(RuleConfigurationError):
    """Raised when two rules match identically but disagree on the action.

    Examples: ``builtins.OSError`` and ``OSError`` mapped to different
    actions, or ``sqlState.40001`` and ``sqlState.40001`` spelled in
    different case.
    """


class RuleSourceError(RetryRulesError):
    """Raised when rule text cannot be read or parsed.

    Examples: a missing packaged resource, an unreadable file, a YAML
    document that is not a mapping.
    """
