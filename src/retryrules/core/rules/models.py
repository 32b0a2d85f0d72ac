"""Rule model and precedence ordering.

This module provides:
- Rule: Immutable matcher binding a target type (plus optional error code
  and message pattern) to an Action
- compare_rules: Pairwise precedence comparator
- sort_rules: Produces the evaluation order of a rule set

Precedence
==========

When several rules apply to the same exception, the first in precedence
order wins. Rules are ranked by:

1. Specificity: a rule targeting a subclass precedes one targeting its base.
   Error-code (``sqlState.``) rules count as more specific than rules on
   ``Exception`` or ``BaseException``.
2. Target name, ascending.
3. Error code: rules with a code precede rules without, then ascending.
4. Pattern: rules with a pattern precede rules without, then ascending by
   pattern source.
5. Action name.

A broad rule ("retry every OperationalError") can thus be overridden
narrowly ("but throw on this subclass") wherever the entries appear in the
rule file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import cmp_to_key

from retryrules.core.constants import PATTERN_SEPARATOR, SQLSTATE_PREFIX

from .codes import Action
from .types import SQLStateError, get_error_code, type_name


@dataclass(frozen=True)
class Rule:
    """A single configured matcher.

    Attributes:
        action: What to report when the rule matches (RETRY or THROW).
        target: Exception class the rule applies to, including subclasses.
        error_code: Error code the exception must carry, compared
            case-insensitively. None matches any exception.
        pattern: Regex that must be found somewhere in the exception
            message. None matches any message.
    """

    action: Action
    target: type
    error_code: str | None = None
    pattern: re.Pattern[str] | None = None

    @property
    def target_name(self) -> str:
        """Canonical dotted name of the target class."""
        return type_name(self.target)

    @property
    def key(self) -> str:
        """The rule key this rule would be configured with."""
        if self.error_code is not None:
            key = f"{SQLSTATE_PREFIX}{self.error_code}"
        else:
            key = self.target_name
        if self.pattern is not None:
            key = f"{key}{PATTERN_SEPARATOR}{self.pattern.pattern}"
        return key

    @property
    def match_key(self) -> tuple[type, str | None, str | None]:
        """Everything that decides whether the rule matches, minus the action.

        Two rules with the same match key match exactly the same exceptions.
        """
        return (
            self.target,
            self.error_code.casefold() if self.error_code is not None else None,
            self.pattern.pattern if self.pattern is not None else None,
        )

    def applies_to(self, cls: type) -> bool:
        """Whether ``cls`` is the target type or one of its subclasses."""
        return issubclass(cls, self.target)

    def evaluate(
        self,
        cls: type,
        error_code: str | None,
        message: str | None,
    ) -> Action:
        """Decide from already extracted facts about an exception.

        Args:
            cls: Exact runtime type of the exception.
            error_code: The code it carries, or None.
            message: Its message, or None.

        Returns:
            The configured action on a match, Action.IGNORE otherwise.
        """
        if not self.applies_to(cls):
            return Action.IGNORE
        if self.error_code is not None and (
            error_code is None or error_code.casefold() != self.error_code.casefold()
        ):
            return Action.IGNORE
        if self.pattern is not None and (
            message is None or self.pattern.search(message) is None
        ):
            return Action.IGNORE
        return self.action

    def decide(self, exc: BaseException, message: str | None) -> Action:
        """Decide whether this rule matches ``exc``.

        ``message`` is the already extracted message of ``exc`` (see
        ``get_message``); it is not re-read here.
        """
        cls = type(exc)
        if not self.applies_to(cls):
            return Action.IGNORE
        code = get_error_code(exc) if self.error_code is not None else None
        return self.evaluate(cls, code, message)

    def __str__(self) -> str:
        return f"{self.key}={self.action.value}"


# =============================================================================
# Precedence
# =============================================================================


# Error-code rules refine the catch-all exception types even though the
# capability class is not itself an exception.
_CATCH_ALL_TYPES: tuple[type, ...] = (BaseException, Exception)


def _is_more_specific(sub: type, base: type) -> bool:
    if sub is base:
        return False
    if sub is SQLStateError:
        return base in _CATCH_ALL_TYPES
    return issubclass(sub, base)


def _compare_specificity(a: type, b: type) -> int:
    if _is_more_specific(b, a):
        return 1
    if _is_more_specific(a, b):
        return -1
    return 0


def _tiebreak_key(rule: Rule) -> tuple[str, bool, str, bool, str, str]:
    return (
        rule.target_name,
        rule.error_code is None,
        rule.error_code or "",
        rule.pattern is None,
        rule.pattern.pattern if rule.pattern is not None else "",
        rule.action.value,
    )


def compare_rules(a: Rule, b: Rule) -> int:
    """Compare two rules by precedence.

    Returns a negative number when ``a`` should be evaluated before ``b``,
    positive when after, and zero when they are indistinguishable.
    """
    specificity = _compare_specificity(a.target, b.target)
    if specificity:
        return specificity
    key_a, key_b = _tiebreak_key(a), _tiebreak_key(b)
    return (key_a > key_b) - (key_a < key_b)


precedence_key = cmp_to_key(compare_rules)
"""Sort key wrapping compare_rules, for ordering a pair or a small set."""


def sort_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Return ``rules`` in precedence order.

    Specificity only relates types on the same branch of a hierarchy, so
    compare_rules on its own is not transitive: an unrelated type whose name
    sorts between a subclass and its base would let a plain comparison sort
    put the base first. Instead the rules are ordered by the tie-break fields
    and then emitted one at a time, always taking the first remaining rule
    that no remaining rule is more specific than.
    """
    pending = sorted(rules, key=_tiebreak_key)
    ordered: list[Rule] = []
    while pending:
        index = 0
        for i, rule in enumerate(pending):
            if not any(
                _is_more_specific(other.target, rule.target) for other in pending
            ):
                index = i
                break
        ordered.append(pending.pop(index))
    return ordered
