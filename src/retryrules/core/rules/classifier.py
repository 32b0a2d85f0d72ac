"""ExceptionClassifier: rule-driven retry decisions.

ExceptionClassifier turns a key/value rule set into retry decisions for
exceptions and their causes.

Keys are of the form::

    package.module.ClassName = ACTION
    package.module.ClassName;regular expression = ACTION
    sqlState.40001 = ACTION
    sqlState.40001;regular expression = ACTION

and ``ACTION`` is one of ``RETRY`` or ``THROW`` (case-insensitive).

If a regular expression is given it is searched for in the exception message.
Causes are examined before the exceptions that wrap them, and for each
exception the rules are tried in precedence order (see ``models``). The
first rule that matches decides; when none does, the answer is "do not retry".
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from retryrules.core.constants import (
    DEFAULT_RULES_PACKAGE,
    PATTERN_SEPARATOR,
    POSTGRESQL_RULES_RESOURCE,
    SQLSTATE_PREFIX,
)
from retryrules.core.logging import get_logger

from .codes import Action
from .exceptions import (
    ConflictingRulesError,
    InvalidPatternError,
    RuleConfigurationError,
    TypeResolutionError,
)
from .loader import load_resource, load_rules_file, parse_properties
from .models import Rule, sort_rules
from .types import ImportTypeResolver, SQLStateError, TypeResolver, get_message, iter_cause_chain, type_name

if TYPE_CHECKING:
    from retryrules.core.config import RulesConfig

# Module-level logger for classification
_logger = get_logger("classifier")


@dataclass(frozen=True)
class Decision:
    """Outcome of classifying one exception chain.

    Attributes:
        action: RETRY or THROW from the deciding rule, IGNORE if none matched.
        rule: The deciding rule, or None.
        matched: The exception in the chain the rule matched, or None.
    """

    action: Action
    rule: Rule | None = None
    matched: BaseException | None = None

    @property
    def should_retry(self) -> bool:
        return self.action is Action.RETRY


_NO_MATCH = Decision(action=Action.IGNORE)


def parse_rule(key: str, value: str, resolver: TypeResolver) -> Rule:
    """Build a single Rule from a configured key/value pair.

    Args:
        key: ``target[;pattern]`` where target is a qualified type name or
            ``sqlState.<code>``.
        value: RETRY or THROW, case-insensitive.
        resolver: Resolves qualified type names.

    Returns:
        The parsed Rule.

    Raises:
        RuleConfigurationError: If the action, type or pattern is invalid.
    """
    action = Action.parse(value, key=key)

    descriptor, _, pattern_text = key.partition(PATTERN_SEPARATOR)

    pattern: re.Pattern[str] | None = None
    if pattern_text:
        try:
            pattern = re.compile(pattern_text)
        except re.error as e:
            raise InvalidPatternError(
                f"invalid message pattern {pattern_text!r}: {e}", key=key, value=value
            ) from e

    error_code: str | None = None
    target: type
    if descriptor.startswith(SQLSTATE_PREFIX):
        error_code = descriptor[len(SQLSTATE_PREFIX):]
        if not error_code:
            raise RuleConfigurationError("missing SQL state code", key=key, value=value)
        target = SQLStateError
    else:
        try:
            target = resolver.resolve(descriptor)
        except TypeResolutionError as e:
            if e.key is not None:
                raise
            raise TypeResolutionError(str(e), key=key, value=value) from e

    return Rule(action=action, target=target, error_code=error_code, pattern=pattern)


class ExceptionClassifier:
    """Classifies exceptions as retryable or not using configured rules.

    Instances are immutable once built and safe to share between threads.
    Replacing the rules means building a new classifier.

    Example:
        classifier = ExceptionClassifier({
            "sqlState.40001": "RETRY",
            "sqlState.40001;restart transaction": "RETRY",
            "psycopg.errors.SyntaxError": "THROW",
        })
        if classifier.should_retry(exc):
            ...
    """

    def __init__(
        self,
        rules: Mapping[str, str] | None = None,
        *,
        resolver: TypeResolver | None = None,
    ) -> None:
        """Parse and sort a rule set.

        Args:
            rules: Mapping of rule keys to action names.
            resolver: Resolves type names in rule keys. Defaults to
                ImportTypeResolver.

        Raises:
            RuleConfigurationError: If any entry is invalid. No classifier
                is produced from a partially valid rule set.
        """
        resolver = resolver or ImportTypeResolver()
        debug = _logger.is_enabled_for(logging.DEBUG)

        by_match_key: dict[tuple[type, str | None, str | None], tuple[str, Rule]] = {}
        for key, value in (rules or {}).items():
            if debug:
                _logger.debug("rule_parsed", key=key, value=value)
            rule = parse_rule(key, value, resolver)
            existing = by_match_key.get(rule.match_key)
            if existing is not None:
                existing_key, existing_rule = existing
                if existing_rule.action is not rule.action:
                    raise ConflictingRulesError(
                        f"conflicts with {existing_key!r} = {existing_rule.action.value}",
                        key=key,
                        value=value,
                    )
                continue
            by_match_key[rule.match_key] = (key, rule)

        self._rules: tuple[Rule, ...] = tuple(
            sort_rules(rule for _, rule in by_match_key.values())
        )
        # Memoizes find_rules_for(); entries are written once and never change.
        self._applicable: dict[type, tuple[Rule, ...]] = {}
        self._applicable_lock = threading.Lock()

        if debug:
            _logger.debug("rules_sorted", count=len(self._rules))
            for position, rule in enumerate(self._rules):
                _logger.debug("rule_ranked", position=position, rule=str(rule))

    # -------------------------------------------------------------------------
    # Alternate constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_mapping(
        cls, rules: Mapping[str, str], *, resolver: TypeResolver | None = None
    ) -> ExceptionClassifier:
        """Construct a classifier from a mapping of rule keys to actions."""
        return cls(rules, resolver=resolver)

    @classmethod
    def from_properties(
        cls, text: str, *, resolver: TypeResolver | None = None
    ) -> ExceptionClassifier:
        """Construct a classifier from properties-file text."""
        return cls(parse_properties(text), resolver=resolver)

    @classmethod
    def from_file(
        cls, path: Path | str, *, resolver: TypeResolver | None = None
    ) -> ExceptionClassifier:
        """Construct a classifier from a ``.properties`` or YAML rule file."""
        return cls(load_rules_file(Path(path)), resolver=resolver)

    @classmethod
    def from_resource(
        cls, package: str, name: str, *, resolver: TypeResolver | None = None
    ) -> ExceptionClassifier:
        """Construct a classifier from a properties file shipped in a package."""
        return cls(load_resource(package, name), resolver=resolver)

    @classmethod
    def from_config(
        cls, config: RulesConfig, *, resolver: TypeResolver | None = None
    ) -> ExceptionClassifier:
        """Construct a classifier from a validated RulesConfig."""
        return cls(config.effective_rules(), resolver=resolver)

    @classmethod
    def postgresql_defaults(
        cls, *, resolver: TypeResolver | None = None
    ) -> ExceptionClassifier:
        """Construct a classifier from the bundled PostgreSQL rule set."""
        return cls.from_resource(
            DEFAULT_RULES_PACKAGE, POSTGRESQL_RULES_RESOURCE, resolver=resolver
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def rules(self) -> tuple[Rule, ...]:
        """All rules in precedence order."""
        return self._rules

    def should_retry(self, exc: BaseException) -> bool:
        """Whether the rule that decides ``exc`` says RETRY."""
        return self.classify(exc).should_retry

    def classify(self, exc: BaseException) -> Decision:
        """Find the rule that decides ``exc``.

        The cause chain is examined innermost first.
        """
        for current in reversed(list(iter_cause_chain(exc))):
            rules = self.find_rules_for(type(current))
            if not rules:
                continue
            # One message per exception, shared by all of its rules
            message = get_message(current)
            for rule in rules:
                action = rule.decide(current, message)
                if action is not Action.IGNORE:
                    if _logger.is_enabled_for(logging.DEBUG):
                        _logger.debug(
                            "exception_classified",
                            exc_type=type_name(type(exc)),
                            matched_type=type_name(type(current)),
                            rule=str(rule),
                            action=action.value,
                        )
                    return Decision(action=action, rule=rule, matched=current)

        if _logger.is_enabled_for(logging.DEBUG):
            _logger.debug("no_rule_matched", exc_type=type_name(type(exc)))
        return _NO_MATCH

    def find_rules_for(self, cls: type) -> tuple[Rule, ...]:
        """Rules applicable to ``cls``, in evaluation order.

        Results are memoized per type. Two threads missing the same type at
        once both compute the tuple; the first stored one wins and both
        return it.
        """
        found = self._applicable.get(cls)
        if found is not None:
            return found

        found = tuple(rule for rule in self._rules if rule.applies_to(cls))
        with self._applicable_lock:
            found = self._applicable.setdefault(cls, found)
        if _logger.is_enabled_for(logging.DEBUG):
            _logger.debug(
                "rules_found",
                exc_type=type_name(cls),
                rules=[str(rule) for rule in found],
            )
        return found

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"ExceptionClassifier(rules={len(self._rules)})"
