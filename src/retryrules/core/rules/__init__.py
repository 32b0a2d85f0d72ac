"""Rule-based exception classification.

Re-exports all public symbols.
"""

from retryrules.core.rules.exceptions import (
    ConflictingRulesError,
    InvalidPatternError,
    RetryRulesError,
    RuleConfigurationError,
    RuleSourceError,
    TypeResolutionError,
    UnknownActionError,
)
from retryrules.core.rules.codes import Action
from retryrules.core.rules.types import (
    DatabaseError,
    ImportTypeResolver,
    SQLStateError,
    TypeRegistry,
    TypeResolver,
    get_cause,
    get_error_code,
    get_message,
    iter_cause_chain,
    type_name,
)
from retryrules.core.rules.models import Rule, compare_rules, precedence_key, sort_rules
from retryrules.core.rules.loader import (
    load_properties_file,
    load_resource,
    load_rules_file,
    parse_properties,
)
from retryrules.core.rules.classifier import Decision, ExceptionClassifier, parse_rule

__all__ = [
    "Action",
    "ConflictingRulesError",
    "DatabaseError",
    "Decision",
    "ExceptionClassifier",
    "ImportTypeResolver",
    "InvalidPatternError",
    "RetryRulesError",
    "Rule",
    "RuleConfigurationError",
    "RuleSourceError",
    "SQLStateError",
    "TypeRegistry",
    "TypeResolutionError",
    "TypeResolver",
    "UnknownActionError",
    "compare_rules",
    "get_cause",
    "get_error_code",
    "get_message",
    "iter_cause_chain",
    "load_properties_file",
    "load_resource",
    "load_rules_file",
    "parse_properties",
    "parse_rule",
    "precedence_key",
    "sort_rules",
    "type_name",
]
