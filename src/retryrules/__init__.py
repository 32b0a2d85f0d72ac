"""retryrules - decide whether a failed database operation should be retried.

Rules are declared as key/value pairs (in a mapping, a properties file or a
YAML document) and evaluated against an exception and its causes.
"""

__version__ = "0.3.0"

from retryrules.core.rules import (
    Action,
    DatabaseError,
    Decision,
    ExceptionClassifier,
    RetryRulesError,
    Rule,
    RuleConfigurationError,
    RuleSourceError,
    SQLStateError,
    TypeRegistry,
)
from retryrules.core.config import RulesConfig

__all__ = [
    "Action",
    "DatabaseError",
    "Decision",
    "ExceptionClassifier",
    "RetryRulesError",
    "Rule",
    "RuleConfigurationError",
    "RuleSourceError",
    "RulesConfig",
    "SQLStateError",
    "TypeRegistry",
    "__version__",
]
