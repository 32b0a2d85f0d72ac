"""Core rule model, classifier and configuration."""

from retryrules.core.rules import Action, ExceptionClassifier, Rule
from retryrules.core.config import RulesConfig

__all__ = [
    "Action",
    "ExceptionClassifier",
    "Rule",
    "RulesConfig",
]
