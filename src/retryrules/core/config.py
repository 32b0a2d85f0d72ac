"""Configuration model for YAML rule documents.

A rule document looks like::

    include_defaults: true
    rules:
      psycopg.errors.SerializationFailure: retry
      "sqlState.57014": THROW
      "sqlState.40001;restart transaction": RETRY

Keys follow the same grammar as properties files; values are validated to
RETRY or THROW case-insensitively and normalized to upper case.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from retryrules.core.constants import DEFAULT_RULES_PACKAGE, POSTGRESQL_RULES_RESOURCE
from retryrules.core.rules.codes import Action
from retryrules.core.rules.exceptions import RuleSourceError
from retryrules.core.rules.loader import load_resource


class RulesConfig(BaseModel):
    """A rule set as written in a YAML rule document."""

    rules: dict[str, str] = Field(
        default_factory=dict,
        description="Rule keys mapped to RETRY or THROW",
    )
    include_defaults: bool = Field(
        default=False,
        description=(
            "Merge the bundled PostgreSQL rule set beneath these rules. "
            "Keys given here replace bundled keys spelled the same way."
        ),
    )

    @field_validator("rules")
    @classmethod
    def _validate_rules(cls, v: dict[str, str]) -> dict[str, str]:
        normalized: dict[str, str] = {}
        for key, value in v.items():
            if not key.strip():
                raise ValueError("rule keys must not be empty")
            normalized[key] = Action.parse(value, key=key).value
        return normalized

    def effective_rules(self) -> dict[str, str]:
        """The rule mapping a classifier should be built from."""
        if not self.include_defaults:
            return dict(self.rules)
        merged = load_resource(DEFAULT_RULES_PACKAGE, POSTGRESQL_RULES_RESOURCE)
        merged.update(self.rules)
        return merged

    @classmethod
    def from_yaml(cls, path: Path) -> RulesConfig:
        """Load a rule document from a YAML file.

        Raises:
            RuleSourceError: If the file cannot be read or is not valid YAML.
            pydantic.ValidationError: If the document does not describe a
                valid rule set.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RuleSourceError(f"cannot read rule file {str(path)!r}: {e}") from e
        return cls.from_yaml_string(text)

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> RulesConfig:
        """Load a rule document from a YAML string."""
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise RuleSourceError(f"invalid YAML rule document: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RuleSourceError("YAML rule document must be a mapping")
        return cls.model_validate(data)
