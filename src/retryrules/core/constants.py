"""Global constants for retryrules.

Centralizes the literal tokens of the rule grammar so the parser,
the loaders and the CLI agree on them.
"""

# =============================================================================
# Rule Grammar
# =============================================================================

SQLSTATE_PREFIX = "sqlState."
"""Key prefix that binds a rule to an error code instead of a type name."""

PATTERN_SEPARATOR = ";"
"""Separates the target descriptor from the optional message pattern in a key."""

# =============================================================================
# Error Code Capability
# =============================================================================

ERROR_CODE_ATTRIBUTES: tuple[str, ...] = ("sqlstate", "pgcode")
"""Attribute names probed, in order, to read an exception's error code.

``sqlstate`` is used by asyncpg and psycopg 3, ``pgcode`` by psycopg2.
"""

# =============================================================================
# Rule Sources
# =============================================================================

PROPERTIES_SUFFIXES = frozenset({".properties"})
"""File suffixes loaded with the properties parser."""

YAML_SUFFIXES = frozenset({".yaml", ".yml"})
"""File suffixes loaded as a YAML ``RulesConfig`` document."""

DEFAULT_RULES_PACKAGE = "retryrules.resources"
"""Package holding the rule sets shipped with retryrules."""

POSTGRESQL_RULES_RESOURCE = "postgresql.properties"
"""Resource name of the default PostgreSQL-family rule set."""
