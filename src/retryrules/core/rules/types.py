"""Collaborators the rule engine consults about exceptions and their types.

This module provides:
- TypeResolver: Protocol for turning a configured type name into a class
- ImportTypeResolver: Resolves dotted names by importing modules
- TypeRegistry: Explicit name -> type table, optionally backed by a fallback
- SQLStateError: ABC recognizing exceptions that carry a SQL state code
- DatabaseError: Concrete exception carrying a SQL state code
- get_error_code / get_message / get_cause / iter_cause_chain: accessors
  used while classifying
"""

from __future__ import annotations

import builtins
import importlib
from abc import ABC
from collections.abc import Iterator
from typing import Any, Protocol

from retryrules.core.constants import ERROR_CODE_ATTRIBUTES
from retryrules.core.logging import get_logger

from .exceptions import TypeResolutionError

_logger = get_logger("types")


def type_name(cls: type) -> str:
    """Canonical dotted name of a class (``module.QualName``)."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _ensure_exception_type(name: str, obj: Any) -> type:
    if isinstance(obj, type) and (
        issubclass(obj, BaseException) or obj is SQLStateError
    ):
        return obj
    raise TypeResolutionError(f"{name!r} does not name an exception class")


# =============================================================================
# Type resolution
# =============================================================================


class TypeResolver(Protocol):
    """Turns a qualified type name into a class usable with ``issubclass``."""

    def resolve(self, name: str) -> type:
        """Return the class for ``name``.

        Raises:
            TypeResolutionError: If the name is unknown or is not an
                exception class.
        """
        ...


class ImportTypeResolver:
    """Resolves ``package.module.Qual.Name`` by importing modules.

    The longest importable module prefix of the name is imported and the
    remaining parts are looked up as attributes, so nested classes work.
    Names without a dot are looked up in ``builtins``.
    """

    def resolve(self, name: str) -> type:
        name = name.strip()
        if not name:
            raise TypeResolutionError("empty type name")

        parts = name.split(".")
        if len(parts) == 1:
            if not hasattr(builtins, name):
                raise TypeResolutionError(f"unknown type {name!r}")
            return _ensure_exception_type(name, getattr(builtins, name))

        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                obj: Any = importlib.import_module(module_name)
            except ModuleNotFoundError:
                continue
            except Exception as e:
                # ImportError, or whatever the module raised while loading
                raise TypeResolutionError(
                    f"cannot import {module_name!r} for {name!r}: {e!r}"
                ) from e
            for attr in parts[split:]:
                try:
                    obj = getattr(obj, attr)
                except AttributeError as e:
                    raise TypeResolutionError(f"unknown type {name!r}") from e
            return _ensure_exception_type(name, obj)

        raise TypeResolutionError(f"unknown type {name!r}")


class TypeRegistry:
    """Explicit table of type names to exception classes.

    Useful when rule sets must not trigger imports, or when the names used
    in configuration are aliases rather than import paths.

    Example:
        registry = TypeRegistry()
        registry.register(SerializationFailure, "SerializationFailure")
        classifier = ExceptionClassifier(rules, resolver=registry)
    """

    def __init__(self, fallback: TypeResolver | None = None) -> None:
        """Initialize an empty registry.

        Args:
            fallback: Resolver consulted for names that were never registered.
                Without one, unregistered names fail to resolve.
        """
        self._types: dict[str, type] = {}
        self._fallback = fallback

    def register(self, cls: type, name: str | None = None) -> type:
        """Register ``cls`` under ``name`` (default: its canonical name).

        Returns the class so the method can be used as a decorator.
        """
        key = name or type_name(cls)
        self._types[key] = _ensure_exception_type(key, cls)
        return cls

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def resolve(self, name: str) -> type:
        name = name.strip()
        if name in self._types:
            return self._types[name]
        if self._fallback is not None:
            return self._fallback.resolve(name)
        raise TypeResolutionError(f"type {name!r} is not registered")


# =============================================================================
# Error code capability
# =============================================================================


class SQLStateError(ABC):
    """Virtual base class of every exception that carries a SQL state code.

    A class counts as a subclass when it, or one of its bases, defines one
    of the attributes in ``ERROR_CODE_ATTRIBUTES``. Driver exceptions from
    asyncpg, psycopg 3 and psycopg2 qualify without registration; other
    classes can be added with ``SQLStateError.register(cls)``.
    """

    @classmethod
    def __subclasshook__(cls, subclass: type) -> bool | Any:
        if cls is SQLStateError:
            for base in subclass.__mro__:
                if any(attr in base.__dict__ for attr in ERROR_CODE_ATTRIBUTES):
                    return True
        return NotImplemented


class DatabaseError(Exception):
    """An exception carrying a SQL state code.

    Attributes:
        sqlstate: The five-character SQL state, or None when unknown.
    """

    sqlstate: str | None = None

    def __init__(self, message: str | None = None, sqlstate: str | None = None) -> None:
        if message is None:
            super().__init__()
        else:
            super().__init__(message)
        self.sqlstate = sqlstate


def get_error_code(exc: BaseException) -> str | None:
    """Return the error code an exception carries, or None."""
    for attr in ERROR_CODE_ATTRIBUTES:
        code = getattr(exc, attr, None)
        if code is not None:
            return str(code)
    return None


# =============================================================================
# Message and cause accessors
# =============================================================================


def get_message(exc: BaseException) -> str | None:
    """Return the message of an exception, or None when it has none.

    An exception raised without arguments and without a custom ``__str__``
    has no message. A failing ``__str__`` is treated the same way so that
    classification never raises.
    """
    try:
        message = str(exc)
    except Exception as e:
        _logger.debug("message_unavailable", exc_type=type_name(type(exc)), error=repr(e))
        return None
    if not message and not exc.args:
        return None
    return message


def get_cause(exc: BaseException) -> BaseException | None:
    """Return the exception ``exc`` wraps, or None if it is the root.

    Only an explicit ``raise ... from`` cause counts. The implicit
    ``__context__`` (an exception that was being handled when ``exc`` was
    raised) is not a wrapped cause and is not followed.
    """
    return exc.__cause__


def iter_cause_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and each exception it wraps, outermost first.

    Stops early if the chain loops back on itself.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = get_cause(current)
