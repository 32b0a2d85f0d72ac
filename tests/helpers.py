"""Shared test helpers for retryrules tests.

Defines a small exception hierarchy used across the test modules::

    SuperError
    ├── SibError
    └── SubError
        └── SubSubError
"""

from retryrules.core.rules import type_name


class SuperError(Exception):
    def __init__(self, message: str = "super") -> None:
        super().__init__(message)


class SibError(SuperError):
    def __init__(self, message: str = "sib") -> None:
        super().__init__(message)


class SubError(SuperError):
    def __init__(self, message: str = "sub") -> None:
        super().__init__(message)


class SubSubError(SubError):
    def __init__(self, message: str = "subSub") -> None:
        super().__init__(message)


class BareError(Exception):
    """Raised without arguments, so it has no message."""


class Outer:
    class NestedError(Exception):
        pass


SUPER = type_name(SuperError)
SIB = type_name(SibError)
SUB = type_name(SubError)
SUB_SUB = type_name(SubSubError)


def chain(*excs: BaseException) -> BaseException:
    """Link exceptions outermost first via ``__cause__`` and return the outermost."""
    for outer, inner in zip(excs, excs[1:]):
        outer.__cause__ = inner
    return excs[0]
