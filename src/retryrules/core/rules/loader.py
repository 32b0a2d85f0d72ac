"""Loading rule sets from text, files and packaged resources.

Rule sets are flat key/value maps. They can be written as Java-style
``.properties`` files (the format rule sets have historically been shipped
in) or as YAML documents validated by ``RulesConfig``.

Properties syntax understood here:

- blank lines and lines starting with ``#`` or ``!`` are ignored
- a key ends at the first unescaped ``=``, ``:`` or whitespace
- backslash escapes ``\\=``, ``\\:``, ``\\ ``, ``\\\\``, ``\\t``, ``\\n``,
  ``\\r``, ``\\f`` and ``\\uXXXX``
- a line ending in an odd number of backslashes continues on the next line

Because of the escaping rules, a regex such as ``\\d+`` must be written
``\\\\d+`` in a properties file, and spaces in a pattern must be escaped.
"""

from __future__ import annotations

import importlib.resources
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from retryrules.core.constants import PROPERTIES_SUFFIXES, YAML_SUFFIXES
from retryrules.core.logging import get_logger

from .exceptions import RuleConfigurationError, RuleSourceError

_logger = get_logger("loader")

_WHITESPACE = " \t\f"
_SEPARATORS = "=:" + _WHITESPACE
_ESCAPES: dict[str, str] = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _logical_lines(text: str) -> Iterator[str]:
    """Yield logical lines with comments dropped and continuations joined."""
    pending: str | None = None
    for raw in text.splitlines():
        line = raw.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending:
        yield pending


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char != "\\":
            out.append(char)
            i += 1
            continue
        i += 1
        if i >= len(text):
            break
        char = text[i]
        if char == "u":
            digits = text[i + 1:i + 5]
            if len(digits) != 4 or not set(digits) <= _HEX_DIGITS:
                raise RuleSourceError(f"malformed \\uXXXX escape in {text!r}")
            out.append(chr(int(digits, 16)))
            i += 5
            continue
        out.append(_ESCAPES.get(char, char))
        i += 1
    return "".join(out)


def _split_entry(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\":
            i += 2
            continue
        if char in _SEPARATORS:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(_WHITESPACE)
    return _unescape(key), _unescape(rest)


def parse_properties(text: str) -> dict[str, str]:
    """Parse properties-file text into a dict.

    Later occurrences of a key replace earlier ones.

    Raises:
        RuleSourceError: On a malformed unicode escape.
    """
    entries: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_entry(line)
        if key in entries:
            _logger.warning("duplicate_property_key", key=key, replaced=entries[key], value=value)
        entries[key] = value
    return entries


def load_properties_file(path: Path) -> dict[str, str]:
    """Read and parse a properties file (UTF-8)."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RuleSourceError(f"cannot read rule file {str(path)!r}: {e}") from e
    return parse_properties(text)


def load_resource(package: str, name: str) -> dict[str, str]:
    """Load a rule set shipped as a resource inside an importable package.

    ``.properties`` resources are parsed as properties, YAML resources as a
    RulesConfig document.

    Raises:
        RuleSourceError: If the package or resource cannot be found.
    """
    try:
        text = importlib.resources.files(package).joinpath(name).read_text(encoding="utf-8")
    except (ModuleNotFoundError, FileNotFoundError, IsADirectoryError) as e:
        raise RuleSourceError(
            f"could not find resource {name!r} in package {package!r}"
        ) from e

    if Path(name).suffix in YAML_SUFFIXES:
        from retryrules.core.config import RulesConfig

        try:
            return RulesConfig.from_yaml_string(text).effective_rules()
        except ValidationError as e:
            raise RuleConfigurationError(f"invalid rule resource {name!r}: {e}") from e
    return parse_properties(text)


def load_rules_file(path: Path) -> dict[str, str]:
    """Load a rule set from a file, choosing the format by suffix.

    Raises:
        RuleSourceError: If the file cannot be read, has an unsupported
            suffix, or is not parseable.
        RuleConfigurationError: If a YAML document is not a valid rule set.
    """
    suffix = path.suffix.lower()
    if suffix in PROPERTIES_SUFFIXES:
        return load_properties_file(path)
    if suffix in YAML_SUFFIXES:
        from retryrules.core.config import RulesConfig

        try:
            return RulesConfig.from_yaml(path).effective_rules()
        except ValidationError as e:
            raise RuleConfigurationError(f"invalid rule file {str(path)!r}: {e}") from e
    raise RuleSourceError(
        f"unsupported rule file {str(path)!r}; expected .properties, .yaml or .yml"
    )
