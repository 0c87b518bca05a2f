"""Identifier quoting and clause normalization helpers."""

import re
from functools import lru_cache

__all__ = (
    "ensure_prefix",
    "quote_identifier",
    "quote_table_name",
    "split_key_columns",
    "strip_prefix",
)

_WHERE_PREFIX_RE = re.compile(r"^\s*where\b", re.IGNORECASE)
_ORDER_BY_PREFIX_RE = re.compile(r"^\s*order\s+by\b", re.IGNORECASE)

_PREFIX_PATTERNS = {"WHERE": _WHERE_PREFIX_RE, "ORDER BY": _ORDER_BY_PREFIX_RE}


def quote_identifier(name: str) -> str:
    """Wrap a single identifier in square brackets.

    An identifier that is already bracketed is returned unchanged.
    """
    name = name.strip()
    if name.startswith("[") and name.endswith("]"):
        return name
    return f"[{name}]"


@lru_cache(maxsize=256)
def quote_table_name(table_name: str) -> str:
    """Quote a possibly schema-qualified table name.

    Each ``.`` separated segment is quoted on its own, so ``dbo.Users``
    becomes ``[dbo].[Users]``.

    Args:
        table_name: Raw table name.

    Returns:
        The bracket-quoted table name.
    """
    return ".".join(quote_identifier(part) for part in table_name.split("."))


def ensure_prefix(fragment: str, keyword: str) -> str:
    """Prepend ``keyword`` to a caller supplied clause unless it already starts with it.

    The fragment itself is passed through verbatim. Only ``WHERE`` and
    ``ORDER BY`` are recognised keywords.

    Args:
        fragment: Raw SQL fragment, e.g. ``"Age > @0"`` or ``"where Age > @0"``.
        keyword: ``"WHERE"`` or ``"ORDER BY"``.

    Returns:
        The clause, or an empty string for an empty fragment.
    """
    if not fragment or not fragment.strip():
        return ""
    if _PREFIX_PATTERNS[keyword].match(fragment):
        return fragment.strip()
    return f"{keyword} {fragment.strip()}"


def split_key_columns(key_spec: str, separator: str = ",") -> "tuple[str, ...]":
    """Split a delimiter separated key specification into trimmed, unique column names.

    Order of first appearance is kept; empty segments are dropped.
    """
    columns: list[str] = []
    for part in key_spec.split(separator):
        column = part.strip()
        if column and column not in columns:
            columns.append(column)
    return tuple(columns)


def strip_prefix(fragment: str, keyword: str) -> str:
    """Remove a leading ``keyword`` from a caller supplied clause, if present."""
    match = _PREFIX_PATTERNS[keyword].match(fragment)
    if match:
        return fragment[match.end() :].strip()
    return fragment.strip()
