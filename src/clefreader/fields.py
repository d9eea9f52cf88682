"""Reserved CLEF field names and the escaping rule for user properties.

CLEF puts event metadata in fields whose names start with ``@``. A user
property that itself starts with ``@`` is written with the ``@`` doubled
(``@t`` becomes ``@@t``), so reading strips exactly one leading ``@`` from any
name that starts with ``@@``. Single-``@`` names that are not in the catalog
(``@foo``) are left alone and surface as ordinary properties.
"""
from __future__ import annotations

TIMESTAMP = "@t"
MESSAGE = "@m"
MESSAGE_TEMPLATE = "@mt"
LEVEL = "@l"
EXCEPTION = "@x"
EVENT_ID = "@i"
RENDERINGS = "@r"
TRACE_ID = "@tr"
SPAN_ID = "@sp"

ALL: frozenset[str] = frozenset({
    TIMESTAMP, MESSAGE, MESSAGE_TEMPLATE, LEVEL, EXCEPTION,
    EVENT_ID, RENDERINGS, TRACE_ID, SPAN_ID,
})

_PREFIX = "@"
_ESCAPED_PREFIX = "@@"


def is_reserved(name: str) -> bool:
    return name in ALL


def escape(name: str) -> str:
    """Escape a user property name so it can't be mistaken for metadata."""
    if name.startswith(_PREFIX):
        return _PREFIX + name
    return name


def unescape(name: str) -> str:
    """Reverse :func:`escape`."""
    if name.startswith(_ESCAPED_PREFIX):
        return name[1:]
    return name


def is_unrecognized(name: str) -> bool:
    """True for ``@``-prefixed names that are neither reserved nor escaped."""
    return (
        name.startswith(_PREFIX)
        and not name.startswith(_ESCAPED_PREFIX)
        and name not in ALL
    )
