"""Storage key layout.

Every key has three segments, ``<namespace>:<owner>:<record_id>``.
Unowned records use the reserved owner segment ``_``; a real owner id
never escapes to ``_``, so the prefix of one partition matches no key of
another. Owner and record components are percent-escaped so the only
``:`` characters in a key are separators, and Redis glob characters never
reach a SCAN ``MATCH`` pattern unescaped.
"""

from __future__ import annotations

import re

SEPARATOR = ":"

# Owner segment of records that belong to nobody
UNOWNED = "_"

_NAMESPACE_RE = re.compile(r"^[a-z][a-z0-9_]*$")

# "%" first so escapes are not escaped twice
_ESCAPES = (
    ("%", "%25"),
    (":", "%3A"),
    ("*", "%2A"),
    ("?", "%3F"),
    ("[", "%5B"),
    ("]", "%5D"),
    ("\\", "%5C"),
)


def _escape(component: str) -> str:
    for raw, escaped in _ESCAPES:
        component = component.replace(raw, escaped)
    return component


def _unescape(component: str) -> str:
    for raw, escaped in reversed(_ESCAPES):
        component = component.replace(escaped, raw)
    return component


def _owner_segment(owner_id: str | None) -> str:
    if owner_id is None:
        return UNOWNED
    if owner_id == "":
        raise ValueError("owner_id must be None or a non-empty string")
    return _escape(owner_id).replace("_", "%5F")


def _check_namespace(namespace: str) -> None:
    if not _NAMESPACE_RE.match(namespace):
        raise ValueError(f"Invalid namespace: {namespace!r}")


def build_key(namespace: str, owner_id: str | None, record_id: str) -> str:
    """Map (namespace, owner_id, record_id) to a storage key."""
    _check_namespace(namespace)
    owner = _owner_segment(owner_id)
    if not record_id:
        raise ValueError("record_id must be a non-empty string")
    return f"{namespace}{SEPARATOR}{owner}{SEPARATOR}{_escape(record_id)}"


def build_prefix(namespace: str, owner_id: str | None) -> str:
    """Return the prefix shared by every key of one partition, and no other."""
    _check_namespace(namespace)
    return f"{namespace}{SEPARATOR}{_owner_segment(owner_id)}{SEPARATOR}"


def parse_key(key: str) -> tuple[str, str | None, str]:
    """Inverse of ``build_key``.

    Raises:
        ValueError: key was not produced by ``build_key``.
    """
    parts = key.split(SEPARATOR)
    if len(parts) != 3:
        raise ValueError(f"Malformed key: {key!r}")
    namespace, owner, record_id = parts
    if not _NAMESPACE_RE.match(namespace) or not owner or not record_id:
        raise ValueError(f"Malformed key: {key!r}")
    owner_id = None if owner == UNOWNED else _unescape(owner.replace("%5F", "_"))
    return namespace, owner_id, _unescape(record_id)
