"""
Column sanitization and image flattening.

Query engines reading the archive through a crawler expect flat rows with
simple lowercase column names. Flattening keeps scalars as they are and
turns nested values into JSON text.

Invariants:
    - sanitize_column_name() is deterministic, idempotent and never raises
    - flatten_image() never mutates its input
    - Composite values always become valid, parseable JSON text

Known behavior:
    Two raw keys that sanitize to the same column (e.g. "Name" and "name!")
    collapse into one; the later key in iteration order wins.
"""

from __future__ import annotations

import json
import re
from typing import Any

_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_]")
_LEADING_DIGIT = re.compile(r"^([0-9])")
_COMPOSITE_TYPES = (dict, list, tuple)


def sanitize_column_name(name: str) -> str:
    """Map a raw field name to an archive-safe column name.

    Removes characters outside [A-Za-z0-9_], prefixes a leading digit with
    an underscore, strips trailing underscores and lowercases the result.

    Args:
        name: Raw field name

    Returns:
        Sanitized column name (may be empty)

    Example:
        >>> sanitize_column_name("2cool")
        '_2cool'
        >>> sanitize_column_name("Foo-Bar_")
        'foobar'
    """
    sanitized = _INVALID_CHARS.sub("", str(name))
    sanitized = _LEADING_DIGIT.sub(r"_\1", sanitized)
    sanitized = sanitized.rstrip("_")
    return sanitized.lower()


def serialize_composite(value: Any) -> str:
    """Serialize a mapping or sequence as compact JSON text."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def flatten_image(image: dict[str, Any]) -> dict[str, Any]:
    """Flatten a record image into archive-safe columns.

    Args:
        image: Raw record image

    Returns:
        New mapping with sanitized keys and composites serialized to JSON
    """
    flat: dict[str, Any] = {}
    for key, value in image.items():
        column = sanitize_column_name(key)
        if isinstance(value, _COMPOSITE_TYPES):
            flat[column] = serialize_composite(value)
        else:
            flat[column] = value
    return flat
