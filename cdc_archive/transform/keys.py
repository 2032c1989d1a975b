"""
Archive object key derivation.

Key format:
    <source>/<schema>/<pk>###<sk>.json

pk and sk are embedded verbatim. The source of record constrains their
format, so a "/" inside either one would add a path segment; this is a
known limitation of the layout and is not escaped here, since escaping
would change the key of every existing object.
"""

from __future__ import annotations

from .schema import RecordSchema

KEY_SEPARATOR = "###"
KEY_SUFFIX = ".json"


def archive_key(source: str, schema: RecordSchema | str, pk: str, sk: str) -> str:
    """Build the archive object key for a record."""
    label = schema.value if isinstance(schema, RecordSchema) else schema
    return f"{source}/{label}/{pk}{KEY_SEPARATOR}{sk}{KEY_SUFFIX}"
