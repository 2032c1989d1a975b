"""
Pure transforms applied to a change event before it is archived.

- schema: classify a record into a RecordSchema label
- flatten: sanitize column names and serialize nested values
- keys: derive the archive object key

Nothing in this package performs I/O.
"""

from .flatten import flatten_image, sanitize_column_name, serialize_composite
from .keys import archive_key
from .schema import DEFAULT_RULES, Classifier, RecordSchema, SchemaRule, classify

__all__ = [
    # Classification
    "RecordSchema",
    "SchemaRule",
    "Classifier",
    "DEFAULT_RULES",
    "classify",
    # Flattening
    "sanitize_column_name",
    "serialize_composite",
    "flatten_image",
    # Keys
    "archive_key",
]
