"""
Record schema classification.

Every archived record is labelled with a logical schema derived from its
source and primary-key prefix. The label is both a partition segment of the
archive key and a column of the archived payload.

Invariants:
    - classify() is total: it always returns a RecordSchema, never raises
    - Rules are evaluated in order, first match wins
    - pk prefix matching is case-insensitive

How to change safely:
    - Append new rules; reordering existing ones can relabel archived data
    - A relabelled record moves to a different key; the old object is not cleaned up
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class RecordSchema(str, Enum):
    """Logical record types found in the archive."""

    USER = "user"
    POST = "post"
    COMMENT = "comment"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SchemaRule:
    """Maps a (source, pk prefix) pair to a record schema.

    Attributes:
        source: Exact source name to match
        schema: Label assigned on match
        pk_prefix: Lowercase pk prefix; None matches any pk
    """

    source: str
    schema: RecordSchema
    pk_prefix: str | None = None

    def matches(self, source: str, pk: str) -> bool:
        if source != self.source:
            return False
        if self.pk_prefix is None:
            return True
        return pk.lower().startswith(self.pk_prefix)


DEFAULT_RULES: tuple[SchemaRule, ...] = (
    SchemaRule("users", RecordSchema.USER),
    SchemaRule("blog", RecordSchema.POST, pk_prefix="post"),
    SchemaRule("blog", RecordSchema.COMMENT, pk_prefix="comment"),
)

# Writers accept any callable of this shape; returning None skips the event.
Classifier = Callable[[str, str, str], Optional[RecordSchema]]


def classify(
    source: str,
    pk: str,
    sk: str,
    rules: tuple[SchemaRule, ...] = DEFAULT_RULES,
) -> RecordSchema:
    """Classify a record into a schema.

    Args:
        source: Event source (table or stream name)
        pk: Primary key of the record
        sk: Sort key of the record (not used by the default rules)
        rules: Ordered rules to evaluate

    Returns:
        The first matching rule's schema, or RecordSchema.UNKNOWN
    """
    pk = str(pk)
    for rule in rules:
        if rule.matches(source, pk):
            return rule.schema
    return RecordSchema.UNKNOWN
