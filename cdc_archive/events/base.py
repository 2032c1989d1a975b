"""
Change event model for the CDC archive transform.

A change event arrives wrapped in a delivery envelope:

    {
        "id": "7bf73129-...",
        "source": "blog",
        "detail-type": "dynamo.item.changed",
        "time": "2024-03-01T12:00:00Z",
        "detail": {
            "data": {
                "operation": "MODIFY",
                "newImage": {"pk": "POST#1", "sk": "META", ...},
                "oldImage": {...}
            }
        }
    }

Invariants:
    - ChangeEvent is immutable once parsed
    - Each event is self-contained; no event references another
    - Unknown operation strings are kept verbatim, not rejected

How to change safely:
    - New envelope fields must be optional
    - Never reinterpret existing operation names
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ChangeEventError(ValueError):
    """Envelope could not be parsed into a ChangeEvent."""

    pass


class Operation(str, Enum):
    """Row-level mutation kinds emitted by the source of record."""

    INSERT = "INSERT"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


@dataclass(frozen=True)
class ChangeEvent:
    """A single CDC change event.

    Attributes:
        source: Logical origin (table or stream name)
        operation: Operation name as delivered (INSERT, MODIFY, REMOVE, ...)
        new_image: Row image after the change (INSERT/MODIFY)
        old_image: Row image before the change (REMOVE)
        event_id: Envelope id, for log correlation only
        detail_type: Envelope detail-type, for log correlation only
        time: Envelope timestamp, for log correlation only
    """

    source: str
    operation: str
    new_image: dict[str, Any] | None = None
    old_image: dict[str, Any] | None = None
    event_id: str | None = None
    detail_type: str | None = None
    time: str | None = None

    @classmethod
    def from_dict(cls, envelope: dict[str, Any]) -> ChangeEvent:
        """Create from a delivery envelope.

        Args:
            envelope: Envelope dictionary as delivered to the handler

        Returns:
            ChangeEvent instance

        Raises:
            ChangeEventError: If source or detail.data is missing or malformed
        """
        if not isinstance(envelope, dict):
            raise ChangeEventError(f"Envelope must be an object, got {type(envelope).__name__}")

        source = envelope.get("source")
        if not isinstance(source, str) or not source:
            raise ChangeEventError("Missing required field: source")

        detail = envelope.get("detail")
        data = detail.get("data") if isinstance(detail, dict) else None
        if not isinstance(data, dict):
            raise ChangeEventError("Missing required field: detail.data")

        return cls(
            source=source,
            operation=str(data.get("operation", "")),
            new_image=_image_or_none(data.get("newImage"), "newImage"),
            old_image=_image_or_none(data.get("oldImage"), "oldImage"),
            event_id=envelope.get("id"),
            detail_type=envelope.get("detail-type"),
            time=envelope.get("time"),
        )

    @property
    def image(self) -> dict[str, Any] | None:
        """The image to archive: the new image if present, else the old one."""
        if self.new_image is not None:
            return self.new_image
        return self.old_image

    @property
    def is_removal(self) -> bool:
        return self.operation == Operation.REMOVE.value

    def __str__(self) -> str:
        return f"ChangeEvent(source={self.source}, op={self.operation}, id={self.event_id})"


def _image_or_none(value: Any, name: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ChangeEventError(f"{name} must be an object, got {type(value).__name__}")
    return value
