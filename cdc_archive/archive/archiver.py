"""
Archive writer for CDC change events.

The ArchiveWriter takes one ChangeEvent and either writes the flattened
record image to the object store or deletes its archive object:

    RECEIVED ──▶ CLASSIFIED ──┬──▶ WRITE  ──┬──▶ DONE
                              │             │
                              └──▶ DELETE ──┴──▶ FAILED

Events without any image, or whose image lacks pk/sk, go straight to DONE
without touching storage.

Archive object body:
    {"<column>": <scalar or JSON text>, ..., "schema": "<label>"}

Invariants:
    - process() never raises for storage failures; it returns a FAILED outcome
    - There are no retries; a failed event is visible only in the logs
    - Writes overwrite by key, deletes of missing keys succeed (idempotent)
    - The writer holds no per-event state between calls

How to change safely:
    - The body format is read by a crawler; only add columns
    - Keep every log line carrying source/key context for failure triage
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..events.base import ChangeEvent
from ..transform.flatten import flatten_image
from ..transform.keys import archive_key
from ..transform.schema import Classifier, RecordSchema, classify
from .store import ObjectStore, ObjectStoreError

logger = logging.getLogger(__name__)

SCHEMA_COLUMN = "schema"


def encode_payload(payload: dict[str, Any]) -> bytes:
    """Encode an archive body as compact UTF-8 JSON.

    Text that UTF-8 cannot carry (lone surrogates) is written as \\uXXXX
    escapes instead.
    """
    try:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except UnicodeEncodeError:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class ArchiveState(str, Enum):
    """Lifecycle states of one archive invocation."""

    RECEIVED = "received"
    CLASSIFIED = "classified"
    WRITE = "write"
    DELETE = "delete"
    DONE = "done"
    FAILED = "failed"


class ArchiveAction(str, Enum):
    """What the writer did with the event."""

    WRITE = "write"
    DELETE = "delete"
    SKIP = "skip"


@dataclass
class ArchiveOutcome:
    """Result of archiving one change event.

    Attributes:
        state: Terminal state (DONE or FAILED)
        action: Action taken or attempted
        source: Event source
        key: Archive object key (None when skipped before key derivation)
        schema: Record schema label (None when skipped before classification)
        reason: Why the event was skipped, if it was
        error: Error message if the storage call failed
    """

    state: ArchiveState
    action: ArchiveAction
    source: str | None = None
    key: str | None = None
    schema: RecordSchema | None = None
    reason: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.state == ArchiveState.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and handler return values."""
        return {
            "state": self.state.value,
            "action": self.action.value,
            "source": self.source,
            "key": self.key,
            "schema": self.schema.value if self.schema is not None else None,
            "reason": self.reason,
            "error": self.error,
        }

    @classmethod
    def skipped(cls, source: str | None, reason: str) -> ArchiveOutcome:
        return cls(
            state=ArchiveState.DONE,
            action=ArchiveAction.SKIP,
            source=source,
            reason=reason,
        )


class ArchiveWriter:
    """Archives CDC change events into an object store.

    Attributes:
        store: Destination object store
        classifier: Callable mapping (source, pk, sk) to a RecordSchema

    Example:
        >>> async with S3ObjectStore(config.s3) as store:
        ...     writer = ArchiveWriter(store)
        ...     outcome = await writer.process(ChangeEvent.from_dict(envelope))
    """

    def __init__(self, store: ObjectStore, classifier: Classifier = classify) -> None:
        """Initialize the writer.

        Args:
            store: Object store receiving puts and deletes
            classifier: Schema classifier (defaults to the built-in rules)
        """
        self.store = store
        self.classifier = classifier

    async def process(self, event: ChangeEvent) -> ArchiveOutcome:
        """Archive a single change event.

        Args:
            event: The change event to archive

        Returns:
            ArchiveOutcome describing what was done
        """
        logger.info(
            "Change event received",
            extra={
                "state": ArchiveState.RECEIVED.value,
                "source": event.source,
                "operation": event.operation,
                "event_id": event.event_id,
                "detail_type": event.detail_type,
            },
        )

        image = event.image
        if image is None:
            logger.info("Change event has no image, skipping", extra={"source": event.source})
            return ArchiveOutcome.skipped(event.source, "no image")

        pk = image.get("pk")
        sk = image.get("sk")
        if pk is None or sk is None:
            logger.warning(
                "Record image missing pk or sk, skipping",
                extra={"source": event.source, "event_id": event.event_id},
            )
            return ArchiveOutcome.skipped(event.source, "missing pk or sk")

        schema = self.classifier(event.source, pk, sk)
        if schema is None:
            # Only reachable with a custom classifier that has no fallback.
            logger.warning(
                "No schema matched, skipping",
                extra={"source": event.source, "pk": pk, "sk": sk},
            )
            return ArchiveOutcome.skipped(event.source, "no schema")

        key = archive_key(event.source, schema, pk, sk)
        context = {
            "bucket": self.store.bucket,
            "schema": schema.value,
            "key": key,
            "source": event.source,
            "pk": pk,
            "sk": sk,
        }
        logger.info("Change event classified", extra={"state": ArchiveState.CLASSIFIED.value, **context})

        if event.is_removal:
            return await self._delete(event, schema, key, context)
        return await self._write(event, image, schema, key, context)

    async def _write(
        self,
        event: ChangeEvent,
        image: dict[str, Any],
        schema: RecordSchema,
        key: str,
        context: dict[str, Any],
    ) -> ArchiveOutcome:
        """Put the flattened image at the archive key."""
        flattened = flatten_image(image)
        logger.info("Flattened record image", extra={"flattened": flattened, **context})

        body = encode_payload({**flattened, SCHEMA_COLUMN: schema.value})

        try:
            await self.store.put(key, body, content_type="application/json")
        except ObjectStoreError as e:
            return self._failed(ArchiveAction.WRITE, event, schema, key, e, context)

        logger.info("Archive object written", extra={"state": ArchiveState.DONE.value, **context})
        return ArchiveOutcome(
            state=ArchiveState.DONE,
            action=ArchiveAction.WRITE,
            source=event.source,
            key=key,
            schema=schema,
        )

    async def _delete(
        self,
        event: ChangeEvent,
        schema: RecordSchema,
        key: str,
        context: dict[str, Any],
    ) -> ArchiveOutcome:
        """Delete the archive object for a removed record."""
        try:
            await self.store.delete(key)
        except ObjectStoreError as e:
            return self._failed(ArchiveAction.DELETE, event, schema, key, e, context)

        logger.info("Archive object deleted", extra={"state": ArchiveState.DONE.value, **context})
        return ArchiveOutcome(
            state=ArchiveState.DONE,
            action=ArchiveAction.DELETE,
            source=event.source,
            key=key,
            schema=schema,
        )

    def _failed(
        self,
        action: ArchiveAction,
        event: ChangeEvent,
        schema: RecordSchema,
        key: str,
        error: ObjectStoreError,
        context: dict[str, Any],
    ) -> ArchiveOutcome:
        logger.error(
            f"Archive {action.value} failed: {error}",
            exc_info=True,
            extra={"state": ArchiveState.FAILED.value, "event_id": event.event_id, **context},
        )
        return ArchiveOutcome(
            state=ArchiveState.FAILED,
            action=action,
            source=event.source,
            key=key,
            schema=schema,
            error=str(error),
        )
