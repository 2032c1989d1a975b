"""
Object store abstraction for archive objects.

This module defines the ObjectStore protocol used by the archive writer,
an S3 implementation built on aiobotocore, and an in-memory implementation
for tests and local development.

Invariants:
    - put() overwrites any existing object at the key (last write wins)
    - delete() of a missing key succeeds
    - Every backend failure surfaces as ObjectStoreError with bucket/key context
    - A put is a single request; there are no partial writes

How to change safely:
    - Protocol changes require updating both implementations
    - Keep error translation in the backend; callers only know ObjectStoreError
"""

from __future__ import annotations

import json
import logging
from abc import abstractmethod
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from ..config import S3Config

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """Base exception for archive operations."""

    pass


class ObjectStoreError(ArchiveError):
    """An object store request failed.

    Attributes:
        operation: "put" or "delete"
        bucket: Target bucket
        key: Target object key
    """

    def __init__(self, message: str, operation: str, bucket: str, key: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.bucket = bucket
        self.key = key


class ObjectStoreNotConnected(ArchiveError):
    """Object store used before connect()."""

    pass


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol for archive object store backends.

    Example:
        >>> async with S3ObjectStore(config.s3) as store:
        ...     await store.put("users/user/USER#1###PROFILE.json", body)
    """

    @property
    @abstractmethod
    def bucket(self) -> str:
        """Destination bucket (used for log context)."""
        ...

    @abstractmethod
    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        """Write an object, overwriting any existing one.

        Raises:
            ObjectStoreError: If the write fails
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error.

        Raises:
            ObjectStoreError: If the delete fails
        """
        ...


class S3ObjectStore:
    """S3-backed ObjectStore using aiobotocore.

    The client is opened by connect() and released by close(); the store
    is also an async context manager doing both.

    Attributes:
        config: S3 configuration
    """

    def __init__(self, config: S3Config) -> None:
        """Initialize the store.

        Args:
            config: S3 configuration

        Raises:
            ValueError: If no bucket is configured
        """
        if not config.bucket:
            raise ValueError("S3 bucket is required for the archive store")
        self.config = config
        self._session = None
        self._client_ctx = None
        self._client: Any = None

    @property
    def bucket(self) -> str:
        return self.config.bucket

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the S3 client."""
        if self._client is not None:
            return

        self._session = get_session()

        client_kwargs: Dict[str, Any] = {
            "region_name": self.config.region,
        }

        if self.config.endpoint_url:
            client_kwargs["endpoint_url"] = self.config.endpoint_url

        if self.config.access_key_id:
            client_kwargs["aws_access_key_id"] = self.config.access_key_id
            client_kwargs["aws_secret_access_key"] = self.config.secret_access_key

        self._client_ctx = self._session.create_client("s3", **client_kwargs)
        self._client = await self._client_ctx.__aenter__()
        logger.debug(
            "S3 client opened",
            extra={"bucket": self.bucket, "endpoint": self.config.endpoint_url or "AWS"},
        )

    async def close(self) -> None:
        """Close the S3 client."""
        if self._client is not None:
            try:
                await self._client_ctx.__aexit__(None, None, None)
            except (BotoCoreError, OSError) as e:
                logger.warning(f"Error closing S3 client: {e}")
        self._client = None
        self._client_ctx = None
        self._session = None

    async def __aenter__(self) -> S3ObjectStore:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        """Upload an object to S3."""
        client = self._require_client()
        try:
            await client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError, OSError) as e:
            raise ObjectStoreError(
                f"S3 PutObject failed: {e}", operation="put", bucket=self.bucket, key=key
            ) from e

        logger.debug(
            "Object written to S3",
            extra={"bucket": self.bucket, "key": key, "size_bytes": len(body)},
        )

    async def delete(self, key: str) -> None:
        """Delete an object from S3 (S3 reports success for missing keys)."""
        client = self._require_client()
        try:
            await client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError, OSError) as e:
            raise ObjectStoreError(
                f"S3 DeleteObject failed: {e}", operation="delete", bucket=self.bucket, key=key
            ) from e

        logger.debug("Object deleted from S3", extra={"bucket": self.bucket, "key": key})

    def _require_client(self) -> Any:
        if self._client is None:
            raise ObjectStoreNotConnected("S3 client not connected")
        return self._client


class InMemoryObjectStore:
    """In-memory ObjectStore for tests and local development.

    Stores objects in a dict keyed by object key and records every request
    so tests can assert on the exact calls made.

    Example:
        >>> store = InMemoryObjectStore("archive-bucket")
        >>> await store.put("a/b/c.json", b"{}")
        >>> store.get_json("a/b/c.json")
        {}
    """

    def __init__(self, bucket: str = "in-memory-archive") -> None:
        self._bucket = bucket
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.calls: List[tuple[str, str]] = []
        self._pending_failure: Optional[Exception] = None

    @property
    def bucket(self) -> str:
        return self._bucket

    async def __aenter__(self) -> InMemoryObjectStore:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        pass

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        self.calls.append(("put", key))
        self._raise_pending("put", key)
        self.objects[key] = body
        self.content_types[key] = content_type

    async def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        self._raise_pending("delete", key)
        self.objects.pop(key, None)
        self.content_types.pop(key, None)

    def _raise_pending(self, operation: str, key: str) -> None:
        if self._pending_failure is None:
            return
        cause, self._pending_failure = self._pending_failure, None
        raise ObjectStoreError(
            f"Injected {operation} failure: {cause}",
            operation=operation,
            bucket=self.bucket,
            key=key,
        ) from cause

    # Testing helpers

    def inject_failure(self, exception: Exception) -> None:
        """Make the next put/delete fail with an ObjectStoreError wrapping exception."""
        self._pending_failure = exception

    def get_json(self, key: str) -> Any:
        """Decode a stored object as JSON (testing helper)."""
        return json.loads(self.objects[key].decode("utf-8"))

    def keys(self) -> List[str]:
        """All stored keys, sorted (testing helper)."""
        return sorted(self.objects)
