"""
CDC archive transform - entry points.

Two ways to run one change event through the archive writer:

- handler(event, context): function-as-a-service style entry point. The
  event router invokes it once per change event, with no retries.
- main(): the `cdc-archive` command, which reads one event document from a
  file or stdin and archives it. Useful against MinIO / LocalStack.

Usage:
    cdc-archive --event event.json
    cat event.json | cdc-archive --bucket my-archive --endpoint http://localhost:9000

Configuration is via environment variables (see config.py); the CLI flags
override the S3 settings.

Invariants:
    - Configuration is loaded and validated once per process
    - Storage failures never raise out of handler()
    - Each invocation opens and closes its own S3 client
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from typing import Any

import json_log_formatter

from .archive import ArchiveOutcome, ArchiveWriter, ObjectStore, S3ObjectStore
from .config import ArchiveConfig, ObservabilityConfig, S3Config
from .events import ChangeEvent, ChangeEventError

logger = logging.getLogger(__name__)

_config: ArchiveConfig | None = None


def setup_logging(config: ArchiveConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Archive configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiobotocore").setLevel(logging.WARNING)


def get_config() -> ArchiveConfig:
    """Load configuration from the environment on first use.

    Raises:
        ValueError: If CDC_ARCHIVE_BUCKET is missing or settings are invalid
    """
    global _config
    if _config is None:
        _config = ArchiveConfig.from_env()
        setup_logging(_config)
        _config.log_config()
    return _config


async def archive_event(
    envelope: dict[str, Any],
    config: ArchiveConfig,
    store: ObjectStore | None = None,
) -> ArchiveOutcome:
    """Parse an envelope and archive it.

    Args:
        envelope: Delivery envelope for one change event
        config: Archive configuration
        store: Object store to use; an S3ObjectStore is opened when omitted

    Returns:
        ArchiveOutcome for the event
    """
    logger.info("Received envelope", extra={"envelope": envelope})

    try:
        event = ChangeEvent.from_dict(envelope)
    except ChangeEventError as e:
        logger.warning(f"Ignoring malformed change event: {e}")
        source = envelope.get("source") if isinstance(envelope, dict) else None
        return ArchiveOutcome.skipped(source, f"malformed envelope: {e}")

    if store is not None:
        return await ArchiveWriter(store).process(event)

    async with S3ObjectStore(config.s3) as s3_store:
        return await ArchiveWriter(s3_store).process(event)


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Entry point invoked once per change event by the event router.

    Args:
        event: Delivery envelope
        context: Runtime context (unused)

    Returns:
        Outcome dictionary (see ArchiveOutcome.to_dict)
    """
    config = get_config()
    outcome = asyncio.run(archive_event(event, config))
    return outcome.to_dict()


def _read_envelope(path: str | None) -> Any:
    if path is None or path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


def main() -> None:
    """CLI entry point: archive one change event document."""
    parser = argparse.ArgumentParser(
        description="Archive a single CDC change event to the S3 archive bucket"
    )
    parser.add_argument("--event", "-e", help="Path to event JSON (default: stdin)")
    parser.add_argument("--bucket", help="Archive bucket (overrides CDC_ARCHIVE_BUCKET)")
    parser.add_argument("--region", help="AWS region (overrides S3_REGION)")
    parser.add_argument("--endpoint", help="S3 endpoint URL (for MinIO / LocalStack)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args()

    s3_overrides = {
        name: value
        for name, value in (
            ("bucket", args.bucket),
            ("region", args.region),
            ("endpoint_url", args.endpoint),
        )
        if value is not None
    }
    observability = ObservabilityConfig.from_env()
    config = ArchiveConfig(
        s3=dataclasses.replace(S3Config.from_env(), **s3_overrides),
        observability=dataclasses.replace(
            observability,
            log_level="DEBUG" if args.verbose else observability.log_level,
            log_format="text",
        ),
    )

    try:
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    try:
        envelope = _read_envelope(args.event)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Could not read event: {e}", file=sys.stderr)
        sys.exit(1)

    outcome = asyncio.run(archive_event(envelope, config))
    print(json.dumps(outcome.to_dict(), indent=2))
    sys.exit(1 if outcome.failed else 0)


if __name__ == "__main__":
    main()
