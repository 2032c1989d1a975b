"""
Configuration management for the CDC archive transform.

All configuration is done via environment variables - no config files.
Configuration is read once per process and injected into the writer
at construction; nothing downstream reads the environment directly.

Invariants:
    - CDC_ARCHIVE_BUCKET is required; validate() refuses to run without it
    - Every other setting has a default suitable for local development
    - Secrets are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep environment variable names stable; deployments set them externally
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class S3Config:
    """S3 configuration for the archive bucket.

    Attributes:
        bucket: Destination archive bucket name
        region: AWS region
        endpoint_url: Custom endpoint URL (for MinIO / LocalStack)
        access_key_id: AWS access key ID (optional, uses AWS credential chain)
        secret_access_key: AWS secret access key (optional)
    """

    bucket: str = ""
    region: str = "us-east-1"
    endpoint_url: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None

    @classmethod
    def from_env(cls) -> S3Config:
        """Load configuration from environment variables."""
        return cls(
            bucket=os.getenv("CDC_ARCHIVE_BUCKET", ""),
            region=os.getenv("S3_REGION", os.getenv("AWS_REGION", "us-east-1")),
            endpoint_url=os.getenv("S3_ENDPOINT"),
            access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass(frozen=True)
class ArchiveConfig:
    """Complete archive transform configuration.

    Attributes:
        s3: S3 configuration
        observability: Logging configuration
    """

    s3: S3Config = field(default_factory=S3Config)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ArchiveConfig:
        """Load complete configuration from environment variables.

        Returns:
            ArchiveConfig with all sections populated from environment.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        config = cls(
            s3=S3Config.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.s3.bucket:
            raise ValueError("CDC_ARCHIVE_BUCKET is required")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Archive configuration loaded",
            extra={
                "bucket": self.s3.bucket,
                "region": self.s3.region,
                "endpoint_url": self.s3.endpoint_url,
                "static_credentials": self.s3.access_key_id is not None,
                "log_level": self.observability.log_level,
            },
        )
