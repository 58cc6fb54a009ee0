"""
Unified configuration for resourcestore.

Settings are read from environment variables (prefixed ``RESOURCESTORE_``)
or a ``.env`` file. Encryption variables keep their established
``AGENTAPI_ENCRYPTION_*`` names so existing deployments keep working.

This module uses Pydantic Settings for type-safe configuration management.
"""
import json
import logging
import sys
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_S3_PREFIX = "agentapi-memory/"
DEFAULT_S3_TASK_PREFIX = "agentapi-task/"
DEFAULT_S3_TASK_GROUP_PREFIX = "agentapi-task-group/"
DEFAULT_LABEL_NAMESPACE = "agentapi.proxy"

BACKENDS = ("kubernetes", "s3", "memory")


class StoreSettings(BaseSettings):
    """Settings for the persistence layer.

    All values can be set via environment variables or .env file.
    Defaults are provided for development convenience.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESOURCESTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # Backend Selection
    # ============================================================================
    # Applies to memories, tasks and task groups; everything else lives in
    # metadata objects unless backend is "memory".
    backend: str = "kubernetes"

    # ============================================================================
    # Metadata-Object Backend
    # ============================================================================
    namespace: str = "default"
    label_namespace: str = DEFAULT_LABEL_NAMESPACE
    kubeconfig: Optional[str] = None  # in-cluster config when empty

    # ============================================================================
    # Object-Storage Backend
    # ============================================================================
    s3_bucket: str = ""
    s3_prefix: str = DEFAULT_S3_PREFIX  # memories
    s3_task_prefix: str = DEFAULT_S3_TASK_PREFIX
    s3_task_group_prefix: str = DEFAULT_S3_TASK_GROUP_PREFIX
    s3_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None

    # ============================================================================
    # Webhook Matching
    # ============================================================================
    default_github_enterprise_host: str = ""

    # ============================================================================
    # Encryption
    # ============================================================================
    encryption_kms_key_id: str = Field(
        default="",
        validation_alias=AliasChoices("AGENTAPI_ENCRYPTION_KMS_KEY_ID", "encryption_kms_key_id"),
    )
    encryption_kms_region: str = Field(
        default="",
        validation_alias=AliasChoices("AGENTAPI_ENCRYPTION_KMS_REGION", "encryption_kms_region"),
    )
    encryption_key_file: str = Field(
        default="",
        validation_alias=AliasChoices("AGENTAPI_ENCRYPTION_KEY_FILE", "encryption_key_file"),
    )
    encryption_key: str = Field(
        default="",
        validation_alias=AliasChoices("AGENTAPI_ENCRYPTION_KEY", "encryption_key"),
    )

    # ============================================================================
    # Standardized Logging Configuration
    # ============================================================================
    log_level: str = "INFO"
    log_format: str = "text"

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: Optional[str]) -> str:
        """Lower-case the backend name and reject unknown ones."""
        value = (v or "kubernetes").strip().lower()
        if value not in BACKENDS:
            raise ValueError(f"backend must be one of {', '.join(BACKENDS)}, got '{v}'")
        return value

    @field_validator("s3_prefix", "s3_task_prefix", "s3_task_group_prefix", mode="before")
    @classmethod
    def normalize_s3_prefix(cls, v: Optional[str], info: ValidationInfo) -> str:
        """Ensure an object key prefix always ends with a slash."""
        if not v:
            return cls.model_fields[info.field_name].default
        return v if v.endswith("/") else v + "/"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> str:
        return (v or "INFO").upper()


@lru_cache()
def get_settings() -> StoreSettings:
    """Get cached settings instance (singleton pattern)."""
    return StoreSettings()


class JSONLogFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: Optional[StoreSettings] = None) -> None:
    """
    Install a root handler according to settings.

    Safe to call more than once; only the first call adds a handler.

    Args:
        settings: Settings to use (defaults to get_settings())
    """
    settings = settings or get_settings()
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    if any(getattr(h, "_resourcestore", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    if settings.log_format == "json":
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handler._resourcestore = True
    root.addHandler(handler)
