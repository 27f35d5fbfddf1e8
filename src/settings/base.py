"""Filesystem, logging and ingestion pacing settings."""

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_project_root() -> Path:
    return _PROJECT_ROOT


def get_env_file() -> Path:
    return _ENV_FILE


_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
)


class PathsSettings(BaseSettings):
    """Working directories, all relative to the project root.

    ``data/imports`` is where provider exports are dropped before
    running ``python -m src ingest``.
    """

    model_config = _ENV_CONFIG

    @property
    def project_root(self) -> Path:
        return _PROJECT_ROOT

    @property
    def data_dir(self) -> Path:
        return _PROJECT_ROOT / "data"

    @property
    def imports_dir(self) -> Path:
        """Normalized provider exports waiting for ingestion."""
        return self.data_dir / "imports"

    @property
    def logs_dir(self) -> Path:
        return _PROJECT_ROOT / "logs"

    def ensure_directories(self) -> None:
        for directory in (self.imports_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)


class LoggingSettings(BaseSettings):
    """Logger level and file destination.

    Attributes:
        level: Threshold applied to console and file handlers.
        log_dir: Directory receiving the dated log files.
    """

    level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")

    model_config = _ENV_CONFIG

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL. Valid: {', '.join(LOG_LEVELS)}")
        return v_upper


class PipelineSettings(BaseSettings):
    """Ingestion pacing and retry budget.

    Attributes:
        batch_size: Records processed between two pauses.
        batch_delay: Pause between batches (seconds) to respect provider quotas.
        max_retries: Attempts for a record hitting a concurrent write.
        retry_wait_min: Lower bound of the exponential backoff (seconds).
        retry_wait_max: Upper bound of the exponential backoff (seconds).
    """

    batch_size: int = Field(default=10, ge=1, alias="INGEST_BATCH_SIZE")
    batch_delay: float = Field(default=1.0, ge=0.0, alias="INGEST_BATCH_DELAY")
    max_retries: int = Field(default=3, ge=1, alias="INGEST_MAX_RETRIES")
    retry_wait_min: float = Field(default=0.1, ge=0.0, alias="INGEST_RETRY_WAIT_MIN")
    retry_wait_max: float = Field(default=2.0, ge=0.0, alias="INGEST_RETRY_WAIT_MAX")

    model_config = _ENV_CONFIG

    @model_validator(mode="after")
    def validate_retry_window(self) -> "PipelineSettings":
        if self.retry_wait_max < self.retry_wait_min:
            raise ValueError("INGEST_RETRY_WAIT_MAX must be >= INGEST_RETRY_WAIT_MIN")
        return self
