"""Configuration for the media catalog.

Every value comes from the environment (or a local ``.env`` file).
Only the database needs real credentials; logging, ingestion pacing
and matching tolerances ship with working defaults.

Usage:
    from src.settings import settings

    settings.matching.movie_year_tolerance
    settings.database.sync_url
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from src.settings.base import LoggingSettings, PathsSettings, PipelineSettings
from src.settings.database import DatabaseSettings
from src.settings.matching import MatchingSettings

__all__ = [
    "Settings",
    "settings",
    "PathsSettings",
    "LoggingSettings",
    "PipelineSettings",
    "DatabaseSettings",
    "MatchingSettings",
    "get_masked_settings",
]

ENVIRONMENTS = frozenset({"development", "production", "test"})
MASK = "***MASKED***"


class Settings(BaseSettings):
    """All configuration sections behind one object.

    Use the module-level ``settings`` instance rather than building
    a new one; each construction re-reads the environment.
    """

    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    paths: PathsSettings = Field(default_factory=PathsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ENVIRONMENTS:
            raise ValueError(f"Invalid ENVIRONMENT. Valid: {sorted(ENVIRONMENTS)}")
        return v_lower

    def model_post_init(self, _: Any) -> None:
        self.paths.ensure_directories()


settings = Settings()


def get_masked_settings() -> dict[str, Any]:
    """Dump the active settings with credentials hidden, for logging.

    The password is masked, and so is the password embedded in
    DATABASE_URL. An unparseable URL is masked entirely.
    """
    config = settings.model_dump()
    database = config["database"]

    if database["password"]:
        database["password"] = MASK
    if database["url"]:
        try:
            database["url"] = make_url(database["url"]).render_as_string(hide_password=True)
        except ArgumentError:
            database["url"] = MASK

    return config
