"""Catalog database settings.

PostgreSQL in production, any SQLAlchemy URL (SQLite for tests and
local runs) through DATABASE_URL.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Connection target and pool sizing.

    Attributes:
        host: PostgreSQL host.
        port: PostgreSQL port.
        database: Catalog database name.
        user: Role owning the catalog tables.
        password: Role password.
        url: Full SQLAlchemy URL, takes precedence over the fields above.
        echo: Log every SQL statement.
    """

    host: str = Field(default="localhost", alias="POSTGRES_HOST")
    port: int = Field(default=5432, alias="POSTGRES_PORT")
    database: str = Field(default="media_catalog", alias="POSTGRES_DB")
    user: str = Field(default="catalog_user", alias="POSTGRES_USER")
    password: str = Field(default="", alias="POSTGRES_PASSWORD")
    url: str | None = Field(default=None, alias="DATABASE_URL")
    echo: bool = Field(default=False, alias="DB_ECHO")

    pool_size: int = Field(default=5, ge=1, alias="DB_POOL_SIZE")
    pool_overflow: int = Field(default=10, ge=0, alias="DB_POOL_OVERFLOW")
    pool_timeout: int = Field(default=30, ge=1, alias="DB_POOL_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Whether a password or an explicit URL was provided."""
        return bool(self.password or self.url)

    @property
    def sync_url(self) -> str:
        """SQLAlchemy URL for the psycopg2 driver unless DATABASE_URL is set."""
        if self.url:
            return self.url
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        return self.sync_url.startswith("sqlite")

    def pool_options(self) -> dict[str, Any]:
        """Keyword arguments for a QueuePool-backed engine."""
        return {
            "pool_size": self.pool_size,
            "max_overflow": self.pool_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_pre_ping": True,
        }
