"""
Workload settings loaded from environment variables or .env file.

Priority:
  1. Environment variables (always win)
  2. .env file in project root (local dev)
  3. Defaults

In the deployed task the POSTGRESQL_* variables are injected by ECS from the
database secret; nothing here talks to Secrets Manager.
"""
import logging
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_repo_root = Path(__file__).resolve().parents[3]  # backend/sample_api/core → project root


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_repo_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    environment: str = "development"
    service_port: int = 5000

    # ------------------------------------------------------------------ #
    # Database (keys of the DbTier secret)
    # ------------------------------------------------------------------ #
    postgresql_server: str = "localhost"
    postgresql_server_port: int = 5432
    postgresql_database: str = "sampledb"
    postgresql_user: str = "clusteradmin"
    postgresql_password: str = ""

    # Per task; the service runs two tasks against one writer.
    db_pool_size: int = 4
    db_max_overflow: int = 2
    db_pool_recycle_seconds: int = 1800

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def database_url(self) -> str:
        """Async asyncpg URL."""
        return (
            f"postgresql+asyncpg://{quote_plus(self.postgresql_user)}"
            f":{quote_plus(self.postgresql_password)}"
            f"@{self.postgresql_server}:{self.postgresql_server_port}"
            f"/{self.postgresql_database}"
        )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v.lower()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
