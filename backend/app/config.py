"""Application configuration management."""

import os
from enum import Enum
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DOCKER_SECRETS_DIR = "/run/secrets"


class BatchPolicy(str, Enum):
    """How a provider's batch is committed when a write fails midway."""
    ALL_OR_NOTHING = "all_or_nothing"  # one transaction per provider batch
    BEST_EFFORT = "best_effort"        # commit row by row, collect per-row errors


class Settings(BaseSettings):
    """Application settings loaded from environment variables, .env or Docker secrets."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        secrets_dir=DOCKER_SECRETS_DIR if os.path.isdir(DOCKER_SECRETS_DIR) else None,
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.debug and self.log_level.upper() != "TRACE":
            self.log_level = "DEBUG"

    # Database
    database_url: str = "sqlite:///./timesync.db"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Application
    debug: bool = False
    log_level: str = "INFO"
    api_v1_str: str = "/api/v1"

    # Vendor A: Toggl Track
    toggl_api_token: Optional[str] = None
    toggl_base_url: str = "https://api.track.toggl.com"

    # Vendor B: Tempo (Jira worklogs)
    tempo_api_token: Optional[str] = None
    tempo_base_url: str = "https://api.tempo.io"
    jira_base_url: Optional[str] = None

    # Sync
    http_timeout_seconds: float = 30.0
    cache_dir: str = ".cache"
    cache_ttl_seconds: int = 600
    sync_lookback_months: int = 3
    batch_policy: BatchPolicy = BatchPolicy.ALL_OR_NOTHING
    sync_interval_minutes: int = 0  # 0 disables the periodic sync job

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
