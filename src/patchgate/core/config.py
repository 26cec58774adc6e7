"""Process-level settings for PatchGate (CLI and API)."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from patchgate.core.constants import DEFAULT_CONFIG_FILE, DEFAULT_HISTORY_LIMIT

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings read from PATCHGATE_* environment variables or a .env file.

    Per-run policy lives in PolicyConfig; this only covers how the process
    itself behaves.
    """

    model_config = SettingsConfigDict(
        env_prefix="PATCHGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["development", "production", "test"] = "production"
    log_level: str = "WARNING"

    # Working directory the API operates on; the CLI passes its own
    workdir: Path = Path(".")
    config_file: str = DEFAULT_CONFIG_FILE
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=1)
    ci: bool = Field(default=False, validation_alias=AliasChoices("PATCHGATE_CI", "CI"))

    api_title: str = "PatchGate API"
    api_version: str = "0.1.0"
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    logger.debug("Loaded settings (environment=%s)", settings.environment)
    return settings
