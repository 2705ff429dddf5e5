"""
Service configuration.

Values come from ``LEDGER_*`` environment variables or a ``.env`` file.
A bare ``PORT`` variable is also honoured so the service runs unchanged on
hosts that only inject that one.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(
        default=PROJECT_ROOT / "data",
        description="Directory holding the data file",
    )
    data_file: str = Field(default="db.json", description="Data file name")
    static_root: Path = Field(
        default=PROJECT_ROOT,
        description="Directory containing public/ and botellones.html",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("LEDGER_PORT", "PORT"),
    )

    max_body_bytes: int = Field(
        default=10_000_000,
        ge=1,
        description="Requests with a larger body are rejected",
    )

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.data_file


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call ``get_settings.cache_clear()`` to reload after changing the
    environment.
    """
    return Settings()
