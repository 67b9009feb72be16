from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library level configuration sourced from env or .env file."""

    app_env: str = "development"
    app_name: str = "simpledao"
    app_version: str = "0.1.0"

    database_url: str = Field(
        default="sqlite:///./simpledao.db",
        validation_alias="DATABASE_URL",
    )
    database_echo: bool = Field(default=False, validation_alias="DATABASE_ECHO")
    database_pool_pre_ping: bool = Field(
        default=True,
        validation_alias="DATABASE_POOL_PRE_PING",
    )

    log_level: str = "INFO"
    log_directory: str = "logs"
    log_max_bytes: int = 2 * 1024 * 1024
    log_backup_count: int = 5
    log_to_file: bool = True

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
