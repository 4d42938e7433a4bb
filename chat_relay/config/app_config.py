from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

RELAY_MODES = ("completion", "assistant")


class AppConfig(BaseSettings):
    """Application configuration settings."""

    # Environment
    app_env: str = Field(
        "development",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV"),
    )
    app_debug: bool = Field(False, validation_alias=AliasChoices("APP_DEBUG"))
    app_host: str = Field("0.0.0.0", validation_alias=AliasChoices("APP_HOST"))
    app_port: int = Field(3000, validation_alias=AliasChoices("APP_PORT", "PORT"))

    # HTTP surface
    frontend_url: str = Field("*", validation_alias=AliasChoices("FRONTEND_URL"))
    relay_mode: str = Field("completion", validation_alias=AliasChoices("RELAY_MODE"))

    # Logging
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_file: Optional[str] = Field(None, validation_alias=AliasChoices("LOG_FILE"))

    @field_validator("app_env")
    def validate_app_env(cls, value: str) -> str:
        if value not in ["development", "staging", "production"]:
            raise ValueError("APP_ENV must be development, staging, or production")
        return value

    @field_validator("relay_mode")
    def validate_relay_mode(cls, value: str) -> str:
        mode = value.strip().lower()
        if mode not in RELAY_MODES:
            raise ValueError("RELAY_MODE must be completion or assistant")
        return mode

    @field_validator("log_level")
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("LOG_LEVEL must be a valid Loguru level")
        return level

    @property
    def allowed_origins(self) -> list[str]:
        """Origins accepted by the CORS middleware."""

        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()] or ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


@lru_cache()
def get_app_config() -> AppConfig:
    """Return a cached application configuration instance."""

    return AppConfig()
