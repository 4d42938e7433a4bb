from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class LlmConfig(BaseSettings):
    """Configuration settings for the upstream OpenAI integration.

    Both relay modes read from this object.  The chat-completion mode uses
    the model and generation parameters; the assistant mode uses the
    assistant identifier, the feature-version header and the run polling
    bounds.  Instances are frozen so a single configuration built at
    startup can be shared by every request.
    """

    api_key: Optional[str] = Field(None, validation_alias=AliasChoices("OPENAI_API_KEY"))
    base_url: str = Field(
        "https://api.openai.com/v1",
        validation_alias=AliasChoices("OPENAI_BASE_URL"),
    )
    model: str = Field("gpt-4", validation_alias=AliasChoices("OPENAI_MODEL"))
    temperature: float = Field(0.7, validation_alias=AliasChoices("OPENAI_TEMPERATURE"))
    max_tokens: int = Field(1000, validation_alias=AliasChoices("OPENAI_MAX_TOKENS"))
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    timeout: Optional[float] = Field(None, validation_alias=AliasChoices("OPENAI_TIMEOUT"))

    # Assistant (thread/run) mode
    assistant_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("OPENAI_ASSISTANT_ID", "ASSISTANT_ID"),
    )
    assistants_beta: str = Field(
        "assistants=v2",
        validation_alias=AliasChoices("OPENAI_ASSISTANTS_BETA"),
    )
    run_poll_attempts: int = Field(60, validation_alias=AliasChoices("RUN_POLL_ATTEMPTS"))
    run_poll_interval: float = Field(1.0, validation_alias=AliasChoices("RUN_POLL_INTERVAL"))

    @field_validator("api_key", "assistant_id")
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("base_url")
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("temperature")
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("OPENAI_TEMPERATURE must be between 0.0 and 2.0")
        return value

    @field_validator("max_tokens", "run_poll_attempts")
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @field_validator("run_poll_interval")
    def validate_interval(cls, value: float) -> float:
        if value < 0:
            raise ValueError("RUN_POLL_INTERVAL must not be negative")
        return value

    @field_validator("timeout")
    def validate_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("OPENAI_TIMEOUT must be positive")
        return value

    @property
    def assistant_configured(self) -> bool:
        return self.assistant_id is not None

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


@lru_cache()
def get_llm_config() -> LlmConfig:
    """Return a cached language model configuration."""

    return LlmConfig()
