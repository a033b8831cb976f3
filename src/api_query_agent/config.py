"""Configuration and settings management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from api_query_agent.llm import DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_TIMEOUT


class Settings(BaseSettings):
    """Settings loaded from API_QUERY_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="API_QUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    llm_model: str = Field(default=DEFAULT_MODEL, description="litellm model used for semantic matching")
    semantic_enabled: bool = Field(default=True, description="Try the language model before the keyword matcher")
    llm_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Seconds before a model call is abandoned")
    llm_temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0, le=2)
    clamp_confidence: bool = Field(
        default=False,
        description="Clamp confidence into [0, 1]; the keyword matcher can score above 1",
    )
    log_level: str = Field(default="INFO", description="Log level for the CLI")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
