import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings

DEFAULT_DATABASE_URL = "sqlite:///./joysync.db"
DEFAULT_TEST_DATABASE_URL = "sqlite://"

# Project root (parent of joysync/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "joy-sync-api"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    database_url: Optional[str] = None  # Will be set dynamically
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Presence
    presence_freshness_minutes: int = Field(
        default=5, ge=1, json_schema_extra={"env": "PRESENCE_FRESHNESS_MINUTES"}
    )
    heartbeat_interval_seconds: int = Field(
        default=30, ge=1, json_schema_extra={"env": "HEARTBEAT_INTERVAL_SECONDS"}
    )

    # Conversation list
    preview_max_length: int = Field(
        default=50, ge=1, json_schema_extra={"env": "PREVIEW_MAX_LENGTH"}
    )

    # Chatbot / LiteLLM
    llm_model: str = Field(
        default="gemini-2.5-flash", json_schema_extra={"env": "LLM_MODEL"}
    )
    litellm_api_key: Optional[str] = Field(
        default=None, json_schema_extra={"env": "LITELLM_API_KEY"}
    )
    litellm_api_base: Optional[str] = Field(
        default=None, json_schema_extra={"env": "LITELLM_API_BASE"}
    )
    chatbot_history_limit: int = Field(
        default=20, ge=0, json_schema_extra={"env": "CHATBOT_HISTORY_LIMIT"}
    )
    chatbot_max_prompt_length: int = Field(
        default=4000, ge=1, json_schema_extra={"env": "CHATBOT_MAX_PROMPT_LENGTH"}
    )
    chatbot_min_request_interval_ms: int = Field(
        default=800, ge=0, json_schema_extra={"env": "CHATBOT_MIN_REQUEST_INTERVAL_MS"}
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = values.get("environment", os.getenv("ENV", "development"))
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        else:
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"

    @property
    def freshness_window(self) -> timedelta:
        """Window during which a stored online flag is still honored."""
        return timedelta(minutes=self.presence_freshness_minutes)

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
