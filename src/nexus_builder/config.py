"""Runtime configuration for Nexus World Builder."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="NEXUS_",
        env_file=".env",
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    app_name: str = "nexus-builder"
    log_level: str = "INFO"
    model_api_key: str | None = Field(
        default=None,
        description="Bearer key for the chat-completions endpoint. Leave unset to use heuristics only.",
    )
    model_endpoint: str = "https://api.openai.com/v1/chat/completions"
    model_name: str = "gpt-3.5-turbo"
    model_timeout_seconds: float = 8.0
    session_message_cap: int = Field(default=20, ge=0)
    max_sessions: int = Field(default=256, ge=1)
    world_width: int = 50
    world_height: int = 50
    agent_cap: int = 50
    history_path: str | None = Field(
        default=None,
        description="Optional JSONL file used to persist executed command history.",
    )


settings = Settings()
