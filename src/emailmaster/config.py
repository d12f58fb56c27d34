"""Configuration management for EmailMaster.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
Components receive a Settings instance explicitly; get_settings() is only a
fallback for call sites that do not pass one.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the EMAILMASTER_ prefix (e.g., EMAILMASTER_AI_BATCH_SIZE).
    """

    model_config = SettingsConfigDict(
        env_prefix="EMAILMASTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Text generation configuration
    ai_provider: Literal["gemini", "ollama"] = Field(
        default="gemini",
        description="Which text-generation backend to use",
    )
    gemini_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("EMAILMASTER_GEMINI_API_KEY", "GEMINI_API_KEY"),
        description="Google Gemini API key",
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for analysis prompts",
    )
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3",
        description="Default Ollama model to use for inference",
    )
    ollama_timeout: int = Field(
        default=60,
        description="Timeout for Ollama API requests in seconds",
    )
    ai_batch_size: int = Field(
        default=20,
        ge=1,
        description="Number of emails embedded in a single analysis prompt",
    )

    # Gmail configuration
    gmail_credentials_path: Path = Field(
        default=Path("credentials.json"),
        description="Path to Gmail API OAuth client secrets file",
    )
    gmail_token_path: Path = Field(
        default=Path("token.json"),
        description="Path to the cached Gmail OAuth token",
    )
    gmail_scopes: list[str] = Field(
        default_factory=lambda: [
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/gmail.compose",
        ],
        description=(
            "OAuth scopes used for Gmail access. gmail.compose is needed for "
            "drafts and sending replies."
        ),
    )
    inbox_query: str = Field(
        default="in:inbox",
        description="Base Gmail search query used by fetch",
    )
    fetch_max_results: int = Field(
        default=10,
        ge=1,
        description="Default number of messages requested per fetch",
    )
    fetch_concurrency: int = Field(
        default=10,
        ge=1,
        description="Maximum number of concurrent full-message requests",
    )
    user_email: str = Field(
        default="me",
        description="Address used in the From header of replies",
    )

    # Local state
    data_dir: Path = Field(
        default=Path("temp"),
        description="Directory holding emails.json, the ID mapping and cache metadata",
    )
    reports_dir: Path = Field(
        default=Path("reports"),
        description="Directory where exports and reports are written",
    )

    # Application configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Maximum number of retries for failed Gmail requests",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
