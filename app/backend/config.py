"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_timeout: float = Field(default=60.0, gt=0)
    openai_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    vision_max_tokens: int = Field(default=1500, gt=0)

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = [
        "https://nutri-scan-frontend.vercel.app",
        "http://localhost:3000",
    ]

    # Uploads
    upload_dir: Path = Path("uploads")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    # Pipeline tuning
    scanned_text_threshold: int = Field(default=50, ge=0)
    render_scale: float = Field(default=3.0, gt=0)

    # Debug flags
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the backend directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
