"""Configuration management using pydantic-settings."""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Firestore project (required)
    gcp_project_id: str

    # Text generation (OpenAI Responses API)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Image generation: primary is OpenAI Images, fallback is a Replicate prediction
    image_provider: Literal["openai", "replicate"] = "openai"
    image_model: str = "gpt-image-1"
    replicate_api_token: str = ""
    replicate_base_url: str = "https://api.replicate.com/v1"
    replicate_model: str = "black-forest-labs/flux-schnell"

    # Image transformation (Gemini image model)
    gemini_api_key: str = ""
    gemini_image_model: str = "gemini-2.5-flash-image"

    # Storage / transport
    images_dir: Path = Path("data/images")
    # Absolute origin used to build image_url for registered toy photos
    public_base_url: str = "http://localhost:8000"
    http_timeout_seconds: float = 60.0

    # Application settings
    app_name: str = "toytown-chat"

    # Server settings
    backend_host: str = "localhost"
    backend_port: int = 8000
    frontend_port: int = 3000


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
