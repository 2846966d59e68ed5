"""Configuration settings for the backend API."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # Ignore extra environment variables
    )

    # API
    api_title: str = "schemaforge API"
    api_version: str = "1.0.0"
    # Default to common local dev origins (Vite=5173, CRA=3000).
    # Can be overridden via env var: CORS_ORIGINS='["http://localhost:5173"]'
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging
    log_level: str = "INFO"
    log_format: str = "detailed"

    # Editor configuration sections are persisted here (JSON, last write wins).
    # None keeps them in memory only.
    config_store_path: Optional[str] = None

    # Diagrams
    diagram_default_format: str = "svg"

    # WebSocket
    websocket_timeout: int = 300


settings = Settings()
