"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Optional environment variables:
        - API_BASE_URL: Base URL of the product/likes/orders backend
        - API_USER_ID: User id sent with like/cart calls
        - HOST / PORT: Swipe session server bind address
        - ENVIRONMENT: Environment name (development, staging, production)
        - UNDO_DEPTH: Number of swipes that can be undone (default 1)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    cors_origins: List[str] = Field(
        default=[
            "http://localhost:8081",
            "http://localhost:19006",
            "http://127.0.0.1:8081",
        ],
        description="Allowed CORS origins (Expo dev servers)"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Backend API (products, likes, orders)
    # ==========================================================================
    api_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the catalog backend"
    )
    api_user_id: str = Field(
        default="anonymous_user",
        description="User id sent with like and cart calls"
    )
    request_timeout_seconds: float = Field(
        default=3.5,
        description="Timeout for backend requests (seconds)"
    )

    @field_validator("api_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # ==========================================================================
    # Swipe Engine
    # ==========================================================================
    undo_depth: int = Field(default=1, description="How many swipes can be undone")
    rerank_on_positive: bool = Field(
        default=True,
        description="Re-rank the unseen queue after a like or cart swipe"
    )
    dispatch_workers: int = Field(
        default=2,
        description="Worker threads in the dispatch pool shared by all sessions"
    )
    notification_capacity: int = Field(
        default=20,
        description="Max pending toast notifications per session"
    )
    session_ttl_seconds: int = Field(
        default=86400,
        description="Swipe session TTL in seconds (24 hours)"
    )

    @field_validator("undo_depth", "dispatch_workers", "notification_capacity")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    # ==========================================================================
    # Gesture thresholds (points and points/ms, as reported by the pan handler)
    # ==========================================================================
    swipe_horizontal_distance: float = Field(default=50.0)
    swipe_horizontal_velocity: float = Field(default=0.22)
    swipe_down_distance: float = Field(default=90.0)
    swipe_down_velocity: float = Field(default=0.35)
    details_up_distance: float = Field(default=8.0)
    details_up_velocity: float = Field(default=0.05)
    screen_width: float = Field(default=390.0, description="Card stack width for preview feedback")
    screen_height: float = Field(default=844.0, description="Card stack height for preview feedback")


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The application settings instance
    """
    # Try to find .env file in project root
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: A new settings instance with overrides applied
    """
    test_defaults = {
        "api_base_url": "http://catalog.test",
        "environment": "testing",
        "debug": True,
    }
    test_defaults.update(overrides)

    return Settings(_env_file=None, **test_defaults)
