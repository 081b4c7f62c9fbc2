"""
Configuration settings for zap-study.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    zap_db_path: Path = Field(
        default=Path.home() / ".zap" / "state.db",
        description="SQLite database for cards, XP and session history",
    )
    zap_user_id: str = Field(
        default="demo",
        description="User credited with XP by the terminal front-end",
    )

    # ========================================
    # Scheduling
    # ========================================
    card_difficulty: Literal["easy", "medium", "hard"] = Field(
        default="medium",
        description="Interval preference: easy=1.5x, medium=1.0x, hard=0.7x growth",
    )
    quick_session_cap: int = Field(
        default=12,
        ge=1,
        description="Cards in a short casual review session",
    )
    deck_session_cap: int = Field(
        default=20,
        ge=1,
        description="Cards in a dedicated deck study session",
    )

    # ========================================
    # Focus Sessions
    # ========================================
    focus_duration_minutes: int = Field(
        default=25,
        ge=1,
        le=120,
        description="Default focus countdown length",
    )
    idle_threshold_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Seconds without input before the learner counts as idle",
    )
    focus_alerts: bool = Field(
        default=True,
        description="Warn the learner when an interruption is detected",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Loguru level for the terminal front-end",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
