"""
Centralized application configuration.

All settings are driven by environment variables with sensible defaults.
Uses Pydantic BaseSettings for validation and type coercion.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Application ---
    app_name: str = "MeetPulse"
    app_version: str = "0.1.0"
    environment: str = "development"  # development | staging | production
    debug: bool = True
    log_level: str = "INFO"  # DEBUG | INFO | WARNING | ERROR

    # --- Server ---
    host: str = "0.0.0.0"
    port: int = 8000

    # --- CORS ---
    allowed_origins: list[str] = ["*"]

    # --- Sessions ---
    # Accept webhook events for bots that were never registered via POST /api/bots
    auto_register_sessions: bool = False
    ws_poll_interval_sec: float = 2.0

    # --- Participation analytics ---
    recent_window_size: int = 8
    recent_window_sec: float | None = None
    interruption_gap_max_sec: float = 1.5
    silence_min_sec: float = 15.0
    live_underrepresented_threshold: float = 0.20
    summary_underrepresented_threshold: float = 0.10
    dominant_share_alert_threshold: float = 0.6
    interruption_alert_ratio: float = 0.5
    interruption_alert_min_count: int = 3
    repetition_min_count: int = 3

    # --- Timeline rendering (presentation only) ---
    min_timeline_segment_width_pct: float = 0.5
    timeline_synthetic_duration_sec: float = 0.5
    timeline_merge_gap_sec: float = 0.5
    timeline_excerpt_chars: int = 120

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """
    Return a cached Settings instance.

    Using lru_cache ensures we only read env vars once, and the same
    Settings object is reused across the application lifetime.
    """
    return Settings()
