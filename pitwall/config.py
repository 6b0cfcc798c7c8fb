"""
Configuration module using Pydantic BaseSettings.
All configuration is loaded from environment variables.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Pitwall Race Simulator"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # LLM Configuration
    llm_provider: str = "gemini"  # Options: "gemini", "ollama", "openai_compatible", "disabled"
    llm_api_base_url: str = "https://generativelanguage.googleapis.com"
    llm_model_name: str = "gemini-2.5-flash"
    llm_api_key: str | None = None
    llm_timeout: int = 10  # seconds

    # Race session defaults
    default_session_id: str = "global-race"
    race_id: str = "SIM-TX25"
    race_laps: int = 5
    lap_length_m: float = 3500.0  # ~45 second laps at 280 kph
    tick_hz: float = 20.0
    pit_penalty_s: float = 22.0
    pit_speed_kph: float = 80.0
    nominal_speed_kph: float = 280.0

    # Player car
    player_name: str = "Carlos Sainz"
    fuel_start_l: float = 20.0
    fuel_rate_l_per_lap: float = 2.35

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
