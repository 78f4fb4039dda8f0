"""Engine settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables with FF_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="FF_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    environment: str = "development"
    database_url: str = "sqlite:///./focusflow.db"
    timezone: str = "UTC"  # IANA name; local midnight is computed in this zone
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Leveling & streaks ---
    xp_per_challenge: int = 10
    xp_per_session: int = 30
    xp_per_level: int = 200
    perfect_focus_bonus: int = 10
    perfect_score: float = 95
    streak_multiplier_threshold: int = 4
    streak_multiplier_step: float = 0.1
    max_level: int = 10

    # --- Hearts ---
    max_hearts: int = 5
    heart_refill_interval_hours: int = 4
    perfect_streak_requirement: int = 3

    # --- Progress tree ---
    tree_version: int = 3
    exercises_per_level: int = 20
    test_pass_score: float = 80

    # --- Sessions ---
    min_challenges_per_session: int = 3


@lru_cache
def get_settings() -> Settings:
    """Get cached engine settings."""
    return Settings()
