"""
Configuration management for beaconelo.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. Values can also be placed in a
.env file in the working directory.

Usage:
    from beaconelo.config import settings
    print(settings.ratings_file)
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from beaconelo.elo.constants import DEFAULT_MAX_ROSTER_SIZE


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Storage Configuration
    # ==========================================================================

    ratings_file: Path = Field(
        default=Path("data/elo_ratings.json"),
        description="JSON file holding player skills and model parameters",
    )

    # ==========================================================================
    # Matchmaking Configuration
    # ==========================================================================

    # The split search is exhaustive, C(n, n/2) candidates
    max_roster_size: int = Field(
        default=DEFAULT_MAX_ROSTER_SIZE,
        ge=1,
        description="Largest roster the balancer will accept",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="console",
        description="Log format: 'json' for production, 'console' for dev",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lower_v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
