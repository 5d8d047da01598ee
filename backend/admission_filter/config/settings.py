"""
Application Settings for the Admission Filter service

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Dict, Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The virtual filter engine reads its tuning knobs from here:
    - FILTER_TIMEOUT_SECONDS bounds a whole run (scoring + allocation)
    - SCORING_MAX_WORKERS caps the scoring thread pool (CPU count if unset)
    - BLOCK_METHOD_MAP is a JSON object mapping block codes (A00, D01, ...)
      to admission methods for sessions whose quotas are keyed by method
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    # Virtual Filter Configuration
    filter_timeout_seconds: float = 120.0
    scoring_max_workers: Optional[int] = None
    score_precision: int = 2
    max_allocation_rounds: Optional[int] = None  # None = derived from the snapshot
    block_method_map: Dict[str, str] = {}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_filter_limits(self) -> "Settings":
        """Reject limits that would make a filter run meaningless."""
        if self.filter_timeout_seconds <= 0:
            raise ValueError("FILTER_TIMEOUT_SECONDS must be positive")

        if self.scoring_max_workers is not None and self.scoring_max_workers < 1:
            raise ValueError("SCORING_MAX_WORKERS must be at least 1")

        if self.max_allocation_rounds is not None and self.max_allocation_rounds < 1:
            raise ValueError("MAX_ALLOCATION_ROUNDS must be at least 1")

        if self.score_precision < 0:
            raise ValueError("SCORE_PRECISION cannot be negative")

        # Block codes are matched case-insensitively
        self.block_method_map = {
            block.upper(): method for block, method in self.block_method_map.items()
        }

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
