"""
Application configuration.

This module defines the application settings using Pydantic models
for environment variable support and type validation.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import os
from dotenv import load_dotenv

# Load .env from backend directory (works regardless of cwd when running uvicorn)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)

_DEFAULT_FATS_PATH = Path(__file__).resolve().parent / "data" / "fats.json"


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return int(value)


class Settings(BaseModel):
    """
    Application configuration settings.

    Can be configured via environment variables or .env file.
    Environment variable names should be uppercase (e.g., FATS_DATA_PATH).

    Attributes:
        FATS_DATA_PATH: Local JSON file holding the fat database
        FATS_DATA_URL: Optional remote JSON fat database (overrides the path)
        API_TIMEOUT: Request timeout in seconds for remote data
        MIN_FAT_PERCENT: Lower bound for a single fat share
        MAX_FAT_PERCENT: Upper bound for a single fat share
        DEFAULT_MAX_FATS: Default size cap for the greedy blend builder
        OPTIMIZER_ITERATIONS: Iteration cap for the weight optimizer
        OPTIMIZER_STEP_SIZE: Percentage points moved per pairwise adjustment
        CONVERGENCE_THRESHOLD: Error below which the optimizer stops
        RANDOM_MIN_FATS / RANDOM_MAX_FATS: Fat count range for random blends
        RANDOM_MAX_ATTEMPTS: Attempts in the pure random phase
        CUPBOARD_MAX_SUGGESTIONS: Default cap on cupboard suggestions
        RANDOM_SEED: Optional seed for reproducible random blends
        LOG_LEVEL: Logging level (DEBUG/INFO/WARNING/ERROR)
    """

    # Reference data
    FATS_DATA_PATH: str = Field(
        default_factory=lambda: os.getenv("FATS_DATA_PATH", str(_DEFAULT_FATS_PATH)),
        description="Path to the fat database JSON file"
    )

    FATS_DATA_URL: Optional[str] = Field(
        default_factory=lambda: os.getenv("FATS_DATA_URL") or None,
        description="Optional URL of a fat database JSON document"
    )

    API_TIMEOUT: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Remote data request timeout in seconds"
    )

    # Share bounds
    MIN_FAT_PERCENT: float = Field(
        default=5.0,
        ge=0.0,
        le=50.0,
        description="Minimum percentage for any optimized fat"
    )

    MAX_FAT_PERCENT: float = Field(
        default=80.0,
        ge=10.0,
        le=100.0,
        description="Maximum percentage for any optimized fat"
    )

    # Optimizer Configuration
    DEFAULT_MAX_FATS: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Default maximum number of fats in a built blend"
    )

    OPTIMIZER_ITERATIONS: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Iteration cap for pairwise weight optimization"
    )

    OPTIMIZER_STEP_SIZE: float = Field(
        default=2.0,
        gt=0.0,
        le=20.0,
        description="Percentage points moved between a pair per step"
    )

    CONVERGENCE_THRESHOLD: float = Field(
        default=0.01,
        ge=0.0,
        description="Profile error considered good enough"
    )

    # Generator Configuration
    RANDOM_MIN_FATS: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Minimum fats in a random blend"
    )

    RANDOM_MAX_FATS: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum fats in a random blend"
    )

    RANDOM_MAX_ATTEMPTS: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Attempts in the pure random phase"
    )

    CUPBOARD_MAX_SUGGESTIONS: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum fats suggested for a cupboard blend"
    )

    RANDOM_SEED: Optional[int] = Field(
        default_factory=lambda: _optional_int("RANDOM_SEED"),
        description="Seed for the random blend generator (unseeded if unset)"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"),
        description="Logging level (DEBUG/INFO/WARNING/ERROR)"
    )

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of: {', '.join(valid_levels)}"
            )
        return v_upper

    @field_validator('FATS_DATA_URL')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Ensure the data URL is properly formatted."""
        if v is None:
            return v
        if not v.startswith(('http://', 'https://')):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip('/')

    @field_validator('MAX_FAT_PERCENT')
    @classmethod
    def validate_share_bounds(cls, v: float, info) -> float:
        """Ensure the share bounds are not inverted."""
        min_percent = info.data.get('MIN_FAT_PERCENT')
        if min_percent is not None and v <= min_percent:
            raise ValueError("MAX_FAT_PERCENT must be greater than MIN_FAT_PERCENT")
        return v


# Create global settings instance
settings = Settings()


# Configure logging based on settings
def configure_logging():
    """Configure application logging based on settings."""
    import logging

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level")
    logger.info(f"Fat database: {settings.FATS_DATA_URL or settings.FATS_DATA_PATH}")
    logger.info(
        f"Share bounds: {settings.MIN_FAT_PERCENT}-{settings.MAX_FAT_PERCENT}%, "
        f"random seed: {settings.RANDOM_SEED if settings.RANDOM_SEED is not None else 'unseeded'}"
    )


# Initialize logging on import
configure_logging()
