"""Configuration management for the Cepho routing and review engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    CEPHO_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # Query classification
    COMPLEXITY_MODERATE_WORDS: int = Field(
        default=30, description="Word count above which a query is moderate"
    )
    COMPLEXITY_COMPLEX_WORDS: int = Field(
        default=100, description="Word count above which a query is complex"
    )

    # Provider selection
    ROUTING_CONFIDENCE_REFERENCE_MAX: float = Field(
        default=12.0, gt=0, description="Score that maps to full routing confidence"
    )
    ROUTING_MAX_ALTERNATIVES: int = Field(
        default=2, ge=0, description="Runner-up providers returned with a decision"
    )

    # Review pipeline
    REVIEW_LIST_DEFAULT_LIMIT: int = Field(
        default=50, description="Default page size when listing review items"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
