"""
Runtime configuration for the predictor and the HTTP service.

Values are read from HOUSE_PRICE_NN_* environment variables or a local .env file.
"""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Predictor settings."""

    model_config = SettingsConfigDict(
        env_prefix="HOUSE_PRICE_NN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    # Model documents (URL or filesystem path)
    model_parameters_source: str = "model_parameters.json"
    normalization_source: str = "normalization.json"

    # Network
    leaky_relu_alpha: float = Field(0.01, gt=0)

    # Fetching
    request_timeout_seconds: float = 15.0

    # Service
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Get fresh settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging at the given level, or the configured one."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
