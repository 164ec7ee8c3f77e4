"""
Configuration Management Module

This module handles loading, validating, and providing access to client configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Provides type-safe access to configuration values
- Supplies defaults for GatewayAPIClient (base uri, api key, timeout)
- Handles optional settings with sensible defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.gateway_base_url)
    print(settings.request_timeout)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """
    Client Settings

    Values are automatically loaded from environment variables or .env file.

    Attributes:
        gateway_base_url: Base URL of the exchanges gateway (no trailing slash)
        gateway_api_key: Api key forwarded in the 'ApiKey' header (optional)
        request_timeout: Socket timeout for a single HTTP call, in seconds
        log_level: Level of the 'gatewayclient' logger
        gateway_diagnostics: Log every request / response / error on the diagnostics channel
    """

    # ============================================
    # Gateway Configuration
    # ============================================

    gateway_base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Exchanges gateway base URL"
    )

    gateway_api_key: str = Field(
        default="",
        description="Gateway api key (optional, only needed if gateway requires one)"
    )

    request_timeout: float = Field(
        default=10.0,
        description="HTTP request timeout in seconds"
    )

    # ============================================
    # Logging Configuration
    # ============================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    gateway_diagnostics: bool = Field(
        default=False,
        description="Enable request/response diagnostics logging"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        case_sensitive=False
    )


# ============================================
# Global Settings Instance
# ============================================

settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings.

    Args:
        config: Settings to validate (defaults to the global settings)

    Raises:
        ValueError: If configuration is invalid
    """
    # logging.py imports config.py
    from core.logging import logger

    config = config or settings

    if not config.gateway_base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid GATEWAY_BASE_URL: '{config.gateway_base_url}'. "
            f"Should start with 'http://' or 'https://'"
        )

    if config.request_timeout <= 0:
        raise ValueError(f"Invalid request timeout: {config.request_timeout}. Must be > 0")

    if config.log_level.upper() not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Gateway: {config.gateway_base_url}")
    logger.info(f"Request timeout: {config.request_timeout}s")
    logger.info(f"Diagnostics: {'enabled' if config.gateway_diagnostics else 'disabled'}")
