"""
API configuration and settings management.
"""
import os


class Config:
    """Application configuration."""

    # API settings
    API_TITLE: str = "Rentwatch API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Trigger and inspect rental listing watcher runs"

    # Pagination defaults
    DEFAULT_API_LIMIT: int = 50
    MAX_API_LIMIT: int = 500

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


# Global config instance
config = Config()
