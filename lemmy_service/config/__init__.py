"""
Configuration Management.

This module provides centralized configuration using Pydantic Settings:

- settings: Settings class with environment variable loading

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

Example:
    from lemmy_service.config import get_settings

    settings = get_settings()
    default_instance = settings.lemmy_default_instance
"""

from lemmy_service.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
