"""
Configuration module for the swipe engine.

This module provides centralized configuration management using pydantic-settings.
All environment variables and configuration values should be accessed through this module.

Usage:
    from config import get_settings

    settings = get_settings()
    base_url = settings.api_base_url
    is_dev = settings.is_development
"""

from config.settings import Settings, get_settings, get_settings_for_testing
from config.constants import GESTURE_CONSTANTS, RANKING_CONSTANTS

__all__ = [
    "Settings",
    "get_settings",
    "get_settings_for_testing",
    "GESTURE_CONSTANTS",
    "RANKING_CONSTANTS",
]
