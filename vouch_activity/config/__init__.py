"""
Configuration management for Vouch activity.

Loads settings from environment variables and the project .env file.
Exposes a single source of truth for service configuration.
"""

from vouch_activity.config.settings import ActivitySettings, get_settings  # noqa: F401

__all__ = ["ActivitySettings", "get_settings"]
