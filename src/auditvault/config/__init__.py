"""Configuration module for auditvault."""

from auditvault.config.settings import RetentionDefaults, Settings, get_settings

__all__ = ["RetentionDefaults", "Settings", "get_settings"]
