"""Configuration module with YAML and environment variable support."""

from .settings import Settings, SourceSettings, get_settings


__all__ = [
    "Settings",
    "SourceSettings",
    "get_settings",
]
