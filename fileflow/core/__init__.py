"""Core: configuration, constants and the composition root."""

from fileflow.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
