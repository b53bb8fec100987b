"""
Service configuration.

Settings come from environment variables; bucket definitions come from
a TOML file loaded once at startup.
"""

from .buckets import load_source_configuration
from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "load_source_configuration"]
