"""
Configuration package for stylemacro

Provides application settings via environment variables using pydantic-settings,
and the packaged macro manifest location.
"""

from .settings import appsettings, AppSettings, DEFAULT_MANIFEST

__all__ = ["appsettings", "AppSettings", "DEFAULT_MANIFEST"]
