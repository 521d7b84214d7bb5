"""
Configuration management: models, loading, and validation.

Handles:
- AppSettings: store location, tree depth limit, grid/search defaults, logging
- YAML loading (configs/settings.yaml)
- Environment variable overrides

The loader module performs file I/O; models are pure Pydantic classes.
"""

from infrastructure.config.loader import load_settings
from infrastructure.config.models import (
    AppSettings,
    GridSettings,
    LoggingSettings,
    SearchSettings,
)

__all__ = [
    # Main config (most commonly used)
    "AppSettings",
    "load_settings",
    # Sections
    "GridSettings",
    "SearchSettings",
    "LoggingSettings",
]
