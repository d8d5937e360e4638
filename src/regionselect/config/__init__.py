"""Configuration management for regionselect.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- SelectionConfig: Undo history and event delivery settings
- ScissorsConfig: Path-search tool settings
- ExportConfig: Region export settings
- LoggingConfig: Logging settings
- RegionSelectSettings: Main application settings
"""

from regionselect.config.settings import (
    CostModel,
    ExportConfig,
    LoggingConfig,
    RegionSelectSettings,
    ScissorsConfig,
    SelectionConfig,
    get_default_settings,
)

__all__ = [
    "CostModel",
    "ExportConfig",
    "LoggingConfig",
    "RegionSelectSettings",
    "ScissorsConfig",
    "SelectionConfig",
    "get_default_settings",
]
