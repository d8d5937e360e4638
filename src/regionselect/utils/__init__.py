"""Utility functions for regionselect.

This module provides utility functions including:

- Logging setup and configuration
- Path search statistics
"""

from regionselect.utils.logging import (
    SearchStats,
    SelectionLogger,
    configure_logging,
)

__all__ = [
    "SearchStats",
    "SelectionLogger",
    "configure_logging",
]
