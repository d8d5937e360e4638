"""Command-line interface for regionselect.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Scripted boundary tracing with any selection tool
- Progress bars for intelligent scissors searches
- Dry-run mode for inspecting the traced boundary
- Detailed error reporting
"""

from regionselect.cli.app import cli, main

__all__ = ["cli", "main"]
