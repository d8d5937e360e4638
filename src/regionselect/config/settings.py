"""Configuration settings for Regionselect."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class CostModel(str, Enum):
    """Edge cost model of the intelligent scissors graph."""

    GRAY = "gray"
    COLOR = "color"


class SelectionConfig(BaseModel):
    """Configuration for the selection state machine."""

    history_limit: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of undo snapshots kept (None = unbounded)",
    )
    notify_on_ui_thread: bool = Field(
        default=False,
        description="Post events published from worker threads to the owning thread",
    )


class ScissorsConfig(BaseModel):
    """Configuration for the path-search selection tool."""

    cost_model: CostModel = Field(
        default=CostModel.GRAY,
        description="Which gradient drives edge costs",
    )
    edge_scale: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="Cost of a unit step across a perfectly flat region",
    )
    check_interval: int = Field(
        default=1024,
        ge=1,
        description="Settled vertices between cancellation checks and progress events",
    )


class ExportConfig(BaseModel):
    """Configuration for exporting selected regions."""

    image_format: str = Field(
        default="PNG",
        description="Pillow format name used when writing the region",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class RegionSelectSettings(BaseModel):
    """Main application settings."""

    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    scissors: ScissorsConfig = Field(default_factory=ScissorsConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> RegionSelectSettings:
    """Get default application settings."""
    return RegionSelectSettings()
