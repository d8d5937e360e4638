"""Logging utilities for Regionselect."""

import logging
from dataclasses import dataclass
from pathlib import Path

import structlog

_installed_handlers: list[logging.Handler] = []


@dataclass
class SearchStats:
    """Statistics from one path search."""

    source: tuple[int, int]
    target: tuple[int, int]
    settled_count: int = 0
    path_length: int = 0
    cancelled: bool = False
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate search duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Args:
        log_file: Path to log file (console only if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Repeated calls replace our handlers instead of stacking them
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.ERROR if quiet else getattr(logging, console_level.upper()))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("regionselect")
    logger.debug("Logging initialized", log_file=str(log_file) if log_file else None)

    return logger


class SelectionLogger:
    """Logger for selection model activity."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, tool: str) -> None:
        self._logger = logger.bind(tool=tool)

    def log_state_change(self, old: object, new: object) -> None:
        """Log a state transition."""
        self._logger.debug("State changed", old=str(old), new=str(new))

    def log_point_added(self, point: tuple[int, int], segments: int) -> None:
        """Log a committed boundary point."""
        self._logger.debug("Point added", point=point, segments=segments)

    def log_search_start(self, source: tuple[int, int], target: tuple[int, int]) -> None:
        """Log start of a background path search."""
        self._logger.debug("Path search started", source=source, target=target)

    def log_search_complete(self, stats: SearchStats) -> None:
        """Log a finished path search."""
        self._logger.info(
            "Path search complete",
            source=stats.source,
            target=stats.target,
            settled=stats.settled_count,
            path_length=stats.path_length,
            duration_ms=round(stats.duration_seconds * 1000, 2),
        )

    def log_search_aborted(self, stats: SearchStats) -> None:
        """Log a cancelled path search."""
        self._logger.info(
            "Path search aborted",
            source=stats.source,
            target=stats.target,
            settled=stats.settled_count,
        )

    def log_search_error(self, error: Exception, traceback: str | None = None) -> None:
        """Log an unexpected failure inside a path search."""
        self._logger.error(
            "Path search failed",
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )

    def log_export(self, size: tuple[int, int], image_format: str) -> None:
        """Log an exported region."""
        self._logger.info("Selection exported", size=size, format=image_format)

    def log_export_error(self, error: Exception) -> None:
        """Log a failed export."""
        self._logger.error("Selection export failed", error=str(error))
