"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars, tables, and formatted messages.
"""

from collections.abc import Sequence

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from regionselect.domain import PolyLine

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for path searches.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  {task.description}"),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]Regionselect[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_image_info(image_path: str, size: tuple[int, int], tool: str) -> None:
    """Print source image information.

    Args:
        image_path: Path to the image file
        size: Image (width, height) in pixels
        tool: Selection tool name
    """
    line = Text("  ")
    line.append(image_path)
    line.append(f" ({size[0]}x{size[1]})")
    console.print(line)
    console.print(f"  tool {SYM_DOT} {tool}")


def print_segments(segments: Sequence[PolyLine], verbose: bool) -> None:
    """Print a table of boundary segments.

    Args:
        segments: Boundary segments in order
        verbose: Whether to list every segment or just the summary
    """
    total_points = sum(len(s) for s in segments)
    console.print(f"  [green]{len(segments)}[/green] segments {SYM_DOT} {total_points} points")
    if not verbose:
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", justify="right")
    table.add_column("start")
    table.add_column("end")
    table.add_column("points", justify="right")
    for i, segment in enumerate(segments):
        table.add_row(
            str(i),
            f"{segment.start.x},{segment.start.y}",
            f"{segment.end.x},{segment.end.y}",
            str(len(segment)),
        )
    console.print(table)


def print_success(output_path: str, region_size: tuple[int, int] | None, file_size: str) -> None:
    """Print success message with summary.

    Args:
        output_path: Path to output file
        region_size: Exported region (width, height), if known
        file_size: Human-readable file size string
    """
    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green]")
    line = Text("  ")
    line.append(output_path, style="bold")
    line.append(f" ({file_size})")
    console.print(line)
    if region_size is not None:
        console.print(f"  region {region_size[0]}x{region_size[1]}")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold] {SYM_DOT} no output file created")
