"""CLI application entry point for regionselect.

This module provides a scripted driver for the selection engine using Typer:
points given on the command line are fed to a selection tool exactly as clicks
would be, and the enclosed region is exported.
"""

import io
from pathlib import Path
from typing import Annotated

import typer

from regionselect import __version__
from regionselect.cli.output import (
    SYM_OK,
    console,
    create_progress,
    print_cancellation_notice,
    print_error,
    print_header,
    print_image_info,
    print_segments,
    print_step,
    print_success,
)
from regionselect.config import LoggingConfig, RegionSelectSettings, ScissorsConfig
from regionselect.domain import Point, SelectionState
from regionselect.exceptions import (
    ExportError,
    ImageLoadError,
    RegionSelectError,
    SelectionError,
)
from regionselect.io import get_export_path, load_image, selection_polygon
from regionselect.io.export import polygon_bounds
from regionselect.selection import TOOL_NAMES, ScissorsModel, SelectionModel, create_model
from regionselect.selection.events import PropertyChange
from regionselect.utils import configure_logging

# Create the Typer app
app = typer.Typer(
    name="regionselect",
    help="Trace a boundary around an image region and export the enclosed pixels.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Regionselect[/bold blue] v{__version__}")
        raise typer.Exit()


def parse_point(text: str) -> Point:
    """Parse an ``x,y`` pair.

    Raises:
        ValueError: If the text is not two comma-separated integers
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise ValueError(f"expected x,y but got '{text}'")
    return Point(int(parts[0].strip()), int(parts[1].strip()))


def parse_move(text: str) -> tuple[int, Point]:
    """Parse an ``index:x,y`` point relocation.

    Raises:
        ValueError: If the text is malformed
    """
    index, sep, point = text.partition(":")
    if not sep:
        raise ValueError(f"expected index:x,y but got '{text}'")
    return int(index.strip()), parse_point(point)


@app.command()
def select(
    input_image: Annotated[
        Path,
        typer.Argument(
            help="Path to the image to select from",
            show_default=False,
        ),
    ],
    points: Annotated[
        list[str],
        typer.Option(
            "--point",
            "-p",
            help="Boundary point as x,y (repeat for each point, in order)",
        ),
    ],
    tool: Annotated[
        str,
        typer.Option(
            "--tool",
            "-t",
            help="Selection tool (point-to-point|scissors-gray|scissors-color)",
        ),
    ] = "point-to-point",
    moves: Annotated[
        list[str] | None,
        typer.Option(
            "--move",
            "-m",
            help="Move control point after closing, as index:x,y (repeatable)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-selection.png)",
        ),
    ] = None,
    edge_scale: Annotated[
        int,
        typer.Option(
            "--edge-scale",
            help="Scissors cost of a unit step across a flat region",
            min=1,
            max=10_000,
        ),
    ] = 100,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Trace the boundary and show it without writing an image",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Trace a closed boundary through the given points and export the enclosed region.

    Points are added in order with the chosen tool and the boundary is closed
    back to the first point. Scissors tools snap each segment to edges in the
    image.

    Example:
        regionselect photo.png -p 10,10 -p 120,15 -p 90,140 -t scissors-color
    """
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    if tool not in TOOL_NAMES:
        print_error(
            f"Invalid tool: {tool}",
            details=f"Valid values: {', '.join(TOOL_NAMES)}",
        )
        raise typer.Exit(code=1)

    try:
        boundary = [parse_point(p) for p in points]
        relocations = [parse_move(m) for m in moves or []]
    except ValueError as e:
        print_error(f"Invalid coordinates: {e}")
        raise typer.Exit(code=1)

    if len(boundary) < 2:
        print_error(
            "At least two points are required",
            details="A closed boundary needs a start point and one more point.",
        )
        raise typer.Exit(code=1)

    settings = RegionSelectSettings(
        scissors=ScissorsConfig(edge_scale=edge_scale),
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level if not quiet else "ERROR",
        ),
    )
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
    )

    if not quiet:
        print_header(__version__)

    model: SelectionModel | None = None
    try:
        if not quiet:
            print_step("Loading image")
        image = load_image(input_image)
        if not quiet:
            print_image_info(str(input_image), image.size, tool)

        model = create_model(tool, settings=settings, image=image)

        if not quiet:
            print_step("Tracing boundary")
        _trace(model, boundary, quiet)

        for index, new_pos in relocations:
            model.move_point(index, new_pos)

        if not quiet:
            print_segments(model.selection, verbose)

        if dry_run:
            if not quiet:
                console.print(f"\n[bold green]{SYM_OK} Dry run complete[/bold green] – no file written")
            raise typer.Exit(code=0)

        output_path = output if output is not None else get_export_path(input_image)
        if not quiet:
            print_step("Exporting")
        # Render in memory so a failed export leaves no partial file behind
        buffer = io.BytesIO()
        model.save_selection(buffer)
        output_path.write_bytes(buffer.getvalue())

        if not quiet:
            left, top, right, bottom = polygon_bounds(
                selection_polygon(model.selection), image.size
            )
            print_success(
                output_path=str(output_path),
                region_size=(right - left, bottom - top),
                file_size=_format_file_size(output_path),
            )

    except KeyboardInterrupt:
        if model is not None:
            model.cancel_processing()
        if not quiet:
            print_cancellation_notice()
        raise typer.Exit(code=130) from None
    except ImageLoadError as e:
        print_error(f"Could not load image: {e.reason}")
        raise typer.Exit(code=1)
    except ExportError as e:
        print_error(f"Could not export selection: {e.reason}")
        raise typer.Exit(code=1)
    except SelectionError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except RegionSelectError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except OSError as e:
        print_error(f"Could not write output: {e}")
        raise typer.Exit(code=1)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    finally:
        if model is not None:
            model.close()


def _trace(model: SelectionModel, boundary: list[Point], quiet: bool) -> None:
    """Feed points to ``model`` and close the boundary, waiting on searches.

    Args:
        model: Selection model in NO_SELECTION
        boundary: Points in order
        quiet: Suppress the progress bar
    """
    steps: list[Point | None] = [*boundary, None]

    if quiet or not isinstance(model, ScissorsModel):
        for point in steps:
            _step(model, point)
        return

    with create_progress() as progress:
        task_id = progress.add_task("Searching", total=100)

        def on_progress(event: PropertyChange) -> None:
            progress.update(task_id, completed=event.new_value)

        model.subscribe("progress", on_progress)
        try:
            for i, point in enumerate(steps):
                label = f"Segment {i}" if point is not None else "Closing"
                progress.update(task_id, description=label, completed=0)
                _step(model, point)
        finally:
            model.unsubscribe("progress", on_progress)


def _step(model: SelectionModel, point: Point | None) -> None:
    """Add ``point`` (or close the boundary for None) and wait for the tool."""
    if point is None:
        model.finish_selection()
    else:
        model.add_point(point)
    if isinstance(model, ScissorsModel) and model.state is SelectionState.PROCESSING:
        model.wait_for_processing()


def _format_file_size(path: Path) -> str:
    """Format file size in human-readable form.

    Args:
        path: Path to file

    Returns:
        Human-readable file size (e.g., "428 KB")
    """
    try:
        size_bytes = path.stat().st_size
        if size_bytes < 1024:
            return f"{size_bytes} B"
        elif size_bytes < 1024 * 1024:
            return f"{size_bytes / 1024:.0f} KB"
        else:
            return f"{size_bytes / (1024 * 1024):.1f} MB"
    except OSError:
        return "unknown"


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
