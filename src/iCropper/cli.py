"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .appctx import AppContext
from .config import DEFAULT_VIEWPORT
from .domain.models import CustomAspect, Dimensions, StandardAspect, parse_aspect_ratio
from .errors import ExportError, ICropperError, SettingsError
from .events.crop_events import BatchCompletedEvent
from .export import export_results
from .surface.pillow_surface import PillowCropSurface

app = typer.Typer(help="Batch-crop images against shared output constraints")
console = Console()

_LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (SettingsError, ExportError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except ICropperError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _run_now(callback) -> None:
    callback()


def _parse_viewport(value: str) -> tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError:
        raise typer.BadParameter("viewport must look like WIDTHxHEIGHT") from None
    if width <= 0 or height <= 0:
        raise typer.BadParameter("viewport dimensions must be positive")
    return width, height


def _aspect_settings(text: str) -> dict:
    try:
        spec = parse_aspect_ratio(text)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if isinstance(spec, StandardAspect):
        return {"crop.aspect_ratio_mode": "standard", "crop.standard_aspect_ratio": spec.ratio}
    if isinstance(spec, CustomAspect):
        return {"crop.aspect_ratio_mode": "custom", "crop.custom_aspect_ratio": spec.ratio}
    return {"crop.aspect_ratio_mode": "free"}


@app.callback()
def main() -> None:
    """iCropper command line."""


@app.command()
@_handle_errors
def crop(
    images: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Images to crop"),
    out: Path = typer.Option(Path("cropped"), "--out", "-o", help="Destination directory"),
    min_width: Optional[float] = typer.Option(None, min=0, help="Minimum output width in pixels"),
    max_width: Optional[float] = typer.Option(None, min=0, help="Maximum output width in pixels"),
    min_height: Optional[float] = typer.Option(None, min=0, help="Minimum output height in pixels"),
    max_height: Optional[float] = typer.Option(None, min=0, help="Maximum output height in pixels"),
    aspect: Optional[str] = typer.Option(None, help="free, W:H or a numeric ratio"),
    output_format: str = typer.Option("png", "--format", help="png or jpeg"),
    append_resolution: bool = typer.Option(False, "--append-resolution", help="Append -WxH to file names"),
    viewport: str = typer.Option(
        f"{DEFAULT_VIEWPORT[0]}x{DEFAULT_VIEWPORT[1]}", help="Viewport the crop box is laid out in"
    ),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON to load"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Crop IMAGES with a centered crop box and export the results."""

    _configure_logging(verbose)
    view = _parse_viewport(viewport)
    fmt = output_format.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    if fmt not in ("PNG", "JPEG"):
        raise typer.BadParameter("format must be png or jpeg", param_hint="--format")

    updates: dict = {"output.format": fmt, "crop.append_resolution": append_resolution}
    for key, value in (
        ("crop.min_width", min_width),
        ("crop.max_width", max_width),
        ("crop.min_height", min_height),
        ("crop.max_height", max_height),
    ):
        if value is not None:
            updates[key] = value
    if aspect is not None:
        updates.update(_aspect_settings(aspect))

    ctx = AppContext.create(settings_file, scheduler=_run_now, read_only_settings=True)
    settings = ctx.settings
    failed: list[str] = []
    outcome: dict[str, BatchCompletedEvent] = {}
    ctx.events.subscribe(BatchCompletedEvent, lambda event: outcome.setdefault("batch", event))
    try:
        settings.update(updates)
        workspace = ctx.workspace
        names: dict[str, str] = {}
        for path in images:
            try:
                surface = PillowCropSurface(path, view)
            except OSError as exc:
                _LOGGER.warning("Cannot open %s: %s", path, exc)
                failed.append(path.name)
                continue
            image_id = workspace.add_image(path.name, source=path, original_size=Dimensions(*surface.natural_size))
            names[image_id] = path.name
            workspace.open_session(image_id, surface)

        workspace.crop_all()
        batch = outcome.get("batch")
        if batch is not None:
            failed.extend(names[image_id] for image_id in batch.failed)
        written = export_results(workspace, out)

        table = Table(title=f"Cropped {len(written)} image(s) into {out}")
        table.add_column("Image")
        table.add_column("Output size", justify="right")
        table.add_column("Quality", justify="right")
        for entry, result in workspace.ready_results():
            stats = workspace.state.stats.get(entry.id)
            quality = f"{stats.quality_ratio:.2f}" if stats is not None else "-"
            if stats is not None and stats.quality_critical:
                quality = f"[red]{quality}"
            elif stats is not None and stats.quality_warning:
                quality = f"[yellow]{quality}"
            size = str(result.dimensions) if result is not None else "[red]failed"
            table.add_row(entry.original_name, size, quality)
        console.print(table)
    finally:
        ctx.close()

    if failed:
        typer.echo(f"Failed: {', '.join(failed)}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
