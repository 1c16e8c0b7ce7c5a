"""Writing finished crops to disk."""

from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import List, Optional

from .config import MEDIA_TYPE_EXTENSIONS
from .domain.models import Dimensions
from .errors import ExportError
from .workspace import CropWorkspace

_LOGGER = logging.getLogger(__name__)


def derive_output_filename(
    original_name: str,
    new_name: str = "",
    dimensions: Optional[Dimensions] = None,
    media_type: str = "image/png",
) -> str:
    """Return the file name a crop is exported under.

    ``new_name`` wins over the original stem; any extension on either is
    replaced by the one matching *media_type*.  Passing *dimensions*
    appends ``-WxH``.
    """
    base = PurePath(new_name.strip()).stem if new_name and new_name.strip() else PurePath(original_name).stem
    if not base:
        base = "crop"
    if dimensions is not None:
        base = f"{base}-{dimensions.width}x{dimensions.height}"
    return base + MEDIA_TYPE_EXTENSIONS.get(media_type, ".png")


def unique_path(directory: Path, filename: str) -> Path:
    """Return ``directory / filename``, suffixed ``(n)`` if it already exists."""
    candidate = directory / filename
    stem, suffix = candidate.stem, candidate.suffix
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem} ({counter}){suffix}"
        counter += 1
    return candidate


def export_results(workspace: CropWorkspace, destination: Path) -> List[Path]:
    """Write every ready result of *workspace* into *destination*.

    Images without a result are logged and skipped.  Returns the written
    paths in catalog order.
    """
    destination = Path(destination)
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExportError(f"Cannot create export directory {destination}: {exc}") from exc

    written: List[Path] = []
    for entry, result in workspace.ready_results():
        if result is None or not result.is_valid:
            _LOGGER.error("No crop result for %s; skipping", entry.original_name)
            continue
        append = workspace.settings.settings_for_image(entry.id).append_resolution
        filename = derive_output_filename(
            entry.original_name,
            entry.name,
            result.dimensions if append else None,
            result.media_type,
        )
        target = unique_path(destination, filename)
        try:
            target.write_bytes(result.payload)
        except OSError as exc:
            raise ExportError(f"Cannot write {target}: {exc}") from exc
        _LOGGER.info("Exported %s", target)
        written.append(target)
    return written
