"""I/O utilities for persisting rendered charts."""
from __future__ import annotations

import os

from PIL import Image

from .errors import ImageWriteError


def save_image(image: Image.Image, path: str) -> None:
    """Persist the PIL image to disk, encoded by the file extension (PNG by default)."""

    fmt = None if os.path.splitext(path)[1] else "PNG"
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        image.save(path, format=fmt)
    except (OSError, ValueError) as exc:
        raise ImageWriteError(f"Could not write chart to {path!r}: {exc}") from exc
