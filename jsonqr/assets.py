"""Raster I/O: load logo/icon sources and serialize finished images."""

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from jsonqr.config import RasterSource
from jsonqr.errors import AssetLoadError
from jsonqr.logging import get_logger

log = get_logger("assets")


def load_raster(source: RasterSource) -> Image.Image:
    """Load a raster source into a fresh RGBA image.

    Accepts a filesystem path, encoded image bytes, or a decoded PIL image.
    The result never aliases the caller's image.
    """
    if isinstance(source, Image.Image):
        return source.convert("RGBA")

    if isinstance(source, (bytes, bytearray)):
        fp, label = io.BytesIO(source), f"<{len(source)} bytes>"
    elif isinstance(source, (str, Path)):
        fp, label = Path(source), str(source)
    else:
        raise AssetLoadError(source, f"unsupported source type {type(source).__name__}")

    try:
        with Image.open(fp) as img:
            img.load()
            log.debug("loaded %s (%s %dx%d)", label, img.format, img.width, img.height)
            return img.convert("RGBA")
    except FileNotFoundError as e:
        raise AssetLoadError(label, "file not found") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetLoadError(label, str(e) or type(e).__name__) from e


def to_png(image: Image.Image) -> bytes:
    """Encode an image as PNG. Output is deterministic for identical pixels."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
