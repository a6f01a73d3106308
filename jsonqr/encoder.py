"""Matrix encoding: turn bytes into a QR symbol rendered as raster, SVG or data URI.

``MatrixEncoder`` is the seam the generator depends on; ``QRCodeEncoder`` is
the production implementation on top of the ``qrcode`` library.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np
import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError
from PIL import Image

from jsonqr.assets import to_png
from jsonqr.config import GenerationOptions, OutputFormat, parse_color
from jsonqr.errors import EncodingError, JsonQRError
from jsonqr.logging import audit, get_logger, trace

log = get_logger("encoder")


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}


@dataclass(frozen=True)
class EncoderParams:
    error_correction: str
    margin: int
    scale: int
    dark: str
    light: str
    kind: OutputFormat

    @classmethod
    def from_options(cls, options: GenerationOptions) -> "EncoderParams":
        return cls(
            error_correction=options.error_correction,
            margin=options.margin,
            scale=options.scale,
            dark=options.dark,
            light=options.light,
            kind=options.format,
        )


class MatrixEncoder(ABC):
    """Encodes bytes into a QR symbol in the requested output kind.

    Raster output is an RGBA ``PIL.Image.Image``; vector and data-uri output
    are strings. Failures raise ``EncodingError``.
    """

    @abstractmethod
    def encode(self, data: bytes, params: EncoderParams) -> Image.Image | str:
        ...


class QRCodeEncoder(MatrixEncoder):
    """``qrcode``-backed encoder; all three outputs share one module matrix."""

    @trace(expected=(JsonQRError,))
    def encode(self, data: bytes, params: EncoderParams) -> Image.Image | str:
        modules = self.module_matrix(data, params)
        dark = parse_color(params.dark)
        light = parse_color(params.light)

        if params.kind is OutputFormat.VECTOR:
            result = render_svg(modules, params.scale, dark, light)
        else:
            image = render_raster(modules, params.scale, dark, light)
            if params.kind is OutputFormat.DATA_URI:
                result = "data:image/png;base64," + base64.b64encode(to_png(image)).decode("ascii")
            else:
                result = image

        audit("qr.encoded", logger=log,
              bytes=len(data), modules=f"{len(modules)}x{len(modules)}",
              ecc=params.error_correction, kind=params.kind.value)
        return result

    def module_matrix(self, data: bytes, params: EncoderParams) -> np.ndarray:
        """Return the module grid, quiet zone included (True = dark)."""
        level = ECC_NAMES.get(str(params.error_correction).upper())
        if level is None:
            raise EncodingError(
                f"Unsupported error correction level {params.error_correction!r} (expected L, M, Q or H)"
            )
        try:
            qr = qrcode.QRCode(
                version=None,
                error_correction=level.value,
                box_size=params.scale,
                border=params.margin,
            )
            qr.add_data(data)
            qr.make(fit=True)
            return np.array(qr.get_matrix(), dtype=bool)
        except DataOverflowError as e:
            raise EncodingError(
                f"Data too long ({len(data)} bytes) for error correction level {level.name}"
            ) from e
        except (ValueError, TypeError) as e:
            raise EncodingError(f"QR encoder rejected parameters: {e}") from e


def render_raster(modules: np.ndarray, scale: int, dark: tuple, light: tuple) -> Image.Image:
    """Blow each module up to ``scale`` x ``scale`` pixels."""
    pixels = np.repeat(np.repeat(modules, scale, axis=0), scale, axis=1)
    rgba = np.empty(pixels.shape + (4,), dtype=np.uint8)
    rgba[pixels] = dark
    rgba[~pixels] = light
    return Image.fromarray(rgba)


def _svg_fill(color: tuple) -> str:
    r, g, b, a = color
    attr = f'fill="#{r:02x}{g:02x}{b:02x}"'
    if a != 255:
        attr += f' fill-opacity="{a / 255:.3f}"'
    return attr


def render_svg(modules: np.ndarray, scale: int, dark: tuple, light: tuple) -> str:
    """Render the module grid as a standalone SVG document.

    The viewBox is in module units; width/height carry the pixel size.
    Dark modules are merged into one path of horizontal runs.
    """
    n = len(modules)
    dim = n * scale
    runs = []
    for r, row in enumerate(modules):
        c = 0
        while c < n:
            if not row[c]:
                c += 1
                continue
            start = c
            while c < n and row[c]:
                c += 1
            width = c - start
            runs.append(f"M{start} {r}h{width}v1h-{width}z")

    return "".join([
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{dim}" height="{dim}" '
        f'viewBox="0 0 {n} {n}" shape-rendering="crispEdges">',
        f'<rect width="{n}" height="{n}" {_svg_fill(light)}/>',
        f'<path {_svg_fill(dark)} d="{"".join(runs)}"/>',
        "</svg>\n",
    ])
