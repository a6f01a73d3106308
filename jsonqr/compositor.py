"""Image compositing: center logo on a quiet-zone pad and an icon/text footer band.

Geometry (all integer pixels, base image of size W x H):

    logo area side  = floor(min(W, H) * logo_area_ratio)
    padding         = floor(side * logo_padding_ratio)
    inner side      = side - 2 * padding          (must stay > 0)

The logo is fitted into the inner square on a pad filled with the QR's light
color, and the pad is centered on the symbol. The footer is a fixed-height
band appended below the symbol; its content is centered under the original
width and on the band's horizontal midline.
"""

import math
from collections.abc import Callable

from PIL import Image, ImageDraw, ImageFont

from jsonqr.assets import load_raster
from jsonqr.config import DEFAULT_LIGHT, FooterSpec, OverlaySpec, RasterSource, parse_color
from jsonqr.errors import AssetLoadError, InvalidOverlayGeometry, JsonQRError
from jsonqr.logging import audit, get_logger, trace, warn

log = get_logger("compositor")

FOOTER_HEIGHT = 50
ICON_HEIGHT = 24
ICON_GAP = 10


def load_font(font_path: str | None, size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    """Load the footer font; Pillow's bundled default when no path is given."""
    if font_path is None:
        return ImageFont.load_default(size=size)
    try:
        return ImageFont.truetype(font_path, size)
    except OSError as e:
        raise AssetLoadError(font_path, f"cannot open font: {e}") from e


def logo_geometry(width: int, height: int, area_ratio: float, padding_ratio: float) -> tuple[int, int, int]:
    """Return ``(side, padding, inner)`` for the logo pad, or raise on degenerate ratios."""
    if not 0 < area_ratio <= 1:
        raise InvalidOverlayGeometry(f"logo_area_ratio must be in (0, 1], got {area_ratio}")
    if not 0 <= padding_ratio < 0.5:
        raise InvalidOverlayGeometry(
            f"logo_padding_ratio must be in [0, 0.5), got {padding_ratio}: "
            "padding would consume the whole logo area"
        )
    side = math.floor(min(width, height) * area_ratio)
    padding = math.floor(side * padding_ratio)
    inner = side - 2 * padding
    if inner <= 0:
        raise InvalidOverlayGeometry(
            f"Logo area of {side}px with {padding}px padding leaves no room for the logo"
        )
    return side, padding, inner


def fit_within(size: tuple[int, int], box: int) -> tuple[int, int]:
    """Scale ``size`` to fit a ``box`` x ``box`` square, keeping aspect.

    Either axis may grow. Neither collapses below 1px, so extreme aspect
    ratios (a 2000x1 banner) still yield a drawable image.
    """
    width, height = size
    scale = box / max(width, height)
    return max(1, round(width * scale)), max(1, round(height * scale))


class ImageCompositor:
    """Places a logo and/or footer onto a rendered QR image.

    ``loader`` resolves logo/icon references to RGBA images and raises
    ``AssetLoadError`` on failure.
    """

    def __init__(
        self,
        loader: Callable[[RasterSource], Image.Image] = load_raster,
        footer_height: int = FOOTER_HEIGHT,
        icon_height: int = ICON_HEIGHT,
        icon_gap: int = ICON_GAP,
    ):
        self.loader = loader
        self.footer_height = footer_height
        self.icon_height = icon_height
        self.icon_gap = icon_gap

    @trace(expected=(JsonQRError,))
    def compose(self, base: Image.Image, overlay: OverlaySpec, light: str = DEFAULT_LIGHT) -> Image.Image:
        """Return a new image with the requested overlays; ``base`` is left untouched."""
        light_rgba = parse_color(light)
        result = base.convert("RGBA")

        if overlay.logo is not None:
            self.place_logo(result, overlay.logo, overlay.logo_area_ratio,
                            overlay.logo_padding_ratio, light_rgba)

        if overlay.footer is not None and overlay.footer.text:
            result = self.add_footer(result, overlay.footer, light_rgba)

        return result

    def place_logo(
        self,
        image: Image.Image,
        source: RasterSource,
        area_ratio: float,
        padding_ratio: float,
        light: tuple[int, int, int, int],
    ) -> None:
        """Composite the logo pad onto ``image`` in place."""
        width, height = image.size
        side, padding, inner = logo_geometry(width, height, area_ratio, padding_ratio)

        # A failed logo load is fatal.
        logo = self.loader(source)
        logo = logo.resize(fit_within(logo.size, inner), Image.LANCZOS)

        pad = Image.new("RGBA", (side, side), light)
        pad.alpha_composite(logo, (padding + (inner - logo.width) // 2,
                                   padding + (inner - logo.height) // 2))
        image.alpha_composite(pad, ((width - side) // 2, (height - side) // 2))

        audit("logo.composited", logger=log,
              qr_size=f"{width}x{height}", area=side, padding=padding,
              logo_size=f"{logo.width}x{logo.height}")

    def add_footer(self, image: Image.Image, footer: FooterSpec, light: tuple[int, int, int, int]) -> Image.Image:
        """Return a taller copy of ``image`` with the footer band drawn below it."""
        width, height = image.size
        canvas = Image.new("RGBA", (width, height + self.footer_height), light)
        canvas.alpha_composite(image, (0, 0))

        icon = self._load_icon(footer.icon) if footer.icon is not None else None

        font = load_font(footer.font_path, footer.font_size)
        draw = ImageDraw.Draw(canvas)
        left, top, right, bottom = draw.textbbox((0, 0), footer.text, font=font)
        text_w, text_h = right - left, bottom - top

        content_w = text_w
        if icon is not None:
            content_w += icon.width + self.icon_gap

        x = (width - content_w) // 2
        center_y = height + self.footer_height // 2

        if icon is not None:
            # paste, not alpha_composite: wide content may start at a negative x
            canvas.paste(icon, (x, center_y - icon.height // 2), icon)
            x += icon.width + self.icon_gap

        draw.text((x - left, center_y - text_h // 2 - top), footer.text,
                  font=font, fill=parse_color(footer.text_color))

        audit("footer.composited", logger=log,
              text=footer.text, icon=icon is not None,
              content_width=content_w, band=self.footer_height)
        return canvas

    def _load_icon(self, source: RasterSource) -> Image.Image | None:
        """Load and resize the footer icon; a failed load only degrades the footer."""
        try:
            icon = self.loader(source)
        except AssetLoadError as e:
            warn("footer.icon_skipped", logger=log, icon=str(source), error=str(e))
            return None
        icon_w = max(1, round(icon.width * self.icon_height / icon.height))
        return icon.resize((icon_w, self.icon_height), Image.LANCZOS)
