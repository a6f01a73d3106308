"""Option resolution: turn a caller's options bag into concrete generation settings."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from PIL import Image, ImageColor

from jsonqr.errors import InvalidOption, UnsupportedFormat

# A raster source: filesystem path, encoded image bytes, or a decoded image.
RasterSource = str | Path | bytes | Image.Image

DEFAULT_DARK = "#000000ff"
DEFAULT_LIGHT = "#ffffffff"


class OutputFormat(Enum):
    RASTER = "raster"
    VECTOR = "vector"
    DATA_URI = "data-uri"

    @classmethod
    def parse(cls, value: object) -> "OutputFormat":
        """Resolve a format name or alias (png/svg/base64), case-insensitively."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            fmt = _FORMAT_ALIASES.get(value.strip().lower())
            if fmt is not None:
                return fmt
        raise UnsupportedFormat(value)


_FORMAT_ALIASES = {
    "raster": OutputFormat.RASTER,
    "png": OutputFormat.RASTER,
    "vector": OutputFormat.VECTOR,
    "svg": OutputFormat.VECTOR,
    "data-uri": OutputFormat.DATA_URI,
    "data_uri": OutputFormat.DATA_URI,
    "datauri": OutputFormat.DATA_URI,
    "base64": OutputFormat.DATA_URI,
}

# camelCase names accepted from JSON-shaped requests
_KEY_ALIASES = {
    "errorCorrectionLevel": "error_correction",
    "ecc": "error_correction",
    "qrCodeModuleScale": "scale",
    "moduleScale": "scale",
    "module_scale": "scale",
    "logoSizeRatio": "logo_area_ratio",
    "logoAreaRatio": "logo_area_ratio",
    "logoPaddingRatio": "logo_padding_ratio",
}

_FOOTER_KEY_ALIASES = {
    "iconPath": "icon",
    "icon_path": "icon",
    "textColor": "text_color",
    "fontPath": "font_path",
    "fontSize": "font_size",
}


@dataclass(frozen=True)
class FooterSpec:
    text: str
    icon: RasterSource | None = None
    text_color: str = DEFAULT_DARK
    font_path: str | None = None
    font_size: int = 16


@dataclass(frozen=True)
class OverlaySpec:
    """Logo and footer instructions; only meaningful for raster output."""
    logo: RasterSource | None = None
    logo_area_ratio: float = 0.5
    logo_padding_ratio: float = 0.25
    footer: FooterSpec | None = None

    @property
    def requested(self) -> bool:
        return self.logo is not None or self.footer is not None


@dataclass(frozen=True)
class GenerationOptions:
    format: OutputFormat = OutputFormat.RASTER
    error_correction: str = "H"
    margin: int = 4
    scale: int = 8
    dark: str = DEFAULT_DARK
    light: str = DEFAULT_LIGHT
    overlay: OverlaySpec = field(default_factory=OverlaySpec)
    verify: bool = False
    # A footer was passed, even one without text (which draws nothing)
    footer_supplied: bool = False


def parse_color(value: str) -> tuple[int, int, int, int]:
    """Parse any CSS color Pillow understands (incl. #rrggbbaa) to RGBA."""
    try:
        return ImageColor.getcolor(value, "RGBA")
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidOption(f"Invalid color {value!r}") from e


def _rename(options: Mapping, aliases: dict) -> dict:
    return {aliases.get(key, key): value for key, value in options.items()}


def _pick(options: dict, key: str, default):
    """Missing and None both mean "use the default"."""
    value = options.get(key)
    return default if value is None else value


def _ratio(options: dict, key: str, default: float) -> float:
    try:
        return float(_pick(options, key, default))
    except (TypeError, ValueError) as e:
        raise InvalidOption(f"{key} must be a number, got {options[key]!r}") from e


def _resolve_footer(raw) -> FooterSpec | None:
    if isinstance(raw, FooterSpec):
        return raw if raw.text else None
    if not isinstance(raw, Mapping):
        return None
    opts = _rename(raw, _FOOTER_KEY_ALIASES)
    text = opts.get("text")
    if not text:
        return None
    return FooterSpec(
        text=str(text),
        icon=opts.get("icon") or None,
        text_color=_pick(opts, "text_color", DEFAULT_DARK),
        font_path=opts.get("font_path"),
        font_size=int(_pick(opts, "font_size", 16)),
    )


def resolve_options(options: Mapping | GenerationOptions | None = None) -> GenerationOptions:
    """Apply defaults to a caller-supplied options mapping.

    Accepts snake_case keys and the camelCase names of JSON requests
    (``errorCorrectionLevel``, ``qrCodeModuleScale``, ``color: {dark, light}``,
    ``footer: {text, iconPath, textColor}`` ...). Unknown keys are ignored.
    Margin and scale are passed through untouched; the encoder validates them.
    """
    if isinstance(options, GenerationOptions):
        return options
    opts = _rename(options or {}, _KEY_ALIASES)

    color = opts.get("color")
    if not isinstance(color, Mapping):
        color = {}
    dark = color.get("dark") or opts.get("dark") or DEFAULT_DARK
    light = color.get("light") or opts.get("light") or DEFAULT_LIGHT

    fmt = opts.get("format")
    overlay = OverlaySpec(
        logo=opts.get("logo") or None,
        logo_area_ratio=_ratio(opts, "logo_area_ratio", 0.5),
        logo_padding_ratio=_ratio(opts, "logo_padding_ratio", 0.25),
        footer=_resolve_footer(opts.get("footer")),
    )
    return GenerationOptions(
        format=OutputFormat.RASTER if fmt is None else OutputFormat.parse(fmt),
        error_correction=str(_pick(opts, "error_correction", "H")),
        margin=_pick(opts, "margin", 4),
        scale=_pick(opts, "scale", 8),
        dark=dark,
        light=light,
        overlay=overlay,
        verify=bool(opts.get("verify", False)),
        footer_supplied=opts.get("footer") is not None,
    )
