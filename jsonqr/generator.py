"""Generation pipeline: resolve options, encode the symbol, composite overlays."""

from collections.abc import Mapping

from PIL import Image

from jsonqr.assets import to_png
from jsonqr.compositor import ImageCompositor
from jsonqr.config import GenerationOptions, OutputFormat, resolve_options
from jsonqr.encoder import EncoderParams, MatrixEncoder
from jsonqr.errors import EncodingError, JsonQRError
from jsonqr.logging import audit, get_logger, trace, warn

log = get_logger("generator")


class Generator:
    """Turns serialized payload bytes into a PNG, an SVG string, or a data URI."""

    def __init__(self, encoder: MatrixEncoder, compositor: ImageCompositor | None = None):
        self.encoder = encoder
        self.compositor = compositor or ImageCompositor()

    @trace(expected=(JsonQRError,))
    def generate(self, data: bytes, options: Mapping | GenerationOptions | None = None) -> bytes | str:
        """Generate a QR Code artifact for ``data``.

        Args:
            data: The bytes to encode, normally the validator's output.
            options: Options bag or resolved ``GenerationOptions``. Defaults:
                raster format, ECC H, margin 4, scale 8, black on white,
                logo area 0.5, logo padding 0.25.

        Returns:
            PNG bytes for raster output, otherwise the encoder's string.

        Raises:
            UnsupportedFormat, EncodingError, InvalidOverlayGeometry,
            AssetLoadError, InvalidOption.
        """
        opts = resolve_options(options)
        params = EncoderParams.from_options(opts)

        try:
            encoded = self.encoder.encode(data, params)
        except JsonQRError:
            raise
        except Exception as e:
            raise EncodingError(f"QR encoder failed: {e}") from e

        if opts.format is not OutputFormat.RASTER:
            logo = opts.overlay.logo is not None
            footer = opts.footer_supplied or opts.overlay.footer is not None
            if logo or footer:
                warn("overlay.ignored", logger=log,
                     format=opts.format.value, logo=logo, footer=footer,
                     reason="logo and footer are only supported for raster output")
            return encoded

        if not isinstance(encoded, Image.Image):
            raise EncodingError(f"Encoder returned {type(encoded).__name__} for raster output")

        image = encoded
        if opts.overlay.requested:
            image = self.compositor.compose(image, opts.overlay, light=opts.light)

        if opts.verify:
            self._verify(image, data)

        audit("qr.generated", logger=log,
              format=opts.format.value, ecc=opts.error_correction,
              image_px=f"{image.size[0]}x{image.size[1]}",
              logo=opts.overlay.logo is not None,
              footer=opts.overlay.footer is not None)
        return to_png(image)

    def _verify(self, image: Image.Image, data: bytes):
        from jsonqr.verify import verify

        expected = data.decode("utf-8", errors="replace")
        results = verify(image, expected_data=expected)
        if not any(r.success for r in results):
            warn("scan.unverified", logger=log,
                 decoders=[r.decoder for r in results],
                 errors=[r.error for r in results])
