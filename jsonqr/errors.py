"""Error taxonomy for the generation pipeline.

Everything inside the package raises a ``JsonQRError`` subclass. The facade is
the only place that converts them into ``QRCodeGenerationError``, the single
type callers ever see.
"""


class JsonQRError(Exception):
    """Base class for internal pipeline failures."""


class InvalidPayload(JsonQRError):
    """Payload is absent, null, or not a JSON object/array."""


class EmptyPayload(JsonQRError):
    """Payload serialized to an empty string."""


class SerializationError(JsonQRError):
    """Payload holds cycles or members JSON cannot represent."""


class UnsupportedFormat(JsonQRError):
    """Requested output format is not one of raster, vector or data-uri."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unsupported QR Code format: {value!r}")


class InvalidOption(JsonQRError):
    """An option value (e.g. a color) cannot be interpreted."""


class EncodingError(JsonQRError):
    """The matrix encoder rejected the data or failed internally."""


class InvalidOverlayGeometry(JsonQRError):
    """Logo area/padding ratios leave no drawable region."""


class AssetLoadError(JsonQRError):
    """A logo or icon raster source could not be loaded."""

    def __init__(self, source: object, reason: str):
        self.source = source
        super().__init__(f"Could not load image from {source!r}: {reason}")


class QRCodeGenerationError(Exception):
    """Raised by the facade for any failed generation.

    ``reason`` names the internal failure kind (e.g. ``"AssetLoadError"``);
    the original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, reason: str = "InternalError"):
        self.reason = reason
        super().__init__(f"Failed to generate QR Code: {message}")
