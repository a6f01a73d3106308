"""Public entry point: validate the request, run the generator, wrap every failure."""

from collections.abc import Callable, Mapping

from jsonqr.compositor import ImageCompositor
from jsonqr.encoder import MatrixEncoder, QRCodeEncoder
from jsonqr.errors import InvalidPayload, JsonQRError, QRCodeGenerationError
from jsonqr.generator import Generator
from jsonqr.logging import get_logger
from jsonqr.validator import validate

log = get_logger("facade")


class QRCodeFacade:
    """Entry point taking ``{"data": ..., "format": ..., **options}`` requests."""

    def __init__(self, generator: Generator, validator: Callable[[object], bytes] = validate):
        self.generator = generator
        self.validator = validator

    def generate(self, request: Mapping) -> bytes | str:
        """Generate a QR Code for ``request["data"]``.

        Every other key of ``request`` is passed to the generator as an option.
        Any failure surfaces as ``QRCodeGenerationError``.
        """
        try:
            if not isinstance(request, Mapping) or "data" not in request:
                raise InvalidPayload('Payload must contain "data" for QR Code generation.')
            options = {k: v for k, v in request.items() if k != "data"}
            serialized = self.validator(request["data"])
            return self.generator.generate(serialized, options)
        except JsonQRError as e:
            log.error("QR Code generation failed: %s: %s", type(e).__name__, e)
            raise QRCodeGenerationError(str(e), reason=type(e).__name__) from e
        except Exception as e:
            log.exception("Unexpected error during QR Code generation")
            raise QRCodeGenerationError(str(e) or type(e).__name__) from e


def build_facade(
    encoder: MatrixEncoder | None = None,
    compositor: ImageCompositor | None = None,
) -> QRCodeFacade:
    """Wire validator -> generator -> encoder (-> compositor)."""
    return QRCodeFacade(Generator(encoder or QRCodeEncoder(), compositor or ImageCompositor()))


_default_facade: QRCodeFacade | None = None


def generate(request: Mapping) -> bytes | str:
    """Generate with the default wiring (``qrcode`` encoder, file-backed asset loader)."""
    global _default_facade
    if _default_facade is None:
        _default_facade = build_facade()
    return _default_facade.generate(request)
