"""Shared fixtures: a deterministic encoder double and small on-disk images."""
import logging

import pytest
from PIL import Image

from jsonqr.config import OutputFormat
from jsonqr.encoder import EncoderParams, MatrixEncoder

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)


class FakeEncoder(MatrixEncoder):
    """Returns a solid dark square for raster output and a marker string otherwise."""

    def __init__(self, size=120, fail_with=None):
        self.size = size
        self.fail_with = fail_with
        self.calls: list[tuple[bytes, EncoderParams]] = []

    def encode(self, data, params):
        self.calls.append((data, params))
        if self.fail_with is not None:
            raise self.fail_with
        if params.kind is OutputFormat.RASTER:
            return Image.new("RGBA", (self.size, self.size), BLACK)
        return f"<fake kind={params.kind.value}>"


def events(caplog, name):
    """Structured records emitted under ``name``."""
    return [r for r in caplog.records if getattr(r, "event", None) == name]


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def logo_path(tmp_path):
    """A 10x20 solid red PNG."""
    p = tmp_path / "logo.png"
    Image.new("RGBA", (10, 20), RED).save(p)
    return p


@pytest.fixture
def icon_path(tmp_path):
    """A 48x48 solid green PNG."""
    p = tmp_path / "icon.png"
    Image.new("RGBA", (48, 48), GREEN).save(p)
    return p


@pytest.fixture
def bad_image_path(tmp_path):
    """A file with a .png name that is not an image."""
    p = tmp_path / "bad.png"
    p.write_bytes(b"definitely not a png")
    return p


@pytest.fixture
def reset_jsonqr_logging():
    """Drop handlers installed by setup_logging so later tests are unaffected."""
    yield
    root = logging.getLogger("jsonqr")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
