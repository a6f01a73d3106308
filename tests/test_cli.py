"""CLI: generate/verify subcommands and exit codes."""
import io
import json

import pytest
from PIL import Image

from jsonqr.cli import main

pytestmark = pytest.mark.usefixtures("reset_jsonqr_logging")


@pytest.fixture
def payload_file(tmp_path):
    p = tmp_path / "payload.json"
    p.write_text(json.dumps({"id": "1", "product": "Example"}), encoding="utf-8")
    return p


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_generate_png(payload_file, tmp_path, capsys):
    out = tmp_path / "qr.png"
    assert main(["generate", str(payload_file), "-o", str(out), "--footer-text", "secure"]) == 0
    with Image.open(out) as img:
        assert img.format == "PNG"
        assert img.height == img.width + 50
    assert "Generated" in capsys.readouterr().out


def test_generate_svg(payload_file, tmp_path):
    out = tmp_path / "qr.svg"
    assert main(["generate", str(payload_file), "-f", "svg", "-o", str(out)]) == 0
    assert "<svg" in out.read_text(encoding="utf-8")


def test_generate_from_stdin(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.stdin", io.StringIO('{"id": "1"}'))
    out = tmp_path / "qr.txt"
    assert main(["generate", "-", "-f", "data-uri", "-o", str(out)]) == 0
    assert out.read_text(encoding="utf-8").startswith("data:image/png;base64,")


def test_generate_failure_exit_code(payload_file, tmp_path, capsys):
    missing_logo = tmp_path / "nope.png"
    code = main(["generate", str(payload_file), "-o", str(tmp_path / "qr.png"),
                 "--logo", str(missing_logo)])
    assert code == 1
    assert "Failed to generate QR Code" in capsys.readouterr().err


def test_unreadable_payload(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main(["generate", str(bad), "-o", str(tmp_path / "qr.png")]) == 1
    assert "Cannot read JSON payload" in capsys.readouterr().err


def test_verify_generated_image(payload_file, tmp_path):
    pytest.importorskip("cv2")
    out = tmp_path / "qr.png"
    assert main(["generate", str(payload_file), "-o", str(out)]) == 0
    expected = json.dumps({"id": "1", "product": "Example"}, separators=(",", ":"))
    assert main(["verify", str(out), "--expected", expected]) == 0
    assert main(["verify", str(out), "--expected", "something else"]) == 1


def test_verify_missing_image(tmp_path, capsys):
    assert main(["verify", str(tmp_path / "nope.png")]) == 1
    assert "Cannot read image" in capsys.readouterr().err


def test_verify_non_image_file(bad_image_path, capsys):
    assert main(["verify", str(bad_image_path)]) == 1
    assert "Cannot read image" in capsys.readouterr().err
