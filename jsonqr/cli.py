"""jsonqr CLI — encode JSON documents as QR Codes from the command line."""

import argparse
import json
import sys
from pathlib import Path

from jsonqr.logging import audit, get_logger, setup_logging

log = get_logger("cli")

_DEFAULT_OUTPUT = {"raster": "output/qr.png", "vector": "output/qr.svg", "data-uri": "output/qr.txt"}


def _read_payload(source: str):
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return json.loads(text)


def cmd_generate(args) -> int:
    """Generate a QR code from a JSON document."""
    from jsonqr.config import OutputFormat
    from jsonqr.errors import QRCodeGenerationError
    from jsonqr.facade import generate

    try:
        payload = _read_payload(args.payload)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read JSON payload from {args.payload}: {e}", file=sys.stderr)
        return 1

    request = {
        "data": payload,
        "format": args.format,
        "error_correction": args.ecc,
        "margin": args.margin,
        "scale": args.scale,
        "color": {"dark": args.dark, "light": args.light},
        "logo": args.logo,
        "logo_area_ratio": args.logo_area_ratio,
        "logo_padding_ratio": args.logo_padding_ratio,
        "verify": args.verify,
    }
    if args.footer_text:
        request["footer"] = {
            "text": args.footer_text,
            "icon": args.footer_icon,
            "text_color": args.footer_color,
            "font_path": args.font,
        }

    try:
        result = generate(request)
    except QRCodeGenerationError as e:
        print(str(e), file=sys.stderr)
        return 1

    output = Path(args.output or _DEFAULT_OUTPUT[OutputFormat.parse(args.format).value])
    output.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(result, bytes):
        output.write_bytes(result)
    else:
        output.write_text(result, encoding="utf-8")
    print(f"Generated: {output}")
    return 0


def cmd_verify(args) -> int:
    """Decode a QR code image and optionally compare it with expected data."""
    from PIL import Image

    from jsonqr.verify import verify

    try:
        with Image.open(args.image) as img:
            results = verify(img, expected_data=args.expected)
    except OSError as e:
        # UnidentifiedImageError is an OSError too
        print(f"Cannot read image {args.image}: {e}", file=sys.stderr)
        return 1

    all_pass = True
    for r in results:
        status = "PASS" if r.success else "FAIL"
        if not r.success:
            all_pass = False
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    return 0 if all_pass else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jsonqr", description="Encode JSON payloads as QR Codes")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs on the console")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate ---
    p_gen = subparsers.add_parser("generate", help="Generate a QR code from a JSON file")
    p_gen.add_argument("payload", help="Path to a JSON file, or '-' for stdin")
    p_gen.add_argument("-o", "--output", default=None, help="Output file path")
    p_gen.add_argument("-f", "--format", default="raster",
                       choices=["raster", "png", "vector", "svg", "data-uri", "base64"],
                       help="Output format")
    p_gen.add_argument("-e", "--ecc", default="H", choices=["L", "M", "Q", "H"], help="Error correction level")
    p_gen.add_argument("--margin", type=int, default=4, help="Quiet zone modules")
    p_gen.add_argument("--scale", type=int, default=8, help="Pixels per module")
    p_gen.add_argument("--dark", default="#000000ff", help="Module color")
    p_gen.add_argument("--light", default="#ffffffff", help="Background color")
    p_gen.add_argument("--logo", default=None, help="Logo image placed at the center (raster only)")
    p_gen.add_argument("--logo-area-ratio", type=float, default=0.5,
                       help="Logo pad side as a fraction of the QR image")
    p_gen.add_argument("--logo-padding-ratio", type=float, default=0.25,
                       help="Padding as a fraction of the logo pad side")
    p_gen.add_argument("--footer-text", default=None, help="Footer text below the QR code (raster only)")
    p_gen.add_argument("--footer-icon", default=None, help="Icon drawn before the footer text")
    p_gen.add_argument("--footer-color", default="#000000ff", help="Footer text color")
    p_gen.add_argument("--font", default=None, help="TrueType font for the footer")
    p_gen.add_argument("--verify", action="store_true", help="Decode the result and warn if it does not scan")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file, json_format=args.json_logs)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "generate": cmd_generate,
        "verify": cmd_verify,
    }
    status = commands[args.command](args)
    audit("cli.done", logger=log, command=args.command, status=status)
    return status


if __name__ == "__main__":
    sys.exit(main())
