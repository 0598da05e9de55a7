"""qrscore CLI: measure QR code scannability from SVG or raster images."""

import argparse
import json
import sys
from pathlib import Path

from qrscore.config import load_config
from qrscore.errors import QrScoreError
from qrscore.logging import audit, get_logger, setup_logging

log = get_logger("cli")


def error_payload(message: str) -> dict:
    return {"score": 0, "grade": "F", "decodable": False, "error": message}


def _emit(payload: dict):
    print(json.dumps(payload))


def _read_input(path: str | None) -> bytes:
    if path is None or path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def cmd_score(args) -> int:
    """Score an SVG document (path or stdin)."""
    from qrscore.render import prepare_parameters, render_svg, score_svg_bytes

    svg_data = _read_input(args.input)
    if not svg_data:
        print("No input provided", file=sys.stderr)
        return 0

    params = load_config(args.config, args.render_size)

    if args.dump_png:
        png = render_svg(svg_data, prepare_parameters(svg_data, params))
        Path(args.dump_png).write_bytes(png)
        print(f"Wrote {len(png)} bytes to {args.dump_png}", file=sys.stderr)
        return 0

    _emit(score_svg_bytes(svg_data, params).to_dict())
    return 0


def cmd_validate(args) -> int:
    """Score a raster image (PNG, JPEG, ...)."""
    from qrscore.pipeline import validate

    params = load_config(args.config, args.render_size)
    result = validate(_read_input(args.image), params)
    if args.summary:
        print(f"Score: {result.score} ({result.grade})", file=sys.stderr)
        print(result.stress_results.summary(), file=sys.stderr)
    _emit(result.to_dict())
    return 0


def cmd_decode(args) -> int:
    """Decode a raster image without scoring it."""
    from qrscore.pipeline import decode_only

    outcome = decode_only(_read_input(args.image))
    _emit({
        "content": outcome.content,
        "error_correction": str(outcome.metadata().error_correction),
    })
    return 0


def cmd_render(args) -> int:
    """Render an SVG to PNG at a DPI and zoom factor."""
    from qrscore.render import svg_to_png_hq

    svg_data = _read_input(args.input)
    png = svg_to_png_hq(svg_data, dpi=args.dpi, zoom=args.zoom)
    if png is None:
        print("Failed to render SVG", file=sys.stderr)
        return 1

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(png)
        print(f"Rendered: {output} ({len(png)} bytes)", file=sys.stderr)
    else:
        sys.stdout.buffer.write(png)
        sys.stdout.buffer.flush()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrscore", description="Measure QR code scannability")

    # Global flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    parser.add_argument("--config", default=None, help="Path to TOML config file")
    parser.add_argument("--render-size", type=int, default=None,
                        help="Override render size (base rasterization size in pixels)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- score ---
    p_score = subparsers.add_parser("score", help="Score an SVG QR code")
    p_score.add_argument("input", nargs="?", default=None, help="SVG file (default: stdin)")
    p_score.add_argument("--dump-png", default=None, help="Write the rendered PNG here instead of scoring")

    # --- validate ---
    p_val = subparsers.add_parser("validate", help="Score a raster QR code image")
    p_val.add_argument("image", help="Path to image, or '-' for stdin")
    p_val.add_argument("--summary", action="store_true", help="Print a per-test summary to stderr")

    # --- decode ---
    p_dec = subparsers.add_parser("decode", help="Decode a raster QR code image")
    p_dec.add_argument("image", help="Path to image, or '-' for stdin")

    # --- render ---
    p_ren = subparsers.add_parser("render", help="Render SVG to PNG")
    p_ren.add_argument("input", nargs="?", default=None, help="SVG file (default: stdin)")
    p_ren.add_argument("-o", "--output", default=None, help="Output PNG path (default: stdout)")
    p_ren.add_argument("--dpi", type=float, default=96.0, help="DPI for SVG unit conversion")
    p_ren.add_argument("-z", "--zoom", type=float, default=1.0, help="Zoom factor (e.g. 20 = 20x)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else "WARNING"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "score": cmd_score,
        "validate": cmd_validate,
        "decode": cmd_decode,
        "render": cmd_render,
    }
    try:
        status = commands[args.command](args)
    except QrScoreError as e:
        _emit(error_payload(str(e)))
        status = 1
    except OSError as e:
        _emit(error_payload(f"Failed to read input: {e}"))
        status = 1

    audit("cli.done", logger=log, command=args.command, status=status)
    return status


if __name__ == "__main__":
    sys.exit(main())
