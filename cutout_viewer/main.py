import argparse
import os
import sys

from cutout_viewer.image_engine import transform
from cutout_viewer.image_engine.decoder import decode_bytes, get_image_dimensions
from cutout_viewer.image_engine.directory_session import list_images_in_directory
from cutout_viewer.image_engine.errors import ImageOpError
from cutout_viewer.image_engine.formats import ImageFormat, format_for_path
from cutout_viewer.image_engine.models import Axis, RasterImage, SelectionRange
from cutout_viewer.logger import CATS_ENV, LEVEL_ENV, LEVELS, get_logger
from cutout_viewer.ops.file_operations import format_file_size, get_file_size, read_bytes, save_image

# --- CLI logging options -----------------------------------------------------
# Logging options are parsed first and reflected in environment variables
# (CUTOUT_VIEWER_LOG_LEVEL, CUTOUT_VIEWER_LOG_CATS) so every logger created
# afterwards picks them up.


def _apply_cli_logging_options(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, _ = parser.parse_known_args(argv)
    if args.log_level:
        os.environ[LEVEL_ENV] = args.log_level
    if args.log_cats:
        os.environ[CATS_ENV] = args.log_cats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cutout-viewer", description="Cutout Viewer image tools")
    parser.add_argument("--log-level", type=str.lower, choices=sorted(LEVELS), help="Set log level")
    parser.add_argument("--log-cats", help="Comma-separated log categories to show")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("cutout", help="Remove a band of pixels and close the gap")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--axis", default="vertical", help="vertical (columns) or horizontal (rows)")
    p.add_argument("--start", type=float, required=True, help="Band start, 0..1")
    p.add_argument("--end", type=float, required=True, help="Band end, 0..1")
    p.add_argument("--format", default="", help="jpeg, png or webp (default: from output extension)")
    p.add_argument("--quality", type=int, default=95)

    p = sub.add_parser("resize", help="Downscale to fit within a bounding box")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--max-width", type=int, default=1920)
    p.add_argument("--max-height", type=int, default=1920)
    p.add_argument("--format", default="")
    p.add_argument("--quality", type=int, default=95)

    p = sub.add_parser("convert", help="Re-encode to another format")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--format", default="")
    p.add_argument("--quality", type=int, default=95)

    p = sub.add_parser("reduce", help="Re-encode as JPEG at a lower quality")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--quality", type=int, default=80)

    p = sub.add_parser("list", help="List images in a folder (or the folder of an image)")
    p.add_argument("path")

    p = sub.add_parser("info", help="Show image dimensions and file size")
    p.add_argument("path")

    return parser


def _load(path: str) -> RasterImage:
    return decode_bytes(read_bytes(path))


def _write(image: RasterImage, output: str, fmt_name: str, quality: int) -> str:
    fmt = ImageFormat.parse(fmt_name) if fmt_name else format_for_path(output)
    return save_image(transform.convert_format(image, fmt, quality), output)


def _run_command(args: argparse.Namespace) -> int:
    if args.command == "cutout":
        selection = SelectionRange(args.start, args.end, Axis.parse(args.axis)).ordered()
        image = _load(args.input)
        out = transform.cutout(image, selection)
        written = _write(out, args.output, args.format, args.quality)
        print(f"{written}: {image.width}x{image.height} -> {out.width}x{out.height}")
        return 0

    if args.command == "resize":
        image = _load(args.input)
        out = transform.resize(image, args.max_width, args.max_height)
        written = _write(out, args.output, args.format, args.quality)
        print(f"{written}: {image.width}x{image.height} -> {out.width}x{out.height}")
        return 0

    if args.command == "convert":
        written = _write(_load(args.input), args.output, args.format, args.quality)
        print(f"{written}: {format_file_size(get_file_size(written))}")
        return 0

    if args.command == "reduce":
        data = transform.reduce_file_size(_load(args.input), args.quality)
        written = save_image(data, args.output)
        before = format_file_size(get_file_size(args.input))
        print(f"{written}: {before} -> {format_file_size(len(data))}")
        return 0

    if args.command == "list":
        for entry in list_images_in_directory(args.path):
            print(f"{entry.path}\t{format_file_size(get_file_size(entry.path))}")
        return 0

    if args.command == "info":
        w, h = get_image_dimensions(read_bytes(args.path))
        print(f"{args.path}: {w}x{h} {format_for_path(args.path).value} {format_file_size(get_file_size(args.path))}")
        return 0

    return 2


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    if argv is None:
        argv = sys.argv

    _apply_cli_logging_options(list(argv[1:]))
    logger = get_logger("main")

    parser = _build_parser()
    args = parser.parse_args(argv[1:])

    try:
        return _run_command(args)
    except ImageOpError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    except ValueError as e:
        logger.error("invalid argument: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(run())
