"""Command line entry point.

    python -m ddx_viewer convert texture.ddx -o out/ -f png
    python -m ddx_viewer sweep
    python -m ddx_viewer formats
    python -m ddx_viewer view texture.ddx
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from .config import ViewerConfig, default_settings_path
from .conversion import formats
from .conversion.errors import ConfigurationError, ExitCodes, ValidationError
from .conversion.results import ConversionRequest
from .logger import get_logger
from .services import Services, build_services
from .settings_manager import SettingsManager

_logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ddx-viewer", description="Convert and view DirectX textures")
    parser.add_argument("--settings", help="Path to settings.json")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories (comma separated)")
    sub = parser.add_subparsers(dest="command")

    p_convert = sub.add_parser("convert", help="Convert a texture with the external converter")
    p_convert.add_argument("source")
    p_convert.add_argument("-o", "--output-dir", help="Output directory (default: temp root)")
    p_convert.add_argument("-f", "--format", default="png", help="Target format (default: png)")

    p_sweep = sub.add_parser("sweep", help="Delete generated artifacts that are not in use")
    p_sweep.add_argument("directory", nargs="?", help="Directory to sweep (default: temp root)")
    p_sweep.add_argument("--pattern", help="Glob pattern (default from settings)")

    sub.add_parser("formats", help="List supported formats")

    p_view = sub.add_parser("view", help="Open the viewer window")
    p_view.add_argument("path", nargs="?")
    return parser


def _apply_logging_options(args: argparse.Namespace) -> None:
    if args.log_level:
        os.environ["DDX_VIEWER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["DDX_VIEWER_LOG_CATS"] = args.log_cats


def load_config(settings_path: str | None) -> ViewerConfig:
    path = Path(settings_path) if settings_path else default_settings_path()
    return ViewerConfig.from_settings(SettingsManager(str(path)))


def _cmd_formats() -> int:
    for desc in formats.target_formats():
        print(f"{desc.tag.name:<5} .{desc.extension}")
    return ExitCodes.SUCCESS


def _cmd_convert(services: Services, args: argparse.Namespace) -> int:
    output_dir = args.output_dir or services.config.temp_dir
    request = ConversionRequest.create(args.source, output_dir, args.format)
    try:
        result = services.converter.convert(request)
    except ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return ExitCodes.INVALID_ARGUMENT
    if not result.ok:
        print(f"error: {result.diagnostic}", file=sys.stderr)
        return ExitCodes.CONVERSION_ERROR
    print(result.artifact)
    return ExitCodes.SUCCESS


def _cmd_sweep(services: Services, args: argparse.Namespace) -> int:
    directory = args.directory or services.config.temp_dir
    pattern = args.pattern or services.config.artifact_pattern
    report = services.sweeper.sweep(directory, pattern)
    print(f"deleted {len(report.deleted)}, in use {len(report.skipped_in_use)}, errors {len(report.errors)}")
    return ExitCodes.SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _apply_logging_options(args)

    if args.command == "formats":
        return _cmd_formats()
    if args.command == "view":
        from .main import run

        return run(args.path, settings_path=args.settings)
    if args.command not in ("convert", "sweep"):
        build_parser().print_help()
        return ExitCodes.INVALID_ARGUMENT

    try:
        services = build_services(load_config(args.settings))
    except ConfigurationError as exc:
        _logger.error("%s", exc)
        return ExitCodes.MISSING_DEPENDENCY
    try:
        if args.command == "convert":
            return _cmd_convert(services, args)
        return _cmd_sweep(services, args)
    except ConfigurationError as exc:
        # Converter could not be provisioned: no recovery without operator action.
        _logger.error("%s", exc)
        return ExitCodes.MISSING_DEPENDENCY
    finally:
        services.close()
