import os
import sys
from pathlib import Path

from image_converter.dispatcher import ConversionRequest, run_conversion
from image_converter.errors import UnsupportedConversion
from image_converter.formats import OUTPUT_SUFFIXES, SUPPORTED_CONVERSIONS, parse_target
from image_converter.logger import get_logger
from image_converter.path_utils import abs_path, output_path_for

# --- CLI logging options -----------------------------------------------------
# To prevent Qt from exiting due to unknown options, we preemptively parse
# our own options, reflect them in environment variables (IMAGE_CONVERTER_LOG_LEVEL,
# IMAGE_CONVERTER_LOG_CATS), and remove them from argv.


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    import argparse

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv[1:])
    if args.log_level:
        os.environ["IMAGE_CONVERTER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["IMAGE_CONVERTER_LOG_CATS"] = args.log_cats
    return [argv[0], *remaining]


def _build_parser():
    import argparse

    targets = ", ".join(fmt.value for fmt in OUTPUT_SUFFIXES)
    parser = argparse.ArgumentParser(
        prog="image-converter",
        description="Convert images and PDF pages between JPEG, PNG and WebP.",
    )
    parser.add_argument("input", nargs="?", help="Input file (.jpg, .jpeg, .png, .webp, .pdf, .heic)")
    parser.add_argument("--to", dest="target", help=f"Convert headlessly to this format ({targets})")
    parser.add_argument("-o", "--output", help="Output file or existing folder (default: input folder)")
    parser.add_argument("--list", action="store_true", help="List supported conversions and exit")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    return parser


def _print_conversions() -> None:
    for source, targets in SUPPORTED_CONVERSIONS.items():
        print(f"{source.label:<5} -> {', '.join(t.label for t in targets)}")


def convert_headless(input_path: str, target_name: str, output: str | None = None) -> int:
    """Convert one file without the GUI. Returns a process exit code."""
    logger = get_logger("main")
    try:
        target = parse_target(target_name)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if output and not Path(output).is_dir():
        dst = abs_path(output)
    else:
        dst = output_path_for(input_path, target, output)

    try:
        request = ConversionRequest.for_paths(abs_path(input_path), dst, target)
    except UnsupportedConversion as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = run_conversion(request)
    if not result.ok:
        logger.error("conversion failed: %s", result.error)
        print(result.message, file=sys.stderr)
        return 1
    logger.info("converted %s -> %s (%dx%d)", input_path, result.output_path, result.width, result.height)
    print(result.message)
    return 0


def _default_settings_path() -> str:
    from PySide6.QtCore import QStandardPaths

    app_cfg = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppConfigLocation)
    if app_cfg:
        return (Path(app_cfg) / "image_converter" / "settings.json").as_posix()
    return (Path.home() / ".image_converter" / "settings.json").as_posix()


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    if argv is None:
        argv = sys.argv
    argv = _apply_cli_logging_options(list(argv))

    parser = _build_parser()
    args, qt_args = parser.parse_known_args(argv[1:])
    # Leftover options are only meant for Qt; headless modes reject them
    if qt_args and (args.list or args.target):
        parser.error(f"unrecognized arguments: {' '.join(qt_args)}")

    if args.list:
        _print_conversions()
        return 0
    if args.target:
        if not args.input:
            print("Error: an input file is required with --to", file=sys.stderr)
            return 2
        return convert_headless(args.input, args.target, args.output)

    from PySide6.QtWidgets import QApplication

    from image_converter.settings_manager import SettingsManager
    from image_converter.ui_converter import ConverterWindow

    app = QApplication([argv[0], *qt_args])
    settings = SettingsManager(_default_settings_path())
    window = ConverterWindow(settings)
    if args.output:
        window.output_edit.setText(args.output)
    if args.input:
        window.set_input_path(args.input)
    window.show()
    get_logger("main").debug("converter window shown")
    return app.exec()


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
