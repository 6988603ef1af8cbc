"""Command-line interface for Soomer.

Entry point flow:
1. Parse arguments; introspection flags print and exit
2. Load and validate configuration
3. Capture one monitor (or the whole desktop)
4. Show it full-screen until the user quits
"""

import argparse
import atexit
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .capture import CaptureError, capture, capture_all, list_outputs
from .config import (
    Config,
    ConfigError,
    config_defaults,
    config_schema,
    config_to_dict,
    load_config,
    resolve_config_path,
    validate_config_file,
)
from .emit import EVENT_CATALOG, configure, emit, emit_error
from .image import CapturedImage

log = logging.getLogger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soomer",
        description="Freeze the screen and pan/zoom around the frozen frame",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Controls:
  Drag (left button)   Pan
  Scroll               Zoom around the cursor
  r                    Reset view
  c                    Reset zoom, keep the image centered
  s                    Save the frozen frame
  e                    Save a fresh full-desktop capture
  Esc / q              Quit

Examples:
  %(prog)s                 # Freeze the configured monitor
  %(prog)s --monitor 1     # Freeze the second monitor
  %(prog)s --all           # Freeze the whole desktop
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"soomer {__version__}",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )

    # Introspection
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-config-schema",
        action="store_true",
        help="Print configuration schema as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-event-catalog",
        action="store_true",
        help="Print event catalog as JSON and exit",
    )
    parser.add_argument(
        "--list-outputs",
        action="store_true",
        help="List outputs reported by the compositor and exit",
    )

    # What to capture
    capture_group = parser.add_mutually_exclusive_group()
    capture_group.add_argument(
        "--monitor",
        type=int,
        metavar="INDEX",
        help="Capture the output with this index (overrides monitor_index)",
    )
    capture_group.add_argument(
        "--all",
        action="store_true",
        help="Capture the whole desktop instead of a single output",
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not write structured events to stderr",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _emit_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _config_path(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.config).expanduser() if args.config else None


def _handle_introspection(args: argparse.Namespace) -> Optional[int]:
    config_path = _config_path(args)

    if args.print_defaults:
        _emit_json(config_defaults())
        return 0

    if args.print_config_schema:
        _emit_json(config_schema())
        return 0

    if args.validate_config:
        try:
            errors = validate_config_file(config_path)
        except ConfigError as e:
            errors = [str(e)]
        for error in errors:
            print(error, file=sys.stderr)
        return 1 if errors else 0

    if args.print_resolved:
        try:
            config = load_config(config_path=config_path, overrides={"monitor_index": args.monitor})
        except ConfigError as e:
            print(e, file=sys.stderr)
            return 1
        _emit_json(config_to_dict(config))
        return 0

    if args.print_event_catalog:
        _emit_json({
            "catalog": [
                {"event_type": name, "data_fields": fields}
                for name, fields in EVENT_CATALOG.items()
            ]
        })
        return 0

    if args.list_outputs:
        try:
            config = load_config(config_path=config_path)
        except ConfigError as e:
            print(e, file=sys.stderr)
            return 1
        _emit_json({"outputs": list_outputs(config)})
        return 0

    return None


def take_capture(config: Config, whole_desktop: bool) -> CapturedImage:
    """Capture the frame the viewer will show.

    Raises:
        CaptureError: If capture fails
    """
    if whole_desktop:
        image = capture_all(config)
        mode, index = "desktop", None
    else:
        image = capture(config.monitor_index, config)
        mode, index = "output", config.monitor_index

    emit("capture.completed", {
        "mode": mode,
        "monitor_index": index,
        "width": image.width,
        "height": image.height,
    })
    return image


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    result = _handle_introspection(parsed_args)
    if result is not None:
        return result

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    configure("soomer", stderr=not parsed_args.quiet)
    atexit.register(lambda: emit("shutdown", {}))

    config_path = _config_path(parsed_args)
    try:
        config = load_config(
            config_path=config_path,
            overrides={"monitor_index": parsed_args.monitor},
            strict=True,
        )
    except ConfigError as e:
        emit_error(e, "startup")
        log.error("Invalid configuration: %s", e)
        return 1

    emit("config.resolved", {
        "config_path": str(resolve_config_path(config_path)),
        "source": "cli" if config_path else "default",
    })

    try:
        image = take_capture(config, parsed_args.all)
    except CaptureError as e:
        emit_error(e, "startup")
        log.error("Capture failed: %s", e)
        return 1

    # GTK reads the backend when it is first imported
    os.environ.setdefault("GDK_BACKEND", "wayland")
    from .ui import DisplayError, run_viewer

    try:
        return run_viewer(config, image)
    except DisplayError as e:
        emit_error(e, "startup")
        log.error("Display failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
