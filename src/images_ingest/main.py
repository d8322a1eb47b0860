"""Main module for the images ingest CLI."""

import sys
import argparse
import mimetypes
from pathlib import Path
from typing import Any, Dict

from .core import ConfigurationError, UploadedFile, load_config_file
from .core.factories import IngestPipelineFactory, LoggerFactory


def parse_size_option(value: str) -> Dict[str, Any]:
    """Parse ``SUFFIX:WIDTHxHEIGHT`` (either dimension may be empty)."""
    try:
        suffix, dimensions = value.split(":", 1)
        width, height = dimensions.lower().split("x", 1)
        return {
            "suffix": suffix,
            "width": int(width) if width else None,
            "height": int(height) if height else None,
        }
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid size '{value}', expected SUFFIX:WIDTHxHEIGHT"
        )


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge the config file (if any) with explicit command-line options."""
    overrides: Dict[str, Any] = {}
    if args.config:
        overrides.update(load_config_file(args.config))
    if args.location:
        overrides["location"] = args.location.rstrip("/") + "/"
    if args.output:
        overrides["output"] = args.output
    if args.size:
        overrides["sizes"] = args.size
    if args.processor:
        overrides["processor"] = args.processor
    return overrides


def run_ingest(args: argparse.Namespace) -> int:
    """Feed a local file through the pipeline as if it had been uploaded."""
    source = Path(args.path)
    if not source.is_file():
        print(f"error: {source} is not a file", file=sys.stderr)
        return 1

    try:
        overrides = build_overrides(args)
        logger = LoggerFactory.create_logger(
            "images-ingest", level="DEBUG" if args.debug else None
        )
        pipeline = IngestPipelineFactory.create_pipeline(
            config_overrides=overrides, logger=logger
        )
    except ConfigurationError as e:
        print(f"{e.code}: {e.message}", file=sys.stderr)
        return 1

    content_type = mimetypes.guess_type(source.name)[0] or "application/octet-stream"

    with open(source, "rb") as stream:
        upload = UploadedFile(
            field_name=pipeline.config.field,
            filename=source.name,
            content_type=content_type,
            stream=stream,
        )
        result = pipeline.run([upload])

    if not result.succeeded:
        error = result.error
        field = f" ({error.field})" if getattr(error, "field", None) else ""
        print(f"{error.code}: {error.message}{field}", file=sys.stderr)
        return 1

    for variant in sorted(result.variants):
        print(variant)
    return 0


def main() -> None:
    """
    Entry point for the command-line interface (CLI) of images ingest.

    Commands:
        ingest   run one local file through upload, transform and cleanup
        version  print version information
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="images-ingest",
        description="Images Ingest - stage an upload and derive resized variants",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Derive the default 500x500 "lg" variant
  images-ingest ingest photo.jpg --location /tmp/uploads/

  # Two sizes, PNG output, options from a JSON file
  images-ingest ingest photo.png --config ingest.json \\
                       --size lg:800x800 --size sm:200x200 --output png

  # Show version
  images-ingest version
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    ingest_parser: argparse.ArgumentParser = subparsers.add_parser(
        "ingest", help="Ingest a local image file"
    )
    ingest_parser.add_argument("path", help="Image file to ingest")
    ingest_parser.add_argument(
        "--config", default=None, help="JSON file with configuration overrides"
    )
    ingest_parser.add_argument(
        "--location", default=None, help="Base storage directory"
    )
    ingest_parser.add_argument(
        "--output", default=None, help="Output file type (jpg, png, webp, ...)"
    )
    ingest_parser.add_argument(
        "--size",
        type=parse_size_option,
        action="append",
        default=None,
        help="Output size as SUFFIX:WIDTHxHEIGHT (repeatable)",
    )
    ingest_parser.add_argument(
        "--processor",
        type=str,
        default=None,
        choices=["serial", "multithread"],
        help="Variant fan-out strategy (default: multithread)",
    )
    ingest_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    subparsers.add_parser("version", help="Show version information")

    args: argparse.Namespace = parser.parse_args()

    if args.command == "ingest":
        sys.exit(run_ingest(args))

    elif args.command == "version":
        print("Images Ingest CLI")
        print("Version 0.1.0")
        print("Upload staging, multi-variant resize and cleanup")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
