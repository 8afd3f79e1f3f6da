#!/usr/bin/env python3
"""
Media Art Cache - Command Line Interface

Inspect and populate the shared media art cache: normalize names, resolve
cache paths, process media files and remove cached art.
"""

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from .. import __version__
from ..collaborators.storage import StaticStorage
from ..core.config_manager import MediaArtConfig, get_config_manager
from ..core.models import ArtAction, MediaArtType, ReconcileResult
from ..core.normalizer import strip_invalid_entities
from ..core.processor import MediaArtProcess
from ..metadata.embedded_art import extract_embedded_art, read_media_tags
from ..utils.error_handler import handle_user_error


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper())

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="media-art",
        description="Shared media art cache for albums and videos",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Media Art Cache v{__version__}"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Configuration file path (JSON format)"
    )

    parser.add_argument(
        "--cache-dir",
        type=str,
        help="Base directory of the cache (default: $XDG_CACHE_HOME)"
    )

    parser.add_argument(
        "--max-width",
        type=int,
        help="Scale stored art down to this width (0 keeps the original size)"
    )

    parser.add_argument(
        "--max-workers",
        type=int,
        help="Maximum number of worker threads"
    )

    parser.add_argument(
        "--no-download",
        action="store_true",
        help="Never ask the download service for missing art"
    )

    parser.add_argument(
        "--no-removable",
        action="store_true",
        help="Disable removable media detection and sidecar copies"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path"
    )

    parser.add_argument(
        "--verbose-errors",
        action="store_true",
        help="Show technical details for errors"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    strip_parser = subparsers.add_parser("strip", help="Normalize a name the way cache keys are derived")
    strip_parser.add_argument("text", help="Artist or title to normalize")

    path_parser = subparsers.add_parser("path", help="Show the cache path for an artist/title")
    _add_entity_arguments(path_parser)
    path_parser.add_argument("--uri", help="Related media file, to also show the sidecar URI")

    process_parser = subparsers.add_parser("process", help="Bring cached art up to date for media files")
    process_parser.add_argument("media", nargs="+", help="Media files or file:// URIs")
    _add_entity_arguments(process_parser)
    process_parser.add_argument("--image", type=str, help="Image file to use instead of searching")
    process_parser.add_argument("--embedded", action="store_true",
                                help="Use art embedded in the media file when present")
    process_parser.add_argument("--force", action="store_true", help="Ignore cached art timestamps")

    remove_parser = subparsers.add_parser("remove", help="Remove cached art for an artist and album")
    remove_parser.add_argument("--artist", required=True, help="Artist name")
    remove_parser.add_argument("--album", help="Album title")
    remove_parser.add_argument(
        "--type",
        choices=["album", "video"],
        default="album",
        help="Media art type (default: album)"
    )

    extract_parser = subparsers.add_parser("extract", help="Show tags and embedded art of a media file")
    extract_parser.add_argument("media", help="Audio file")
    extract_parser.add_argument("-o", "--output", type=str, help="Write the embedded image to this file")

    return parser


def _add_entity_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--artist", help="Artist name")
    parser.add_argument("--title", help="Album or video title")
    parser.add_argument(
        "--type",
        choices=["album", "video"],
        default="album",
        help="Media art type (default: album)"
    )


def _load_config(args: argparse.Namespace) -> Optional[MediaArtConfig]:
    """Load and validate configuration from CLI arguments."""
    config_manager = get_config_manager()

    cli_overrides: Dict[str, Dict] = {}
    if args.cache_dir:
        cli_overrides.setdefault('cache', {})['cache_dir'] = args.cache_dir
    if args.max_width is not None:
        cli_overrides.setdefault('codec', {})['max_width'] = args.max_width
    if args.max_workers is not None:
        cli_overrides.setdefault('processing', {})['max_workers'] = args.max_workers
    if args.no_download:
        cli_overrides.setdefault('download', {})['enabled'] = False
    if args.no_removable:
        cli_overrides.setdefault('storage', {}).update(detect_removable=False, copy_to_removable=False)
    cli_overrides.setdefault('ui', {}).update(log_level=args.log_level, verbose_errors=args.verbose_errors)

    # An absolute path replaces the project config directory lookup
    project_config = str(Path(args.config).resolve()) if args.config else None

    config = config_manager.load_config(project_config=project_config, cli_overrides=cli_overrides)

    issues = config_manager.validate_config(config)
    if issues:
        for issue in issues:
            print(f"Configuration issue: {issue}", file=sys.stderr)
        return None

    return config


def run_strip(args: argparse.Namespace, console: Console) -> int:
    console.print(strip_invalid_entities(args.text), soft_wrap=True, markup=False, highlight=False)
    return 0


def run_path(args: argparse.Namespace, config: MediaArtConfig, console: Console) -> int:
    if args.artist is None and args.title is None:
        print("Error: --artist or --title is required", file=sys.stderr)
        return 2

    process = MediaArtProcess(config, storage=_storage_for(config))
    cache_path, local_uri = process.get_path(args.artist, args.title, args.type, args.uri)

    console.print(str(cache_path), soft_wrap=True, markup=False, highlight=False)
    if local_uri:
        console.print(local_uri, soft_wrap=True, markup=False, highlight=False)
    return 0


def _storage_for(config: MediaArtConfig):
    """Static empty storage when removable detection is off, else None (auto)"""
    if config.storage.detect_removable:
        return None
    return StaticStorage()


def _request_for(media: str, args: argparse.Namespace) -> Dict:
    """Build process_file keyword arguments for one media file"""
    artist, title = args.artist, args.title

    if artist is None or title is None:
        tags = read_media_tags(media)
        if artist is None:
            artist = tags["artist"]
        if title is None:
            title = tags["album"] if args.type == "album" else tags["title"]

    data = mime = None
    if args.image:
        data = Path(args.image).read_bytes()
        mime = mimetypes.guess_type(args.image)[0]
    elif args.embedded:
        art = extract_embedded_art(media)
        if art is not None:
            data, mime = art.data, art.mime

    return {
        "art_type": MediaArtType.from_name(args.type),
        "artist": artist,
        "title": title,
        "data": data,
        "mime": mime,
        "force": args.force,
    }


def run_process(args: argparse.Namespace, config: MediaArtConfig, console: Console) -> int:
    verbose = config.ui.verbose_errors
    exit_code = 0
    rows: List[List[str]] = []

    with MediaArtProcess(config, storage=_storage_for(config)) as process:
        futures = []
        for media in args.media:
            try:
                futures.append((media, process.submit(media, **_request_for(media, args))))
            except (OSError, ValueError) as e:
                print(handle_user_error(e, {"file_path": media}, verbose), file=sys.stderr)
                exit_code = 1

        for media, future in futures:
            try:
                result: ReconcileResult = future.result()
            except Exception as e:
                print(handle_user_error(e, {"file_path": media}, verbose), file=sys.stderr)
                exit_code = 1
                continue

            if result.action is ArtAction.FAILED:
                exit_code = 1
            rows.append([media, result.action.value, str(result.path or ""),
                         str(result.error) if result.error else ""])

    if rows:
        table = Table(title="Media Art")
        table.add_column("Media", overflow="fold")
        table.add_column("Action")
        table.add_column("Cache path", overflow="fold")
        table.add_column("Error", overflow="fold")
        for row in rows:
            table.add_row(*row)
        console.print(table)

    return exit_code


def run_remove(args: argparse.Namespace, config: MediaArtConfig, console: Console) -> int:
    process = MediaArtProcess(config, storage=_storage_for(config))
    removed = process.remove(args.artist, args.album, MediaArtType.from_name(args.type))

    if not removed:
        console.print("Nothing to remove", markup=False)
    for path in removed:
        console.print(f"Removed {path}", soft_wrap=True, markup=False, highlight=False)
    return 0


def run_extract(args: argparse.Namespace, console: Console) -> int:
    if not Path(args.media).exists():
        print(f"Error: {args.media} does not exist", file=sys.stderr)
        return 1

    tags = read_media_tags(args.media)
    art = extract_embedded_art(args.media)

    table = Table(title=Path(args.media).name)
    table.add_column("Field")
    table.add_column("Value", overflow="fold")
    for key in ("artist", "album", "title"):
        table.add_row(key, tags[key] or "")
    table.add_row("embedded art", f"{len(art.data)} bytes ({art.mime or 'unknown'})" if art else "none")
    console.print(table)

    if args.output:
        if art is None:
            print("Error: no embedded art to write", file=sys.stderr)
            return 1
        Path(args.output).write_bytes(art.data)
        console.print(f"Wrote {args.output}", soft_wrap=True, markup=False, highlight=False)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)
    logger = logging.getLogger(__name__)

    console = Console()

    try:
        if args.command == "strip":
            return run_strip(args, console)
        if args.command == "extract":
            return run_extract(args, console)

        config = _load_config(args)
        if config is None:
            return 1
        if not config.ui.color_output:
            console = Console(no_color=True)

        if args.command == "path":
            return run_path(args, config, console)
        elif args.command == "process":
            return run_process(args, config, console)
        elif args.command == "remove":
            return run_remove(args, config, console)
        else:
            print(f"Error: Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(handle_user_error(e, verbose=args.verbose_errors), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
