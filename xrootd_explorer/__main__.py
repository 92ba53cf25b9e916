"""
xrootd-explorer - Main Entry Point

This module provides the CLI interface and wires up all components to run
one read-only query against a remote XRootD (or SFTP) data area and print
the result as JSON.
"""

import argparse
import json
import logging
import sys
from datetime import datetime

from .config import load_config
from .errors import ExplorerError
from .explorer import XRootDExplorer
from .logger import setup_logging
from .models import local_time

logger = logging.getLogger(__name__)


def _iso_datetime(value: str) -> datetime:
    try:
        return local_time(datetime.fromisoformat(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}")


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="xrootd-explorer",
        description="xrootd-explorer - Read-only queries over a remote XRootD data area",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  xrootd-explorer --server root://dtn-eic.jlab.org --base-dir /volatile/eic/EPIC ls RECO
  xrootd-explorer --config explorer.ini search "*.root" --path RECO/24.10.0
  xrootd-explorer --config explorer.ini summary EVGEN --hours 48 --limit 20
  xrootd-explorer --config explorer.ini datasets 24.10.0
        """,
    )
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--server", help="XRootD server URL (e.g. root://host)")
    parser.add_argument("--base-dir", help="Directory to confine all access to")
    parser.add_argument(
        "--protocol", choices=["xrootd", "sftp"], default=None, help="Transport (default: xrootd)"
    )
    parser.add_argument("--host", help="SSH host (SFTP only)")
    parser.add_argument("--user", help="SSH username (SFTP only)")
    parser.add_argument("--key-file", help="Path to SSH private key (SFTP only)")
    parser.add_argument("--no-cache", action="store_true", help="Disable the listing cache")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Query to run")

    ls_parser = subparsers.add_parser("ls", help="List a directory")
    ls_parser.add_argument("path", nargs="?", default=".")

    info_parser = subparsers.add_parser("info", help="Show metadata for a path")
    info_parser.add_argument("path")

    cat_parser = subparsers.add_parser("cat", help="Write file content to stdout")
    cat_parser.add_argument("path")
    cat_parser.add_argument("--start", type=int, help="First byte to read")
    cat_parser.add_argument("--end", type=int, help="Byte to stop before")

    exists_parser = subparsers.add_parser("exists", help="Check whether a path exists")
    exists_parser.add_argument("path")

    size_parser = subparsers.add_parser("size", help="Total size of a directory tree")
    size_parser.add_argument("path", nargs="?", default=".")

    search_parser = subparsers.add_parser("search", help="Find files by glob or regex")
    search_parser.add_argument("pattern")
    search_parser.add_argument("--path", default=".", help="Directory to search from")
    search_parser.add_argument("--no-recursive", action="store_true", help="Search one level")
    search_parser.add_argument("--regex", action="store_true", help="Pattern is a regex")

    stats_parser = subparsers.add_parser("stats", help="Statistics for a directory tree")
    stats_parser.add_argument("path", nargs="?", default=".")
    stats_parser.add_argument("--no-recursive", action="store_true", help="Top level only")

    filter_parser = subparsers.add_parser("filter", help="List a directory with filters")
    filter_parser.add_argument("path", nargs="?", default=".")
    filter_parser.add_argument("--extension", help="Filename suffix, e.g. .root")
    filter_parser.add_argument("--min-size", type=int, help="Minimum size in bytes")
    filter_parser.add_argument("--max-size", type=int, help="Maximum size in bytes")
    filter_parser.add_argument("--modified-after", type=_iso_datetime, help="ISO date")
    filter_parser.add_argument("--modified-before", type=_iso_datetime, help="ISO date")
    filter_parser.add_argument("--name", dest="name_pattern", help="Filename glob")

    recent_parser = subparsers.add_parser("recent", help="Files modified recently")
    recent_parser.add_argument("path", nargs="?", default=".")
    recent_parser.add_argument("--hours", type=float, default=24)
    recent_parser.add_argument("--no-recursive", action="store_true", help="Top level only")

    summary_parser = subparsers.add_parser("summary", help="Summarize recent changes")
    summary_parser.add_argument("path", nargs="?", default=".")
    summary_parser.add_argument("--hours", type=float, default=24)
    summary_parser.add_argument("--limit", type=int, default=None, help="Newest files to show")

    campaigns_parser = subparsers.add_parser("campaigns", help="List reconstruction campaigns")
    campaigns_parser.add_argument("--reco-path", default="RECO")

    datasets_parser = subparsers.add_parser("datasets", help="List datasets of a campaign")
    datasets_parser.add_argument("campaign")
    datasets_parser.add_argument("--reco-path", default="RECO")

    return parser.parse_args(argv)


def run_command(explorer: XRootDExplorer, args):
    """Dispatch a parsed command to the explorer and return a JSON-ready value."""
    command = args.command
    if command == "ls":
        return [e.to_dict() for e in explorer.list_directory(args.path)]
    if command == "info":
        return explorer.get_file_info(args.path).to_dict()
    if command == "exists":
        return {"path": args.path, "exists": explorer.file_exists(args.path)}
    if command == "size":
        return {"path": args.path, "size": explorer.get_directory_size(args.path)}
    if command == "search":
        results = explorer.search_files(
            args.pattern, args.path, recursive=not args.no_recursive, use_regex=args.regex
        )
        return [r.to_dict() for r in results]
    if command == "stats":
        return explorer.get_statistics(args.path, recursive=not args.no_recursive).to_dict()
    if command == "filter":
        entries = explorer.list_directory_filtered(
            args.path,
            extension=args.extension,
            min_size=args.min_size,
            max_size=args.max_size,
            modified_after=args.modified_after,
            modified_before=args.modified_before,
            name_pattern=args.name_pattern,
        )
        return [e.to_dict() for e in entries]
    if command == "recent":
        results = explorer.find_recent_files(
            args.path, hours=args.hours, recursive=not args.no_recursive
        )
        return [r.to_dict() for r in results]
    if command == "summary":
        summary = explorer.summarize_recent_changes(args.path, hours=args.hours)
        return summary.to_dict(limit=args.limit)
    if command == "campaigns":
        return [c.to_dict() for c in explorer.list_campaigns(args.reco_path)]
    if command == "datasets":
        return explorer.discover_datasets(args.campaign, args.reco_path).to_dict()
    raise ValueError(f"Unknown command: {command}")


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    if args.command is None:
        print("Usage: xrootd-explorer [options] <command> [args]")
        print("Run 'xrootd-explorer --help' for the list of commands.")
        return 1

    try:
        config = load_config(
            config_path=args.config,
            server=args.server,
            base_directory=args.base_dir,
            protocol=args.protocol,
            host=args.host,
            username=args.user,
            key_file=args.key_file,
            no_cache=args.no_cache,
            debug=args.verbose,
        )
    except (ValueError, FileNotFoundError) as e:
        print(f"[ERROR] Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)
    from . import __version__

    logger.debug("Starting xrootd-explorer v%s", __version__)

    explorer = None
    try:
        explorer = XRootDExplorer.from_config(config, start_janitor=False)
        explorer.client.connect()

        if args.command == "cat":
            data = explorer.read_file(args.path, args.start, args.end)
            sys.stdout.buffer.write(data)
            sys.stdout.flush()
            return 0

        result = run_command(explorer, args)
        print(json.dumps(result, indent=2))
        return 0

    except ExplorerError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1
    except (ConnectionError, PermissionError, TimeoutError) as e:
        logger.error("Could not reach the remote service: %s", e)
        print(f"[ERROR] Could not reach the remote service: {e}", file=sys.stderr)
        return 1
    finally:
        if explorer is not None:
            explorer.close()
            try:
                explorer.client.disconnect()
            except OSError as e:
                logger.warning("Error disconnecting: %s", e)


if __name__ == "__main__":
    sys.exit(main() or 0)
