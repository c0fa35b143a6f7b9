"""Command-line interface for the migration tool."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

import requests

from .models.migration import MigrationResult, MigrationSettings
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Package a WordPress site's database and files into one archive"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run migration locally
    run_parser = subparsers.add_parser("run", help="Export and archive a site")
    run_parser.add_argument("--root", default=".", help="Site root directory")
    run_parser.add_argument("--output-dir", help="Where to write the dump and archive (default: root)")
    run_parser.add_argument("--config", help="Path to JSON settings file")
    run_parser.add_argument("--keep-dump", action="store_true", help="Keep database.sql next to the archive")
    run_parser.add_argument("--exclude", action="append", default=[], help="Glob of paths to leave out (repeatable)")
    run_parser.add_argument("--no-external", action="store_true", help="Skip mysqldump and WP-CLI")
    run_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Serve the web trigger
    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Trigger a remote site
    remote_parser = subparsers.add_parser("remote", help="Run a migration on a remote site and download it")
    remote_parser.add_argument("--url", required=True, help="Base URL of the remote easymig API")
    remote_parser.add_argument("--username", default="admin", help="Admin username")
    remote_parser.add_argument("--password", help="Admin password (default: $EASYMIG_PASSWORD)")
    remote_parser.add_argument("--output-dir", default=".", help="Where to save the archive")
    remote_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command == "run":
        return run_migration(args)
    elif args.command == "serve":
        return run_server(args)
    elif args.command == "remote":
        return run_remote(args)
    else:
        parser.print_help()
        return 2


def build_settings(args) -> MigrationSettings:
    """Combine the optional JSON settings file with command-line overrides."""
    data = {}
    if args.config:
        with open(args.config) as f:
            data = json.load(f)

    settings = MigrationSettings.from_dict(data)
    if args.root != "." or "root" not in data:
        settings.root = args.root
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.keep_dump:
        settings.keep_dump = True
    if args.exclude:
        settings.exclude_patterns.extend(args.exclude)
    if args.no_external:
        settings.external_tools = []
    return settings


def print_result(result: MigrationResult):
    """Print a human-readable summary."""
    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" if result.succeeded else "MIGRATION FAILED")
    print("=" * 60)
    for message in result.log_messages:
        print(f"  {message}")
    for message in result.error_messages:
        print(f"  ! {message}")
    print(f"Status: {result.status.value}")
    if result.archive:
        print(f"Archive: {result.archive.path} ({result.archive.size} bytes, "
              f"{result.archive.entry_count} entries)")


def run_migration(args) -> int:
    """Run a migration against a local site root."""
    settings = build_settings(args)
    orchestrator = MigrationOrchestrator(settings)
    result = orchestrator.run()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_result(result)
    return 0 if result.succeeded else 1


def run_server(args) -> int:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("easymig.api.main:app", host=args.host, port=args.port)
    return 0


def run_remote(args) -> int:
    """Trigger a remote migration and download the archive."""
    from .client import MigrationClient

    password = args.password or os.environ.get("EASYMIG_PASSWORD")
    if not password:
        print("A password is required (--password or EASYMIG_PASSWORD)")
        return 2

    client = MigrationClient(args.url, args.username, password)
    try:
        result, archive = client.migrate(Path(args.output_dir))
    except requests.RequestException as e:
        logger.error(f"Remote migration failed: {e}")
        return 1

    for message in result.get("logs", []):
        print(f"  {message}")
    for message in result.get("errors", []):
        print(f"  ! {message}")
    if archive:
        print(f"Archive saved to {archive}")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
