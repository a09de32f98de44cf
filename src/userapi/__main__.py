"""
Command-line entry point.

    python -m userapi                         # defaults from the environment
    python -m userapi --port 3000
    python -m userapi --host 0.0.0.0 -w 8     # containers, 8 workers
    python -m userapi --seed ./users.json
    python -m userapi --log-format json

Every option falls back to the matching environment variable (see
ServerConfig.from_env), then to the built-in default.
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="userapi",
        description="User records REST API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  userapi                           # Run with defaults
  userapi --port 3000               # Custom port
  userapi --host 0.0.0.0            # Listen on all interfaces
  userapi --seed ./users.json       # Custom seed data
        """
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum worker threads (default: {defaults.max_workers})"
    )
    parser.add_argument(
        "--seed", "-s",
        default=defaults.seed_file,
        help="JSON file with the initial user records (default: bundled data/users.json)"
    )
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"userapi {__version__}"
    )
    return parser


def main(argv=None):
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(2)

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        min_workers=min(defaults.min_workers, args.workers),
        max_workers=args.workers,
        timeout=defaults.timeout,
        seed_file=args.seed,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        app = create_app(config)
        app.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
