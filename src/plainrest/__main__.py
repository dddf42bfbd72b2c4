"""
Command-line entry point.

    python -m plainrest
    python -m plainrest --port 9000 --workers 16 --log-format json
    REST_PORT=9000 python -m plainrest --no-seed

Flags override REST_* environment variables, which override defaults.
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plainrest",
        description="REST API server built on raw sockets and a middleware chain",
    )
    parser.add_argument("--host", help="Address to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument("--workers", type=int, help="Worker threads (default: 8)")
    parser.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper)
    parser.add_argument("--log-format", choices=LOG_FORMATS)
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Start with empty stores instead of example records",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    config = ServerConfig.from_env()
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.workers = args.workers
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    if args.no_seed:
        config.seed_data = False
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except ValueError as e:
        print(f"plainrest: configuration error: {e}", file=sys.stderr)
        return 2

    create_app(config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
