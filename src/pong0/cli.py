"""
Command-line interface for pong0.

Query mode (default) looks up one address and prints the record as JSON:

    pong0 --ip 1.1.1.1
    pong0 --x1 3ef12496741412ab807c60c346ded5e7 --diff 3ef --all

Server mode exposes the same lookup over HTTP:

    pong0 -c -p 8080 -k your_api_key
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import ManualChallenge, SystemConfig, load_config_from_env
from .enums import LogLevel
from .exceptions import Pong0Error
from .models import error_payload
from .orchestrator import QueryOrchestrator

USAGE_EXAMPLES = (
    "Examples:\n"
    "  server mode: pong0 -c -p 8080 -k your_api_key\n"
    "  query mode:  pong0 --ip 1.1.1.1"
)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pong0",
        description="Look up IP information on ping0.cc",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--ip",
        default="",
        help="IP address to query (default: the current IP)",
    )
    parser.add_argument(
        "--x1",
        default="",
        help="Manually specify the x1 challenge value",
    )
    parser.add_argument(
        "--diff",
        default="",
        help="Manually specify the difficulty value (default: first 3 characters of x1)",
    )
    parser.add_argument(
        "--all",
        dest="verbose",
        action="store_true",
        help="Print detailed logs",
    )
    parser.add_argument(
        "-c", "--server",
        action="store_true",
        help="Start the HTTP API server",
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help="API server port (default: 8080)",
    )
    parser.add_argument(
        "-k", "--api-key",
        default=None,
        help="API key required as 'Authorization: Bearer <key>'",
    )
    return parser


def validate_args(args: argparse.Namespace) -> Optional[str]:
    """Return an error message for invalid option combinations, else None."""
    if args.server and args.verbose:
        return "-c and --all cannot be used together"
    if not args.server and (args.port is not None or args.api_key):
        return "-p and -k can only be used in server mode (-c)"
    if args.diff and not args.x1:
        return "--diff requires --x1"
    return None


def apply_args(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Overlay command-line options on the environment configuration."""
    if args.verbose:
        config.logging.verbose = True
    if args.port is not None:
        config.server.port = args.port
    if args.api_key:
        config.server.api_key = args.api_key
    return config


def create_logger(config: SystemConfig) -> Optional[AuditLogger]:
    """Verbose runs log everything to stderr; quiet runs do not log."""
    if not config.logging.verbose:
        return None
    return AuditLogger(
        output_format=config.logging.output_format,
        min_level=LogLevel.DEBUG,
    )


async def run_query(
    config: SystemConfig,
    query_ip: Optional[str],
    manual: Optional[ManualChallenge],
    logger: Optional[AuditLogger] = None,
) -> int:
    """
    Run one query and print the result.

    Returns:
        Exit code (0 on success, 1 on failure)
    """
    async with QueryOrchestrator(config, logger=logger) as orchestrator:
        try:
            result = await orchestrator.query(query_ip, manual=manual)
        except Pong0Error as e:
            if config.logging.verbose:
                print(f"Failed to get IP information: {e.display_message}", file=sys.stderr)
            else:
                print(json.dumps(error_payload(e.display_message), ensure_ascii=False, indent=2))
            return 1

    print(result.record.to_json())
    return 0


def run_server_mode(config: SystemConfig, logger: Optional[AuditLogger] = None) -> int:
    from .server import is_port_available, run_server

    port = config.server.port
    if not is_port_available(port, config.server.host):
        print(
            f"Port {port} is already in use, choose another with -p",
            file=sys.stderr,
        )
        return 1

    print(f"pong0 v{__version__} server mode started, listening on port {port}")
    if config.server.api_key:
        print("API key authentication enabled")
    print("Server ready, press Ctrl+C to stop...")

    run_server(config, logger=logger)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    error = validate_args(args)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        print(USAGE_EXAMPLES, file=sys.stderr)
        return 1

    config = apply_args(load_config_from_env(), args)
    logger = create_logger(config)

    if args.server:
        return run_server_mode(config, logger)

    manual = ManualChallenge(x1=args.x1, difficulty=args.diff or None) if args.x1 else None
    return asyncio.run(run_query(
        config=config,
        query_ip=args.ip or None,
        manual=manual,
        logger=logger,
    ))


if __name__ == "__main__":
    sys.exit(main())
