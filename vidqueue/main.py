"""Main Entry Point for the video ingestion queue.

Usage:
    python -m vidqueue.main --serve                 # Run the HTTP server (port 8767)
    python -m vidqueue.main --serve --port 8080     # HTTP server on custom port
    python -m vidqueue.main --classify URL          # Print the URL classification
    python -m vidqueue.main --serve --verbose       # Enable debug logging
"""

import argparse
import asyncio
import json
import signal
import sys

from vidqueue.core.config import get_config
from vidqueue.core.logger import get_logger, setup_logging
from vidqueue.core.url_classifier import classify
from vidqueue.server import run_server

logger = get_logger(__name__)

# Shutdown event for graceful termination
_shutdown_event: asyncio.Event | None = None


async def serve(host: str, port: int) -> None:
    """Run the HTTP server until SIGTERM/SIGINT.

    The app's cleanup hooks wait for in-flight jobs and close the shared
    HTTP client before this returns.
    """
    global _shutdown_event
    _shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(sig: int) -> None:
        logger.info("Received signal %s, initiating graceful shutdown...", sig)
        if _shutdown_event:
            _shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: signal_handler(s))

    runner = await run_server(host=host, port=port)
    try:
        await _shutdown_event.wait()
    finally:
        await runner.cleanup()
        logger.info("Server shutdown complete")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="vidqueue",
        description="Queue TikTok and Instagram videos for scraping and ingestion.",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP server",
    )
    mode.add_argument(
        "--classify",
        metavar="URL",
        help="Print the JSON classification of URL and exit (1 if unsupported)",
    )

    parser.add_argument(
        "--host",
        default=None,
        metavar="HOST",
        help="Bind address for the HTTP server (default: from config)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        metavar="PORT",
        help="Port for the HTTP server (default: from config, 8767)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def main(args: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, 1 for errors, 2 for usage errors).
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.serve and parsed_args.classify is None:
        parser.print_help(sys.stderr)
        return 2

    # --classify never calls the Ingestion API, so the secret is optional
    try:
        config = get_config(require_secret=parsed_args.serve)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if parsed_args.verbose else config.log_level
    setup_logging(log_level)

    if parsed_args.classify is not None:
        classification = classify(parsed_args.classify)
        print(json.dumps(classification.to_dict(), indent=2))
        return 0 if classification.is_supported else 1

    host = parsed_args.host or config.host
    port = parsed_args.port or config.port
    logger.info("Running HTTP server on %s:%d", host, port)
    try:
        asyncio.run(serve(host, port))
    except KeyboardInterrupt:
        logger.info("Interrupted during startup")
    return 0


if __name__ == "__main__":
    sys.exit(main())
