"""Command line entry point: ``python -m meishi_exchange``."""

import argparse
import sys

import uvicorn

from .config import config_manager, get_config
from .utils.logging_config import get_logger, initialize_logging


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Meishi Exchange API server")
    parser.add_argument("--host", help="Interface to bind (default from config)")
    parser.add_argument("--port", type=int, help="Port to listen on (default from config)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate configuration and exit",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = get_config()
    initialize_logging(debug=args.debug)
    logger = get_logger("main")

    issues = config_manager.validate_config()
    for issue in issues:
        logger.warning(f"Configuration issue: {issue}")
    if args.check_config:
        return 1 if issues else 0

    host = args.host or config.server.host
    port = args.port or config.server.port
    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        "meishi_exchange.main:app",
        host=host,
        port=port,
        log_level="debug" if args.debug else "info",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
