"""Entry point: python -m autostatus [--socket PATH] [--port PORT]."""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from autostatus.config.settings import get_settings
from autostatus.gateway.app import connect_and_serve
from autostatus.infra.errors import ConfigurationError
from autostatus.infra.logging import setup_logging

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="autostatus",
        description="Auto build status skill: serves one host socket channel.",
    )
    parser.add_argument("--socket", help="Unix socket path of the host (CHANNEL_SOCKET_PATH)")
    parser.add_argument("--port", type=int, help="Memory store HTTP port (MEMORY_PORT)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (LOG_LEVEL)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    if args.socket:
        settings.channel.socket_path = args.socket
    if args.port is not None:
        settings.memory.port = args.port
    if args.log_level:
        settings.logging.level = args.log_level.upper()

    setup_logging(json_output=settings.logging.json_output, log_level=settings.logging.level)

    try:
        asyncio.run(connect_and_serve(settings))
    except ConfigurationError as e:
        logger.error("startup_failed", code=e.code, error=str(e))
        return 1
    except OSError as e:
        logger.error("socket_error", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
