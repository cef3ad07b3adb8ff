"""Main entry point for the shared calendar server."""

import asyncio
import sys
from typing import Optional

import structlog
import uvicorn

from .api.app import create_app
from .config.loader import ConfigurationError, load_config
from .utils.logging_config import setup_logging


async def serve(config_path: Optional[str] = None) -> None:
    """Load configuration and run the server until interrupted."""
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        # Refuse to start without an admin password or with invalid settings
        setup_logging()
        structlog.get_logger(__name__).critical("FATAL: invalid configuration", error=str(e))
        sys.exit(1)

    setup_logging(config.log_level, config.log_file, config.json_logs)
    logger = structlog.get_logger(__name__)

    app = create_app(config)
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        log_config=None,
        reload=False,
        # Protocol-level ping/pong; a peer missing a pong is closed within two intervals
        ws="websockets",
        ws_ping_interval=config.sweep_interval,
        ws_ping_timeout=config.sweep_interval
    ))

    logger.info("Starting shared calendar server", host=config.host, port=config.port)
    try:
        await server.serve()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        raise


def main() -> None:
    """Console script entry point; optional argument is the YAML config path."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    asyncio.run(serve(config_path))


if __name__ == "__main__":
    main()
