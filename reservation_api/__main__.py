"""
Reservation API entry point.

Runs the gateway under uvicorn and exits with the code chosen by the
bootstrap: 0 after a signal-driven shutdown, 1 on a fatal startup error.
"""

import asyncio

from loguru import logger

from reservation_api.bootstrap.gateway import GatewayBootstrap
from reservation_api.core.exceptions import StartupError
from reservation_api.core.logging import setup_logging


def main():
    setup_logging()
    bootstrap = GatewayBootstrap()

    try:
        exit_code = asyncio.run(bootstrap.serve())
    except StartupError as e:
        logger.error(f"Startup failed: {e}")
        raise SystemExit(1)

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
