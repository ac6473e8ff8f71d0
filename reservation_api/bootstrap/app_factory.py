"""Application factory module.

Provides the create_app() factory used by ASGI servers that import the app
directly instead of going through ``python -m reservation_api``.
"""

from fastapi import FastAPI
from loguru import logger

from reservation_api.bootstrap.gateway import GatewayBootstrap
from reservation_api.core.exceptions import DataStoreConnectionError
from reservation_api.core.logging import setup_logging


def terminate_process(error: DataStoreConnectionError) -> None:
    """Fail fast: without the data store the API cannot serve correct responses."""
    logger.critical(f"Terminating: {error}")
    raise SystemExit(1)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    setup_logging()
    return GatewayBootstrap(on_fatal=terminate_process).create_app()
