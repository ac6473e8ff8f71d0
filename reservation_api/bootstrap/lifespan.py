"""Application lifecycle management.

Startup only schedules the data-store connection; the listener is not gated
on it. Shutdown closes the connection exactly once.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    gateway = app.state.gateway
    try:
        gateway.start()
        logger.info("Application started")
        yield
    except Exception as e:
        logger.error(f"Application lifecycle error: {e}")
        raise
    finally:
        await gateway.shutdown()
