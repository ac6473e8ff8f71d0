"""Gateway bootstrap.

Composes the request pipeline, owns the data-store connection manager and
drives the process lifecycle:

    starting -> listening -> shutting_down -> terminated

A failed data-store connection is fatal. It is recorded in ``fatal_error`` and
``exit_code`` and the server is asked to stop, so ``serve()`` returns a
non-zero exit code instead of terminating the interpreter itself.
"""

import asyncio
import signal
from enum import Enum
from typing import Callable, Iterable

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware import Middleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from reservation_api.api import diagnostics
from reservation_api.bootstrap.lifespan import lifespan
from reservation_api.bootstrap.pipeline import Pipeline, Stage, StageKind
from reservation_api.bootstrap.routes import RouteCollaborator, default_collaborators
from reservation_api.bootstrap.server import GatewayServer, port_available, uvicorn_log_config
from reservation_api.core.config import Settings, settings as default_settings
from reservation_api.core.cors import CorsPolicy, CorsPolicyEngine
from reservation_api.core.exceptions import (
    DataStoreConnectionError,
    DiagnosticsMode,
    ErrorNormalizer,
    StartupError,
    http_exception_handler,
    validation_exception_handler,
)
from reservation_api.infrastructure.middleware import (
    BodyLimitMiddleware,
    CorsMiddleware,
    ErrorNormalizerMiddleware,
    PreflightMiddleware,
)
from reservation_api.infrastructure.mongo import ConnectionManager, ConnectionOptions


class GatewayPhase(str, Enum):
    STARTING = "starting"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class GatewayBootstrap:
    def __init__(
        self,
        settings: Settings = default_settings,
        connection_manager: ConnectionManager | None = None,
        collaborators: Iterable[RouteCollaborator] | None = None,
        on_fatal: Callable[[DataStoreConnectionError], None] | None = None,
    ):
        self.settings = settings
        self.connection_manager = connection_manager or ConnectionManager()
        self.collaborators = list(collaborators) if collaborators is not None else default_collaborators()
        self.cors_engine = CorsPolicyEngine(CorsPolicy.from_settings(settings))
        self.error_normalizer = ErrorNormalizer(DiagnosticsMode.from_environment(settings.NODE_ENV))
        self.on_fatal = on_fatal

        self.phase = GatewayPhase.STARTING
        self.fatal_error: DataStoreConnectionError | None = None
        self.exit_code = 0
        self.server: uvicorn.Server | None = None
        self._connect_task: asyncio.Task | None = None
        self._shutdown_started = False

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def build_pipeline(self) -> Pipeline:
        stages = [
            Stage("cors", StageKind.CORS, Middleware(CorsMiddleware, engine=self.cors_engine)),
            Stage("preflight", StageKind.PREFLIGHT, Middleware(PreflightMiddleware)),
            Stage(
                "body_parser",
                StageKind.BODY_PARSER,
                Middleware(BodyLimitMiddleware, max_body_size=self.settings.MAX_BODY_SIZE),
            ),
        ]
        stages += [
            Stage(f"routes:{c.name}", StageKind.ROUTES, c.router, prefix=c.prefix)
            for c in self.collaborators
        ]
        stages += [
            Stage("diagnostics", StageKind.DIAGNOSTICS, diagnostics.router),
            Stage("diagnostics:api", StageKind.DIAGNOSTICS, diagnostics.router, prefix="/api"),
            Stage("service_descriptor", StageKind.DIAGNOSTICS, diagnostics.root_router),
            Stage("not_found", StageKind.NOT_FOUND, diagnostics.not_found_router),
            Stage(
                "error_normalizer",
                StageKind.ERROR,
                Middleware(ErrorNormalizerMiddleware, normalizer=self.error_normalizer),
            ),
        ]
        return Pipeline(stages)

    def create_app(self) -> FastAPI:
        pipeline = self.build_pipeline()

        app = FastAPI(
            title=self.settings.APP_NAME,
            version=self.settings.APP_VERSION,
            description=self.settings.APP_DESCRIPTION,
            middleware=pipeline.middleware(),
            openapi_url=None,
            docs_url=None,
            redoc_url=None,
            lifespan=lifespan,
        )

        app.state.gateway = self
        app.state.settings = self.settings
        app.state.connection_manager = self.connection_manager
        app.state.cors_engine = self.cors_engine
        app.state.error_normalizer = self.error_normalizer
        app.state.pipeline = pipeline

        app.add_exception_handler(StarletteHTTPException, http_exception_handler)
        app.add_exception_handler(RequestValidationError, validation_exception_handler)
        app.add_exception_handler(Exception, self._unhandled_exception_handler)

        pipeline.mount(app)
        logger.debug(f"Pipeline stages: {' -> '.join(pipeline.names)}")
        return app

    async def _unhandled_exception_handler(self, request, exc: Exception):
        return self.error_normalizer.normalize(exc, request.url.path)

    # ------------------------------------------------------------------
    # Data store
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule the connect sequence without waiting for it."""
        if self._connect_task is None:
            self._connect_task = asyncio.create_task(self.connect_data_store())

    async def connect_data_store(self) -> bool:
        try:
            await self.connection_manager.connect(
                self.settings.MONGODB_URI,
                ConnectionOptions.from_settings(self.settings),
            )
        except DataStoreConnectionError as e:
            self.fail(e)
            return False
        return True

    def fail(self, error: DataStoreConnectionError) -> None:
        self.fatal_error = error
        self.exit_code = 1
        logger.error(f"Data store connection failed, shutting down: {error}")
        logger.error("Check the MONGODB_URI setting in your environment or .env file")

        if self.server is not None:
            self.server.should_exit = True
        elif self.on_fatal is not None:
            self.on_fatal(error)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_listening(self) -> None:
        self.phase = GatewayPhase.LISTENING
        logger.info("=" * 50)
        logger.info(f"{self.settings.APP_NAME} v{self.settings.APP_VERSION} listening on port {self.settings.PORT}")
        logger.info(f"CORS allowed origins: {', '.join(self.cors_engine.allowed_origins)}")
        logger.info(f"Environment: {self.settings.environment}")
        logger.info(f"Data store: {'remote' if self.settings.uses_remote_store else 'local'}")
        logger.info("=" * 50)

    def on_signal(self, sig: int) -> None:
        if self.phase is not GatewayPhase.TERMINATED:
            self.phase = GatewayPhase.SHUTTING_DOWN
        logger.info(f"Received {signal.Signals(sig).name}, shutting down")

    async def shutdown(self) -> None:
        """Stop a pending connect and close the data store. Runs once."""
        if self._shutdown_started:
            return
        self._shutdown_started = True
        self.phase = GatewayPhase.SHUTTING_DOWN

        task = self._connect_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self.connection_manager.close()
        self.phase = GatewayPhase.TERMINATED
        logger.info("Application stopped")

    async def serve(self) -> int:
        """Run the listener until shutdown.

        Returns:
            int: process exit code, 0 after a signal-driven shutdown and 1
            after a fatal data-store failure.

        Raises:
            StartupError: the port cannot be bound or the server never started.
        """
        host, port = self.settings.HOST, self.settings.PORT
        if not port_available(host, port):
            raise StartupError(f"port {port} is already in use; stop the other process or change PORT")

        config = uvicorn.Config(
            self.create_app(),
            host=host,
            port=port,
            log_config=uvicorn_log_config(),
            timeout_graceful_shutdown=self.settings.SHUTDOWN_GRACE_PERIOD,
        )
        self.server = GatewayServer(config, on_signal=self.on_signal, on_listening=self.on_listening)

        try:
            await self.server.serve()
        except SystemExit as e:
            raise StartupError(f"cannot listen on {host}:{port}") from e
        finally:
            # uvicorn skips lifespan shutdown when asked to exit during startup
            await self.shutdown()

        if not self.server.started and self.fatal_error is None:
            raise StartupError(f"server on {host}:{port} failed to start")
        return self.exit_code
