"""MongoDB connection lifecycle.

One ``ConnectionManager`` owns the single client of the process and its state:
``disconnected -> connecting -> connected | failed``, back to ``disconnected``
on close. While connected, the driver's topology events move it to
``disconnected`` when no server is reachable and back once one is. Commands
are never buffered: asking for a database handle while the state is not
``connected`` fails immediately.
"""

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import monitoring

from reservation_api.core.config import DEFAULT_DATABASE_NAME
from reservation_api.core.exceptions import DataStoreConnectionError, DataStoreUnavailableError


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass(frozen=True)
class ConnectionOptions:
    server_selection_timeout_ms: int = 10000
    socket_timeout_ms: int = 45000
    buffer_commands: bool = False

    def __post_init__(self):
        if self.buffer_commands:
            raise ValueError("command buffering is not supported; operations must fail fast while disconnected")
        if self.server_selection_timeout_ms <= 0:
            raise ValueError("server_selection_timeout_ms must be positive")

    @classmethod
    def from_settings(cls, settings) -> "ConnectionOptions":
        return cls(
            server_selection_timeout_ms=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            socket_timeout_ms=settings.MONGODB_SOCKET_TIMEOUT_MS,
        )

    def client_kwargs(self) -> dict:
        return {
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "socketTimeoutMS": self.socket_timeout_ms,
        }


@dataclass(frozen=True)
class ConnectionSnapshot:
    state: ConnectionState
    database_name: str | None = None
    error: BaseException | None = None

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED


class TopologyWatcher(monitoring.TopologyListener):
    """Reports whether the driver can still see any MongoDB server.

    Called from the driver's monitor threads.
    """

    def __init__(self, manager: "ConnectionManager"):
        self._manager = manager

    def opened(self, event):
        pass

    def description_changed(self, event):
        servers = event.new_description.server_descriptions().values()
        self._manager._on_topology_change(any(server.is_server_type_known for server in servers))

    def closed(self, event):
        pass


def _redact(uri: str) -> str:
    return uri.split("@")[-1] if "@" in uri else uri


class ConnectionManager:
    """Owner of the process-wide MongoDB client."""

    def __init__(self, client_factory: Callable[..., Any] = AsyncIOMotorClient):
        self._client_factory = client_factory
        self._client = None
        self._database = None
        self._state = ConnectionState.DISCONNECTED
        self._error: BaseException | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    def current_state(self) -> ConnectionSnapshot:
        return ConnectionSnapshot(
            state=self._state,
            database_name=self._database.name if self._database is not None else None,
            error=self._error,
        )

    async def connect(self, uri: str, options: ConnectionOptions | None = None) -> str:
        """Connect and ping the server.

        The whole attempt is bounded by ``server_selection_timeout_ms``. Any
        failure leaves the manager in ``failed`` and raises
        ``DataStoreConnectionError``; there is no retry.

        Returns:
            str: name of the database resolved from the URI.
        """
        options = options or ConnectionOptions()
        async with self._lock:
            if self._state is ConnectionState.CONNECTED:
                return self._database.name

            self._state = ConnectionState.CONNECTING
            self._error = None
            logger.info(f"Connecting to MongoDB at {_redact(uri)}")

            try:
                self._client = self._client_factory(
                    uri, event_listeners=[TopologyWatcher(self)], **options.client_kwargs()
                )
                await asyncio.wait_for(
                    self._client.admin.command("ping"),
                    timeout=options.server_selection_timeout_ms / 1000,
                )
                self._database = self._client.get_default_database(DEFAULT_DATABASE_NAME)
            except asyncio.TimeoutError as e:
                self._mark_failed(e)
                raise DataStoreConnectionError(
                    f"timed out after {options.server_selection_timeout_ms} ms connecting to {_redact(uri)}"
                ) from e
            except Exception as e:
                self._mark_failed(e)
                raise DataStoreConnectionError(f"cannot connect to {_redact(uri)}: {e}") from e

            self._state = ConnectionState.CONNECTED
            logger.info(f"Connected to MongoDB, database: {self._database.name}")
            return self._database.name

    def _mark_failed(self, error: BaseException) -> None:
        self._state = ConnectionState.FAILED
        self._error = error
        self._database = None
        logger.error(f"MongoDB connection failed: {type(error).__name__}: {error}")

    def _on_topology_change(self, reachable: bool) -> None:
        if self._state is ConnectionState.CONNECTED and not reachable:
            self._state = ConnectionState.DISCONNECTED
            logger.warning("Lost connection to MongoDB, no server reachable")
        elif self._state is ConnectionState.DISCONNECTED and reachable and self._database is not None:
            self._state = ConnectionState.CONNECTED
            logger.info(f"Reconnected to MongoDB, database: {self._database.name}")

    @property
    def database(self):
        if self._state is not ConnectionState.CONNECTED or self._database is None:
            raise DataStoreUnavailableError(self._state.value)
        return self._database

    def collection(self, name: str):
        return self.database[name]

    async def close(self) -> None:
        """Release the client. Safe to call when nothing was ever connected."""
        client, self._client = self._client, None
        self._database = None

        if client is not None:
            result = client.close()
            if inspect.isawaitable(result):
                await result
            logger.info("MongoDB connection closed")

        self._state = ConnectionState.DISCONNECTED
