"""MongoDB infrastructure."""

from reservation_api.infrastructure.mongo.connection import (
    ConnectionManager,
    ConnectionOptions,
    ConnectionSnapshot,
    ConnectionState,
    TopologyWatcher,
)

__all__ = [
    "ConnectionManager",
    "ConnectionOptions",
    "ConnectionSnapshot",
    "ConnectionState",
    "TopologyWatcher",
]
