"""Infrastructure layer.

MongoDB connection management and the middleware stages of the pipeline.
"""

from reservation_api.infrastructure.middleware import (
    BodyLimitMiddleware,
    CorsMiddleware,
    ErrorNormalizerMiddleware,
    PreflightMiddleware,
)
from reservation_api.infrastructure.mongo import (
    ConnectionManager,
    ConnectionOptions,
    ConnectionSnapshot,
    ConnectionState,
)

__all__ = [
    # MongoDB
    "ConnectionManager",
    "ConnectionOptions",
    "ConnectionSnapshot",
    "ConnectionState",
    # Middleware
    "BodyLimitMiddleware",
    "CorsMiddleware",
    "ErrorNormalizerMiddleware",
    "PreflightMiddleware",
]
