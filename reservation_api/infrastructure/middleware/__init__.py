"""Middleware stages."""

from reservation_api.infrastructure.middleware.middleware import (
    BodyLimitMiddleware,
    CorsMiddleware,
    ErrorNormalizerMiddleware,
    PreflightMiddleware,
)

__all__ = [
    "BodyLimitMiddleware",
    "CorsMiddleware",
    "ErrorNormalizerMiddleware",
    "PreflightMiddleware",
]
