"""Pydantic response models."""

from .diagnostics import (
    CorsTestReport,
    DatabaseStatus,
    HealthReport,
    MemoryUsage,
    NotFoundReport,
    ServiceDescriptor,
)

__all__ = [
    "CorsTestReport",
    "DatabaseStatus",
    "HealthReport",
    "MemoryUsage",
    "NotFoundReport",
    "ServiceDescriptor",
]
