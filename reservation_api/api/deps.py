"""Dependencies shared by the routers.

Everything is read from ``app.state``, where the bootstrap puts the single
instance of each component.
"""

from fastapi import Request

from reservation_api.core.config import Settings
from reservation_api.core.cors import CorsPolicyEngine
from reservation_api.core.exceptions import DiagnosticsMode
from reservation_api.infrastructure.mongo import ConnectionManager


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


def get_cors_engine(request: Request) -> CorsPolicyEngine:
    return request.app.state.cors_engine


def get_diagnostics_mode(request: Request) -> DiagnosticsMode:
    return request.app.state.error_normalizer.mode
