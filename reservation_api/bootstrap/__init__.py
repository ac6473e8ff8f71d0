"""Bootstrap module for application initialization.

This module provides:
- Gateway bootstrap (pipeline composition, lifecycle, listener)
- Application factory (create_app)
- Lifecycle management (lifespan)
"""

from reservation_api.bootstrap.app_factory import create_app
from reservation_api.bootstrap.gateway import GatewayBootstrap, GatewayPhase
from reservation_api.bootstrap.lifespan import lifespan
from reservation_api.bootstrap.pipeline import Pipeline, Stage, StageKind

__all__ = [
    "GatewayBootstrap",
    "GatewayPhase",
    "Pipeline",
    "Stage",
    "StageKind",
    "create_app",
    "lifespan",
]
