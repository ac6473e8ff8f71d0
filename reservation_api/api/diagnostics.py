"""Diagnostics endpoints: health, CORS test, service descriptor and the catch-all 404."""
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from reservation_api.api.deps import (
    get_connection_manager,
    get_cors_engine,
    get_diagnostics_mode,
    get_settings,
)
from reservation_api.core.config import Settings
from reservation_api.core.cors import CorsPolicyEngine
from reservation_api.core.exceptions import DiagnosticsMode, Messages, describe_error
from reservation_api.infrastructure.mongo import ConnectionManager, ConnectionSnapshot
from reservation_api.schemas import (
    CorsTestReport,
    DatabaseStatus,
    HealthReport,
    MemoryUsage,
    NotFoundReport,
    ServiceDescriptor,
)
from reservation_api.schemas.diagnostics import CorsInfo, Deployment

NO_ORIGIN = "no origin header"
NOT_CONNECTED = "not connected"

AVAILABLE_ENDPOINTS = {
    "health": "/health",
    "corsTest": "/cors-test",
    "reservations": "/api/reservations",
    "tables": "/api/tables",
    "notifications": "/api/notifications",
}

router = APIRouter(tags=["diagnostics"])
root_router = APIRouter(tags=["diagnostics"])
not_found_router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def process_uptime() -> float:
    return round(time.time() - psutil.Process().create_time(), 3)


def process_memory() -> MemoryUsage:
    process = psutil.Process()
    info = process.memory_info()
    return MemoryUsage(rss=info.rss, vms=info.vms, percent=round(process.memory_percent(), 2))


def database_status(snapshot: ConnectionSnapshot) -> DatabaseStatus:
    return DatabaseStatus(
        status="connected" if snapshot.is_connected else "disconnected",
        name=snapshot.database_name or NOT_CONNECTED,
    )


def build_health_report(snapshot: ConnectionSnapshot, cors: CorsPolicyEngine, settings: Settings) -> HealthReport:
    return HealthReport(
        database=database_status(snapshot),
        environment=settings.environment,
        timestamp=_now(),
        uptime=process_uptime(),
        memory=process_memory(),
        cors=CorsInfo(allowed_origins=cors.allowed_origins),
    )


@router.get("/health", response_model=HealthReport, summary="Health check")
async def health_check(
    manager: ConnectionManager = Depends(get_connection_manager),
    cors: CorsPolicyEngine = Depends(get_cors_engine),
    settings: Settings = Depends(get_settings),
    mode: DiagnosticsMode = Depends(get_diagnostics_mode),
):
    try:
        return build_health_report(manager.current_state(), cors, settings)
    except Exception as e:
        logger.exception("Health report failed: {}", e)
        content = {"status": "ERROR", "message": Messages.SERVER_ERROR, "error": {}}
        if mode is DiagnosticsMode.VERBOSE:
            content["error"] = describe_error(e)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@router.get("/cors-test", response_model=CorsTestReport, summary="CORS introspection")
async def cors_test(request: Request, cors: CorsPolicyEngine = Depends(get_cors_engine)):
    return CorsTestReport(
        allowed_origins=cors.allowed_origins,
        current_origin=request.headers.get("origin") or NO_ORIGIN,
        timestamp=_now(),
    )


@root_router.get("/", response_model=ServiceDescriptor, summary="Service descriptor")
async def service_descriptor(settings: Settings = Depends(get_settings)):
    return ServiceDescriptor(
        message=settings.APP_NAME,
        version=settings.APP_VERSION,
        deployment=Deployment(frontend=settings.FRONTEND_URL, backend=settings.BACKEND_URL),
    )


def requested_url(request: Request) -> str:
    """The request target exactly as sent: still percent-encoded, query string included."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


async def route_not_found(request: Request) -> JSONResponse:
    report = NotFoundReport(
        message=Messages.NOT_FOUND,
        path=requested_url(request),
        available_endpoints=AVAILABLE_ENDPOINTS,
    )
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=report.model_dump(by_alias=True))


# No method list: every verb falls through to here.
not_found_router.add_route("/{requested_path:path}", route_not_found, include_in_schema=False)
