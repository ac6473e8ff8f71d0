"""Exceptions and error normalization.

Every error that escapes a route or middleware ends up in ``ErrorNormalizer``,
which turns it into the JSON error envelope ``{"message": ..., "error": ...}``.
"""

from enum import Enum
from typing import Any

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from loguru import logger
from pymongo.errors import ConnectionFailure


class Messages:
    DATA_STORE_ERROR = "data-store connection error"
    SERVER_ERROR = "internal server error"
    VALIDATION_ERROR = "request validation failed"
    PAYLOAD_TOO_LARGE = "request entity too large"
    NOT_FOUND = "route not found"


class DiagnosticsMode(str, Enum):
    """Whether error responses carry the underlying error message."""

    VERBOSE = "verbose"
    QUIET = "quiet"

    @classmethod
    def from_environment(cls, node_env: str | None) -> "DiagnosticsMode":
        return cls.VERBOSE if node_env == "development" else cls.QUIET


class GatewayError(Exception):
    """Base class for errors raised by the gateway itself."""


class DataStoreConnectionError(GatewayError):
    """The data store could not be reached or the connect attempt timed out."""


class DataStoreUnavailableError(GatewayError):
    """An operation was issued while the data store is not connected."""

    def __init__(self, state: str):
        super().__init__(f"data store is not connected (state: {state})")
        self.state = state


class StartupError(GatewayError):
    """Fatal condition that prevents the server from reaching steady state."""


class PipelineOrderError(StartupError):
    """The request pipeline stages are not in a valid order."""


CONNECTIVITY_ERROR_NAMES = frozenset({"MongoNetworkError", "MongoServerSelectionError"})


def is_connectivity_error(exc: BaseException) -> bool:
    if isinstance(exc, (ConnectionFailure, DataStoreConnectionError, DataStoreUnavailableError)):
        return True
    return type(exc).__name__ in CONNECTIVITY_ERROR_NAMES


def describe_error(exc: BaseException) -> str:
    try:
        text = str(exc)
    except Exception:
        text = ""
    return text or type(exc).__name__


def error_envelope(message: str, detail: Any = None, mode: DiagnosticsMode = DiagnosticsMode.QUIET) -> dict:
    if mode is DiagnosticsMode.VERBOSE and detail:
        return {"message": message, "error": detail}
    return {"message": message, "error": {}}


class ErrorNormalizer:
    """Terminal error stage: maps any exception to a 503 or 500 envelope."""

    def __init__(self, mode: DiagnosticsMode):
        self.mode = mode

    def classify(self, exc: BaseException) -> tuple[int, str]:
        if is_connectivity_error(exc):
            return status.HTTP_503_SERVICE_UNAVAILABLE, Messages.DATA_STORE_ERROR
        return status.HTTP_500_INTERNAL_SERVER_ERROR, Messages.SERVER_ERROR

    def normalize(self, exc: BaseException, path: str | None = None) -> JSONResponse:
        status_code, message = self.classify(exc)
        detail = describe_error(exc)

        logger.opt(exception=exc).error(
            "Unhandled error on {}: {}: {}", path or "<unknown>", type(exc).__name__, detail
        )
        return JSONResponse(status_code=status_code, content=error_envelope(message, detail, self.mode))


def create_error_response(status_code: int, message: str, detail: Any = None,
                          mode: DiagnosticsMode = DiagnosticsMode.QUIET) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_envelope(message, detail, mode))


def _mode_of(request) -> DiagnosticsMode:
    normalizer = getattr(request.app.state, "error_normalizer", None)
    return normalizer.mode if normalizer else DiagnosticsMode.QUIET


async def http_exception_handler(request, exc: HTTPException) -> JSONResponse:
    """Errors raised on purpose by route collaborators keep their status code."""
    message = exc.detail if isinstance(exc.detail, str) else Messages.SERVER_ERROR
    response = create_error_response(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request, exc) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "invalid value"),
        }
        for error in exc.errors()
    ]
    return create_error_response(
        status.HTTP_400_BAD_REQUEST,
        Messages.VALIDATION_ERROR,
        detail=errors,
        mode=_mode_of(request),
    )
