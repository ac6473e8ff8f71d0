"""Middleware stages of the request pipeline."""
from fastapi import HTTPException, status
from fastapi.responses import Response
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware

from reservation_api.core.cors import CorsPolicyEngine
from reservation_api.core.exceptions import ErrorNormalizer, Messages, create_error_response


class CorsMiddleware(BaseHTTPMiddleware):
    """Adds access-control headers for allowed origins. Never rejects a request."""

    def __init__(self, app, engine: CorsPolicyEngine):
        super().__init__(app)
        self.engine = engine

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.update(self.engine.response_headers(request.headers.get("origin")))
        return response


class PreflightMiddleware(BaseHTTPMiddleware):
    """Answers every OPTIONS request with an empty 204; routes are never reached."""

    async def dispatch(self, request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return await call_next(request)


class BodyLimitMiddleware:
    """Rejects request bodies larger than ``max_body_size`` bytes.

    A declared ``Content-Length`` over the limit is answered before the app
    runs. Bodies without one (chunked uploads) are counted while they are
    received; crossing the limit raises a 413 ``HTTPException`` from
    ``receive``, which FastAPI re-raises out of body parsing.
    """

    def __init__(self, app, max_body_size: int = 10 * 1024 * 1024):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        content_length = Headers(scope=scope).get("content-length", "")
        if content_length.isdigit() and int(content_length) > self.max_body_size:
            response = create_error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, Messages.PAYLOAD_TOO_LARGE)
            return await response(scope, receive, send)

        received = 0

        async def counting_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=Messages.PAYLOAD_TOO_LARGE,
                    )
            return message

        await self.app(scope, counting_receive, send)


class ErrorNormalizerMiddleware(BaseHTTPMiddleware):
    """Catches anything raised further down the pipeline."""

    def __init__(self, app, normalizer: ErrorNormalizer):
        super().__init__(app)
        self.normalizer = normalizer

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return self.normalizer.normalize(exc, request.url.path)
