"""Entry-point for the local collector → FastAPI ASGI app.

The collector mirrors the tracking API's /v1/<kind> routes so clients can be
pointed at it during development and in tests.  Every accepted message is
kept, tagged, in ``app.state.received``.

Run with ``uvicorn trackwire.main:app``.
"""

from __future__ import annotations

import os
from contextvars import ContextVar
from time import perf_counter
from typing import Awaitable, Callable, Dict

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from trackwire.routers import tracking_routes
from trackwire.settings import APP_ENV
from trackwire.utils.logger import configure_logging, logger


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request-level context vars for structured logging."""

    _request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:  # type: ignore[override]
        start = perf_counter()
        request_id = request.headers.get("X-Request-Id", os.urandom(4).hex())
        token = self._request_id_ctx.set(request_id)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration_ms = (perf_counter() - start) * 1000
            logger.info(
                "request.complete",
                extra={
                    "extra": {
                        "path": request.url.path,
                        "method": request.method,
                        "status_code": status_code,
                        "duration_ms": round(duration_ms, 2),
                        "request_id": request_id,
                    }
                },
            )
            self._request_id_ctx.reset(token)
        return response


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="trackwire collector",
        version="0.1.0",
        docs_url="/docs" if APP_ENV != "production" else None,
        redoc_url=None,
        openapi_url="/openapi.json" if APP_ENV != "production" else None,
    )
    app.state.received = []

    app.add_middleware(RequestContextMiddleware)

    # Health check
    @app.get("/")
    async def root() -> Dict[str, str]:  # pylint: disable=unused-variable
        return {"status": "ok"}

    app.include_router(tracking_routes.router)

    return app


# The object uvicorn imports
app = create_app()
