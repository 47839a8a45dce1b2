from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from restgate.cors.filter import CorsContext, CorsFilter
from restgate.error_response import ErrorResponse
from restgate.errors import OriginNotAllowedError
from restgate.extension.headers import ORIGIN

log = logging.getLogger("restgate.api")


def error_json(
    status_code: int,
    message: Optional[str] = None,
    payload: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Render an ErrorResponse body with a matching status line."""

    body = ErrorResponse.of(status_code, message=message, payload=payload)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


class CorsMiddleware(BaseHTTPMiddleware):
    """Host a CorsFilter inside a Starlette app.

    Runs the before-phase ahead of routing, short-circuits with the preflight
    response or a 403 error response, and runs the after-phase on whatever
    response goes out. The CorsContext travels from one phase to the other
    on the stack of this call only.
    """

    def __init__(self, app, *, cors_filter: CorsFilter):
        super().__init__(app)
        self._filter = cors_filter

    async def dispatch(self, request: Request, call_next: Callable):
        ctx = CorsContext(method=request.method, headers=request.headers)
        try:
            response: Optional[Response] = self._filter.before(ctx)
        except OriginNotAllowedError as e:
            response = error_json(e.status_code, str(e), payload={"origin": e.origin})
        if response is None:
            response = await call_next(request)
        self._filter.after(ctx, response.headers)
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Structured access logging.

    Security notes:
    - Never logs bodies or header values other than Origin.

    """

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            return response
        finally:
            log.info(
                "api_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "origin": request.headers.get(ORIGIN),
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": int((time.monotonic() - start) * 1000),
                },
            )
