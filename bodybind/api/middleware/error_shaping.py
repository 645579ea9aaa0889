from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from bodybind.core.binding.errors import BindError

log = logging.getLogger("bodybind.errors")


def _request_id(request: Request):
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


async def bind_error_handler(request: Request, exc: BindError) -> JSONResponse:
    """
    Shape binder errors as JSON. Configuration errors (5xx) are logged with a
    traceback; client errors only at info level.
    """
    rid = _request_id(request)
    if exc.status_code >= 500:
        log.error("Bind configuration error: %s rid=%s path=%s", str(exc), rid, request.url.path, exc_info=exc)
        payload = {"detail": "Internal Server Error", "error": exc.code}
    else:
        log.info("Bind rejected: %s rid=%s path=%s", str(exc), rid, request.url.path)
        payload = {"detail": str(exc), "error": exc.code}
        if exc.key is not None:
            payload["key"] = exc.key
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=exc.status_code, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
