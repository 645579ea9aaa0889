from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI

from bodybind.api.endpoints import health
from bodybind.api.endpoints import metrics as metrics_ep
from bodybind.api.endpoints.records import router as records_router
from bodybind.api.middleware.error_shaping import SafeErrorMiddleware, bind_error_handler
from bodybind.api.middleware.request_context import RequestContextMiddleware
from bodybind.core.binding.errors import BindError
from bodybind.core.binding.field_index import FieldIndexCache
from bodybind.core.config import BinderSettings

log = logging.getLogger("bodybind.app")


def create_app(
    *,
    settings: Optional[BinderSettings] = None,
    cache: Optional[FieldIndexCache] = None,
) -> FastAPI:
    app = FastAPI(
        title="bodybind API",
        version="0.1.0",
    )

    # One field index cache per process, created at startup and injected
    # into handlers through app.state.
    app.state.binder_settings = settings or BinderSettings.from_env()
    app.state.field_index_cache = cache or FieldIndexCache()

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call = OUTERMOST wrapper.
    #   SafeErrorMiddleware -> RequestContext -> handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SafeErrorMiddleware)

    app.add_exception_handler(BindError, bind_error_handler)

    app.include_router(health.router)
    app.include_router(metrics_ep.router)
    app.include_router(records_router)

    env = (os.getenv("BODYBIND_ENV") or "dev").strip().lower()
    log.info(
        "app created env=%s max_body_bytes=%s lenient_content_type=%s",
        env,
        app.state.binder_settings.max_body_bytes,
        app.state.binder_settings.lenient_content_type,
    )
    return app


app = create_app()


@app.get("/health")
def health_check():
    return {"status": "healthy"}
