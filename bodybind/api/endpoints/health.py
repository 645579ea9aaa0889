from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from bodybind.core.observability.metrics import inc_named

router = APIRouter()


# ------------------------------------------------------------
# Unversioned health
# ------------------------------------------------------------
@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


# ------------------------------------------------------------
# Versioned health
# ------------------------------------------------------------
@router.get("/api/v1/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/api/v1/health/ready")
def readiness(request: Request):
    """
    Readiness reflects ability to serve traffic: the field index cache and
    binder settings must have been initialised at startup.
    """
    inc_named("health_ready")

    problems: list[str] = []
    if getattr(request.app.state, "field_index_cache", None) is None:
        problems.append("missing_state:field_index_cache")
    settings = getattr(request.app.state, "binder_settings", None)
    if settings is None:
        problems.append("missing_state:binder_settings")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready", "max_body_bytes": settings.max_body_bytes}
