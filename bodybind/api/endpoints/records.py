from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from bodybind.api.models.records import BindResponse, ProfileRecord, UserRecord
from bodybind.api.request_binding import bind_request, get_binder_settings, get_field_index_cache
from bodybind.core.binding.field_index import FieldIndexCache
from bodybind.core.config import BinderSettings
from bodybind.core.observability.metrics import inc_named

router = APIRouter(prefix="/api/v1", tags=["records"])

# GET is routed on purpose: the binder itself answers 405 for non-mutation verbs
_METHODS = ["GET", "POST", "PUT", "PATCH"]


@router.api_route("/users", methods=_METHODS, response_model=BindResponse)
async def bind_user(
    request: Request,
    cache: FieldIndexCache = Depends(get_field_index_cache),
    settings: BinderSettings = Depends(get_binder_settings),
):
    user = UserRecord()
    columns = await bind_request(request, user, cache=cache, settings=settings)
    inc_named("users_bound")
    return BindResponse(columns=columns, record=asdict(user))


@router.api_route("/profiles", methods=_METHODS, response_model=BindResponse)
async def bind_profile(
    request: Request,
    cache: FieldIndexCache = Depends(get_field_index_cache),
    settings: BinderSettings = Depends(get_binder_settings),
):
    profile = ProfileRecord()
    columns = await bind_request(request, profile, cache=cache, settings=settings)
    inc_named("profiles_bound")
    return BindResponse(columns=columns, record=profile.model_dump(by_alias=True))


@router.get("/index/stats")
def field_index_stats(cache: FieldIndexCache = Depends(get_field_index_cache)):
    return cache.stats()
