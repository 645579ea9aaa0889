"""Starlette request adapter for the body binder.

The binder core reads a synchronous byte stream. This adapter drains the ASGI
body into memory with the size ceiling enforced per chunk, then hands a
BytesIO to BodyParser. Preconditions are checked before the body is read.
"""

from __future__ import annotations

import io
from typing import Any, List

from fastapi import Request

from bodybind.core.binding.errors import BindError, BodyTooLargeError
from bodybind.core.binding.field_index import FieldIndexCache
from bodybind.core.binding.parser import BodyParser, check_preconditions, media_type_label, media_type_of
from bodybind.core.config import BinderSettings
from bodybind.core.observability.metrics import record_bind


def get_field_index_cache(request: Request) -> FieldIndexCache:
    return request.app.state.field_index_cache


def get_binder_settings(request: Request) -> BinderSettings:
    return request.app.state.binder_settings


async def read_body_limited(request: Request, limit: int) -> bytes:
    declared = (request.headers.get("content-length") or "").strip()
    if declared.isdigit() and int(declared) > limit:
        raise BodyTooLargeError(limit=limit)

    buf = bytearray()
    async for chunk in request.stream():
        buf += chunk
        if len(buf) > limit:
            raise BodyTooLargeError(limit=limit)
    return bytes(buf)


async def bind_request(
    request: Request,
    target: Any,
    *,
    cache: FieldIndexCache,
    settings: BinderSettings,
) -> List[str]:
    content_type = request.headers.get("content-type")
    try:
        check_preconditions(request.method, target)
        body = await read_body_limited(request, settings.max_body_bytes)
    except BindError as e:
        record_bind(media_type_label(media_type_of(content_type)), e.code)
        raise

    parser = BodyParser(request.method, content_type, io.BytesIO(body), cache=cache, settings=settings)
    return parser.parse_model(target)
