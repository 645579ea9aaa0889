from __future__ import annotations

import io
import logging
from typing import Any, List, Optional

from python_multipart.multipart import parse_options_header

from bodybind.core.binding.errors import (
    BindError,
    MethodNotAllowedError,
    NotARecordError,
    UnsupportedContentTypeError,
)
from bodybind.core.binding.field_index import FieldIndex, FieldIndexCache, is_record
from bodybind.core.binding.form_binder import MULTIPART, URLENCODED, bind_form
from bodybind.core.binding.json_binder import bind_json
from bodybind.core.binding.limits import LimitedReader
from bodybind.core.config import BinderSettings
from bodybind.core.observability.metrics import record_bind

log = logging.getLogger("bodybind.binder")

JSON = "application/json"
SUPPORTED_MEDIA_TYPES = (JSON, URLENCODED, MULTIPART)

# Body binding is only defined for mutation verbs
ALLOWED_METHODS = ("POST", "PUT", "PATCH")


def check_method(method: str) -> None:
    if method not in ALLOWED_METHODS:
        raise MethodNotAllowedError(method=method)


def check_preconditions(method: str, target: Any) -> None:
    """Method and target checks; both run before the body is touched."""
    check_method(method)
    if not is_record(target):
        raise NotARecordError(target_type=type(target).__name__)


def media_type_of(content_type: Optional[str]) -> str:
    """Bare, lowercased media type of a Content-Type header ("" when missing)."""
    ctype, _ = parse_options_header(content_type)
    return ctype.decode("latin-1").strip().lower()


def media_type_label(media_type: str) -> str:
    """Metric label for a media type; client-supplied values outside the supported set collapse to one label."""
    if media_type in SUPPORTED_MEDIA_TYPES:
        return media_type
    return "unsupported" if media_type else "none"


class BodyParser:
    """
    Binds one request body into a flat record.

    Collaborators are plain values: the HTTP method, the raw Content-Type
    header, a readable byte stream and the shared field index cache.
    """

    def __init__(
        self,
        method: str,
        content_type: Optional[str],
        body: Any,
        *,
        cache: FieldIndexCache,
        settings: Optional[BinderSettings] = None,
    ):
        self.method = method
        self.content_type = content_type or ""
        self.body = body
        self.cache = cache
        self.settings = settings or BinderSettings()

    def parse_model(self, target: Any) -> List[str]:
        """
        Bind the body into ``target`` in place and return the bound wire keys
        in discovery order.

        On error nothing is rolled back: fields bound before the failing key
        keep their new values. A body over the ceiling fails before any field
        is bound.
        """
        media_type = media_type_of(self.content_type)

        try:
            check_preconditions(self.method, target)
            index = self.cache.get_or_build(type(target))
            columns = self.dispatch(media_type, index, target)
        except BindError as e:
            record_bind(media_type_label(media_type), e.code)
            log.warning("bind rejected shape=%s media_type=%s error=%s", type(target).__name__, media_type, e)
            raise

        record_bind(media_type_label(media_type), "ok")
        log.debug("bound shape=%s media_type=%s columns=%s", type(target).__name__, media_type, columns)
        return columns

    def dispatch(self, media_type: str, index: FieldIndex, target: Any) -> List[str]:
        if media_type not in SUPPORTED_MEDIA_TYPES:
            if self.settings.lenient_content_type:
                log.debug("ignoring body with unsupported media type %r", media_type)
                return []
            raise UnsupportedContentTypeError(content_type=media_type)

        # the whole body must fit under the ceiling before any field is assigned
        limited = LimitedReader(self.body, self.settings.max_body_bytes)
        reader = io.BytesIO(limited.read_all(self.settings.form_chunk_size))

        if media_type == JSON:
            return bind_json(reader, index, target, chunk_size=self.settings.json_chunk_size)

        return bind_form(
            reader,
            self.content_type,
            media_type,
            index,
            target,
            chunk_size=self.settings.form_chunk_size,
        )
