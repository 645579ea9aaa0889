from .coercion import FieldKind, quote_bytes
from .errors import (
    BindError,
    BodyTooLargeError,
    CoercionError,
    JsonSyntaxError,
    MalformedBodyError,
    MethodNotAllowedError,
    NestedValueError,
    NotARecordError,
    UnknownFieldError,
    UnsupportedContentTypeError,
)
from .field_index import FieldIndexCache, FieldSlot, build_field_index, wire_field
from .parser import ALLOWED_METHODS, BodyParser, check_method, check_preconditions, media_type_label, media_type_of

__all__ = [
    "ALLOWED_METHODS",
    "BindError",
    "BodyParser",
    "BodyTooLargeError",
    "CoercionError",
    "FieldIndexCache",
    "FieldKind",
    "FieldSlot",
    "JsonSyntaxError",
    "MalformedBodyError",
    "MethodNotAllowedError",
    "NestedValueError",
    "NotARecordError",
    "UnknownFieldError",
    "UnsupportedContentTypeError",
    "build_field_index",
    "check_method",
    "check_preconditions",
    "media_type_label",
    "media_type_of",
    "quote_bytes",
    "wire_field",
]
