"""Binding errors.

Every error raised by the binder derives from BindError and carries the HTTP
status the host should answer with. Stream read failures (OSError) are not
wrapped and propagate unchanged.
"""

from __future__ import annotations

from typing import Optional


class BindError(Exception):
    status_code = 400
    code = "bind_error"

    def __init__(self, message: str, *, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


class MethodNotAllowedError(BindError):
    status_code = 405
    code = "method_not_allowed"

    def __init__(self, *, method: str):
        self.method = method
        super().__init__(f"body binding supports only POST, PUT, PATCH (got {method})")


class NotARecordError(BindError):
    status_code = 500
    code = "not_a_record"

    def __init__(self, *, target_type: str, reason: str = "only flat record instances are supported"):
        self.target_type = target_type
        self.reason = reason
        super().__init__(f"cannot bind into {target_type}: {reason}")


class UnsupportedContentTypeError(BindError):
    status_code = 415
    code = "unsupported_content_type"

    def __init__(self, *, content_type: str):
        self.content_type = content_type
        super().__init__(f"unsupported content type: {content_type or '<missing>'}")


class BodyTooLargeError(BindError):
    status_code = 413
    code = "body_too_large"

    def __init__(self, *, limit: int):
        self.limit = int(limit)
        super().__init__(f"request body too large (limit={self.limit} bytes)")


class MalformedBodyError(BindError):
    code = "malformed_body"


class JsonSyntaxError(MalformedBodyError):
    code = "malformed_json"

    def __init__(self, message: str, *, offset: int):
        self.offset = int(offset)
        super().__init__(f"{message} at offset {self.offset}")


class UnknownFieldError(BindError):
    status_code = 422
    code = "unknown_field"

    def __init__(self, *, key: str):
        super().__init__(f"no such field: {key!r}", key=key)


class NestedValueError(BindError):
    status_code = 422
    code = "nested_value"

    def __init__(self, *, key: str):
        super().__init__(f"only flat objects are supported (key {key!r} holds an object or array)", key=key)


class CoercionError(BindError):
    status_code = 422
    code = "cannot_bind"

    def __init__(self, *, key: str, kind: str):
        self.kind = kind
        super().__init__(f"cannot bind {key!r}: value is not a valid {kind}", key=key)
