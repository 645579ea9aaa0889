from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import pytest
from pydantic import BaseModel, ConfigDict, Field

from bodybind.core.binding import (
    BodyParser,
    BodyTooLargeError,
    MethodNotAllowedError,
    NotARecordError,
    UnknownFieldError,
    UnsupportedContentTypeError,
    media_type_label,
    wire_field,
)
from bodybind.core.config import BinderSettings
from bodybind.core.observability.metrics import BIND_TOTAL, snapshot_named


@dataclass
class User:
    id: int = wire_field("id", default=0)
    first_name: str = wire_field("first_name", default="")
    last_name: str = wire_field("last_name", default="")
    active: bool = wire_field("active", default=False)


@dataclass(frozen=True)
class FrozenUser:
    id: int = wire_field("id", default=0)


class Profile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field("", alias="displayName")
    age: int = Field(0, alias="age")


class ExplodingStream:
    """Body stream that must never be read."""

    def read(self, size=-1):
        raise AssertionError("body was read")


JSON_BODY = b'{"id":1,"first_name":"John","last_name":"Smith","active":true}'
FORM_BODY = b"id=1&first_name=John&last_name=Smith&active=true"


def _parser(method, content_type, body, cache, **settings):
    stream = body if hasattr(body, "read") else io.BytesIO(body)
    return BodyParser(method, content_type, stream, cache=cache, settings=BinderSettings(**settings))


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
def test_json_and_form_bind_the_same_values(method, cache):
    from_json = User()
    cols_json = _parser(method, "application/json", JSON_BODY, cache).parse_model(from_json)

    from_form = User()
    cols_form = _parser(method, "application/x-www-form-urlencoded", FORM_BODY, cache).parse_model(from_form)

    assert cols_json == ["id", "first_name", "last_name", "active"]
    assert len(cols_form) == len(cols_json)
    assert from_json == from_form == User(id=1, first_name="John", last_name="Smith", active=True)


def test_content_type_parameters_are_ignored(cache):
    user = User()
    cols = _parser("POST", "Application/JSON; charset=utf-8", JSON_BODY, cache).parse_model(user)
    assert cols == ["id", "first_name", "last_name", "active"]


@pytest.mark.parametrize("method", ["GET", "DELETE", "HEAD", "OPTIONS", "post"])
def test_non_mutation_method_fails_before_reading_body(method, cache):
    with pytest.raises(MethodNotAllowedError) as ei:
        _parser(method, "application/json", ExplodingStream(), cache).parse_model(User())
    assert ei.value.status_code == 405
    assert len(cache) == 0


@pytest.mark.parametrize("target", [{}, [], "user", 42, User])
def test_non_record_target_is_rejected_before_reading_body(target, cache):
    with pytest.raises(NotARecordError):
        _parser("POST", "application/json", ExplodingStream(), cache).parse_model(target)


def test_frozen_record_is_rejected(cache):
    with pytest.raises(NotARecordError):
        _parser("POST", "application/json", b"{}", cache).parse_model(FrozenUser())


@pytest.mark.parametrize(
    "content_type,body",
    [
        ("application/json", JSON_BODY),
        ("application/x-www-form-urlencoded", FORM_BODY),
    ],
)
def test_body_over_ceiling_fails_with_no_fields_bound(content_type, body, cache):
    user = User()
    with pytest.raises(BodyTooLargeError) as ei:
        _parser("POST", content_type, body, cache, max_body_bytes=16).parse_model(user)
    assert ei.value.limit == 16
    assert user == User()


def test_body_exactly_at_ceiling_is_accepted(cache):
    user = User()
    cols = _parser("POST", "application/json", JSON_BODY, cache, max_body_bytes=len(JSON_BODY)).parse_model(user)
    assert len(cols) == 4


@pytest.mark.parametrize("content_type", ["text/plain", "", None, "application/xml"])
def test_unsupported_content_type_fails_by_default(content_type, cache):
    with pytest.raises(UnsupportedContentTypeError) as ei:
        _parser("POST", content_type, JSON_BODY, cache).parse_model(User())
    assert ei.value.status_code == 415


def test_unsupported_content_type_is_noop_when_lenient(cache):
    user = User()
    cols = _parser("POST", "text/plain", JSON_BODY, cache, lenient_content_type=True).parse_model(user)
    assert cols == []
    assert user == User()


def test_pydantic_record_binds_by_alias(cache):
    profile = Profile()
    cols = _parser("PATCH", "application/json", b'{"displayName":"Ada","age":36}', cache).parse_model(profile)
    assert cols == ["displayName", "age"]
    assert profile.display_name == "Ada"
    assert profile.age == 36


def test_index_is_built_once_across_many_binds(cache):
    for i in range(20):
        _parser("POST", "application/json", b'{"id":%d}' % i, cache).parse_model(User())
    for i in range(20):
        _parser("PUT", "application/x-www-form-urlencoded", b"id=%d" % i, cache).parse_model(User())
    assert cache.build_count == 1
    assert len(cache) == 1


def test_bind_outcomes_are_counted_and_rejections_logged(cache, caplog):
    caplog.set_level(logging.WARNING, logger="bodybind.binder")

    _parser("POST", "application/json", JSON_BODY, cache).parse_model(User())
    with pytest.raises(UnknownFieldError):
        _parser("POST", "application/json", b'{"nope":1}', cache).parse_model(User())

    named = snapshot_named()
    assert named.get("bind_ok") == 1
    assert named.get("bind_unknown_field") == 1
    assert "bind rejected" in caplog.text
    assert "nope" in caplog.text


@pytest.mark.parametrize(
    "content_type,body",
    [
        ("application/json", b'{"id":7,"first_name":"' + b"x" * 4096 + b'"}'),
        ("application/x-www-form-urlencoded", b"id=7&first_name=" + b"x" * 4096),
    ],
)
def test_body_over_ceiling_larger_than_first_read_binds_nothing(content_type, body, cache):
    user = User()
    parser = _parser("POST", content_type, body, cache, max_body_bytes=2048, json_chunk_size=64, form_chunk_size=64)
    with pytest.raises(BodyTooLargeError):
        parser.parse_model(user)
    assert user == User()


def test_client_media_types_share_one_metric_label(cache):
    for i in range(50):
        with pytest.raises(UnsupportedContentTypeError):
            _parser("POST", f"x/bogus-{i}", JSON_BODY, cache).parse_model(User())
    _parser("POST", "application/json", JSON_BODY, cache).parse_model(User())

    labels = {
        sample.labels["media_type"]
        for metric in BIND_TOTAL.collect()
        for sample in metric.samples
        if sample.name == "bodybind_bind_total"
    }
    assert "unsupported" in labels
    assert "application/json" in labels
    assert not any(label.startswith("x/bogus") for label in labels)


def test_media_type_label():
    assert media_type_label("application/json") == "application/json"
    assert media_type_label("multipart/form-data") == "multipart/form-data"
    assert media_type_label("text/plain") == "unsupported"
    assert media_type_label("") == "none"


def test_precondition_rejections_are_counted_and_logged(cache, caplog):
    caplog.set_level(logging.WARNING, logger="bodybind.binder")

    with pytest.raises(MethodNotAllowedError):
        _parser("GET", "application/json", ExplodingStream(), cache).parse_model(User())
    with pytest.raises(NotARecordError):
        _parser("POST", "application/json", b"{}", cache).parse_model(FrozenUser())

    named = snapshot_named()
    assert named.get("bind_method_not_allowed") == 1
    assert named.get("bind_not_a_record") == 1
    assert caplog.text.count("bind rejected") == 2
