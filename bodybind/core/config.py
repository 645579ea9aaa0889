from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_BODY_BYTES = 1024 * 1024
DEFAULT_JSON_CHUNK_SIZE = 512
DEFAULT_FORM_CHUNK_SIZE = 64 * 1024

_TRUTHY = ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    value = int(raw)
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, not {raw!r}")
    return value


def _env_flag(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or ("1" if default else "0")).strip().lower()
    return raw in _TRUTHY


@dataclass(frozen=True)
class BinderSettings:
    """
    Binder limits and behavior switches.

    Env:
      BODYBIND_MAX_BODY_BYTES=1048576
      BODYBIND_JSON_CHUNK_SIZE=512
      BODYBIND_FORM_CHUNK_SIZE=65536
      BODYBIND_LENIENT_CONTENT_TYPE=true/false  (legacy no-op for unknown media types)
    """

    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    json_chunk_size: int = DEFAULT_JSON_CHUNK_SIZE
    form_chunk_size: int = DEFAULT_FORM_CHUNK_SIZE
    lenient_content_type: bool = False

    @classmethod
    def from_env(cls) -> "BinderSettings":
        return cls(
            max_body_bytes=_env_int("BODYBIND_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
            json_chunk_size=_env_int("BODYBIND_JSON_CHUNK_SIZE", DEFAULT_JSON_CHUNK_SIZE),
            form_chunk_size=_env_int("BODYBIND_FORM_CHUNK_SIZE", DEFAULT_FORM_CHUNK_SIZE),
            lenient_content_type=_env_flag("BODYBIND_LENIENT_CONTENT_TYPE"),
        )
