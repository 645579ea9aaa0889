from __future__ import annotations

import json
import math
import re
from enum import Enum
from typing import Any, Callable, Dict, Union

QUOTE = b'"'

_ESCAPE_RE = re.compile(rb'[\x00-\x1f"\\]')


class FieldKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"


def quote_bytes(raw: bytes, delimiter: bytes = QUOTE) -> bytes:
    """Return a new buffer with ``delimiter`` prepended and appended to ``raw``."""
    buff = bytearray(delimiter)
    buff += raw
    buff += delimiter
    return bytes(buff)


def escape_text(raw: bytes) -> bytes:
    """Escape characters that may not appear verbatim inside a JSON string literal."""

    def _sub(m: "re.Match[bytes]") -> bytes:
        ch = m.group(0)
        if ch in (b'"', b"\\"):
            return b"\\" + ch
        return b"\\u%04x" % ord(ch)

    return _ESCAPE_RE.sub(_sub, raw)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _as_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise TypeError("expected a JSON string")


def _as_integer(value: Any) -> int:
    # bool is an int subclass in Python but never a JSON number
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise TypeError("expected a JSON integer")


def _as_float(value: Any) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise TypeError("expected a JSON number")
    try:
        result = float(value)
    except OverflowError as e:
        raise ValueError("number out of range for a float") from e
    # json.loads turns 1e400 into inf
    if not math.isfinite(result):
        raise ValueError("number out of range for a float")
    return result


def _as_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise TypeError("expected a JSON boolean")


_DECODERS: Dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.STRING: _as_string,
    FieldKind.INTEGER: _as_integer,
    FieldKind.FLOAT: _as_float,
    FieldKind.BOOLEAN: _as_boolean,
}


def decode_literal(kind: FieldKind, raw: Union[bytes, str], *, nullable: bool = False) -> Any:
    """
    Decode one JSON literal into the native type of ``kind``.

    Raises ValueError for text that is not a JSON literal and TypeError when the
    literal is of the wrong JSON type for the field.
    """
    value = json.loads(raw, parse_constant=_reject_constant)
    if value is None:
        if nullable:
            return None
        raise TypeError("null is not allowed for a non-nullable field")
    return _DECODERS[kind](value)
