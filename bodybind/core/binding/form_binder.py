from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import unquote_to_bytes

from python_multipart import parse_form
from python_multipart.exceptions import FormParserError

from bodybind.core.binding.coercion import FieldKind, escape_text, quote_bytes
from bodybind.core.binding.errors import MalformedBodyError, UnknownFieldError
from bodybind.core.binding.field_index import FieldIndex
from bodybind.core.config import DEFAULT_FORM_CHUNK_SIZE

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"


def _unquote_plus(raw: bytes) -> bytes:
    return unquote_to_bytes(raw.replace(b"+", b" "))


def read_form_pairs(reader: Any, content_type: str, media_type: str, *, chunk_size: int = DEFAULT_FORM_CHUNK_SIZE) -> Dict[str, bytes]:
    """
    Decode form pairs from ``reader``. The first value of a repeated key wins;
    file parts of a multipart body are discarded.
    """
    pairs: Dict[str, bytes] = {}
    urlencoded = media_type == URLENCODED

    def on_field(field: Any) -> None:
        name = field.field_name or b""
        value = field.value or b""
        if urlencoded:
            name = _unquote_plus(name)
            value = _unquote_plus(value)
        try:
            key = name.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedBodyError("form field name is not valid UTF-8") from e
        pairs.setdefault(key, value)

    # file parts are finalized by the parser after on_file returns
    files: List[Any] = []

    try:
        parse_form({"Content-Type": content_type}, reader, on_field, files.append, chunk_size=chunk_size)
    except FormParserError as e:
        raise MalformedBodyError(f"malformed form body: {e}") from e
    finally:
        for file in files:
            file.close()
    return pairs


def bind_form(
    reader: Any,
    content_type: str,
    media_type: str,
    index: FieldIndex,
    target: Any,
    *,
    chunk_size: int = DEFAULT_FORM_CHUNK_SIZE,
) -> List[str]:
    """
    Bind URL-encoded or multipart pairs into ``target``.

    String targets receive the raw text: it is escaped and wrapped in quotes so
    the JSON literal decoder accepts it. Other targets are decoded unquoted, so
    ``26`` becomes an int and ``true`` a bool.
    """
    pairs = read_form_pairs(reader, content_type, media_type, chunk_size=chunk_size)

    columns: List[str] = []
    for key, value in pairs.items():
        slot = index.get(key)
        if slot is None:
            raise UnknownFieldError(key=key)

        raw = value
        if slot.kind is FieldKind.STRING:
            raw = quote_bytes(escape_text(value))

        slot.assign(target, raw)
        columns.append(key)

    return columns
