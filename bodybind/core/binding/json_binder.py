"""Streaming JSON binder.

Reads a single flat JSON object token by token and decodes each value straight
into the matching field slot. No intermediate dict is built: keys are resolved
against the field index as they are encountered and only one literal is held
at a time.
"""

from __future__ import annotations

import codecs
import json
from typing import Any, List, Set

from bodybind.core.binding.errors import JsonSyntaxError, NestedValueError, UnknownFieldError
from bodybind.core.binding.field_index import FieldIndex
from bodybind.core.config import DEFAULT_JSON_CHUNK_SIZE

_WHITESPACE = frozenset(" \t\n\r")
_SCALAR_END = frozenset(",}] \t\n\r")


class _JsonTokenStream:
    """Pull-based tokenizer over a byte stream, refilled in ``chunk_size`` reads."""

    def __init__(self, reader: Any, chunk_size: int = DEFAULT_JSON_CHUNK_SIZE):
        self._reader = reader
        self._chunk_size = max(1, int(chunk_size))
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buf = ""
        self._pos = 0
        self._dropped = 0
        self._eof = False

    @property
    def offset(self) -> int:
        return self._dropped + self._pos

    def error(self, message: str) -> JsonSyntaxError:
        return JsonSyntaxError(message, offset=self.offset)

    def _fill(self) -> bool:
        """Append the next chunk to the buffer. Returns False once the stream is exhausted."""
        if self._eof:
            return False

        # drop what has already been consumed
        if self._pos:
            self._dropped += self._pos
            self._buf = self._buf[self._pos:]
            self._pos = 0

        data = self._reader.read(self._chunk_size)
        try:
            if data:
                self._buf += self._decoder.decode(data)
            else:
                self._eof = True
                self._buf += self._decoder.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise self.error("invalid UTF-8 in request body") from e
        return True

    def peek(self) -> str:
        """Skip whitespace and return the next character, or "" at end of input."""
        while True:
            buf = self._buf
            while self._pos < len(buf) and buf[self._pos] in _WHITESPACE:
                self._pos += 1
            if self._pos < len(buf):
                return buf[self._pos]
            if not self._fill():
                return ""

    def expect(self, ch: str) -> None:
        found = self.peek()
        if found != ch:
            raise self.error(f"expected {ch!r}, found {found!r}" if found else f"expected {ch!r}, found end of input")
        self._pos += 1

    def _is_escaped(self, idx: int) -> bool:
        n = 0
        i = idx - 1
        while i >= self._pos and self._buf[i] == "\\":
            n += 1
            i -= 1
        return n % 2 == 1

    def read_string_literal(self) -> str:
        """Return the raw string literal (quotes included) starting at the current position."""
        rel = 1
        while True:
            end = self._buf.find('"', self._pos + rel)
            while end != -1 and self._is_escaped(end):
                end = self._buf.find('"', end + 1)
            if end != -1:
                break
            rel = max(1, len(self._buf) - self._pos)
            if not self._fill():
                raise self.error("unterminated string")

        raw = self._buf[self._pos : end + 1]
        self._pos = end + 1
        return raw

    def read_key(self) -> str:
        if self.peek() != '"':
            raise self.error("expected object key")
        start = self.offset
        raw = self.read_string_literal()
        try:
            return json.loads(raw)
        except ValueError as e:
            raise JsonSyntaxError("invalid object key", offset=start) from e

    def read_scalar_literal(self) -> str:
        """Return the raw text of a number, true, false or null."""
        # rel is kept relative to _pos because _fill() trims the buffer
        rel = 0
        while True:
            buf = self._buf
            i = self._pos + rel
            while i < len(buf) and buf[i] not in _SCALAR_END:
                i += 1
            rel = i - self._pos
            if i < len(buf) or not self._fill():
                break

        raw = self._buf[self._pos : self._pos + rel]
        if not raw:
            raise self.error("expected a value")
        self._pos += rel
        return raw

    def advance(self) -> None:
        self._pos += 1


def bind_json(reader: Any, index: FieldIndex, target: Any, *, chunk_size: int = DEFAULT_JSON_CHUNK_SIZE) -> List[str]:
    """
    Bind one flat JSON object from ``reader`` into ``target``.

    Returns the bound wire keys in payload order. Fields set before a failing
    key stay set.
    """
    stream = _JsonTokenStream(reader, chunk_size)
    columns: List[str] = []
    seen: Set[str] = set()

    stream.expect("{")
    if stream.peek() == "}":
        return columns

    while True:
        key = stream.read_key()
        stream.expect(":")

        nxt = stream.peek()
        if nxt in ("{", "["):
            raise NestedValueError(key=key)
        if not nxt:
            raise stream.error("unexpected end of input")

        slot = index.get(key)
        if slot is None:
            raise UnknownFieldError(key=key)

        raw = stream.read_string_literal() if nxt == '"' else stream.read_scalar_literal()
        slot.assign(target, raw)

        if key not in seen:
            seen.add(key)
            columns.append(key)

        nxt = stream.peek()
        if nxt == ",":
            stream.advance()
            continue
        if nxt == "}":
            return columns
        raise stream.error(f"expected ',' or '}}', found {nxt!r}" if nxt else "unexpected end of input")
