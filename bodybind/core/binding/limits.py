from __future__ import annotations

from typing import Any, Optional

from bodybind.core.binding.errors import BodyTooLargeError


class LimitedReader:
    """
    Read-through wrapper that fails once more than ``limit`` bytes are read.

    At most ``limit + 1`` bytes are ever pulled from the wrapped stream, so an
    oversized producer is detected without buffering the excess.
    """

    def __init__(self, stream: Any, limit: int):
        self._stream = stream
        self.limit = int(limit)
        self._remaining = self.limit
        self.bytes_read = 0

    def read(self, size: Optional[int] = -1) -> bytes:
        if size is None or size < 0:
            size = self._remaining + 1
        if size == 0:
            return b""

        chunk = self._stream.read(min(size, self._remaining + 1))
        if chunk is None:
            chunk = b""
        if len(chunk) > self._remaining:
            raise BodyTooLargeError(limit=self.limit)

        self._remaining -= len(chunk)
        self.bytes_read += len(chunk)
        return chunk

    def read_all(self, chunk_size: int = 64 * 1024) -> bytes:
        """Drain the wrapped stream, failing as soon as the limit is passed."""
        buf = bytearray()
        while True:
            chunk = self.read(chunk_size)
            if not chunk:
                return bytes(buf)
            buf += chunk
