"""A writer wrapper that keeps count of the bytes passed through it."""

from __future__ import annotations

from typing import BinaryIO


class OffsetWriter:
    """Wraps a binary writer and tracks the current byte offset."""

    def __init__(self, inner: BinaryIO) -> None:
        self.inner = inner
        self.offset = 0

    def write(self, data: bytes) -> int:
        """Write all of ``data`` and return its length."""
        remaining = bytes(data)
        total = len(remaining)
        while remaining:
            written = self.inner.write(remaining)
            if written is None:
                written = len(remaining)
            if written <= 0:
                raise OSError("the underlying writer accepted no bytes")
            self.offset += written
            remaining = remaining[written:]
        return total

    def flush(self) -> None:
        flush = getattr(self.inner, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        close = getattr(self.inner, "close", None)
        if close is not None:
            close()