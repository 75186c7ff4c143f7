"""Streaming compression of entry data in front of an underlying writer."""

from __future__ import annotations

import bz2
import io
import lzma
import zlib
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import zstandard

from zipweave.entry import Compression, DeflateOption
from zipweave.errors import CompressionNotSupportedError

Level = Union[str, int, DeflateOption]

_LEVELS = {
    Compression.DEFLATE: {"default": 6, "best": 9, "fastest": 1},
    Compression.BZ: {"default": 6, "best": 9, "fastest": 1},
    Compression.LZMA: {"default": 6, "best": 9, "fastest": 0},
    Compression.XZ: {"default": 6, "best": 9, "fastest": 0},
    Compression.ZSTD: {"default": 3, "best": 22, "fastest": 1},
}


@dataclass
class _Encoder:
    compress: Callable[[bytes], bytes]
    flush: Callable[[], bytes]
    finish: Callable[[], bytes]


def _resolve_level(compression: Compression, level: Level) -> int:
    if isinstance(level, DeflateOption):
        level = level.level
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[compression][level]
    except KeyError:
        raise ValueError(f"unknown compression level: {level!r}") from None


def _make_encoder(compression: Compression, level: Level) -> Optional[_Encoder]:
    if compression is Compression.STORED:
        return None
    if compression not in _LEVELS:
        raise CompressionNotSupportedError(int(compression))
    value = _resolve_level(compression, level)
    if compression is Compression.DEFLATE:
        deflater = zlib.compressobj(value, zlib.DEFLATED, -15)
        return _Encoder(
            deflater.compress, lambda: deflater.flush(zlib.Z_SYNC_FLUSH), deflater.flush
        )
    if compression is Compression.BZ:
        bzipper = bz2.BZ2Compressor(value)
        return _Encoder(bzipper.compress, lambda: b"", bzipper.flush)
    if compression in (Compression.LZMA, Compression.XZ):
        fmt = lzma.FORMAT_ALONE if compression is Compression.LZMA else lzma.FORMAT_XZ
        lzmaer = lzma.LZMACompressor(format=fmt, preset=value)
        return _Encoder(lzmaer.compress, lambda: b"", lzmaer.flush)
    zstder = zstandard.ZstdCompressor(level=value).compressobj()
    return _Encoder(
        zstder.compress,
        lambda: zstder.flush(zstandard.COMPRESSOBJ_FLUSH_BLOCK),
        zstder.flush,
    )


class CompressedWriter:
    """Compresses written data into ``writer``; closing never closes ``writer``."""

    def __init__(self, writer: Any, compression: Compression, level: Level = "default") -> None:
        self.writer = writer
        self.compression = compression
        self._encoder = _make_encoder(compression, level)
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to a closed compressed writer")
        data = bytes(data)
        if self._encoder is None:
            self.writer.write(data)
        else:
            out = self._encoder.compress(data)
            if out:
                self.writer.write(out)
        return len(data)

    def flush(self) -> None:
        if self.closed:
            raise ValueError("flush of a closed compressed writer")
        if self._encoder is not None:
            out = self._encoder.flush()
            if out:
                self.writer.write(out)
        flush = getattr(self.writer, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        """Finish the compressed stream, leaving the underlying writer open."""
        if self.closed:
            return
        if self._encoder is not None:
            out = self._encoder.finish()
            if out:
                self.writer.write(out)
        self.closed = True

    def into_inner(self) -> Any:
        return self.writer


def compress(compression: Compression, data: bytes, level: Level = "default") -> bytes:
    """Compress ``data`` completely with the given method."""
    buffer = io.BytesIO()
    writer = CompressedWriter(buffer, compression, level)
    writer.write(data)
    writer.close()
    return buffer.getvalue()