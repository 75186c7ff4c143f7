import io

import pytest

from zipweave.offset import OffsetWriter


def test_basic():
    writer = OffsetWriter(io.BytesIO())
    assert writer.offset == 0

    writer.write(b"Foo. Bar. Foo. Bar.")
    assert writer.offset == 19

    writer.write(b"Foo. Foo.")
    assert writer.offset == 28

    writer.write(b"Bar. Bar.")
    assert writer.offset == 37


def test_data_reaches_inner_writer():
    buffer = io.BytesIO()
    writer = OffsetWriter(buffer)
    writer.write(b"abc")
    writer.write(b"def")
    assert buffer.getvalue() == b"abcdef"
    assert writer.offset == len(buffer.getvalue())


class _PartialWriter:
    def __init__(self):
        self.chunks = []

    def write(self, data):
        piece = bytes(data[:2])
        self.chunks.append(piece)
        return len(piece)


def test_partial_writes_are_completed():
    inner = _PartialWriter()
    writer = OffsetWriter(inner)
    assert writer.write(b"hello") == 5
    assert b"".join(inner.chunks) == b"hello"
    assert writer.offset == 5


class _StuckWriter:
    def write(self, data):
        return 0


def test_writer_accepting_nothing_raises():
    writer = OffsetWriter(_StuckWriter())
    with pytest.raises(OSError):
        writer.write(b"x")


def test_close_closes_inner():
    buffer = io.BytesIO()
    writer = OffsetWriter(buffer)
    writer.write(b"data")
    writer.flush()
    writer.close()
    assert buffer.closed