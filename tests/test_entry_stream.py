import io
import struct
import zipfile
import zlib

import pytest

from zipweave.entry import Compression, ZipEntryBuilder, Zip64ExtendedInformationExtraField
from zipweave.errors import Zip64ErrorCase, Zip64NeededError
from zipweave.headers import NON_ZIP64_MAX_SIZE
from zipweave.writer import ZipFileWriter


def _stream(writer, name, chunks, compression=Compression.STORED):
    entry_writer = writer.write_entry_stream(ZipEntryBuilder(name, compression))
    for chunk in chunks:
        entry_writer.write(chunk)
    entry_writer.close()


def test_stored_stream_round_trip():
    writer = ZipFileWriter(io.BytesIO())
    _stream(writer, "a.txt", [b"hello ", b"world"])
    buffer = writer.close()
    with zipfile.ZipFile(buffer) as archive:
        assert archive.read("a.txt") == b"hello world"


def test_deflate_stream_round_trip():
    payload = b"compress me " * 500
    writer = ZipFileWriter(io.BytesIO())
    _stream(writer, "d.txt", [payload[:1000], payload[1000:]], Compression.DEFLATE)
    buffer = writer.close()
    with zipfile.ZipFile(buffer) as archive:
        info = archive.getinfo("d.txt")
        assert info.compress_type == zipfile.ZIP_DEFLATED
        assert info.file_size == len(payload)
        assert info.compress_size < len(payload)
        assert archive.read("d.txt") == payload


def test_context_manager_closes_entry():
    writer = ZipFileWriter(io.BytesIO())
    with writer.write_entry_stream(ZipEntryBuilder("ctx", Compression.STORED)) as w:
        w.write(b"abc")
    assert len(writer.cd_entries) == 1
    with zipfile.ZipFile(writer.close()) as archive:
        assert archive.read("ctx") == b"abc"


def test_default_mode_uses_zip64_extra_field():
    data = b"x" * 37
    writer = ZipFileWriter(io.BytesIO())
    _stream(writer, "z", [data])
    assert writer.is_zip64
    cd = writer.cd_entries[-1]
    field = cd.entry.extra_fields[-1]
    assert isinstance(field, Zip64ExtendedInformationExtraField)
    assert field.compressed_size == len(data)
    assert field.uncompressed_size == len(data)
    assert cd.header.compressed_size == NON_ZIP64_MAX_SIZE
    assert cd.header.uncompressed_size == NON_ZIP64_MAX_SIZE
    assert cd.header.crc == zlib.crc32(data)


def test_force_no_zip64_writes_real_sizes():
    data = b"plain data"
    writer = ZipFileWriter(io.BytesIO()).force_no_zip64()
    _stream(writer, "n", [data])
    assert not writer.is_zip64
    cd = writer.cd_entries[-1]
    assert cd.entry.extra_fields == []
    assert cd.header.compressed_size == len(data)
    assert cd.header.uncompressed_size == len(data)
    with zipfile.ZipFile(writer.close()) as archive:
        assert archive.read("n") == data


def test_force_no_zip64_rejects_large_size_hint():
    writer = ZipFileWriter(io.BytesIO()).force_no_zip64()
    entry = ZipEntryBuilder("big", Compression.STORED).size(
        NON_ZIP64_MAX_SIZE + 1, NON_ZIP64_MAX_SIZE + 1
    )
    with pytest.raises(Zip64NeededError) as info:
        writer.write_entry_stream(entry)
    assert info.value.case is Zip64ErrorCase.LARGE_FILE


def test_local_header_and_data_descriptor_layout():
    data = b"descriptor"
    writer = ZipFileWriter(io.BytesIO()).force_no_zip64()
    _stream(writer, "f", [data])
    raw = writer.close().getvalue()
    assert raw[:4] == struct.pack("<I", 0x04034B50)
    (flags,) = struct.unpack("<H", raw[6:8])
    assert flags & 0x08
    data_start = 30 + len(b"f")
    assert raw[data_start:data_start + len(data)] == data
    descriptor = raw[data_start + len(data):data_start + len(data) + 16]
    signature, crc, compressed, uncompressed = struct.unpack("<IIII", descriptor)
    assert signature == 0x08074B50
    assert crc == zlib.crc32(data)
    assert compressed == uncompressed == len(data)


def test_unicode_filename_sets_utf8_flag():
    writer = ZipFileWriter(io.BytesIO())
    _stream(writer, "résumé.txt", [b"cv"])
    with zipfile.ZipFile(writer.close()) as archive:
        info = archive.getinfo("résumé.txt")
        assert info.flag_bits & 0x800
        assert archive.read(info) == b"cv"


def test_write_after_close_raises():
    writer = ZipFileWriter(io.BytesIO())
    entry_writer = writer.write_entry_stream(ZipEntryBuilder("c", Compression.STORED))
    entry_writer.close()
    with pytest.raises(ValueError):
        entry_writer.write(b"late")


def test_second_close_records_entry_once():
    writer = ZipFileWriter(io.BytesIO())
    entry_writer = writer.write_entry_stream(ZipEntryBuilder("once", Compression.STORED))
    entry_writer.write(b"1")
    entry_writer.close()
    entry_writer.close()
    assert [cd.entry.filename for cd in writer.cd_entries] == ["once"]


def test_write_returns_consumed_length():
    writer = ZipFileWriter(io.BytesIO())
    entry_writer = writer.write_entry_stream(ZipEntryBuilder("len", Compression.DEFLATE))
    assert entry_writer.write(b"abcdef") == len(b"abcdef")
    entry_writer.close()
    with zipfile.ZipFile(writer.close()) as archive:
        assert archive.read("len") == b"abcdef"