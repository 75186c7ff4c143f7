import io
import struct
import zipfile
import zlib
from datetime import datetime

from zipweave.entry import (
    LFH_SIGNATURE,
    AttributeCompatibility,
    Compression,
    Zip64ExtendedInformationExtraField,
    ZipDateTime,
    ZipEntryBuilder,
)
from zipweave.headers import (
    CDH_SIGNATURE,
    EOCDR_SIGNATURE,
    NON_ZIP64_MAX_NUM_FILES,
    NON_ZIP64_MAX_SIZE,
    ZIP64_EOCDL_SIGNATURE,
    ZIP64_EOCDR_SIGNATURE,
    CentralDirectoryRecord,
    EndOfCentralDirectoryHeader,
    GeneralPurposeFlag,
    LocalFileHeader,
    Zip64EndOfCentralDirectoryLocator,
    Zip64EndOfCentralDirectoryRecord,
    version_made_by,
    version_needed_to_extract,
)


def _sig(value):
    return struct.pack("<I", value)


def _build_archive(name, data, zip64=False):
    entry = ZipEntryBuilder(name, Compression.STORED).build()
    stamp = ZipDateTime.from_datetime(datetime(2020, 1, 2, 3, 4, 6))
    encoded = name.encode()
    crc = zlib.crc32(data)
    lfh = LocalFileHeader(
        version=version_needed_to_extract(entry), flags=GeneralPurposeFlag(),
        compression=int(Compression.STORED), mod_time=stamp.time, mod_date=stamp.date,
        crc=crc, compressed_size=len(data), uncompressed_size=len(data),
        file_name_length=len(encoded), extra_field_length=0,
    )
    local = _sig(LFH_SIGNATURE) + lfh.as_bytes() + encoded + data
    cdr = CentralDirectoryRecord(
        v_made_by=version_made_by(), v_needed=lfh.version, flags=lfh.flags,
        compression=lfh.compression, mod_time=lfh.mod_time, mod_date=lfh.mod_date,
        crc=crc, compressed_size=len(data), uncompressed_size=len(data),
        file_name_length=len(encoded), extra_field_length=0, file_comment_length=0,
        disk_start=0, inter_attr=0, exter_attr=0, lh_offset=0,
    )
    central = _sig(CDH_SIGNATURE) + cdr.as_bytes() + encoded
    tail = b""
    if zip64:
        record = Zip64EndOfCentralDirectoryRecord(
            num_entries_in_directory_on_disk=1, num_entries_in_directory=1,
            directory_size=len(central), offset_of_start_of_directory=len(local),
        )
        locator = Zip64EndOfCentralDirectoryLocator(relative_offset=len(local) + len(central))
        tail = (_sig(ZIP64_EOCDR_SIGNATURE) + record.as_bytes()
                + _sig(ZIP64_EOCDL_SIGNATURE) + locator.as_bytes())
        eocd = EndOfCentralDirectoryHeader(
            num_of_entries_disk=NON_ZIP64_MAX_NUM_FILES, num_of_entries=NON_ZIP64_MAX_NUM_FILES,
            size_cent_dir=NON_ZIP64_MAX_SIZE, cent_dir_offset=NON_ZIP64_MAX_SIZE,
        )
    else:
        eocd = EndOfCentralDirectoryHeader(
            num_of_entries_disk=1, num_of_entries=1,
            size_cent_dir=len(central), cent_dir_offset=len(local),
        )
    return local + central + tail + _sig(EOCDR_SIGNATURE) + eocd.as_bytes()


def test_empty_archive_is_readable():
    archive = _sig(EOCDR_SIGNATURE) + EndOfCentralDirectoryHeader().as_bytes()
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.namelist() == []


def test_stored_archive_is_readable():
    archive = _build_archive("foo.txt", b"foo bar")
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.namelist() == ["foo.txt"]
        assert zf.read("foo.txt") == b"foo bar"
        assert zf.getinfo("foo.txt").date_time == (2020, 1, 2, 3, 4, 6)


def test_zip64_end_records_are_readable():
    archive = _build_archive("file1", b"\x00\x00\x00\x00", zip64=True)
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.read("file1") == b"\x00\x00\x00\x00"


def test_local_header_field_order():
    lfh = LocalFileHeader(
        version=1, flags=GeneralPurposeFlag(), compression=2, mod_time=3,
        mod_date=4, crc=5, compressed_size=6, uncompressed_size=7,
        file_name_length=8, extra_field_length=9,
    )
    assert struct.unpack("<HHHHHIIIHH", lfh.as_bytes()) == (1, 0, 2, 3, 4, 5, 6, 7, 8, 9)


def test_general_purpose_flag_bits():
    assert GeneralPurposeFlag().to_int() == 0
    assert GeneralPurposeFlag(data_descriptor=True).to_int() == 0x0008
    assert GeneralPurposeFlag(filename_unicode=True).to_int() == 0x0800
    both = GeneralPurposeFlag(encrypted=True, data_descriptor=True)
    assert both.to_int() == GeneralPurposeFlag(encrypted=True).to_int() | 0x0008


def test_zip64_record_size_matches_declared_size():
    record = Zip64EndOfCentralDirectoryRecord()
    # The declared size excludes the signature and the size field itself.
    assert len(record.as_bytes()) - 8 == record.size_of_zip64_end_of_cd_record


def test_version_made_by_is_unix():
    assert version_made_by() >> 8 == AttributeCompatibility.UNIX


def test_version_needed_grows_with_features():
    stored = version_needed_to_extract(ZipEntryBuilder("a", Compression.STORED).build())
    deflate = version_needed_to_extract(ZipEntryBuilder("a", Compression.DEFLATE).build())
    directory = version_needed_to_extract(ZipEntryBuilder("a/", Compression.STORED).build())
    zip64_entry = ZipEntryBuilder("a", Compression.STORED).extra_fields(
        [Zip64ExtendedInformationExtraField()]
    ).build()
    assert deflate > stored
    assert directory >= deflate
    assert version_needed_to_extract(zip64_entry) > deflate