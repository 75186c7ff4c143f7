"""Fixed-layout ZIP header records and the version numbers written into them."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from zipweave.entry import (
    AttributeCompatibility,
    Compression,
    ZipEntry,
    find_zip64_extra_field,
)

CDH_SIGNATURE = 0x02014B50
EOCDR_SIGNATURE = 0x06054B50
ZIP64_EOCDR_SIGNATURE = 0x06064B50
ZIP64_EOCDL_SIGNATURE = 0x07064B50
DATA_DESCRIPTOR_SIGNATURE = 0x08074B50

NON_ZIP64_MAX_SIZE = 0xFFFFFFFF
NON_ZIP64_MAX_NUM_FILES = 0xFFFF

_SPEC_VERSION_MADE_BY = 63
_ZIP64_VERSION = 45
_DIRECTORY_VERSION = 20

_VERSION_BY_COMPRESSION = {
    Compression.STORED: 10,
    Compression.DEFLATE: 20,
    Compression.BZ: 46,
    Compression.LZMA: 63,
    Compression.ZSTD: 63,
    Compression.XZ: 63,
}


@dataclass
class GeneralPurposeFlag:
    """The general purpose bit flag of local and central headers."""

    encrypted: bool = False
    data_descriptor: bool = False
    filename_unicode: bool = False

    def to_int(self) -> int:
        value = 0
        if self.encrypted:
            value |= 1 << 0
        if self.data_descriptor:
            value |= 1 << 3
        if self.filename_unicode:
            value |= 1 << 11
        return value


@dataclass
class LocalFileHeader:
    """A local file header, without its signature."""

    version: int
    flags: GeneralPurposeFlag
    compression: int
    mod_time: int
    mod_date: int
    crc: int
    compressed_size: int
    uncompressed_size: int
    file_name_length: int
    extra_field_length: int

    def as_bytes(self) -> bytes:
        return struct.pack(
            "<HHHHHIIIHH",
            self.version, self.flags.to_int(), self.compression, self.mod_time,
            self.mod_date, self.crc, self.compressed_size, self.uncompressed_size,
            self.file_name_length, self.extra_field_length,
        )


@dataclass
class CentralDirectoryRecord:
    """A central directory file header, without its signature."""

    v_made_by: int
    v_needed: int
    flags: GeneralPurposeFlag
    compression: int
    mod_time: int
    mod_date: int
    crc: int
    compressed_size: int
    uncompressed_size: int
    file_name_length: int
    extra_field_length: int
    file_comment_length: int
    disk_start: int
    inter_attr: int
    exter_attr: int
    lh_offset: int

    def as_bytes(self) -> bytes:
        return struct.pack(
            "<HHHHHHIIIHHHHHII",
            self.v_made_by, self.v_needed, self.flags.to_int(), self.compression,
            self.mod_time, self.mod_date, self.crc, self.compressed_size,
            self.uncompressed_size, self.file_name_length, self.extra_field_length,
            self.file_comment_length, self.disk_start, self.inter_attr,
            self.exter_attr, self.lh_offset,
        )


@dataclass
class EndOfCentralDirectoryHeader:
    """The end of central directory record, without its signature."""

    disk_num: int = 0
    start_cent_dir_disk: int = 0
    num_of_entries_disk: int = 0
    num_of_entries: int = 0
    size_cent_dir: int = 0
    cent_dir_offset: int = 0
    file_comm_length: int = 0

    def as_bytes(self) -> bytes:
        return struct.pack(
            "<HHHHIIH",
            self.disk_num, self.start_cent_dir_disk, self.num_of_entries_disk,
            self.num_of_entries, self.size_cent_dir, self.cent_dir_offset,
            self.file_comm_length,
        )


@dataclass
class Zip64EndOfCentralDirectoryRecord:
    """The ZIP64 end of central directory record, without its signature."""

    size_of_zip64_end_of_cd_record: int = 44
    version_made_by: int = field(default_factory=lambda: version_made_by())
    version_needed_to_extract: int = 46
    disk_number: int = 0
    disk_number_start_of_cd: int = 0
    num_entries_in_directory_on_disk: int = 0
    num_entries_in_directory: int = 0
    directory_size: int = 0
    offset_of_start_of_directory: int = 0

    def as_bytes(self) -> bytes:
        return struct.pack(
            "<QHHIIQQQQ",
            self.size_of_zip64_end_of_cd_record, self.version_made_by,
            self.version_needed_to_extract, self.disk_number,
            self.disk_number_start_of_cd, self.num_entries_in_directory_on_disk,
            self.num_entries_in_directory, self.directory_size,
            self.offset_of_start_of_directory,
        )


@dataclass
class Zip64EndOfCentralDirectoryLocator:
    """The ZIP64 end of central directory locator, without its signature."""

    number_of_disk_with_start_of_zip64_end_of_central_directory: int = 0
    relative_offset: int = 0
    total_number_of_disks: int = 1

    def as_bytes(self) -> bytes:
        return struct.pack(
            "<IQI",
            self.number_of_disk_with_start_of_zip64_end_of_central_directory,
            self.relative_offset, self.total_number_of_disks,
        )


def version_made_by() -> int:
    """Version made by: Unix host in the high byte, spec version in the low."""
    return (int(AttributeCompatibility.UNIX) << 8) | _SPEC_VERSION_MADE_BY


def version_needed_to_extract(entry: ZipEntry) -> int:
    """The minimum spec version a reader needs for this entry."""
    version = _VERSION_BY_COMPRESSION.get(entry.compression, 10)
    if entry.is_dir():
        version = max(version, _DIRECTORY_VERSION)
    if find_zip64_extra_field(entry.extra_fields) is not None:
        version = max(version, _ZIP64_VERSION)
    return version