"""ZIP entry metadata: compression methods, timestamps, extra fields and entries."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import BinaryIO, ClassVar, Iterable, Optional, Union

from zipweave.errors import UnexpectedHeaderError, UpstreamReadError

LFH_SIGNATURE = 0x04034B50

_LFH_STRUCT = struct.Struct("<HHHHHIIIHH")


class Compression(IntEnum):
    """Compression methods, valued by their ZIP method code."""

    STORED = 0
    DEFLATE = 8
    BZ = 12
    LZMA = 14
    ZSTD = 93
    XZ = 95


class DeflateOption(Enum):
    """Compression strength presets."""

    NORMAL = "normal"
    MAXIMUM = "maximum"
    FAST = "fast"
    SUPER = "super"

    @property
    def level(self) -> str:
        """The generic level name: 'default', 'best' or 'fastest'."""
        if self is DeflateOption.NORMAL:
            return "default"
        if self is DeflateOption.MAXIMUM:
            return "best"
        return "fastest"


class AttributeCompatibility(IntEnum):
    """Host system that the external attributes are meant for."""

    MSDOS = 0
    UNIX = 3


@dataclass(frozen=True)
class ZipDateTime:
    """An MS-DOS date and time pair as stored in ZIP headers."""

    date: int = 0
    time: int = 0

    @property
    def year(self) -> int:
        return ((self.date >> 9) & 0x7F) + 1980

    @property
    def month(self) -> int:
        return (self.date >> 5) & 0xF

    @property
    def day(self) -> int:
        return self.date & 0x1F

    @property
    def hour(self) -> int:
        return (self.time >> 11) & 0x1F

    @property
    def minute(self) -> int:
        return (self.time >> 5) & 0x3F

    @property
    def second(self) -> int:
        return (self.time & 0x1F) * 2

    @classmethod
    def from_datetime(cls, value: datetime) -> "ZipDateTime":
        """Encode a datetime; aware values are converted to UTC first."""
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        if not 1980 <= value.year <= 2107:
            raise ValueError(f"year {value.year} cannot be stored in a ZIP timestamp")
        date = ((value.year - 1980) << 9) | (value.month << 5) | value.day
        time = (value.hour << 11) | (value.minute << 5) | (value.second // 2)
        return cls(date=date, time=time)

    def to_datetime(self) -> datetime:
        """Decode into a UTC datetime; raises ValueError for invalid fields."""
        return datetime(
            self.year, self.month, self.day, self.hour, self.minute, self.second,
            tzinfo=timezone.utc,
        )


@dataclass
class Zip64ExtendedInformationExtraField:
    """The ZIP64 extended information extra field (header id 0x0001)."""

    HEADER_ID: ClassVar[int] = 0x0001

    uncompressed_size: int = 0
    compressed_size: int = 0
    relative_header_offset: Optional[int] = None
    disk_start_number: Optional[int] = None

    @property
    def header_id(self) -> int:
        return self.HEADER_ID

    @property
    def data_size(self) -> int:
        size = 16
        if self.relative_header_offset is not None:
            size += 8
        if self.disk_start_number is not None:
            size += 4
        return size

    def as_bytes(self) -> bytes:
        parts = [
            struct.pack("<HHQQ", self.HEADER_ID, self.data_size,
                        self.uncompressed_size, self.compressed_size)
        ]
        if self.relative_header_offset is not None:
            parts.append(struct.pack("<Q", self.relative_header_offset))
        if self.disk_start_number is not None:
            parts.append(struct.pack("<I", self.disk_start_number))
        return b"".join(parts)


@dataclass
class UnknownExtraField:
    """An extra field whose content is kept as raw bytes."""

    header_id: int
    content: bytes = b""

    @property
    def data_size(self) -> int:
        return len(self.content)

    def as_bytes(self) -> bytes:
        return struct.pack("<HH", self.header_id, self.data_size) + self.content


ExtraField = Union[Zip64ExtendedInformationExtraField, UnknownExtraField]


def extra_fields_as_bytes(fields: Iterable[ExtraField]) -> bytes:
    """Serialise extra fields in order."""
    return b"".join(f.as_bytes() for f in fields)


def count_extra_field_bytes(fields: Iterable[ExtraField]) -> int:
    """Total serialised size of the extra fields, headers included."""
    return sum(4 + f.data_size for f in fields)


def find_zip64_extra_field(
    fields: Iterable[ExtraField],
) -> Optional[Zip64ExtendedInformationExtraField]:
    """Return the first ZIP64 extended information field, if present."""
    return next(
        (f for f in fields if isinstance(f, Zip64ExtendedInformationExtraField)), None
    )


@dataclass
class ZipEntry:
    """Metadata describing one ZIP entry."""

    filename: str
    compression: Compression
    compression_level: str = "default"
    crc32: int = 0
    uncompressed_size: int = 0
    compressed_size: int = 0
    attribute_compatibility: AttributeCompatibility = AttributeCompatibility.UNIX
    last_modification_date: ZipDateTime = field(default_factory=ZipDateTime)
    internal_file_attribute: int = 0
    external_file_attribute: int = 0
    extra_fields: list = field(default_factory=list)
    comment: str = ""

    def unix_permissions(self) -> Optional[int]:
        """The Unix mode bits, or None when the host is not Unix."""
        if self.attribute_compatibility is not AttributeCompatibility.UNIX:
            return None
        return (self.external_file_attribute >> 16) & 0xFFFF

    def is_dir(self) -> bool:
        return self.filename.endswith("/")


class ZipEntryBuilder:
    """Fluent builder for ZipEntry."""

    def __init__(self, filename: str, compression: Compression) -> None:
        self._entry = ZipEntry(filename=filename, compression=compression)

    @classmethod
    def from_entry(cls, entry: ZipEntry) -> "ZipEntryBuilder":
        builder = cls.__new__(cls)
        builder._entry = entry
        return builder

    def filename(self, filename: str) -> "ZipEntryBuilder":
        self._entry.filename = filename
        return self

    def compression(self, compression: Compression) -> "ZipEntryBuilder":
        self._entry.compression = compression
        return self

    def size(self, compressed_size: int, uncompressed_size: int) -> "ZipEntryBuilder":
        """Size hint written into the local file header of streamed entries."""
        self._entry.compressed_size = compressed_size
        self._entry.uncompressed_size = uncompressed_size
        return self

    def deflate_option(self, option: DeflateOption) -> "ZipEntryBuilder":
        self._entry.compression_level = option.level
        return self

    def attribute_compatibility(self, compatibility: AttributeCompatibility) -> "ZipEntryBuilder":
        self._entry.attribute_compatibility = compatibility
        return self

    def last_modification_date(self, date: ZipDateTime) -> "ZipEntryBuilder":
        self._entry.last_modification_date = date
        return self

    def internal_file_attribute(self, attribute: int) -> "ZipEntryBuilder":
        self._entry.internal_file_attribute = attribute
        return self

    def external_file_attribute(self, attribute: int) -> "ZipEntryBuilder":
        self._entry.external_file_attribute = attribute
        return self

    def extra_fields(self, fields: Iterable[ExtraField]) -> "ZipEntryBuilder":
        self._entry.extra_fields = list(fields)
        return self

    def comment(self, comment: str) -> "ZipEntryBuilder":
        self._entry.comment = comment
        return self

    def unix_permissions(self, mode: int) -> "ZipEntryBuilder":
        """Set Unix mode bits; ignored unless the host is Unix."""
        if not 0 <= mode <= 0xFFFF:
            raise ValueError(f"mode {mode:#o} does not fit in 16 bits")
        if self._entry.attribute_compatibility is AttributeCompatibility.UNIX:
            self._entry.external_file_attribute = (
                (self._entry.external_file_attribute & 0xFFFF) | (mode << 16)
            )
        return self

    def build(self) -> ZipEntry:
        return self._entry


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    try:
        data = reader.read(size)
    except OSError as exc:
        raise UpstreamReadError(exc) from exc
    if len(data) != size:
        raise UpstreamReadError(EOFError("failed to fill whole buffer"))
    return data


def assert_signature(reader: BinaryIO, expected: int) -> None:
    """Read a four-byte little-endian signature and check it."""
    (actual,) = struct.unpack("<I", _read_exact(reader, 4))
    if actual != expected:
        raise UnexpectedHeaderError(actual, expected)


@dataclass
class StoredZipEntry:
    """An entry together with where its local header sits in an archive."""

    entry: ZipEntry
    file_offset: int

    @property
    def header_offset(self) -> int:
        return self.file_offset

    def seek_to_data_offset(self, reader: BinaryIO) -> None:
        """Position the reader at the first byte of the entry's data."""
        try:
            reader.seek(self.file_offset)
        except OSError as exc:
            raise UpstreamReadError(exc) from exc
        assert_signature(reader, LFH_SIGNATURE)
        header = _LFH_STRUCT.unpack(_read_exact(reader, _LFH_STRUCT.size))
        file_name_length, extra_field_length = header[8], header[9]
        _read_exact(reader, file_name_length)
        _read_exact(reader, extra_field_length)