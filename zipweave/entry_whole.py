"""Writing an entry whose complete data is known up front."""

from __future__ import annotations

import struct
import zlib
from typing import Any

from zipweave.compressed_writer import compress
from zipweave.entry import (
    LFH_SIGNATURE,
    Compression,
    Zip64ExtendedInformationExtraField,
    ZipEntry,
    count_extra_field_bytes,
    extra_fields_as_bytes,
)
from zipweave.errors import (
    CommentTooLargeError,
    ExtraFieldTooLargeError,
    FileNameTooLargeError,
    UpstreamReadError,
    Zip64ErrorCase,
    Zip64NeededError,
)
from zipweave.headers import (
    NON_ZIP64_MAX_SIZE,
    CentralDirectoryRecord,
    GeneralPurposeFlag,
    LocalFileHeader,
    version_made_by,
    version_needed_to_extract,
)


def compute_crc(data: bytes) -> int:
    """CRC-32 of ``data`` as used in ZIP headers."""
    return zlib.crc32(data) & 0xFFFFFFFF


def _fit_u16(value: int, error: type) -> int:
    if value > 0xFFFF:
        raise error()
    return value


class EntryWholeWriter:
    """Writes one complete entry into a ZIP file writer.

    ``writer`` provides ``writer`` (an offset-tracking output), ``force_no_zip64``,
    ``is_zip64`` and ``_push_central_directory_entry(header, entry)``.
    """

    def __init__(self, writer: Any, entry: ZipEntry, data: bytes) -> None:
        self.writer = writer
        self.entry = entry
        self.data = bytes(data)

    def write(self) -> None:
        zip_writer, entry, data = self.writer, self.entry, self.data

        if entry.compression is Compression.STORED:
            compressed = data
        else:
            compressed = compress(entry.compression, data, entry.compression_level)

        if len(data) > NON_ZIP64_MAX_SIZE or len(compressed) > NON_ZIP64_MAX_SIZE:
            if zip_writer.force_no_zip64:
                raise Zip64NeededError(Zip64ErrorCase.LARGE_FILE)
            zip_writer.is_zip64 = True
            entry.extra_fields.append(
                Zip64ExtendedInformationExtraField(
                    uncompressed_size=len(data), compressed_size=len(compressed)
                )
            )
            compressed_size = uncompressed_size = NON_ZIP64_MAX_SIZE
        else:
            compressed_size, uncompressed_size = len(compressed), len(data)

        filename = entry.filename.encode("utf-8")
        comment = entry.comment.encode("utf-8")

        lfh = LocalFileHeader(
            version=version_needed_to_extract(entry),
            flags=GeneralPurposeFlag(
                data_descriptor=False,
                encrypted=False,
                filename_unicode=not entry.filename.isascii(),
            ),
            compression=int(entry.compression),
            mod_time=entry.last_modification_date.time,
            mod_date=entry.last_modification_date.date,
            crc=compute_crc(data),
            compressed_size=compressed_size,
            uncompressed_size=uncompressed_size,
            file_name_length=0,
            extra_field_length=_fit_u16(
                count_extra_field_bytes(entry.extra_fields), ExtraFieldTooLargeError
            ),
        )
        lfh.file_name_length = _fit_u16(len(filename), FileNameTooLargeError)

        header = CentralDirectoryRecord(
            v_made_by=version_made_by(),
            v_needed=lfh.version,
            flags=lfh.flags,
            compression=lfh.compression,
            mod_time=lfh.mod_time,
            mod_date=lfh.mod_date,
            crc=lfh.crc,
            compressed_size=lfh.compressed_size,
            uncompressed_size=lfh.uncompressed_size,
            file_name_length=lfh.file_name_length,
            extra_field_length=lfh.extra_field_length,
            file_comment_length=_fit_u16(len(comment), CommentTooLargeError),
            disk_start=0,
            inter_attr=entry.internal_file_attribute,
            exter_attr=entry.external_file_attribute,
            lh_offset=zip_writer.writer.offset & 0xFFFFFFFF,
        )

        out = zip_writer.writer
        try:
            out.write(struct.pack("<I", LFH_SIGNATURE))
            out.write(lfh.as_bytes())
            out.write(filename)
            out.write(extra_fields_as_bytes(entry.extra_fields))
            out.write(compressed)
        except OSError as exc:
            raise UpstreamReadError(exc) from exc

        zip_writer._push_central_directory_entry(header, entry)