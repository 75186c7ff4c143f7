"""Writing an entry whose data arrives piece by piece, closed by a data descriptor."""

from __future__ import annotations

import struct
import zlib
from typing import Any, Optional

from zipweave.compressed_writer import CompressedWriter
from zipweave.entry import (
    LFH_SIGNATURE,
    Zip64ExtendedInformationExtraField,
    ZipEntry,
    count_extra_field_bytes,
    extra_fields_as_bytes,
    find_zip64_extra_field,
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
    DATA_DESCRIPTOR_SIGNATURE,
    NON_ZIP64_MAX_SIZE,
    CentralDirectoryRecord,
    GeneralPurposeFlag,
    LocalFileHeader,
    version_made_by,
    version_needed_to_extract,
)


def _fit_u16(value: int, error: type) -> int:
    if value > 0xFFFF:
        raise error()
    return value


class EntryStreamWriter:
    """Streams one entry of unknown size into a ZIP file writer.

    ``writer`` provides ``writer`` (an offset-tracking output), ``force_no_zip64``,
    ``is_zip64`` and ``_push_central_directory_entry(header, entry)``.
    The local file header is written on construction; :meth:`close` must be
    called to finish the entry, or the archive will be corrupt.
    """

    def __init__(self, writer: Any, entry: ZipEntry) -> None:
        self._zip = writer
        self.entry = entry
        out = writer.writer
        self._lfh_offset = out.offset
        self._lfh = self._write_lfh()
        self._data_offset = out.offset
        self._compressor = CompressedWriter(out, entry.compression)
        self._crc = 0
        self._uncompressed_size = 0
        self.closed = False

    def _write_lfh(self) -> LocalFileHeader:
        state, entry = self._zip, self.entry

        # A ZIP64 field is always emitted unless forbidden: the final size is unknown.
        if not state.force_no_zip64:
            state.is_zip64 = True
            entry.extra_fields.append(
                Zip64ExtendedInformationExtraField(
                    uncompressed_size=entry.uncompressed_size,
                    compressed_size=entry.compressed_size,
                )
            )
            compressed_size = uncompressed_size = NON_ZIP64_MAX_SIZE
        else:
            if (
                entry.compressed_size > NON_ZIP64_MAX_SIZE
                or entry.uncompressed_size > NON_ZIP64_MAX_SIZE
            ):
                raise Zip64NeededError(Zip64ErrorCase.LARGE_FILE)
            compressed_size = entry.compressed_size
            uncompressed_size = entry.uncompressed_size

        filename = entry.filename.encode("utf-8")
        lfh = LocalFileHeader(
            version=version_needed_to_extract(entry),
            flags=GeneralPurposeFlag(
                data_descriptor=True,
                encrypted=False,
                filename_unicode=not entry.filename.isascii(),
            ),
            compression=int(entry.compression),
            mod_time=entry.last_modification_date.time,
            mod_date=entry.last_modification_date.date,
            crc=entry.crc32,
            compressed_size=compressed_size,
            uncompressed_size=uncompressed_size,
            file_name_length=0,
            extra_field_length=_fit_u16(
                count_extra_field_bytes(entry.extra_fields), ExtraFieldTooLargeError
            ),
        )
        lfh.file_name_length = _fit_u16(len(filename), FileNameTooLargeError)

        out = state.writer
        try:
            out.write(struct.pack("<I", LFH_SIGNATURE))
            out.write(lfh.as_bytes())
            out.write(filename)
            out.write(extra_fields_as_bytes(entry.extra_fields))
        except OSError as exc:
            raise UpstreamReadError(exc) from exc
        return lfh

    def write(self, data: bytes) -> int:
        """Compress and write ``data``; returns the number of bytes consumed."""
        if self.closed:
            raise ValueError("write to a closed entry writer")
        data = bytes(data)
        written = self._compressor.write(data)
        self._crc = zlib.crc32(data[:written], self._crc)
        self._uncompressed_size += written
        return written

    def flush(self) -> None:
        if self.closed:
            raise ValueError("flush of a closed entry writer")
        self._compressor.flush()

    def close(self) -> None:
        """Finish the data, write the data descriptor and record the entry."""
        if self.closed:
            return
        self.closed = True
        state, entry, out = self._zip, self.entry, self._zip.writer

        try:
            self._compressor.close()
        except OSError as exc:
            raise UpstreamReadError(exc) from exc

        crc = self._crc & 0xFFFFFFFF
        uncompressed_size = self._uncompressed_size
        compressed_size = out.offset - self._data_offset

        if state.force_no_zip64:
            if uncompressed_size > NON_ZIP64_MAX_SIZE or compressed_size > NON_ZIP64_MAX_SIZE:
                raise Zip64NeededError(Zip64ErrorCase.LARGE_FILE)
            cdr_compressed, cdr_uncompressed = compressed_size, uncompressed_size
        else:
            zip64 = find_zip64_extra_field(entry.extra_fields)
            if zip64 is None:
                entry.extra_fields.append(
                    Zip64ExtendedInformationExtraField(
                        uncompressed_size=uncompressed_size,
                        compressed_size=compressed_size,
                    )
                )
                self._lfh.extra_field_length = _fit_u16(
                    count_extra_field_bytes(entry.extra_fields), ExtraFieldTooLargeError
                )
            else:
                zip64.uncompressed_size = uncompressed_size
                zip64.compressed_size = compressed_size
            cdr_compressed = cdr_uncompressed = NON_ZIP64_MAX_SIZE

        try:
            out.write(struct.pack("<IIII", DATA_DESCRIPTOR_SIGNATURE, crc,
                                  cdr_compressed, cdr_uncompressed))
        except OSError as exc:
            raise UpstreamReadError(exc) from exc

        lfh = self._lfh
        header = CentralDirectoryRecord(
            v_made_by=version_made_by(),
            v_needed=lfh.version,
            flags=lfh.flags,
            compression=lfh.compression,
            mod_time=lfh.mod_time,
            mod_date=lfh.mod_date,
            crc=crc,
            compressed_size=cdr_compressed,
            uncompressed_size=cdr_uncompressed,
            file_name_length=lfh.file_name_length,
            extra_field_length=lfh.extra_field_length,
            file_comment_length=_fit_u16(
                len(entry.comment.encode("utf-8")), CommentTooLargeError
            ),
            disk_start=0,
            inter_attr=entry.internal_file_attribute,
            exter_attr=entry.external_file_attribute,
            lh_offset=self._lfh_offset & 0xFFFFFFFF,
        )
        state._push_central_directory_entry(header, entry)

    def __enter__(self) -> "EntryStreamWriter":
        return self

    def __exit__(self, exc_type: Optional[type], exc: Optional[BaseException], tb: Any) -> None:
        if exc_type is None:
            self.close()