"""Writing complete ZIP archives into a binary output."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Optional, Union

from zipweave.entry import (
    ZipEntry,
    ZipEntryBuilder,
    extra_fields_as_bytes,
)
from zipweave.entry_stream import EntryStreamWriter
from zipweave.entry_whole import EntryWholeWriter
from zipweave.errors import (
    CommentTooLargeError,
    UpstreamReadError,
    Zip64ErrorCase,
    Zip64NeededError,
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
    Zip64EndOfCentralDirectoryLocator,
    Zip64EndOfCentralDirectoryRecord,
    version_made_by,
)
from zipweave.offset import OffsetWriter

EntryLike = Union[ZipEntry, ZipEntryBuilder]


@dataclass
class CentralDirectoryEntry:
    """A central directory header paired with the entry it describes."""

    header: CentralDirectoryRecord
    entry: ZipEntry


@dataclass
class _ArchiveState:
    writer: OffsetWriter
    cd_entries: list = field(default_factory=list)
    force_no_zip64: bool = False
    is_zip64: bool = False

    def _push_central_directory_entry(self, header: CentralDirectoryRecord, entry: ZipEntry) -> None:
        self.cd_entries.append(CentralDirectoryEntry(header=header, entry=entry))
        if len(self.cd_entries) > NON_ZIP64_MAX_NUM_FILES:
            if self.force_no_zip64:
                raise Zip64NeededError(Zip64ErrorCase.TOO_MANY_FILES)
            self.is_zip64 = True


def _as_entry(entry: EntryLike) -> ZipEntry:
    return entry.build() if isinstance(entry, ZipEntryBuilder) else entry


class ZipFileWriter:
    """Writes a ZIP archive into a binary writer; :meth:`close` must be called."""

    def __init__(self, writer: BinaryIO) -> None:
        self._state = _ArchiveState(writer=OffsetWriter(writer))
        self._comment: Optional[str] = None
        self._closed = False

    @property
    def is_zip64(self) -> bool:
        """Whether ZIP64 end of central directory records will be written."""
        return self._state.is_zip64

    @property
    def cd_entries(self) -> list:
        """Central directory entries recorded so far."""
        return self._state.cd_entries

    @property
    def inner(self) -> Any:
        """The underlying writer; writing to it directly corrupts offsets."""
        return self._state.writer.inner

    def force_no_zip64(self) -> "ZipFileWriter":
        """Refuse to write anything that would need ZIP64 structures."""
        self._state.force_no_zip64 = True
        return self

    def force_zip64(self) -> "ZipFileWriter":
        """Always emit ZIP64 end of central directory records."""
        self._state.is_zip64 = True
        return self

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("the ZIP writer is already closed")

    def write_entry_whole(self, entry: EntryLike, data: bytes) -> None:
        """Write an entry whose complete data is given."""
        self._check_open()
        EntryWholeWriter(self._state, _as_entry(entry), data).write()

    def write_entry_stream(self, entry: EntryLike) -> EntryStreamWriter:
        """Start an entry of unknown size; the returned writer must be closed."""
        self._check_open()
        return EntryStreamWriter(self._state, _as_entry(entry))

    def comment(self, comment: str) -> None:
        """Set the archive's trailing comment."""
        self._comment = comment

    def close(self) -> Any:
        """Write the central directory and end records; return the inner writer."""
        self._check_open()
        state = self._state
        out = state.writer

        comment = self._comment.encode("utf-8") if self._comment is not None else b""
        if len(comment) > 0xFFFF:
            raise CommentTooLargeError()

        try:
            cd_offset = out.offset
            for cd in state.cd_entries:
                out.write(struct.pack("<I", CDH_SIGNATURE))
                out.write(cd.header.as_bytes())
                out.write(cd.entry.filename.encode("utf-8"))
                out.write(extra_fields_as_bytes(cd.entry.extra_fields))
                out.write(cd.entry.comment.encode("utf-8"))

            directory_size = out.offset - cd_offset
            num_entries = len(state.cd_entries)

            if state.is_zip64:
                eocdr_offset = out.offset
                record = Zip64EndOfCentralDirectoryRecord(
                    size_of_zip64_end_of_cd_record=44,
                    version_made_by=version_made_by(),
                    version_needed_to_extract=46,
                    disk_number=0,
                    disk_number_start_of_cd=0,
                    num_entries_in_directory_on_disk=num_entries,
                    num_entries_in_directory=num_entries,
                    directory_size=directory_size,
                    offset_of_start_of_directory=cd_offset,
                )
                out.write(struct.pack("<I", ZIP64_EOCDR_SIGNATURE))
                out.write(record.as_bytes())
                locator = Zip64EndOfCentralDirectoryLocator(
                    number_of_disk_with_start_of_zip64_end_of_central_directory=0,
                    relative_offset=eocdr_offset,
                    total_number_of_disks=1,
                )
                out.write(struct.pack("<I", ZIP64_EOCDL_SIGNATURE))
                out.write(locator.as_bytes())

            entries_u16 = min(num_entries, NON_ZIP64_MAX_NUM_FILES)
            header = EndOfCentralDirectoryHeader(
                disk_num=0,
                start_cent_dir_disk=0,
                num_of_entries_disk=entries_u16,
                num_of_entries=entries_u16,
                size_cent_dir=min(directory_size, NON_ZIP64_MAX_SIZE),
                cent_dir_offset=min(cd_offset, NON_ZIP64_MAX_SIZE),
                file_comm_length=len(comment),
            )
            out.write(struct.pack("<I", EOCDR_SIGNATURE))
            out.write(header.as_bytes())
            if comment:
                out.write(comment)
        except OSError as exc:
            raise UpstreamReadError(exc) from exc

        self._closed = True
        return out.inner