"""Archive-level metadata: the entry list, trailing comment and ZIP64 flag."""

from __future__ import annotations

from dataclasses import dataclass, field

from zipweave.entry import StoredZipEntry


@dataclass
class ZipFile:
    """Metadata describing a whole ZIP archive."""

    entries: list[StoredZipEntry] = field(default_factory=list)
    zip64: bool = False
    comment: str = ""


class ZipFileBuilder:
    """Fluent builder for ZipFile."""

    def __init__(self) -> None:
        self._file = ZipFile()

    @classmethod
    def from_file(cls, file: ZipFile) -> "ZipFileBuilder":
        builder = cls()
        builder._file = file
        return builder

    def comment(self, comment: str) -> "ZipFileBuilder":
        self._file.comment = comment
        return self

    def zip64(self, value: bool) -> "ZipFileBuilder":
        self._file.zip64 = value
        return self

    def build(self) -> ZipFile:
        return self._file