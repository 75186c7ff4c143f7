"""Exceptions raised while reading or writing ZIP archives."""

from __future__ import annotations

from enum import Enum


class Zip64ErrorCase(Enum):
    """The reason a ZIP64 structure would have been required."""

    TOO_MANY_FILES = "More than 65536 files in archive"
    LARGE_FILE = "File is larger than 4 GiB"

    def __str__(self) -> str:
        return self.value


class ZipError(Exception):
    """Base class of every error raised by this package."""

    message = "zip error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


class FeatureNotSupportedError(ZipError):
    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"feature not supported: '{feature}'")


class CompressionNotSupportedError(ZipError):
    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"compression not supported: {code}")


class AttributeCompatibilityNotSupportedError(ZipError):
    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"host attribute compatibility not supported: {code}")


class Zip64NeededError(ZipError):
    def __init__(self, case: Zip64ErrorCase) -> None:
        self.case = case
        super().__init__(
            "attempted to write a ZIP file with force_no_zip64 when ZIP64 is needed: "
            f"{case}"
        )


class EOFNotReachedError(ZipError):
    message = "end of file has not been reached"


class ExtraFieldTooLargeError(ZipError):
    message = "extra fields exceeded maximum size"


class CommentTooLargeError(ZipError):
    message = "comment exceeded maximum size"


class FileNameTooLargeError(ZipError):
    message = "filename exceeded maximum size"


class UnableToLocateEOCDRError(ZipError):
    message = "unable to locate the end of central directory record"


class InvalidExtraFieldHeaderError(ZipError):
    def __init__(self, indicated: int, remaining: int) -> None:
        self.indicated = indicated
        self.remaining = remaining
        super().__init__(
            f"extra field size was indicated to be {indicated} "
            f"but only {remaining} bytes remain"
        )


class Zip64ExtendedFieldIncompleteError(ZipError):
    message = "zip64 extended information field was incomplete"


class UpstreamReadError(ZipError):
    """An error reported by the underlying reader or writer."""

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(f"an upstream reader returned an error: {error}")


class CRC32CheckError(ZipError):
    message = "a computed CRC32 value did not match the expected value"


class EntryIndexOutOfBoundsError(ZipError, IndexError):
    message = "entry index was out of bounds"


class UnexpectedHeaderError(ZipError):
    def __init__(self, actual: int, expected: int) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"Encountered an unexpected header (actual: {actual:#x}, expected: {expected:#x})."
        )