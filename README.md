# zipweave

Write ZIP archives to any binary, file-like object. Entries can be written in one go when
all the data is at hand, or streamed when the size is not known in advance. ZIP64
structures are written when an archive needs them, and can be either forced or forbidden.

Supported compression methods (`zipweave.entry.Compression`): `STORED`, `DEFLATE`, `BZ`
(bzip2), `LZMA`, `XZ` and `ZSTD`.

## Installation

```
pip install zipweave
```

## Writing an archive

```python
import io

from zipweave.entry import Compression, ZipEntryBuilder
from zipweave.writer import ZipFileWriter

buffer = io.BytesIO()
writer = ZipFileWriter(buffer)

# Whole entries: all the data is given at once.
writer.write_entry_whole(ZipEntryBuilder("foo.txt", Compression.DEFLATE), b"This is an example file.")

# Streamed entries: data arrives in pieces.
with writer.write_entry_stream(ZipEntryBuilder("bar.txt", Compression.STORED)) as stream:
    stream.write(b"first chunk, ")
    stream.write(b"second chunk")

writer.comment("Built by the nightly job")
writer.close()  # writes the central directory and returns the underlying writer
archive_bytes = buffer.getvalue()
```

`write_entry_whole` and `write_entry_stream` accept either a `ZipEntryBuilder` or a
built `ZipEntry`.

A streamed entry records its CRC32 and sizes in a data descriptor that follows the data.
The entry writer returned by `write_entry_stream` must be closed, either by leaving the
`with` block or by calling `close()` yourself; otherwise the archive is corrupt. The
archive itself is only complete once `ZipFileWriter.close()` has been called.

## Entry options

`ZipEntryBuilder` methods can be chained:

```python
from datetime import datetime

from zipweave.entry import AttributeCompatibility, DeflateOption, ZipDateTime

entry = (
    ZipEntryBuilder("script.sh", Compression.DEFLATE)
    .deflate_option(DeflateOption.MAXIMUM)
    .attribute_compatibility(AttributeCompatibility.UNIX)
    .unix_permissions(0o755)
    .last_modification_date(ZipDateTime.from_datetime(datetime(2024, 5, 1, 12, 30)))
    .comment("an executable")
    .build()
)
```

- `unix_permissions` only has an effect when the attribute compatibility is `UNIX` (the
  default).
- `ZipDateTime` stores an MS-DOS date and time: years 1980 to 2107, seconds rounded down to
  an even number. Aware datetimes are converted to UTC first.
- `size(compressed_size, uncompressed_size)` gives a size hint for the local header of a
  streamed entry.

## ZIP64

- Streamed entries always carry a ZIP64 extended information field, since their final size
  is unknown, and so turn on the ZIP64 end records unless ZIP64 is forbidden.
- Whole entries larger than 4 GiB, and archives with more than 65535 entries, switch to
  ZIP64 automatically.
- `ZipFileWriter(out).force_zip64()` always writes the ZIP64 end of central directory
  record and locator.
- `ZipFileWriter(out).force_no_zip64()` raises `zipweave.errors.Zip64NeededError` when an
  entry is larger than 4 GiB or the archive would hold more than 65535 entries.

## Errors

Errors about the archive's contents and limits derive from `zipweave.errors.ZipError`, for
example `FileNameTooLargeError`, `CommentTooLargeError`, `ExtraFieldTooLargeError` and
`Zip64NeededError`. Failures of the underlying writer are raised as `UpstreamReadError`.
Using a writer after it has been closed, or passing an out-of-range date or permission mode,
raises `ValueError`.

## What this package does not do

zipweave writes archives. It does not open an existing archive to list or extract its
entries: there is no archive reader. `zipweave.archive.ZipFile` and
`zipweave.entry.StoredZipEntry` only hold metadata, and `StoredZipEntry.seek_to_data_offset`
can position a seekable binary reader at an entry's data when its local header offset is
already known, but decompressing that data is left to the caller. Encrypted entries are not
supported.