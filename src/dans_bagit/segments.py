"""Fixed-size segment export of a finished bag zip.

Large bags are deposited in pieces. The iterator treats the zip as an opaque
byte blob and yields one bounded stream per segment; concatenating every
segment in order reproduces the file exactly.
"""

import io
import logging
import os
from pathlib import Path
from typing import BinaryIO

from .digests import md5_hex

logger = logging.getLogger(__name__)


class FileSegment(io.RawIOBase):
    """Read-only stream over one byte range of a shared file handle.

    The segment reports end-of-stream at its own boundary even when the
    underlying file holds more bytes. It seeks the shared handle before every
    read, so segments stay correct whatever order they are consumed in.

    Attributes:
        index: 0-based segment number
        offset: Start of the segment within the file
        length: Number of bytes in the segment
        md5: MD5 hex digest of the segment, if it was computed
    """

    def __init__(
        self,
        fileobj: BinaryIO,
        offset: int,
        length: int,
        index: int = 0,
        md5: str | None = None,
    ):
        super().__init__()
        self._fileobj = fileobj
        self.offset = offset
        self.length = length
        self.index = index
        self.md5 = md5
        self._position = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self.length + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if position < 0:
            raise ValueError(f"Negative seek position {position}")
        self._position = position
        return self._position

    def readinto(self, buffer) -> int:
        remaining = self.length - self._position
        if remaining <= 0:
            return 0
        wanted = min(len(buffer), remaining)
        self._fileobj.seek(self.offset + self._position)
        data = self._fileobj.read(wanted)
        count = len(data)
        buffer[:count] = data
        self._position += count
        return count


class FileSegmentIterator:
    """Iterate over a file in fixed-size segments.

    With ``md5=True`` each segment is read twice: once to compute its digest,
    then again as the stream handed to the caller, which carries the digest
    before any of it has been consumed. The pointer always advances by exactly
    ``segment_size``, however much of the previous segment was read.

    Example:
        with FileSegmentIterator(Path("bag.zip"), 10 * 1024 * 1024, md5=True) as segments:
            for segment in segments:
                deposit(segment.read(), segment.md5)
    """

    def __init__(self, path: Path, segment_size: int, md5: bool = False):
        """Initialize the iterator.

        Args:
            path: File to segment
            segment_size: Bytes per segment (the last one may be shorter)
            md5: Whether to stamp each segment with its MD5 digest

        Raises:
            ValueError: If segment_size is not positive
        """
        if segment_size <= 0:
            raise ValueError(f"segment_size must be positive, got {segment_size}")
        self.path = Path(path)
        self.segment_size = segment_size
        self.md5 = md5
        self.pointer = 0
        self._index = 0
        self._file = self.path.open("rb")

    def __enter__(self) -> "FileSegmentIterator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> "FileSegmentIterator":
        return self

    def __next__(self) -> FileSegment:
        if not self.has_next():
            raise StopIteration
        return self.next()

    def close(self) -> None:
        self._file.close()

    def reset(self) -> None:
        """Restart iteration from the beginning of the file."""
        self.pointer = 0
        self._index = 0

    def has_next(self) -> bool:
        return self.pointer < os.fstat(self._file.fileno()).st_size

    def next(self) -> FileSegment:
        """Return the next segment and advance the pointer.

        Raises:
            StopIteration: If the end of the file has been reached
        """
        file_size = os.fstat(self._file.fileno()).st_size
        if self.pointer >= file_size:
            raise StopIteration
        offset = self.pointer
        length = min(self.segment_size, file_size - offset)

        checksum = None
        if self.md5:
            checksum = md5_hex(FileSegment(self._file, offset, length))

        segment = FileSegment(self._file, offset, length, index=self._index, md5=checksum)
        logger.debug(
            f"Segment {self._index} of {self.path.name}: offset {offset}, "
            f"{length} bytes, md5 {checksum}"
        )
        self.pointer += self.segment_size
        self._index += 1
        return segment
