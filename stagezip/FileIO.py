"""Low level file helpers shared by the archiver and the extractor.

Provides the fixed-size buffered copy loop, quiet closing of streams,
directory creation with stagezip errors, and the stream wrappers used to
peek at and spool non-seekable input streams.
"""

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable

from .Errors import DirectoryCreationFailure

logger = logging.getLogger(__name__)

# Transfer buffer used for every payload copy. It bounds peak memory while
# archiving or extracting regardless of file size.
BUFFER_SIZE = 40960

# Spooled input stays in memory up to this size before rolling over to disk.
SPOOL_MAX_SIZE = 10 * BUFFER_SIZE

ProgressCallback = Callable[[int], None]


class PrefixedStream(io.RawIOBase):
    """Read-only stream replaying already consumed bytes before the rest.

    Used after peeking at the head of a non-seekable stream: the peeked
    bytes are served first, then reads go to the wrapped stream. Closing
    this object leaves the wrapped stream open.

    Attributes:
        stream (BinaryIO): The wrapped stream.
    """
    def __init__(self, prefix: bytes, stream: BinaryIO):
        self._prefix = prefix
        self.stream = stream

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._prefix:
            count = min(len(buffer), len(self._prefix))
            buffer[:count] = self._prefix[:count]
            self._prefix = self._prefix[count:]
            return count
        data = self.stream.read(len(buffer))
        buffer[:len(data)] = data
        return len(data)


class CountingReader:
    """Wrap a readable stream and report the size of every chunk read."""

    def __init__(self, stream: BinaryIO, progress_callback: ProgressCallback):
        self.stream = stream
        self.progress_callback = progress_callback

    def read(self, size: int = -1) -> bytes:
        data = self.stream.read(size)
        if data:
            self.progress_callback(len(data))
        return data


def read_head(stream: BinaryIO, size: int) -> bytes:
    """Read up to `size` bytes, retrying short reads until end of file."""
    head = b""
    while len(head) < size:
        chunk = stream.read(size - len(head))
        if not chunk:
            break
        head += chunk
    return head


def copy_stream(source: BinaryIO, target: BinaryIO, buffer_size: int = BUFFER_SIZE,
                progress_callback: ProgressCallback | None = None) -> int:
    """Copy `source` into `target` until end of file.

    Args:
        source (BinaryIO): Readable binary stream.
        target (BinaryIO): Writable binary stream.
        buffer_size (int): Size of each read.
        progress_callback (callable|None): Called with the number of bytes
            written after every write.

    Returns:
        int: Total number of bytes copied.
    """
    total = 0
    while chunk := source.read(buffer_size):
        target.write(chunk)
        total += len(chunk)
        if progress_callback:
            progress_callback(len(chunk))
    return total


def close_quietly(resource, description: str) -> None:
    """Close `resource`, logging instead of raising if that fails.

    A close failure must never hide the outcome of the operation that used
    the resource, so it is demoted to a warning.
    """
    if resource is None:
        return
    try:
        resource.close()
    except Exception:
        logger.warning("Unable to close the %s", description, exc_info=True)


def make_dirs(path: str | Path) -> None:
    """Create `path` and any missing ancestors.

    Raises:
        DirectoryCreationFailure: If the directory does not exist afterwards.
    """
    if os.path.isdir(path):
        return
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationFailure(
            f"Fail to create the directory: {os.path.abspath(path)}", path=path) from e


def spool_stream(stream: BinaryIO, buffer_size: int = BUFFER_SIZE) -> BinaryIO:
    """Copy a non-seekable stream into a seekable temporary file.

    The copy runs through the same buffer loop so memory use stays bounded;
    data beyond `SPOOL_MAX_SIZE` goes to disk.

    Returns:
        BinaryIO: A temporary file positioned at offset 0. The caller closes it.
    """
    spooled = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE, mode="w+b")
    try:
        copy_stream(stream, spooled, buffer_size)
        spooled.seek(0)
    except BaseException:
        close_quietly(spooled, "spool file")
        raise
    return spooled
