"""ZIP container codec.

Provides a writer and a reader around the standard library
`zipfile.ZipFile` class implementing the container protocols. Payloads
are streamed through `zipfile`'s entry streams in fixed-size chunks, so
no entry is ever held in memory in full.
"""

import time
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterator

from .Errors import ArchiveReadFailure, ArchiveWriteFailure
from .FileIO import BUFFER_SIZE, copy_stream
from .Protocols import ContainerReaderProtocol, ContainerWriterProtocol, Entry

FILE_MODE = 0o644
DIR_MODE = 0o755
# MS-DOS directory attribute bit
_DOS_DIRECTORY = 0x10


class ZipContainerWriter(ContainerWriterProtocol):
    """
    ZIP container sink.

    Attributes:
        path (Path): Destination of the archive.
        buffer_size (int): Chunk size used when streaming payloads.
        archive (zipfile.ZipFile): The ZipFile being written.
    """

    def __init__(self, path: str | Path, buffer_size: int = BUFFER_SIZE,
                 compression: int = zipfile.ZIP_DEFLATED) -> None:
        """
        Create (or truncate) the ZIP file at `path`.

        Raises:
            ArchiveWriteFailure: If the file cannot be opened for writing.
        """
        self.path = Path(path)
        self.buffer_size = buffer_size
        self.compression = compression
        try:
            self.archive = zipfile.ZipFile(self.path, "w", compression=compression)
        except OSError as e:
            raise ArchiveWriteFailure(f"Unable to create the archive {self.path}", path=self.path) from e

    def _entry_info(self, name: str, mode: int) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=time.localtime()[:6])
        info.external_attr = mode << 16
        return info

    def add_directory(self, name: str) -> None:
        info = self._entry_info(name, DIR_MODE | 0o040000)
        info.external_attr |= _DOS_DIRECTORY
        self.archive.writestr(info, b"")

    def add_file(self, name: str, source: BinaryIO, size: int) -> None:
        info = self._entry_info(name, FILE_MODE | 0o100000)
        info.compress_type = self.compression
        # zip64 extra fields are only reserved when the payload needs them
        with self.archive.open(info, "w", force_zip64=size > zipfile.ZIP64_LIMIT) as target:
            copy_stream(source, target, self.buffer_size)

    def close(self) -> None:
        self.archive.close()


class ZipContainerReader(ContainerReaderProtocol):
    """
    ZIP container source.

    Attributes:
        stream (BinaryIO): Seekable stream holding the archive. It is only
            closed by this reader when `close_stream` is set.
        archive (zipfile.ZipFile): The ZipFile used to inspect members.
    """

    def __init__(self, stream: BinaryIO, close_stream: bool = False) -> None:
        """
        Parse the central directory of the archive held in `stream`.

        Args:
            stream (BinaryIO): Seekable stream holding the archive.
            close_stream (bool): Close `stream` together with the reader, used
                when the stream is a spool file created for this reader.

        Raises:
            ArchiveReadFailure: If the stream does not contain a valid ZIP archive.
        """
        self.stream = stream
        self.close_stream = close_stream
        self._current: zipfile.ZipInfo | None = None
        try:
            self.archive = zipfile.ZipFile(self.stream)
        # NotImplementedError (a RuntimeError) flags an out of range "version needed" header
        except (zipfile.BadZipFile, OSError, RuntimeError, ValueError, EOFError) as e:
            raise ArchiveReadFailure("Failed: Bad Zipfile") from e

    def entries(self) -> Iterator[Entry]:
        for info in self.archive.infolist():
            self._current = info
            yield Entry(info.filename, 0 if info.is_dir() else info.file_size)
        self._current = None

    def open_entry(self, entry: Entry) -> BinaryIO:
        # Duplicate names are legal in ZIP, prefer the member being iterated
        if self._current is not None and self._current.filename == entry.name:
            return self.archive.open(self._current)
        return self.archive.open(entry.name)

    def close(self) -> None:
        try:
            self.archive.close()
        finally:
            if self.close_stream:
                self.stream.close()
