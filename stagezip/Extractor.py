"""Archive extraction.

`Extractor` materializes the entries of a container under a destination
directory, one entry at a time and in container order. Parent
directories are created on demand, existing files are overwritten, and
memory use is bounded by the transfer buffer whatever the archive size.
"""

import logging
import lzma
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from .ArchiveEngine import open_reader
from .EntryPaths import REJECT, UNSAFE_PATH_POLICIES, resolve_entry_target
from .Errors import ArchiveReadFailure, ArchiveWriteFailure
from .FileIO import BUFFER_SIZE, ProgressCallback, close_quietly, make_dirs
from .Protocols import ContainerReaderProtocol, Entry

logger = logging.getLogger(__name__)

# Raised by the codecs for encrypted, corrupt or truncated payloads
READ_ERRORS = (OSError, EOFError, RuntimeError, zipfile.BadZipFile, tarfile.TarError, zlib.error, lzma.LZMAError)


class Extractor:
    """
    Unpack ZIP or TAR containers onto the filesystem.

    Attributes:
        buffer_size (int): Chunk size used to copy entry payloads.
        unsafe_paths (str): What to do with entries escaping the destination:
            ``reject`` (raise `UnsafeEntryPath`), ``sanitize`` (drop the
            offending segments) or ``allow`` (write them where they point).
        progress_callback (callable|None): Called with the number of bytes
            written on each write().
    """

    def __init__(self, buffer_size: int = BUFFER_SIZE, unsafe_paths: str = REJECT,
                 progress_callback: ProgressCallback | None = None) -> None:
        if unsafe_paths not in UNSAFE_PATH_POLICIES:
            raise ValueError(f"unsafe_paths must be one of {', '.join(UNSAFE_PATH_POLICIES)}")
        self.buffer_size = buffer_size
        self.unsafe_paths = unsafe_paths
        self.progress_callback = progress_callback

    def extract(self, archive_path: str | Path, extract_dir: str | Path) -> None:
        """Extract the archive at `archive_path` into `extract_dir`.

        Raises:
            ArchiveReadFailure: If the archive cannot be opened or read.
            DirectoryCreationFailure: If a required directory cannot be created.
            ArchiveWriteFailure: If an extracted file cannot be written.
        """
        try:
            input_stream = open(archive_path, "rb")
        except OSError as e:
            raise ArchiveReadFailure(f"Unable to open the archive {archive_path}", path=archive_path) from e
        self.extract_from_stream(input_stream, extract_dir)
        logger.info("Extracted %s into %s", archive_path, extract_dir)

    def extract_from_stream(self, stream: BinaryIO, extract_dir: str | Path) -> None:
        """Extract the archive read from `stream` into `extract_dir`.

        The stream may be non-seekable (pipe, socket file). It is closed
        once extraction ends, whatever the outcome.

        Raises:
            ArchiveReadFailure: If the container is invalid, or an entry name
                is unsafe under the ``reject`` policy (`UnsafeEntryPath`).
            DirectoryCreationFailure: If a required directory cannot be created.
            ArchiveWriteFailure: If an extracted file cannot be written.
        """
        reader = None
        try:
            make_dirs(extract_dir)
            reader = open_reader(stream, self.buffer_size)
            for entry in reader.entries():
                self._extract_entry(reader, entry, extract_dir)
        finally:
            close_quietly(reader, "archive reader")
            close_quietly(stream, "archive input stream")

    def _extract_entry(self, reader: ContainerReaderProtocol, entry: Entry, extract_dir: str | Path) -> None:
        target = resolve_entry_target(extract_dir, entry.name, self.unsafe_paths)

        if entry.is_dir:
            make_dirs(target)
            return

        # This is a file, make sure its directory chain exists
        make_dirs(target.parent)
        if target.is_dir():
            logger.warning("Skipping %s: a directory already exists at %s", entry.name, target)
            return

        logger.debug("Extracting %s", entry.name)
        try:
            source = reader.open_entry(entry)
        except ArchiveReadFailure:
            raise
        except READ_ERRORS as e:
            raise ArchiveReadFailure(f"Unable to read the entry {entry.name}", path=entry.name) from e

        out = None
        try:
            try:
                out = open(target, "wb")
            except OSError as e:
                raise ArchiveWriteFailure(f"Unable to write {target}", path=target) from e
            self._copy_payload(source, out, entry, target)
        finally:
            close_quietly(out, "extracted file output stream")
            close_quietly(source, "entry input stream")

    def _copy_payload(self, source: BinaryIO, out: BinaryIO, entry: Entry, target: Path) -> None:
        # Tell read errors apart from write errors for the caller
        while True:
            try:
                chunk = source.read(self.buffer_size)
            except READ_ERRORS as e:
                raise ArchiveReadFailure(f"Unable to read the entry {entry.name}", path=entry.name) from e
            if not chunk:
                break
            try:
                out.write(chunk)
            except OSError as e:
                raise ArchiveWriteFailure(f"Unable to write {target}", path=target) from e
            if self.progress_callback:
                self.progress_callback(len(chunk))


def extract(archive_path: str | Path, extract_dir: str | Path, **kwargs) -> None:
    """Extract `archive_path` into `extract_dir` with a one-off `Extractor`."""
    Extractor(**kwargs).extract(archive_path, extract_dir)


def extract_from_stream(stream: BinaryIO, extract_dir: str | Path, **kwargs) -> None:
    """Extract the archive read from `stream` into `extract_dir` with a one-off `Extractor`."""
    Extractor(**kwargs).extract_from_stream(stream, extract_dir)
