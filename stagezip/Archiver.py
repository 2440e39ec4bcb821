"""Archive creation.

`Archiver` packs a directory tree, or a single file, into a container.
The directory walk is depth-first in filesystem listing order: every
directory is written as a ``/`` terminated entry before its content.
The archived root is passed along the walk instead of being stored on the
instance, so one `Archiver` can serve several calls at the same time.
"""

import logging
import os
import zipfile
from pathlib import Path

from .ArchiveEngine import open_writer
from .EntryPaths import get_entry_path
from .Errors import ArchiveWriteFailure, InvalidInput, StageZipError
from .FileIO import BUFFER_SIZE, CountingReader, ProgressCallback, close_quietly
from .Protocols import ContainerWriterProtocol

logger = logging.getLogger(__name__)


class Archiver:
    """
    Write directory trees and single files into ZIP or TAR containers.

    Attributes:
        buffer_size (int): Chunk size used to stream file content.
        compression (int): `zipfile` compression method for ZIP output.
        progress_callback (callable|None): Called with the number of bytes
            read from each source file chunk.
    """

    def __init__(self, buffer_size: int = BUFFER_SIZE, compression: int = zipfile.ZIP_DEFLATED,
                 progress_callback: ProgressCallback | None = None) -> None:
        self.buffer_size = buffer_size
        self.compression = compression
        self.progress_callback = progress_callback

    def archive_directory(self, destination_path: str | Path, source_dir: str | Path) -> None:
        """Archive every file and directory below `source_dir`.

        Args:
            destination_path (str | Path): Archive to create or overwrite.
            source_dir (str | Path): Directory to pack. It becomes the root
                of the archive and is not itself an entry.

        Raises:
            InvalidInput: If `source_dir` is not a directory. Nothing is written.
            ArchiveWriteFailure: On any I/O failure while writing.
        """
        if not os.path.isdir(source_dir):
            raise InvalidInput(f"{source_dir} is not a directory", path=source_dir)

        source_root = os.path.abspath(source_dir)
        writer = open_writer(destination_path, self.buffer_size, self.compression)
        try:
            self._walk(writer, source_root, os.path.abspath(destination_path))
        except StageZipError:
            raise
        except OSError as e:
            raise ArchiveWriteFailure(
                f"Failed to archive {source_dir} into {destination_path}", path=destination_path) from e
        finally:
            close_quietly(writer, "archive output stream")
        logger.info("Archived %s into %s", source_dir, destination_path)

    def archive_file(self, from_path: str | Path, to_path: str | Path) -> None:
        """Archive a single file as one entry named after the file.

        Raises:
            InvalidInput: If `from_path` is not a regular file.
            ArchiveWriteFailure: On any I/O failure while writing.
        """
        if not os.path.isfile(from_path):
            raise InvalidInput(f"{from_path} is not a file", path=from_path)

        writer = open_writer(to_path, self.buffer_size, self.compression)
        try:
            self._write_file(writer, os.path.abspath(from_path), os.path.basename(from_path))
        except StageZipError:
            raise
        except OSError as e:
            raise ArchiveWriteFailure(f"Failed to archive {from_path} into {to_path}", path=to_path) from e
        finally:
            close_quietly(writer, "archive output stream")
        logger.info("Archived %s into %s", from_path, to_path)

    def _walk(self, writer: ContainerWriterProtocol, source_root: str, destination: str) -> None:
        # Explicit stack of directory listings keeps deep trees off the call stack
        stack = [iter(os.listdir(source_root))]
        parents = [source_root]
        while stack:
            name = next(stack[-1], None)
            if name is None:
                stack.pop()
                parents.pop()
                continue

            path = os.path.join(parents[-1], name)
            if os.path.isdir(path):
                writer.add_directory(get_entry_path(path, source_root, True))
                stack.append(iter(os.listdir(path)))
                parents.append(path)
            elif path == destination:
                logger.debug("Skipping the archive being written: %s", path)
            else:
                self._write_file(writer, path, get_entry_path(path, source_root, False))

    def _write_file(self, writer: ContainerWriterProtocol, path: str, entry_name: str) -> None:
        logger.debug("Adding %s", entry_name)
        with open(path, "rb") as source:
            size = os.fstat(source.fileno()).st_size
            reader = CountingReader(source, self.progress_callback) if self.progress_callback else source
            writer.add_file(entry_name, reader, size)


def archive_directory(destination_path: str | Path, source_dir: str | Path, **kwargs) -> None:
    """Archive `source_dir` into `destination_path` with a one-off `Archiver`."""
    Archiver(**kwargs).archive_directory(destination_path, source_dir)


def archive_file(from_path: str | Path, to_path: str | Path, **kwargs) -> None:
    """Archive the single file `from_path` into `to_path` with a one-off `Archiver`."""
    Archiver(**kwargs).archive_file(from_path, to_path)
