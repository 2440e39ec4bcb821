"""TAR container codec.

Writer and reader around the standard library `tarfile` module. The
reader opens the archive in pure streaming mode (``r|*``), so it works on
pipes and sockets as well as regular files and never seeks.
"""

import logging
import tarfile
import time
from pathlib import Path
from typing import BinaryIO, Iterator

from .Errors import ArchiveReadFailure, ArchiveWriteFailure
from .FileIO import BUFFER_SIZE
from .Protocols import ContainerReaderProtocol, ContainerWriterProtocol, Entry

logger = logging.getLogger(__name__)

TAR_COMPRESSION_TYPES = ("", "gz", "bz2", "xz")


class TarContainerWriter(ContainerWriterProtocol):
    """
    TAR container sink, optionally compressed.

    Attributes:
        path (Path): Destination of the archive.
        compression (str): One of `TAR_COMPRESSION_TYPES` ("" for none).
        archive (tarfile.TarFile): The TarFile being written.
    """

    def __init__(self, path: str | Path, buffer_size: int = BUFFER_SIZE, compression: str = "") -> None:
        if compression not in TAR_COMPRESSION_TYPES:
            raise ValueError(f"Unsupported tar compression: {compression}")
        self.path = Path(path)
        self.compression = compression
        mode = f"w:{compression}" if compression else "w"
        try:
            # copybufsize makes tarfile stream payloads in our chunk size
            self.archive = tarfile.open(self.path, mode, format=tarfile.PAX_FORMAT, copybufsize=buffer_size)
        except (tarfile.TarError, OSError) as e:
            raise ArchiveWriteFailure(f"Unable to create the archive {self.path}", path=self.path) from e

    def add_directory(self, name: str) -> None:
        info = tarfile.TarInfo(name.rstrip("/"))
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
        info.mtime = int(time.time())
        self.archive.addfile(info)

    def add_file(self, name: str, source: BinaryIO, size: int) -> None:
        info = tarfile.TarInfo(name)
        info.size = size
        info.mode = 0o644
        info.mtime = int(time.time())
        self.archive.addfile(info, source)

    def close(self) -> None:
        self.archive.close()


class TarContainerReader(ContainerReaderProtocol):
    """
    Streaming TAR container source.

    Only regular files and directories are reported; links, devices and
    other member types are skipped with a warning.
    """

    def __init__(self, stream: BinaryIO, buffer_size: int = BUFFER_SIZE) -> None:
        """
        Raises:
            ArchiveReadFailure: If the stream is not a (compressed) tar archive.
        """
        self.stream = stream
        self._current: tarfile.TarInfo | None = None
        try:
            self.archive = tarfile.open(fileobj=stream, mode="r|*", copybufsize=buffer_size)
        except (tarfile.TarError, OSError, EOFError) as e:
            raise ArchiveReadFailure("Failed: Bad tar file") from e

    def entries(self) -> Iterator[Entry]:
        try:
            for member in self.archive:
                if member.isdir():
                    self._current = member
                    yield Entry(member.name.rstrip("/") + "/")
                elif member.isfile():
                    self._current = member
                    yield Entry(member.name, member.size)
                else:
                    logger.warning("Skipping unsupported tar member %r", member.name)
        except (tarfile.TarError, EOFError) as e:
            raise ArchiveReadFailure("Failed: Malformed tar header") from e
        finally:
            self._current = None

    def open_entry(self, entry: Entry) -> BinaryIO:
        if self._current is None or entry.name.rstrip("/") != self._current.name.rstrip("/"):
            raise ArchiveReadFailure(f"Entry {entry.name} is not the current tar member", path=entry.name)
        return self.archive.extractfile(self._current)

    def close(self) -> None:
        self.archive.close()
