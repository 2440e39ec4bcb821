"""Container codec protocol definitions.

This module declares the `Entry` record and the two protocols a container
codec (ZIP, TAR, ...) must implement to be driven by the archiver, the
extractor and the lister. The core only relies on this sequential,
streaming contract: entries are written one after another, and read back
one after another with their payload streamed on demand.
"""

from dataclasses import dataclass
from typing import BinaryIO, Iterator, Protocol


@dataclass(frozen=True)
class Entry:
    """A single named unit stored in a container.

    Attributes:
        name (str): Forward-slash separated path relative to the archive
            root. Directory entries end with ``/``.
        size (int): Uncompressed payload size in bytes (0 for directories).
    """
    name: str
    size: int = 0

    @property
    def is_dir(self) -> bool:
        return self.name.endswith("/")


class ContainerWriterProtocol(Protocol):
    """Protocol describing a writable container sink."""

    def add_directory(self, name: str) -> None:
        """Append a directory entry.

        Args:
            name (str): Entry name, ending with ``/``.
        """
        ...

    def add_file(self, name: str, source: BinaryIO, size: int) -> None:
        """Append a file entry whose payload is streamed from `source`.

        Args:
            name (str): Entry name.
            source (BinaryIO): Readable stream, consumed until end of file
                in fixed-size chunks.
            size (int): Payload size. TAR headers carry the size before the
                payload, so it must be known up front.
        """
        ...

    def close(self) -> None:
        """Finish the container and release the underlying file."""
        ...


class ContainerReaderProtocol(Protocol):
    """Protocol describing a readable container source."""

    def entries(self) -> Iterator[Entry]:
        """Yield entry headers in physical container order."""
        ...

    def open_entry(self, entry: Entry) -> BinaryIO:
        """Return a readable stream over the payload of `entry`.

        Notes:
            The stream is only valid until the iterator returned by
            `entries` is advanced.
        """
        ...

    def close(self) -> None:
        """Release the underlying stream."""
        ...
