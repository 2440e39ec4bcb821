"""Archive listing without extraction."""

import logging
from pathlib import Path
from typing import List

from .ArchiveEngine import open_reader
from .Errors import ArchiveReadFailure
from .FileIO import BUFFER_SIZE, close_quietly
from .Protocols import Entry

logger = logging.getLogger(__name__)


class Lister:
    """Enumerate the entries of a ZIP or TAR container."""

    def __init__(self, buffer_size: int = BUFFER_SIZE) -> None:
        self.buffer_size = buffer_size

    def list_entries(self, archive_path: str | Path) -> List[str]:
        """Return the entry names of the archive in physical order.

        Directory entries keep their trailing ``/``.

        Raises:
            ArchiveReadFailure: If the archive cannot be opened or a header is malformed.
        """
        return [entry.name for entry in self.list_entry_details(archive_path)]

    def list_entry_details(self, archive_path: str | Path) -> List[Entry]:
        """Same as `list_entries` but returns the `Entry` records with their sizes."""
        try:
            input_stream = open(archive_path, "rb")
        except OSError as e:
            raise ArchiveReadFailure(f"Unable to open the archive {archive_path}", path=archive_path) from e

        reader = None
        try:
            reader = open_reader(input_stream, self.buffer_size)
            entries = list(reader.entries())
            logger.debug("Listed %d entries of %s", len(entries), archive_path)
            return entries
        except ArchiveReadFailure:
            raise
        except OSError as e:
            raise ArchiveReadFailure(f"Unable to read the archive {archive_path}", path=archive_path) from e
        finally:
            close_quietly(reader, "archive reader")
            close_quietly(input_stream, "archive input stream")


def list_entries(archive_path: str | Path) -> List[str]:
    """Return the entry names of `archive_path` with a one-off `Lister`."""
    return Lister().list_entries(archive_path)
