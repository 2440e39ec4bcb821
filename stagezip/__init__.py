"""stagezip package initializer.

This module provides the package-level public surface of the `stagezip`
library, used to stage, ship and restore test artifacts as ZIP or TAR
archives:

- __version__: Package version string.
- Archiver / archive_directory / archive_file: pack a tree or a file.
- Extractor / extract / extract_from_stream: unpack onto the filesystem.
- Lister / list_entries: enumerate entry names without extracting.
- The exception hierarchy from `stagezip.Errors`.
- cli: The CLI entrypoint (click group) exposed for programmatic use.

Example:
    from stagezip import archive_directory, list_entries, extract
    archive_directory("out.zip", "root")
    list_entries("out.zip")  # ['file1.txt', 'sub/', 'sub/file2.txt']
    extract("out.zip", "restored")

"""

# Public version string
__version__ = "0.1.0"

from .Archiver import Archiver, archive_directory, archive_file
from .Errors import (
    ArchiveReadFailure,
    ArchiveWriteFailure,
    DirectoryCreationFailure,
    InvalidInput,
    StageZipError,
    UnsafeEntryPath,
)
from .Extractor import Extractor, extract, extract_from_stream
from .FileIO import BUFFER_SIZE
from .Lister import Lister, list_entries
from .Protocols import ContainerReaderProtocol, ContainerWriterProtocol, Entry

# Expose the CLI group so callers can reuse or register it in other tools.
from .CLI import cli

# Define the public API
__all__ = [
    "__version__",
    "BUFFER_SIZE",
    "Archiver",
    "archive_directory",
    "archive_file",
    "Extractor",
    "extract",
    "extract_from_stream",
    "Lister",
    "list_entries",
    "Entry",
    "ContainerReaderProtocol",
    "ContainerWriterProtocol",
    "StageZipError",
    "InvalidInput",
    "ArchiveWriteFailure",
    "ArchiveReadFailure",
    "UnsafeEntryPath",
    "DirectoryCreationFailure",
    "cli",
]
