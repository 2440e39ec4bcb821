"""Exception hierarchy for stagezip.

All errors raised by the archive operations derive from `StageZipError`
so callers can catch them in one place. The I/O related errors also
derive from `OSError`, and `InvalidInput` from `ValueError`, so existing
`except OSError` handlers keep working.
"""

from pathlib import Path


class StageZipError(Exception):
    """Base class for every stagezip failure.

    Attributes:
        path (str | None): The filesystem path or entry name involved, if any.
    """

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = str(path) if path is not None else None
        super().__init__(message)


class InvalidInput(StageZipError, ValueError):
    """The source path does not have the required type (file/directory)."""


class ArchiveWriteFailure(StageZipError, OSError):
    """Writing the container, or a file extracted from it, failed."""


class ArchiveReadFailure(StageZipError, OSError):
    """The container could not be opened or one of its headers is malformed."""


class UnsafeEntryPath(ArchiveReadFailure):
    """An entry name would resolve outside the extraction directory.

    Attributes:
        entry_name (str): The raw entry name as stored in the container.
    """

    def __init__(self, entry_name: str, reason: str):
        self.entry_name = entry_name
        super().__init__(f"Unsafe entry path {entry_name!r}: {reason}", path=entry_name)


class DirectoryCreationFailure(StageZipError, OSError):
    """A directory required by the operation could not be created."""
