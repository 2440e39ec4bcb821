"""Container format detection and codec factories.

Readers are chosen from the magic bytes at the head of the input stream,
writers from the suffix of the destination path. Every other module goes
through `open_reader` / `open_writer` and never touches a codec class
directly.
"""

import logging
import zipfile
from pathlib import Path
from typing import BinaryIO

from .Errors import ArchiveReadFailure
from .FileIO import BUFFER_SIZE, PrefixedStream, close_quietly, read_head, spool_stream
from .Protocols import ContainerReaderProtocol, ContainerWriterProtocol
from .TarArchive import TarContainerReader, TarContainerWriter
from .ZipArchive import ZipContainerReader, ZipContainerWriter

logger = logging.getLogger(__name__)

# Archive file signatures, from Wikipedia
SIGNATURES = {
    # zip
    b"PK\x03\x04": "zip",
    b"PK\x05\x06": "zip",  # Empty archive
    b"PK\x07\x08": "zip",  # Spanned archive
    # compressed tar
    b"\x1f\x8b": "tar",  # GZIP compressed
    b"\xfd7zXZ\x00": "tar",  # XZ compressed
    b"BZh": "tar",  # BZIP2 compressed
}

# Uncompressed tar carries "ustar" at offset 257 of the first header block
TAR_MAGIC = b"ustar"
TAR_MAGIC_OFFSET = 257
HEAD_SIZE = TAR_MAGIC_OFFSET + len(TAR_MAGIC)

# Destination suffix -> tar compression
TAR_SUFFIXES = {
    ".tar": "",
    ".tar.gz": "gz",
    ".tgz": "gz",
    ".tar.bz2": "bz2",
    ".tbz2": "bz2",
    ".tar.xz": "xz",
    ".txz": "xz",
}


def format_from_head(head: bytes) -> str:
    """Return ``zip`` or ``tar`` for the first bytes of an archive.

    Raises:
        ArchiveReadFailure: If no known signature matches.
    """
    for signature, mode in SIGNATURES.items():
        if head.startswith(signature):
            return mode
    if head[TAR_MAGIC_OFFSET:HEAD_SIZE] == TAR_MAGIC:
        return "tar"
    if not head:
        raise ArchiveReadFailure("Empty archive stream")
    raise ArchiveReadFailure(f"Unknown File Format with signature: {head[:8].hex().upper()}")


def detect_format(stream: BinaryIO) -> tuple[str, BinaryIO]:
    """Detect the container format of `stream` without losing any byte.

    Seekable streams are rewound to where they were. For other streams the
    consumed head is replayed through a `PrefixedStream`.

    Returns:
        tuple[str, BinaryIO]: The format name and the stream to read from.
    """
    if stream.seekable():
        position = stream.tell()
        head = read_head(stream, HEAD_SIZE)
        stream.seek(position)
        return format_from_head(head), stream

    head = read_head(stream, HEAD_SIZE)
    return format_from_head(head), PrefixedStream(head, stream)


def open_reader(stream: BinaryIO, buffer_size: int = BUFFER_SIZE) -> ContainerReaderProtocol:
    """Open a container reader over `stream`.

    ZIP needs random access to its central directory, so a non-seekable ZIP
    stream is first spooled to a temporary file. TAR is always streamed.

    Raises:
        ArchiveReadFailure: If the format is unknown or the container is invalid.
    """
    try:
        mode, source = detect_format(stream)
    except ArchiveReadFailure:
        raise
    except OSError as e:
        raise ArchiveReadFailure("Unable to read the archive stream") from e

    if mode == "tar":
        logger.debug("Detected File Format: TAR")
        return TarContainerReader(source, buffer_size)

    logger.debug("Detected File Format: ZIP")
    if source.seekable():
        return ZipContainerReader(source)

    try:
        spooled = spool_stream(source, buffer_size)
    except OSError as e:
        raise ArchiveReadFailure("Unable to read the archive stream") from e
    try:
        return ZipContainerReader(spooled, close_stream=True)
    except ArchiveReadFailure:
        close_quietly(spooled, "spool file")
        raise


def open_writer(path: str | Path, buffer_size: int = BUFFER_SIZE,
                compression: int = zipfile.ZIP_DEFLATED) -> ContainerWriterProtocol:
    """Open a container writer for `path`, choosing the format from its suffix.

    Anything that is not a known tar suffix is written as ZIP (``.zip``,
    ``.jar``, ``.war``, ``.car``...).

    Args:
        path (str | Path): Destination archive path, created or truncated.
        buffer_size (int): Chunk size for payload streaming.
        compression (int): `zipfile` compression method for ZIP output.

    Raises:
        ArchiveWriteFailure: If the destination cannot be created.
    """
    name = Path(path).name.lower()
    for suffix, tar_compression in TAR_SUFFIXES.items():
        if name.endswith(suffix):
            return TarContainerWriter(path, buffer_size, tar_compression)
    return ZipContainerWriter(path, buffer_size, compression)
