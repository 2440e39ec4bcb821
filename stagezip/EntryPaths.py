"""Mapping between filesystem paths and container entry names.

Entry names are always written in the portable form: relative to the
archive root, ``/`` separated, with a trailing ``/`` for directories.
On extraction the reverse mapping validates each name against the
configured traversal policy before it is joined onto the destination.
"""

import logging
import os
import re
from pathlib import Path, PurePosixPath

from .Errors import UnsafeEntryPath

logger = logging.getLogger(__name__)

# Traversal policies accepted by `resolve_entry_target`
REJECT = "reject"
SANITIZE = "sanitize"
ALLOW = "allow"
UNSAFE_PATH_POLICIES = (REJECT, SANITIZE, ALLOW)

_DRIVE = re.compile(r"^[A-Za-z]:")


def get_entry_path(full_path: str | Path, source_root: str | Path, is_dir: bool) -> str:
    """Compute the entry name of `full_path` inside an archive of `source_root`.

    The SourceRoot prefix and the separator that follows it are stripped,
    native separators become ``/`` and directories get a trailing ``/``.

    Args:
        full_path (str | Path): Path of a file or directory under `source_root`.
        source_root (str | Path): The directory being archived.
        is_dir (bool): Whether `full_path` is a directory.

    Returns:
        str: The normalized entry name.
    """
    root = str(source_root).rstrip(os.sep)
    if os.altsep:
        root = root.rstrip(os.altsep)
    entry_path = str(full_path)[len(root) + 1:]
    entry_path = entry_path.replace(os.sep, "/")
    if os.altsep:
        entry_path = entry_path.replace(os.altsep, "/")
    if is_dir:
        entry_path += "/"
    return entry_path


def _unsafe_reason(parts: list[str], name: str) -> str | None:
    if name.startswith("/"):
        return "absolute path"
    if _DRIVE.match(name):
        return "drive letter"
    if ".." in parts:
        return "parent directory segment"
    return None


def resolve_entry_target(extract_dir: str | Path, entry_name: str, unsafe_paths: str = REJECT) -> Path:
    """Return the filesystem path an entry is extracted to.

    Args:
        extract_dir (str | Path): The destination root.
        entry_name (str): The entry name as stored in the container.
        unsafe_paths (str): ``reject`` raises on traversal, ``sanitize``
            drops the offending segments, ``allow`` joins the name as is.

    Raises:
        UnsafeEntryPath: If the policy is ``reject`` and the name is unsafe.
        ValueError: If `unsafe_paths` is not a known policy.
    """
    if unsafe_paths not in UNSAFE_PATH_POLICIES:
        raise ValueError(f"Unknown unsafe path policy: {unsafe_paths}")

    name = entry_name.replace("\\", "/")
    parts = name.split("/")
    reason = _unsafe_reason(parts, name)

    if reason is None:
        return Path(extract_dir, *[p for p in parts if p not in ("", ".")])

    if unsafe_paths == REJECT:
        raise UnsafeEntryPath(entry_name, reason)

    if unsafe_paths == ALLOW:
        logger.warning("Extracting entry %r outside of the destination (%s)", entry_name, reason)
        return Path(str(extract_dir) + os.sep + entry_name)

    cleaned = _DRIVE.sub("", name)
    safe_parts = [p for p in PurePosixPath(cleaned).parts if p not in ("/", ".", "..")]
    logger.warning("Sanitized entry %r to %r (%s)", entry_name, "/".join(safe_parts), reason)
    return Path(extract_dir, *safe_parts)
