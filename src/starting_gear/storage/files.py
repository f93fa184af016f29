"""File helpers shared by every snapshot store.

Session ids become part of file names, so ``validate_session_id`` is the
single guard against path traversal and must run before any path is
built. Writes go through ``atomic_write_bytes`` so that readers only ever
see the old or the new file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from uuid import uuid4

from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from starting_gear.core.constants import MAX_FILE_SIZE, PROFILE_PREFIX, SESSION_ID_PATTERN
from starting_gear.core.exceptions import InvalidSessionIdError, SnapshotTooLargeError
from starting_gear.core.logging import get_logger

logger = get_logger(__name__)

_SESSION_ID_RE = re.compile(SESSION_ID_PATTERN)


# =============================================================================
# Session Ids
# =============================================================================


def is_valid_session_id(session_id: str | None) -> bool:
    """Check a session id against the filename whitelist.

    File names starting with the profile prefix belong to saved profiles,
    so session ids may not start with it.

    Args:
        session_id: Candidate session id.

    Returns:
        True if the id is non-empty, only contains ``[A-Za-z0-9_-]`` and
        does not start with ``profile_``.
    """
    if not session_id or _SESSION_ID_RE.fullmatch(session_id) is None:
        return False
    return not session_id.startswith(PROFILE_PREFIX)


def validate_session_id(session_id: str | None) -> str:
    """Return the session id unchanged or raise.

    Args:
        session_id: Candidate session id.

    Returns:
        The validated session id.

    Raises:
        InvalidSessionIdError: If the id fails the whitelist.
    """
    if not is_valid_session_id(session_id):
        raise InvalidSessionIdError(
            f"Session id must match [A-Za-z0-9_-]+ and not start with {PROFILE_PREFIX!r}",
            session_id=session_id,
        )
    return session_id


# =============================================================================
# Atomic Writes
# =============================================================================


def temp_path_for(target: Path) -> Path:
    """Unique sibling temp path for an atomic write to ``target``."""
    return target.with_name(f"{target.name}.tmp.{uuid4().hex}")


def atomic_write_bytes(target: Path, data: bytes) -> None:
    """Write ``data`` to ``target`` so readers never see a partial file.

    The bytes are written and flushed to a unique temp file in the same
    directory, then moved over the target with ``os.replace``. The temp
    file is removed on every exit path.

    Args:
        target: Final path of the file.
        data: Complete file contents.

    Raises:
        OSError: If the write or the replace fails. The target is unchanged.
    """
    temp = temp_path_for(target)
    try:
        with open(temp, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp, target)
    finally:
        if temp.exists():
            try:
                temp.unlink()
            except OSError as exc:
                logger.debug("Temp file cleanup failed", path=str(temp), error=str(exc))


# =============================================================================
# Capped Reads
# =============================================================================


@retry(
    retry=retry_if_exception_type(OSError)
    & retry_if_not_exception_type((FileNotFoundError, IsADirectoryError, PermissionError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def _read_bytes(path: Path) -> bytes:
    """Read a file, retrying transient I/O failures such as sharing violations."""
    return path.read_bytes()


def read_capped(path: Path, limit: int = MAX_FILE_SIZE) -> bytes:
    """Read a whole file, refusing anything larger than ``limit``.

    Args:
        path: File to read.
        limit: Maximum accepted size in bytes.

    Returns:
        The file contents.

    Raises:
        SnapshotTooLargeError: If the file exceeds the limit.
        FileNotFoundError: If the file does not exist.
        OSError: If the read keeps failing after retries.
    """
    size = path.stat().st_size
    if size > limit:
        raise SnapshotTooLargeError("Snapshot file exceeds size limit", size=size, limit=limit, path=str(path))
    data = _read_bytes(path)
    if len(data) > limit:
        raise SnapshotTooLargeError("Snapshot file exceeds size limit", size=len(data), limit=limit, path=str(path))
    return data


__all__ = [
    "is_valid_session_id",
    "validate_session_id",
    "temp_path_for",
    "atomic_write_bytes",
    "read_capped",
]
