"""Durable per-session snapshot storage.

One current snapshot per session lives at ``{directory}/{session_id}.json``.
Saves are atomic and rotate the history ring first. Store operations
report failures as warnings plus a False or None result; only an
unusable directory at construction time raises.

Example:
    >>> store = SnapshotStore("data/snapshots", SnapshotHistory("data/snapshots"))
    >>> store.save(snapshot)
    True
    >>> store.load(snapshot.session_id)
    Snapshot(...)
"""

from __future__ import annotations

import os
from pathlib import Path

from starting_gear.core.constants import MAX_FILE_SIZE, PROFILE_PREFIX, SNAPSHOT_SUFFIX, SUMMARY_FILENAME
from starting_gear.core.exceptions import (
    InvalidSessionIdError,
    MalformedSnapshotError,
    SnapshotTooLargeError,
    StorageUnavailableError,
)
from starting_gear.core.logging import get_logger
from starting_gear.models.snapshot import Snapshot
from starting_gear.storage.codec import decode, encode
from starting_gear.storage.files import (
    atomic_write_bytes,
    is_valid_session_id,
    read_capped,
    validate_session_id,
)
from starting_gear.storage.history import SnapshotHistory

logger = get_logger(__name__)


class SnapshotStore:
    """Current snapshot per session, with optional history backups."""

    def __init__(
        self,
        directory: str | Path,
        history: SnapshotHistory | None = None,
        *,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        """Initialize the store and create its directory.

        Args:
            directory: Directory holding snapshot files.
            history: History ring rotated before every save, if any.
            max_file_size: Size cap for reads.

        Raises:
            StorageUnavailableError: If the directory cannot be created or
                is not writable.
        """
        self.directory = Path(directory)
        self.history = history
        self.max_file_size = max_file_size

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(
                f"Cannot create snapshot directory: {exc}",
                path=str(self.directory),
            ) from exc
        if not self.directory.is_dir():
            raise StorageUnavailableError("Snapshot path is not a directory", path=str(self.directory))
        if not os.access(self.directory, os.W_OK):
            raise StorageUnavailableError("Snapshot directory is not writable", path=str(self.directory))

        logger.debug("Snapshot store initialized", directory=str(self.directory))

    def path_for(self, session_id: str) -> Path:
        """Path of a session's current snapshot.

        Raises:
            InvalidSessionIdError: If the session id fails the whitelist.
        """
        return self.directory / f"{validate_session_id(session_id)}{SNAPSHOT_SUFFIX}"

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def save(self, snapshot: Snapshot) -> bool:
        """Persist a snapshot as the session's current snapshot.

        Args:
            snapshot: Snapshot to store under ``snapshot.session_id``.

        Returns:
            True if the snapshot is now on disk.
        """
        try:
            path = self.path_for(snapshot.session_id)
        except InvalidSessionIdError as exc:
            logger.warning("Refusing to save snapshot", session_id=snapshot.session_id, error=exc.message)
            return False

        if not snapshot.is_valid():
            logger.warning("Refusing to save empty snapshot", session_id=snapshot.session_id)
            return False

        if self.history is not None:
            self.history.backup(snapshot.session_id)

        try:
            atomic_write_bytes(path, encode(snapshot))
        except OSError as exc:
            logger.warning("Snapshot save failed", session_id=snapshot.session_id, path=str(path), error=str(exc))
            return False

        logger.info(
            "Snapshot saved",
            session_id=snapshot.session_id,
            items=len(snapshot.items),
            location=snapshot.location_name,
        )
        return True

    def clear(self, session_id: str) -> bool:
        """Delete a session's current snapshot.

        Returns:
            True if no current snapshot exists afterwards.
        """
        try:
            path = self.path_for(session_id)
        except InvalidSessionIdError as exc:
            logger.warning("Refusing to clear snapshot", session_id=session_id, error=exc.message)
            return False

        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Snapshot clear failed", session_id=session_id, path=str(path), error=str(exc))
        cleared = not path.exists()
        if cleared:
            logger.debug("Snapshot cleared", session_id=session_id)
        return cleared

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def exists(self, session_id: str) -> bool:
        """Whether a session has a current snapshot on disk."""
        if not is_valid_session_id(session_id):
            return False
        return self.path_for(session_id).is_file()

    def load(self, session_id: str) -> Snapshot | None:
        """Load a session's current snapshot.

        Returns:
            The snapshot, or None if it is absent, oversized, malformed,
            or empty.
        """
        try:
            path = self.path_for(session_id)
        except InvalidSessionIdError as exc:
            logger.warning("Refusing to load snapshot", session_id=session_id, error=exc.message)
            return None
        return self._load_path(path, session_id=session_id)

    def load_most_recent(self) -> Snapshot | None:
        """Load the most recently written current snapshot of any session.

        History backups, profiles, temp files and the summary hand-off file
        are ignored.
        """
        candidates: list[tuple[int, Path]] = []
        for path in self.directory.glob(f"*{SNAPSHOT_SUFFIX}"):
            if not self.is_current_snapshot_file(path):
                continue
            try:
                candidates.append((path.stat().st_mtime_ns, path))
            except OSError as exc:
                logger.warning("Cannot stat snapshot file", path=str(path), error=str(exc))

        for _, path in sorted(candidates, reverse=True):
            snapshot = self._load_path(path, session_id=path.stem)
            if snapshot is not None:
                return snapshot
        return None

    @staticmethod
    def is_current_snapshot_file(path: Path) -> bool:
        """Whether a file name belongs to a current snapshot."""
        if path.name == SUMMARY_FILENAME or path.name.startswith(PROFILE_PREFIX):
            return False
        if not path.name.endswith(SNAPSHOT_SUFFIX):
            return False
        # history backups carry a dotted index and fail the whitelist
        return is_valid_session_id(path.name[: -len(SNAPSHOT_SUFFIX)])

    def _load_path(self, path: Path, *, session_id: str) -> Snapshot | None:
        try:
            snapshot = decode(read_capped(path, self.max_file_size), limit=self.max_file_size)
        except FileNotFoundError:
            return None
        except SnapshotTooLargeError as exc:
            logger.warning("Snapshot too large, ignoring", session_id=session_id, path=str(path), error=exc.message)
            return None
        except MalformedSnapshotError as exc:
            logger.warning("Snapshot malformed, ignoring", session_id=session_id, path=str(path), error=str(exc))
            return None
        except OSError as exc:
            logger.warning("Snapshot read failed", session_id=session_id, path=str(path), error=str(exc))
            return None

        if not snapshot.is_valid():
            logger.warning("Snapshot has no items or session id, ignoring", session_id=session_id, path=str(path))
            return None
        return snapshot


__all__ = ["SnapshotStore"]
