"""Bounded history of earlier snapshot generations.

For a session ``S`` with history depth ``N`` the files are::

    S.json       current snapshot (owned by SnapshotStore)
    S.1.json     most recent backup
    ...
    S.{N-1}.json oldest backup

``backup`` rotates the ring before the current file is overwritten. With
``N`` of 0 or 1 there are no backup slots and nothing is ever written.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from starting_gear.core.constants import DEFAULT_HISTORY, MAX_FILE_SIZE, SNAPSHOT_SUFFIX
from starting_gear.core.exceptions import (
    InvalidSessionIdError,
    MalformedSnapshotError,
    SnapshotTooLargeError,
)
from starting_gear.core.logging import get_logger
from starting_gear.models.snapshot import Snapshot
from starting_gear.storage.codec import decode
from starting_gear.storage.files import atomic_write_bytes, read_capped, validate_session_id

logger = get_logger(__name__)


@dataclass
class HistoryEntry:
    """One generation of a session's snapshot.

    Attributes:
        index: 0 for the current snapshot, k for backup slot k.
        path: File holding this generation.
        timestamp: Last-modified time of the file (UTC).
        is_current: Whether this is the current snapshot.
    """

    index: int
    path: Path
    timestamp: datetime
    is_current: bool

    @property
    def label(self) -> str:
        """Display label, e.g. ``Current`` or ``Backup 2``."""
        return "Current" if self.is_current else f"Backup {self.index}"

    @classmethod
    def from_path(cls, index: int, path: Path) -> HistoryEntry:
        """Create from a file on disk."""
        mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return cls(index=index, path=path, timestamp=mtime, is_current=index == 0)


class SnapshotHistory:
    """Rotating backups of a session's snapshot file."""

    def __init__(
        self,
        directory: str | Path,
        max_history: int = DEFAULT_HISTORY,
        *,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        """Initialize the history ring.

        Args:
            directory: Directory shared with the snapshot store.
            max_history: Generations kept, counting the current file.
            max_file_size: Size cap applied when reading a generation.
        """
        self.directory = Path(directory)
        self.max_history = max(0, max_history)
        self.max_file_size = max_file_size

    @property
    def backup_slots(self) -> int:
        """Number of backup files kept per session."""
        return max(0, self.max_history - 1)

    def current_path(self, session_id: str) -> Path:
        """Path of the current snapshot for a validated session id."""
        return self.directory / f"{validate_session_id(session_id)}{SNAPSHOT_SUFFIX}"

    def backup_path(self, session_id: str, index: int) -> Path:
        """Path of backup slot ``index`` for a validated session id."""
        return self.directory / f"{validate_session_id(session_id)}.{index}{SNAPSHOT_SUFFIX}"

    def generation_path(self, session_id: str, index: int) -> Path:
        """Path of generation ``index``; 0 is the current file."""
        if index == 0:
            return self.current_path(session_id)
        return self.backup_path(session_id, index)

    # -------------------------------------------------------------------------
    # Rotation
    # -------------------------------------------------------------------------

    def backup(self, session_id: str) -> bool:
        """Rotate the ring and copy the current snapshot into slot 1.

        Args:
            session_id: Session whose snapshot is about to be overwritten.

        Returns:
            True if a backup was written. False when history is disabled,
            there is no current file, or the rotation failed.

        Raises:
            InvalidSessionIdError: If the session id fails the whitelist.
        """
        current = self.current_path(session_id)
        if self.backup_slots == 0 or not current.exists():
            return False

        try:
            oldest = self.backup_path(session_id, self.backup_slots)
            if oldest.exists():
                oldest.unlink()
            for index in range(self.backup_slots - 1, 0, -1):
                source = self.backup_path(session_id, index)
                if source.exists():
                    os.replace(source, self.backup_path(session_id, index + 1))
            shutil.copy2(current, self.backup_path(session_id, 1))
        except OSError as exc:
            logger.warning("Snapshot backup failed", session_id=session_id, error=str(exc))
            return False

        logger.debug("Snapshot backed up", session_id=session_id, slots=self.backup_slots)
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def entries(self, session_id: str) -> list[HistoryEntry]:
        """List existing generations, newest first.

        Args:
            session_id: Session to inspect.

        Returns:
            The current snapshot (if present) followed by existing backups
            in slot order.
        """
        try:
            candidates = [(0, self.current_path(session_id))]
        except InvalidSessionIdError as exc:
            logger.warning("Rejected session id", session_id=session_id, error=exc.message)
            return []
        candidates.extend(
            (index, self.backup_path(session_id, index)) for index in range(1, self.backup_slots + 1)
        )

        entries: list[HistoryEntry] = []
        for index, path in candidates:
            if not path.exists():
                continue
            try:
                entries.append(HistoryEntry.from_path(index, path))
            except OSError as exc:
                logger.warning("Cannot stat history entry", path=str(path), error=str(exc))
        return entries

    def load(self, session_id: str, index: int) -> Snapshot | None:
        """Decode one generation.

        Args:
            session_id: Owning session.
            index: 0 for the current snapshot, k for backup slot k.

        Returns:
            The snapshot, or None if it is absent, oversized, or malformed.
        """
        try:
            path = self.generation_path(session_id, index)
            return decode(read_capped(path, self.max_file_size), limit=self.max_file_size)
        except FileNotFoundError:
            return None
        except (InvalidSessionIdError, SnapshotTooLargeError, MalformedSnapshotError, OSError) as exc:
            logger.warning("Cannot load history entry", session_id=session_id, index=index, error=str(exc))
            return None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def restore(self, session_id: str, index: int) -> bool:
        """Make backup ``index`` the current snapshot.

        The backup is read and validated first, the ring is rotated so the
        current snapshot is not lost, then the backup bytes are written
        atomically over the current file.

        Args:
            session_id: Owning session.
            index: Backup slot, 1 or higher.

        Returns:
            True if the backup became current.
        """
        if index < 1 or index > self.backup_slots:
            logger.warning("History index out of range", session_id=session_id, index=index)
            return False

        try:
            source = self.backup_path(session_id, index)
            data = read_capped(source, self.max_file_size)
            decode(data, limit=self.max_file_size)
        except FileNotFoundError:
            logger.warning("History entry not found", session_id=session_id, index=index)
            return False
        except (InvalidSessionIdError, SnapshotTooLargeError, MalformedSnapshotError, OSError) as exc:
            logger.warning("Cannot restore history entry", session_id=session_id, index=index, error=str(exc))
            return False

        self.backup(session_id)
        try:
            atomic_write_bytes(self.current_path(session_id), data)
        except OSError as exc:
            logger.warning("Writing restored snapshot failed", session_id=session_id, error=str(exc))
            return False

        logger.info("Snapshot restored from history", session_id=session_id, index=index)
        return True

    def clear(self, session_id: str) -> int:
        """Delete every backup of a session, leaving the current file.

        Args:
            session_id: Owning session.

        Returns:
            Number of backup files deleted.
        """
        try:
            validate_session_id(session_id)
        except InvalidSessionIdError as exc:
            logger.warning("Rejected session id", session_id=session_id, error=exc.message)
            return 0

        deleted = 0
        for path in self.directory.glob(f"{session_id}.*{SNAPSHOT_SUFFIX}"):
            middle = path.name[len(session_id) + 1 : -len(SNAPSHOT_SUFFIX)]
            if not middle.isdigit():
                continue
            try:
                path.unlink()
                deleted += 1
            except OSError as exc:
                logger.warning("Cannot delete history entry", path=str(path), error=str(exc))
        return deleted


__all__ = ["HistoryEntry", "SnapshotHistory"]
