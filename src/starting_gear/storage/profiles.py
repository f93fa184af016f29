"""Named loadout profiles.

A profile is a snapshot saved under a user-chosen name so it can be
re-applied later. Files are named ``profile_{name}_{session}.json`` and
live next to the session snapshots.

Profile names are user input. They are reduced to letters, digits,
spaces and hyphens, trimmed, and cut to 20 characters before they are
used in a path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from starting_gear.core.constants import (
    MAX_FILE_SIZE,
    MAX_PROFILE_NAME_LENGTH,
    MAX_PROFILES,
    PROFILE_PREFIX,
    SNAPSHOT_SUFFIX,
)
from starting_gear.core.exceptions import (
    InvalidProfileNameError,
    InvalidSessionIdError,
    MalformedSnapshotError,
    SnapshotTooLargeError,
)
from starting_gear.core.logging import get_logger
from starting_gear.models.snapshot import Snapshot, utc_now
from starting_gear.storage.codec import decode, encode
from starting_gear.storage.files import atomic_write_bytes, read_capped, validate_session_id
from starting_gear.storage.snapshots import SnapshotStore

logger = get_logger(__name__)

_DISALLOWED_NAME_CHARS = re.compile(r"[^A-Za-z0-9 \-]")


def sanitize_profile_name(name: str | None) -> str:
    """Reduce a user-supplied profile name to a safe filename fragment.

    Args:
        name: Name as typed by the user.

    Returns:
        The sanitized name.

    Raises:
        InvalidProfileNameError: If nothing is left after sanitization.

    Example:
        >>> sanitize_profile_name("  ../Raid Kit #1  ")
        'Raid Kit 1'
    """
    cleaned = _DISALLOWED_NAME_CHARS.sub("", name or "").strip()
    cleaned = cleaned[:MAX_PROFILE_NAME_LENGTH].strip()
    if not cleaned:
        raise InvalidProfileNameError("Profile name is empty after sanitization", profile_name=name)
    return cleaned


@dataclass
class ProfileInfo:
    """Listing entry for a saved profile.

    Attributes:
        name: Sanitized profile name.
        path: File holding the profile.
        last_modified: Last write time (UTC).
        file_size: Size in bytes.
    """

    name: str
    path: Path
    last_modified: datetime
    file_size: int

    @classmethod
    def from_path(cls, name: str, path: Path) -> ProfileInfo:
        """Create from a file on disk."""
        stat = path.stat()
        return cls(
            name=name,
            path=path,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            file_size=stat.st_size,
        )


class LoadoutProfiles:
    """Save, list, load, rename and delete named loadouts for a session."""

    def __init__(
        self,
        store: SnapshotStore,
        *,
        max_profiles: int = MAX_PROFILES,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        """Initialize the profile store.

        Args:
            store: Snapshot store that receives loaded profiles; its
                directory also holds the profile files.
            max_profiles: Maximum profiles per session.
            max_file_size: Size cap for reads.
        """
        self.store = store
        self.directory = store.directory
        self.max_profiles = max_profiles
        self.max_file_size = max_file_size

    def path_for(self, session_id: str, name: str) -> Path:
        """File path of a profile.

        Raises:
            InvalidSessionIdError: If the session id fails the whitelist.
            InvalidProfileNameError: If the name is empty after sanitization.
        """
        session_id = validate_session_id(session_id)
        return self.directory / f"{PROFILE_PREFIX}{sanitize_profile_name(name)}_{session_id}{SNAPSHOT_SUFFIX}"

    def save(self, session_id: str, name: str, snapshot: Snapshot) -> bool:
        """Save a snapshot as a named profile.

        Overwriting an existing profile is always allowed; a new profile is
        refused once the session already has the maximum number.

        Returns:
            True if the profile was written.
        """
        try:
            path = self.path_for(session_id, name)
        except (InvalidSessionIdError, InvalidProfileNameError) as exc:
            logger.warning("Refusing to save profile", session_id=session_id, profile=name, error=exc.message)
            return False

        if not snapshot.is_valid():
            logger.warning("Refusing to save empty profile", session_id=session_id, profile=name)
            return False

        if not path.exists() and len(self.list(session_id)) >= self.max_profiles:
            logger.warning("Profile limit reached", session_id=session_id, limit=self.max_profiles)
            return False

        profile = snapshot.model_copy(update={"session_id": session_id})
        try:
            atomic_write_bytes(path, encode(profile))
        except OSError as exc:
            logger.warning("Profile save failed", session_id=session_id, path=str(path), error=str(exc))
            return False

        logger.info("Profile saved", session_id=session_id, profile=path.name, items=len(profile.items))
        return True

    def load(self, session_id: str, name: str) -> Snapshot | None:
        """Apply a profile as the session's current snapshot.

        The profile is decoded, stamped with the session id and the current
        time, and saved through the snapshot store so the previous current
        snapshot goes into history.

        Returns:
            The snapshot now current for the session, or None on failure.
        """
        try:
            path = self.path_for(session_id, name)
            profile = decode(read_capped(path, self.max_file_size), limit=self.max_file_size)
        except FileNotFoundError:
            logger.warning("Profile not found", session_id=session_id, profile=name)
            return None
        except (InvalidSessionIdError, InvalidProfileNameError, SnapshotTooLargeError) as exc:
            logger.warning("Refusing to load profile", session_id=session_id, profile=name, error=exc.message)
            return None
        except (MalformedSnapshotError, OSError) as exc:
            logger.warning("Profile unreadable", session_id=session_id, profile=name, error=str(exc))
            return None

        snapshot = profile.model_copy(update={"session_id": session_id, "timestamp": utc_now()})
        if not self.store.save(snapshot):
            return None
        logger.info("Profile applied", session_id=session_id, profile=path.name)
        return snapshot

    def list(self, session_id: str) -> list[ProfileInfo]:
        """List a session's profiles sorted by name."""
        try:
            session_id = validate_session_id(session_id)
        except InvalidSessionIdError as exc:
            logger.warning("Rejected session id", session_id=session_id, error=exc.message)
            return []

        suffix = f"_{session_id}{SNAPSHOT_SUFFIX}"
        profiles: list[ProfileInfo] = []
        for path in self.directory.glob(f"{PROFILE_PREFIX}*{suffix}"):
            name = path.name[len(PROFILE_PREFIX) : -len(suffix)]
            # names never contain underscores, so a longer match belongs to another session
            if not name or "_" in name:
                continue
            try:
                profiles.append(ProfileInfo.from_path(name, path))
            except OSError as exc:
                logger.warning("Cannot stat profile", path=str(path), error=str(exc))
        return sorted(profiles, key=lambda info: info.name)

    def rename(self, session_id: str, old_name: str, new_name: str) -> bool:
        """Rename a profile; the new name must not be taken.

        Returns:
            True if the profile now exists under the new name.
        """
        try:
            source = self.path_for(session_id, old_name)
            target = self.path_for(session_id, new_name)
        except (InvalidSessionIdError, InvalidProfileNameError) as exc:
            logger.warning("Refusing to rename profile", session_id=session_id, error=exc.message)
            return False

        if not source.exists():
            logger.warning("Profile not found", session_id=session_id, profile=old_name)
            return False
        if source == target:
            return True
        if target.exists():
            logger.warning("Profile name already taken", session_id=session_id, profile=new_name)
            return False

        try:
            source.rename(target)
        except OSError as exc:
            logger.warning("Profile rename failed", session_id=session_id, error=str(exc))
            return False
        return True

    def delete(self, session_id: str, name: str) -> bool:
        """Delete a profile.

        Returns:
            True if the profile existed and was removed.
        """
        try:
            path = self.path_for(session_id, name)
        except (InvalidSessionIdError, InvalidProfileNameError) as exc:
            logger.warning("Refusing to delete profile", session_id=session_id, error=exc.message)
            return False

        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Profile delete failed", session_id=session_id, path=str(path), error=str(exc))
            return False
        logger.info("Profile deleted", session_id=session_id, profile=path.name)
        return True


__all__ = ["sanitize_profile_name", "ProfileInfo", "LoadoutProfiles"]
