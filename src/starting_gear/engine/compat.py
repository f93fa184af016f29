"""Snapshot version compatibility gate.

Snapshots record the engine version that wrote them. A snapshot is
restorable when its major version matches the running engine; a newer
minor version is allowed with a warning. Snapshots without a version
predate the current format and are refused. Versions that cannot be
parsed never block a restore.
"""

from __future__ import annotations

from typing import NamedTuple

from starting_gear.core.logging import get_logger

logger = get_logger(__name__)


class Version(NamedTuple):
    """Parsed ``major.minor[.patch]`` version."""

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, text: str | None) -> Version | None:
        """Parse a dotted version string.

        Args:
            text: Version such as ``"2.1.0"``.

        Returns:
            The parsed version, or None if major or minor is not an integer.
            A non-numeric patch component is read as 0.

        Example:
            >>> Version.parse("2.1")
            Version(major=2, minor=1, patch=0)
        """
        if not text:
            return None
        parts = text.strip().split(".")
        if len(parts) < 2:
            return None
        try:
            major, minor = int(parts[0]), int(parts[1])
        except ValueError:
            return None
        patch = int(parts[2]) if len(parts) >= 3 and parts[2].isdigit() else 0
        return cls(major, minor, patch)


def is_snapshot_compatible(snapshot_version: str | None, current_version: str) -> bool:
    """Decide whether a snapshot written by ``snapshot_version`` can be restored.

    Args:
        snapshot_version: Version recorded in the snapshot, if any.
        current_version: Version of the running engine.

    Returns:
        True if restoration may proceed.
    """
    current = Version.parse(current_version)
    if current is None:
        logger.warning("Cannot parse current version, not blocking restore", current=current_version)
        return True

    if not snapshot_version:
        logger.warning("Snapshot has no version and predates the current format")
        return False

    recorded = Version.parse(snapshot_version)
    if recorded is None:
        logger.warning("Cannot parse snapshot version, not blocking restore", snapshot=snapshot_version)
        return True

    if recorded.major != current.major:
        logger.warning("Snapshot major version mismatch", snapshot=snapshot_version, current=current_version)
        return False
    if recorded.minor > current.minor:
        logger.warning("Snapshot written by a newer version", snapshot=snapshot_version, current=current_version)
    elif recorded.minor < current.minor:
        logger.debug("Snapshot written by an older version", snapshot=snapshot_version, current=current_version)
    return True


__all__ = ["Version", "is_snapshot_compatible"]
