"""One-shot hand-off of the last restoration summary.

The restoring side writes ``restoration_summary.json`` into the snapshot
directory; the displaying side consumes it exactly once (read, then
delete).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from starting_gear.core.constants import MAX_FILE_SIZE, SUMMARY_FILENAME
from starting_gear.core.exceptions import SnapshotTooLargeError
from starting_gear.core.logging import get_logger
from starting_gear.models.summary import RestorationSummary
from starting_gear.storage.files import atomic_write_bytes, read_capped

logger = get_logger(__name__)


def summary_path(directory: str | Path) -> Path:
    """Location of the hand-off file in a snapshot directory."""
    return Path(directory) / SUMMARY_FILENAME


def write_pending_summary(directory: str | Path, summary: RestorationSummary) -> bool:
    """Publish a summary for the display side.

    Args:
        directory: Snapshot directory.
        summary: Summary to publish; replaces any unconsumed one.

    Returns:
        True if the file was written.
    """
    path = summary_path(directory)
    try:
        atomic_write_bytes(path, summary.model_dump_json(by_alias=True, indent=2).encode("utf-8"))
    except OSError as exc:
        logger.warning("Writing restoration summary failed", path=str(path), error=str(exc))
        return False
    logger.debug("Restoration summary published", restored=summary.restored_count, lost=summary.lost_count)
    return True


def consume_pending_summary(directory: str | Path) -> RestorationSummary | None:
    """Read and delete the pending summary, if any.

    A malformed file is deleted as well so it is not offered again.

    Args:
        directory: Snapshot directory.

    Returns:
        The summary, or None if there is none or it cannot be read.
    """
    path = summary_path(directory)
    try:
        data = read_capped(path, MAX_FILE_SIZE)
    except FileNotFoundError:
        return None
    except (SnapshotTooLargeError, OSError) as exc:
        logger.warning("Reading restoration summary failed", path=str(path), error=str(exc))
        data = None

    summary: RestorationSummary | None = None
    if data is not None:
        try:
            summary = RestorationSummary.model_validate_json(data)
        except ValidationError as exc:
            logger.warning("Restoration summary malformed", path=str(path), errors=exc.error_count())

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Deleting restoration summary failed", path=str(path), error=str(exc))
    return summary


__all__ = ["summary_path", "write_pending_summary", "consume_pending_summary"]
