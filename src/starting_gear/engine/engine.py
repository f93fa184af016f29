"""Engine orchestration.

This module wires capture, persistence, restoration and the summary
hand-off into the flows the host calls at raid boundaries:

* raid start: ``capture_and_save`` records the loadout;
* death: ``restore`` puts the snapshot back into the profile, publishes
  a summary and deletes the snapshot;
* extraction: ``handle_extraction`` drops the snapshot so it is never
  restored later.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from starting_gear.core.config import Settings, get_settings
from starting_gear.core.logging import get_logger, session_context
from starting_gear.engine.capture import CaptureAdapter, CaptureOptions, capture_snapshot
from starting_gear.engine.compat import is_snapshot_compatible
from starting_gear.engine.restoration import RestorationResult, restore_inventory
from starting_gear.engine.summary import ItemNameCache, build_summary, failed_summary
from starting_gear.models.enums import ExitCategory, categorize_exit
from starting_gear.models.snapshot import Snapshot
from starting_gear.storage.handoff import consume_pending_summary, write_pending_summary
from starting_gear.storage.history import SnapshotHistory
from starting_gear.storage.profiles import LoadoutProfiles
from starting_gear.storage.snapshots import SnapshotStore


if TYPE_CHECKING:
    from starting_gear.models.items import Item
    from starting_gear.models.summary import RestorationSummary

logger = get_logger(__name__)


@dataclass
class RestoreReport:
    """Outcome of a restore attempt.

    Attributes:
        session_id: Session that was restored.
        result: Restoration result, or None if restoration never ran.
        summary: Summary published for display, if any.
        snapshot: Snapshot that was used, if one was found.
        message: Failure reason; empty on success.
    """

    session_id: str
    result: RestorationResult | None = None
    summary: RestorationSummary | None = None
    snapshot: Snapshot | None = None
    message: str = ""

    @property
    def success(self) -> bool:
        """Whether the profile was restored."""
        return self.result is not None and self.result.success

    @property
    def items(self) -> list[Item]:
        """The restored profile forest; empty unless successful."""
        return list(self.result.items) if self.success and self.result is not None else []


class Engine:
    """Snapshot and restoration engine for one snapshot directory.

    Attributes:
        store: Current snapshots.
        history: Backup ring for the store.
        profiles: Named loadouts.
        settings: Settings the engine was built from.
        names: Display names used in summaries.
    """

    def __init__(
        self,
        store: SnapshotStore,
        history: SnapshotHistory | None = None,
        profiles: LoadoutProfiles | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Snapshot store to operate on.
            history: History ring; defaults to the store's own.
            profiles: Loadout profiles; defaults to profiles over ``store``.
            settings: Settings; defaults to the cached application settings.
        """
        self.settings = settings or get_settings()
        self.store = store
        self.history = history or store.history
        self.profiles = profiles or LoadoutProfiles(store)
        self.names = ItemNameCache()

        logger.info("Engine initialized", directory=str(store.directory), version=self.settings.mod_version)

    @classmethod
    def create(cls, settings: Settings | None = None) -> Engine:
        """Build an engine and its stores from settings.

        Raises:
            StorageUnavailableError: If the snapshot directory is unusable.
        """
        settings = settings or get_settings()
        directory = settings.storage.data_directory
        history = SnapshotHistory(directory, settings.storage.max_snapshot_history)
        store = SnapshotStore(directory, history)
        return cls(store, history, LoadoutProfiles(store), settings=settings)

    @property
    def directory(self) -> Path:
        """Snapshot directory."""
        return self.store.directory

    # -------------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------------

    def capture_and_save(
        self,
        adapter: CaptureAdapter,
        session_id: str,
        *,
        location_name: str | None = None,
        taken_in_raid: bool = False,
        options: CaptureOptions | None = None,
    ) -> Snapshot | None:
        """Capture the live inventory and store it as the current snapshot.

        Args:
            adapter: View of the host inventory.
            session_id: Session to capture for.
            location_name: Current map, if in a raid.
            taken_in_raid: Whether the capture happens mid-raid.
            options: Capture options; defaults come from protection settings.

        Returns:
            The saved snapshot, or None if it could not be saved.
        """
        options = options or CaptureOptions.from_settings(self.settings.protection)
        with session_context(session_id, operation="capture"):
            snapshot = capture_snapshot(
                adapter,
                session_id,
                location_name=location_name,
                taken_in_raid=taken_in_raid,
                options=options,
                mod_version=self.settings.mod_version,
            )
            return snapshot if self.store.save(snapshot) else None

    def save_snapshot(self, snapshot: Snapshot) -> bool:
        """Store a snapshot built elsewhere, stamping it with the engine version."""
        if not snapshot.mod_version:
            snapshot = snapshot.model_copy(update={"mod_version": self.settings.mod_version})
        return self.store.save(snapshot)

    # -------------------------------------------------------------------------
    # Restore
    # -------------------------------------------------------------------------

    def restore(
        self,
        session_id: str,
        profile_items: Sequence[Item],
        *,
        map_name: str | None = None,
    ) -> RestoreReport:
        """Restore a session's snapshot into a live profile.

        A successful restore publishes a summary and deletes the snapshot.
        A snapshot from an incompatible version is deleted without being
        applied. A refused restoration keeps the snapshot so it can be
        retried.

        Args:
            session_id: Session to restore.
            profile_items: Live profile forest. Not modified.
            map_name: Map the raid took place on.

        Returns:
            A report; ``report.items`` is the new profile forest on success.
        """
        with session_context(session_id, operation="restore"):
            return self._restore(session_id, profile_items, map_name)

    def _restore(self, session_id: str, profile_items: Sequence[Item], map_name: str | None) -> RestoreReport:
        report = RestoreReport(session_id=session_id)
        snapshot = self.store.load(session_id)
        if snapshot is None:
            report.message = "No snapshot found"
            logger.info("Nothing to restore")
            return report
        report.snapshot = snapshot
        map_name = map_name or snapshot.location_name

        if not is_snapshot_compatible(snapshot.mod_version, self.settings.mod_version):
            report.message = "Snapshot version is incompatible"
            self.store.clear(session_id)
            report.summary = self._publish(failed_summary(report.message, map_name))
            return report

        result = restore_inventory(
            profile_items,
            snapshot.items,
            snapshot.included_slots,
            snapshot.empty_slots,
        )
        report.result = result
        if not result.success:
            report.message = result.error_message
            report.summary = self._publish(failed_summary(result.error_message, map_name))
            return report

        summary = build_summary(snapshot.items, profile_items, map_name=map_name, names=self.names)
        report.summary = self._publish(summary)
        self.store.clear(session_id)

        logger.info(
            "Inventory restored",
            map_name=map_name,
            restored=summary.restored_count,
            lost=summary.lost_count,
        )
        return report

    def handle_raid_end(
        self,
        session_id: str,
        exit_status: str,
        profile_items: Sequence[Item],
        *,
        map_name: str | None = None,
        is_scav: bool = False,
    ) -> RestoreReport | None:
        """Dispatch on how a raid ended.

        Args:
            session_id: Session whose raid ended.
            exit_status: Exit status as reported by the host.
            profile_items: Live profile forest after the raid.
            map_name: Map the raid took place on.
            is_scav: Scav raids never touch the main character's snapshot.

        Returns:
            The restore report after a death, otherwise None.
        """
        with session_context(session_id, exit_status=exit_status):
            if is_scav:
                logger.debug("Scav raid ended, snapshot untouched")
                return None

            category = categorize_exit(exit_status)
            if category is ExitCategory.DEATH:
                logger.info("Death detected")
                return self.restore(session_id, profile_items, map_name=map_name)
            if category is ExitCategory.EXTRACTION:
                self.handle_extraction(session_id)
                return None

            logger.warning("Unknown raid exit status, snapshot kept")
            return None

    def handle_extraction(self, session_id: str) -> bool:
        """Drop the snapshot after a successful extraction."""
        cleared = self.store.clear(session_id)
        logger.info("Extraction, snapshot cleared", session_id=session_id, cleared=cleared)
        return cleared

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    def summarize(
        self,
        snapshot: Snapshot,
        pre_restoration_items: Sequence[Item],
        *,
        map_name: str | None = None,
    ) -> RestorationSummary:
        """Build a summary without restoring or publishing anything."""
        return build_summary(
            snapshot.items,
            pre_restoration_items,
            map_name=map_name or snapshot.location_name,
            names=self.names,
        )

    def pending_summary(self) -> RestorationSummary | None:
        """Consume the summary published by the last restore, if any."""
        return consume_pending_summary(self.store.directory)

    def _publish(self, summary: RestorationSummary) -> RestorationSummary:
        write_pending_summary(self.store.directory, summary)
        return summary


__all__ = ["Engine", "RestoreReport"]
