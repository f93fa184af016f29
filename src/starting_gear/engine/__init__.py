"""Snapshot and restoration engine.

This module provides capture of a live inventory, the restoration
algorithm, version gating, restoration summaries and the orchestration
that ties them to raid boundaries.

Submodules:
    capture: Snapshot capture through a host adapter
    restoration: Pure reconciliation of a profile with a snapshot
    summary: Restored and lost item summaries
    compat: Snapshot version compatibility
    engine: Raid start, death and extraction flows

Example:
    >>> from starting_gear.engine import Engine
    >>>
    >>> engine = Engine.create()
    >>> engine.capture_and_save(adapter, session_id, location_name="bigmap")
    >>> report = engine.handle_raid_end(session_id, "Killed", profile_items)
    >>> if report and report.success:
    ...     profile_items = report.items
"""

from __future__ import annotations

# =============================================================================
# Capture
# =============================================================================
from starting_gear.engine.capture import (
    CaptureAdapter,
    CaptureOptions,
    SlotContents,
    capture_snapshot,
    cartridge_position,
)

# =============================================================================
# Restoration
# =============================================================================
from starting_gear.engine.restoration import (
    RestorationCounters,
    RestorationErrorKind,
    RestorationResult,
    find_root_slot,
    managed_slot_set,
    restore_inventory,
)

# =============================================================================
# Summaries and Compatibility
# =============================================================================
from starting_gear.engine.summary import (
    ItemNameCache,
    build_summary,
    consolidate,
    failed_summary,
    summarize_item,
)
from starting_gear.engine.compat import Version, is_snapshot_compatible

# =============================================================================
# Orchestration
# =============================================================================
from starting_gear.engine.engine import Engine, RestoreReport


__all__ = [
    # Capture
    "CaptureAdapter",
    "CaptureOptions",
    "SlotContents",
    "capture_snapshot",
    "cartridge_position",
    # Restoration
    "RestorationCounters",
    "RestorationErrorKind",
    "RestorationResult",
    "find_root_slot",
    "managed_slot_set",
    "restore_inventory",
    # Summaries
    "ItemNameCache",
    "build_summary",
    "consolidate",
    "failed_summary",
    "summarize_item",
    # Compatibility
    "Version",
    "is_snapshot_compatible",
    # Orchestration
    "Engine",
    "RestoreReport",
]
