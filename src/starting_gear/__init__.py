"""Starting Gear - inventory snapshot and restoration engine.

Records a player's loadout when a raid starts and puts it back after a
death, so the gear a player walked in with is not lost.

ARCHITECTURE:
- Capture reads the live inventory through a host adapter
- Storage owns every file: snapshots, history, profiles, summaries
- Restoration is a pure function of (profile, snapshot)
- The engine ties these to raid start, death and extraction

Example:
    >>> from starting_gear import Engine, configure_from_settings, get_settings
    >>>
    >>> configure_from_settings(get_settings())
    >>> engine = Engine.create()
    >>>
    >>> # Raid start
    >>> engine.capture_and_save(adapter, session_id, location_name="factory4_day")
    >>>
    >>> # Raid end
    >>> report = engine.handle_raid_end(session_id, "Killed", profile_items)
    >>> if report and report.success:
    ...     profile_items = report.items

Modules:
    core: Configuration, logging, constants, and base exceptions.
    models: Pydantic V2 schemas for items, snapshots, and summaries.
    storage: Snapshot codec, atomic files, history, profiles, summary hand-off.
    engine: Capture, restoration, summaries, and raid-end orchestration.
"""

from __future__ import annotations

# Core
from starting_gear.core.config import Settings, get_settings
from starting_gear.core.exceptions import StartingGearError
from starting_gear.core.logging import configure_from_settings, configure_logging, get_logger

# Models
from starting_gear.models import (
    CartridgeIndex,
    EquipmentSlot,
    GridPosition,
    Item,
    RaidExitStatus,
    RestorationSummary,
    Snapshot,
    Upd,
)

# Storage
from starting_gear.storage import LoadoutProfiles, SnapshotHistory, SnapshotStore

# Engine
from starting_gear.engine import (
    CaptureAdapter,
    Engine,
    RestorationResult,
    RestoreReport,
    capture_snapshot,
    restore_inventory,
)


__version__ = "0.1.0"
__author__ = "Starting Gear Team"
__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Core
    "StartingGearError",
    "Settings",
    "get_settings",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    # Models
    "Item",
    "GridPosition",
    "CartridgeIndex",
    "Upd",
    "Snapshot",
    "RestorationSummary",
    "EquipmentSlot",
    "RaidExitStatus",
    # Storage
    "SnapshotStore",
    "SnapshotHistory",
    "LoadoutProfiles",
    # Engine
    "CaptureAdapter",
    "capture_snapshot",
    "restore_inventory",
    "RestorationResult",
    "Engine",
    "RestoreReport",
]
