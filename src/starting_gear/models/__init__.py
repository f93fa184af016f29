"""Pydantic models for equipment forests and snapshots.

Exports:
    Item, GridPosition, CartridgeIndex, Upd: the item forest.
    Snapshot: a captured forest with capture metadata.
    RestorationSummary: what a restore put back and what was lost.
    EquipmentSlot: the top-level slot catalogue.
"""

from __future__ import annotations

from starting_gear.models.enums import (
    DEFAULT_MANAGED_SLOTS,
    PROTECTED_SLOTS,
    EquipmentSlot,
    ExitCategory,
    RaidExitStatus,
    categorize_exit,
    is_protected_slot,
    is_top_level_slot,
)
from starting_gear.models.items import (
    CartridgeIndex,
    Dogtag,
    FoodDrink,
    Foldable,
    GridPosition,
    Item,
    ItemLocation,
    KeyUsage,
    MedKit,
    Repairable,
    Resource,
    Upd,
    id_key,
    parse_location,
)
from starting_gear.models.snapshot import Snapshot, utc_now
from starting_gear.models.summary import ItemSummary, RestorationSummary


__all__ = [
    # Enums
    "EquipmentSlot",
    "ExitCategory",
    "RaidExitStatus",
    "categorize_exit",
    "DEFAULT_MANAGED_SLOTS",
    "PROTECTED_SLOTS",
    "is_top_level_slot",
    "is_protected_slot",
    # Items
    "Item",
    "ItemLocation",
    "GridPosition",
    "CartridgeIndex",
    "parse_location",
    "Upd",
    "Foldable",
    "MedKit",
    "Repairable",
    "Resource",
    "FoodDrink",
    "KeyUsage",
    "Dogtag",
    "id_key",
    # Snapshot
    "Snapshot",
    "utc_now",
    # Summary
    "ItemSummary",
    "RestorationSummary",
]
