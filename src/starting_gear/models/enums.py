"""Enumeration types for the starting gear engine.

This module defines the catalogue of top-level equipment slots, the
groupings used when deciding which slots a snapshot manages, and the raid
exit statuses that decide whether a snapshot is restored or discarded.
"""

from __future__ import annotations

from enum import StrEnum


class EquipmentSlot(StrEnum):
    """Top-level slots of a character's equipment.

    Values are the relationship labels the host writes into ``slot_id``
    for items parented directly to the Equipment root.
    """

    # Weapons
    FIRST_PRIMARY_WEAPON = "FirstPrimaryWeapon"
    SECOND_PRIMARY_WEAPON = "SecondPrimaryWeapon"
    HOLSTER = "Holster"
    SCABBARD = "Scabbard"

    # Head and body
    HEADWEAR = "Headwear"
    EARPIECE = "Earpiece"
    FACE_COVER = "FaceCover"
    ARMOR_VEST = "ArmorVest"
    EYEWEAR = "Eyewear"
    ARM_BAND = "ArmBand"

    # Containers
    TACTICAL_VEST = "TacticalVest"
    BACKPACK = "Backpack"
    SECURED_CONTAINER = "SecuredContainer"
    POCKETS = "Pockets"

    # Utility
    COMPASS = "Compass"
    DOGTAG = "Dogtag"
    SPECIAL_SLOT_1 = "SpecialSlot1"
    SPECIAL_SLOT_2 = "SpecialSlot2"
    SPECIAL_SLOT_3 = "SpecialSlot3"

    @property
    def is_protected(self) -> bool:
        """Whether restoration must never remove this slot's contents."""
        return self in PROTECTED_SLOTS

    @classmethod
    def lookup(cls, name: str) -> EquipmentSlot | None:
        """Find a slot by its label, ignoring case.

        Args:
            name: Slot label as written by the host or a snapshot.

        Returns:
            The matching slot, or None for labels outside the catalogue.
        """
        folded = name.casefold()
        for slot in cls:
            if slot.value.casefold() == folded:
                return slot
        return None


class ExitCategory(StrEnum):
    """What the engine does with a snapshot when a raid ends."""

    DEATH = "death"
    """Gear was lost; restore from the snapshot."""

    EXTRACTION = "extraction"
    """Gear was kept; the snapshot is discarded."""

    UNKNOWN = "unknown"
    """Unrecognized status; leave everything untouched."""


class RaidExitStatus(StrEnum):
    """How a raid ended, as reported by the host."""

    SURVIVED = "Survived"
    RUNNER = "Runner"
    TRANSIT = "Transit"
    KILLED = "Killed"
    MISSING_IN_ACTION = "MissingInAction"
    LEFT = "Left"

    @property
    def category(self) -> ExitCategory:
        """Categorize the status into death or extraction."""
        if self in (RaidExitStatus.KILLED, RaidExitStatus.MISSING_IN_ACTION, RaidExitStatus.LEFT):
            return ExitCategory.DEATH
        return ExitCategory.EXTRACTION

    @property
    def description(self) -> str:
        """Human-readable description of the status."""
        return _EXIT_DESCRIPTIONS[self]


_EXIT_DESCRIPTIONS = {
    RaidExitStatus.KILLED: "Player was killed",
    RaidExitStatus.MISSING_IN_ACTION: "Raid timer expired",
    RaidExitStatus.LEFT: "Player disconnected or left the raid",
    RaidExitStatus.SURVIVED: "Player extracted",
    RaidExitStatus.RUNNER: "Player extracted as a run-through",
    RaidExitStatus.TRANSIT: "Player used a transit extract",
}


def categorize_exit(status: str) -> ExitCategory:
    """Categorize a raw exit status string.

    Args:
        status: Exit status as reported by the host, compared case-insensitively.

    Returns:
        The category, or UNKNOWN for statuses outside the catalogue.
    """
    folded = status.casefold()
    for candidate in RaidExitStatus:
        if candidate.value.casefold() == folded:
            return candidate.category
    return ExitCategory.UNKNOWN


PROTECTED_SLOTS = frozenset({EquipmentSlot.SECURED_CONTAINER, EquipmentSlot.POCKETS})
"""Slots whose contents survive death and are never removed by restoration."""

DEFAULT_MANAGED_SLOTS: tuple[str, ...] = tuple(
    slot.value for slot in EquipmentSlot if slot is not EquipmentSlot.SECURED_CONTAINER
)
"""Slots captured when no explicit configuration is given."""


def is_top_level_slot(name: str) -> bool:
    """Check whether a label names a top-level equipment slot.

    Args:
        name: Slot label, compared case-insensitively.

    Returns:
        True if the label is in the slot catalogue.
    """
    return EquipmentSlot.lookup(name) is not None


def is_protected_slot(name: str | None) -> bool:
    """Check whether a label names a slot restoration never clears.

    Args:
        name: Slot label, compared case-insensitively.

    Returns:
        True for SecuredContainer and Pockets.
    """
    if not name:
        return False
    slot = EquipmentSlot.lookup(name)
    return slot is not None and slot.is_protected


__all__ = [
    "EquipmentSlot",
    "ExitCategory",
    "RaidExitStatus",
    "categorize_exit",
    "PROTECTED_SLOTS",
    "DEFAULT_MANAGED_SLOTS",
    "is_top_level_slot",
    "is_protected_slot",
]
