"""Restoration algorithm: put a snapshot's gear back into a live profile.

``restore_inventory`` is a pure function of the live profile forest and a
snapshot. It never mutates its inputs and never touches the filesystem.

The steps are:

1. Find the Equipment roots of both forests. A profile without one
   cannot be restored.
2. Collect the top-level slots the snapshot occupies.
3. Decide the managed slot set from the snapshot's ``included_slots``:
   legacy snapshots manage every slot they occupy plus their recorded
   empty slots, an empty list manages nothing, anything else is used
   verbatim. SecuredContainer and Pockets are never managed.
4. Index the profile by id.
5. Remove every managed top-level item and its descendants, bounded at
   ``MAX_DEPTH`` levels.
6. Append snapshot items whose top-level slot is managed, skipping roots,
   duplicates, items in unmanaged slots, and items whose parent chain is
   broken or cyclic. Items parented to the snapshot's root are reparented
   to the profile's root.
7. Re-check that the Equipment roots survived and that nothing in a
   protected slot was removed.

Failures are returned as values in ``RestorationResult`` rather than
raised; ``RestorationResult.raise_for_error`` converts them back into
exceptions for callers that prefer them.

Example:
    >>> result = restore_inventory(profile_items, snapshot.items, snapshot.included_slots, snapshot.empty_slots)
    >>> if result.success:
    ...     profile_items = result.items
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from starting_gear.core.constants import MAX_DEPTH
from starting_gear.core.exceptions import (
    CyclicOrDeepRemovalError,
    InvariantViolationError,
    NoEquipmentRootError,
    RestorationError,
)
from starting_gear.core.logging import get_logger
from starting_gear.models.enums import PROTECTED_SLOTS, is_protected_slot
from starting_gear.models.items import Item, id_key

logger = get_logger(__name__)

_PROTECTED_KEYS = frozenset(slot.value.casefold() for slot in PROTECTED_SLOTS)


# =============================================================================
# Result Types
# =============================================================================


class RestorationErrorKind(StrEnum):
    """Why a restoration was refused."""

    NO_EQUIPMENT_ROOT = "no_equipment_root"
    CYCLIC_OR_DEEP_REMOVAL = "cyclic_or_deep_removal"
    INVARIANT_VIOLATION = "invariant_violation"


_ERROR_TYPES: dict[RestorationErrorKind, type[RestorationError]] = {
    RestorationErrorKind.NO_EQUIPMENT_ROOT: NoEquipmentRootError,
    RestorationErrorKind.CYCLIC_OR_DEEP_REMOVAL: CyclicOrDeepRemovalError,
    RestorationErrorKind.INVARIANT_VIOLATION: InvariantViolationError,
}


class RestorationCounters(BaseModel):
    """What a restoration did, item by item."""

    added: int = 0
    removed: int = 0
    duplicates_skipped: int = 0
    non_managed_skipped: int = 0
    unrooted_skipped: int = 0


class RestorationResult(BaseModel):
    """Outcome of a restoration.

    On failure ``items`` is the input profile, unchanged.
    """

    success: bool
    items: list[Item] = Field(default_factory=list)
    counters: RestorationCounters = Field(default_factory=RestorationCounters)
    managed_slots: list[str] = Field(default_factory=list)
    error_kind: RestorationErrorKind | None = None
    error_message: str = ""
    error_details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failed(cls, error: RestorationError, profile_items: Sequence[Item]) -> RestorationResult:
        """Build a failure result from a restoration error."""
        kind = next(k for k, error_type in _ERROR_TYPES.items() if isinstance(error, error_type))
        return cls(
            success=False,
            items=list(profile_items),
            error_kind=kind,
            error_message=error.message,
            error_details=dict(error.details),
        )

    def raise_for_error(self) -> None:
        """Raise the typed exception for a failed result; no-op on success.

        Raises:
            NoEquipmentRootError: The profile had no Equipment root.
            CyclicOrDeepRemovalError: Removal traversal exceeded the depth limit.
            InvariantViolationError: The tentative result broke an invariant.
        """
        if self.success or self.error_kind is None:
            return
        raise _ERROR_TYPES[self.error_kind](self.error_message, details=dict(self.error_details))


# =============================================================================
# Slot Sets
# =============================================================================


def managed_slot_set(
    snapshot_items: Iterable[Item],
    snapshot_equipment_ids: Iterable[str],
    included_slots: Sequence[str] | None,
    empty_slots: Iterable[str],
) -> dict[str, str]:
    """Compute the slots a restoration manages.

    Args:
        snapshot_items: Snapshot forest.
        snapshot_equipment_ids: Ids of the snapshot's Equipment roots.
        included_slots: Tri-state managed list recorded at capture.
        empty_slots: Managed slots that were empty at capture.

    Returns:
        Mapping of case-folded slot name to its first-seen spelling.
        SecuredContainer and Pockets are never present.
    """
    managed: dict[str, str] = {}

    def add(name: str | None) -> None:
        if name:
            managed.setdefault(name.casefold(), name)

    if included_slots is None:
        roots = {id_key(equipment_id) for equipment_id in snapshot_equipment_ids}
        for item in snapshot_items:
            if item.parent_id and id_key(item.parent_id) in roots:
                add(item.slot_id)
        for name in empty_slots:
            add(name)
    else:
        for name in included_slots:
            add(name)

    for key in _PROTECTED_KEYS:
        managed.pop(key, None)
    return managed


def _children_index(items: Iterable[Item]) -> dict[str, list[Item]]:
    children: dict[str, list[Item]] = defaultdict(list)
    for item in items:
        if item.parent_id:
            children[id_key(item.parent_id)].append(item)
    return children


# =============================================================================
# Removal
# =============================================================================


def _collect_removals(
    profile_items: Sequence[Item],
    equipment_keys: set[str],
    managed: dict[str, str],
) -> set[str]:
    """Ids of managed top-level items and all their descendants.

    Raises:
        CyclicOrDeepRemovalError: If the tree is deeper than MAX_DEPTH.
    """
    children = _children_index(profile_items)
    level = [
        item
        for item in profile_items
        if item.parent_id
        and id_key(item.parent_id) in equipment_keys
        and item.slot_id
        and item.slot_id.casefold() in managed
        and not item.is_equipment_root
    ]
    removed = {id_key(item.id) for item in level}

    depth = 0
    while level:
        if depth >= MAX_DEPTH:
            raise CyclicOrDeepRemovalError(
                "Removal traversal exceeded maximum depth",
                depth=depth,
                details={"pending": len(level)},
            )
        next_level: list[Item] = []
        for parent in level:
            for child in children.get(id_key(parent.id), ()):
                key = id_key(child.id)
                if key in removed or key in equipment_keys or is_protected_slot(child.slot_id):
                    continue
                removed.add(key)
                next_level.append(child)
        level = next_level
        depth += 1
    return removed


# =============================================================================
# Addition
# =============================================================================


def find_root_slot(
    item: Item,
    lookup: dict[str, Item],
    equipment_id: str | None,
) -> str | None:
    """Walk an item's parent chain to the slot it occupies under Equipment.

    Args:
        item: Item whose top-level slot is wanted.
        lookup: Snapshot items by case-folded id.
        equipment_id: Id of the snapshot's Equipment root.

    Returns:
        The ``slot_id`` of the ancestor (or the item itself) parented to
        Equipment, or None if the chain breaks, loops, or is deeper than
        MAX_DEPTH.
    """
    if not equipment_id:
        return None
    root_key = id_key(equipment_id)
    visited: set[str] = set()
    current = item
    for _ in range(MAX_DEPTH):
        key = id_key(current.id)
        if key in visited:
            logger.debug("Cycle in snapshot parent chain", item_id=item.id)
            return None
        visited.add(key)
        if current.parent_id and id_key(current.parent_id) == root_key:
            return current.slot_id
        if not current.parent_id:
            return None
        parent = lookup.get(id_key(current.parent_id))
        if parent is None:
            return None
        current = parent
    logger.debug("Snapshot parent chain exceeds maximum depth", item_id=item.id)
    return None


# =============================================================================
# Invariants
# =============================================================================


def _protected_ids(profile_items: Sequence[Item], equipment_keys: set[str]) -> set[str]:
    children = _children_index(profile_items)
    level = [
        item
        for item in profile_items
        if item.parent_id and id_key(item.parent_id) in equipment_keys and is_protected_slot(item.slot_id)
    ]
    protected = {id_key(item.id) for item in level}
    for _ in range(MAX_DEPTH):
        if not level:
            break
        next_level = []
        for parent in level:
            for child in children.get(id_key(parent.id), ()):
                key = id_key(child.id)
                if key not in protected:
                    protected.add(key)
                    next_level.append(child)
        level = next_level
    return protected


def _check_invariants(
    profile_items: Sequence[Item],
    output: Sequence[Item],
    equipment_keys: set[str],
    removed: set[str],
) -> None:
    """Re-check structural invariants of a tentative result.

    Raises:
        InvariantViolationError: If an Equipment root vanished or a
            protected item was removed.
    """
    output_roots = {id_key(item.id) for item in output if item.is_equipment_root}
    missing = equipment_keys - output_roots
    if missing:
        raise InvariantViolationError(
            "Equipment root missing from restored inventory",
            invariant="equipment_root_present",
            details={"missing": sorted(missing)},
        )

    touched = _protected_ids(profile_items, equipment_keys) & removed
    if touched:
        raise InvariantViolationError(
            "Protected container contents would be removed",
            invariant="protected_slots_untouched",
            details={"items": sorted(touched)},
        )


# =============================================================================
# Entry Point
# =============================================================================


def _restore(
    profile_items: Sequence[Item],
    snapshot_items: Sequence[Item],
    included_slots: Sequence[str] | None,
    empty_slots: Iterable[str],
) -> RestorationResult:
    profile_roots = [item.id for item in profile_items if item.is_equipment_root]
    if not profile_roots:
        raise NoEquipmentRootError("Profile has no Equipment root", details={"items": len(profile_items)})
    canonical_root = profile_roots[0]
    equipment_keys = {id_key(root) for root in profile_roots}

    snapshot_roots = [item.id for item in snapshot_items if item.is_equipment_root]
    snapshot_root = snapshot_roots[0] if snapshot_roots else None
    managed = managed_slot_set(snapshot_items, snapshot_roots, included_slots, empty_slots)

    removed = _collect_removals(profile_items, equipment_keys, managed)
    output = [item for item in profile_items if id_key(item.id) not in removed]
    counters = RestorationCounters(removed=len(profile_items) - len(output))

    present = {id_key(item.id) for item in output}
    lookup: dict[str, Item] = {}
    for item in snapshot_items:
        lookup.setdefault(id_key(item.id), item)
    snapshot_root_key = id_key(snapshot_root)

    for item in snapshot_items:
        if item.is_equipment_root:
            continue
        root_slot = find_root_slot(item, lookup, snapshot_root)
        if root_slot is None:
            counters.unrooted_skipped += 1
            continue
        key = id_key(item.id)
        if key in present:
            counters.duplicates_skipped += 1
            continue
        if root_slot.casefold() not in managed:
            counters.non_managed_skipped += 1
            continue

        update: dict[str, Any] = {}
        if item.parent_id and id_key(item.parent_id) == snapshot_root_key:
            update["parent_id"] = canonical_root
        output.append(item.model_copy(update=update, deep=True))
        present.add(key)
        counters.added += 1

    _check_invariants(profile_items, output, equipment_keys, removed)

    return RestorationResult(
        success=True,
        items=output,
        counters=counters,
        managed_slots=sorted(managed.values(), key=str.casefold),
    )


def restore_inventory(
    profile_items: Sequence[Item],
    snapshot_items: Sequence[Item],
    included_slots: Sequence[str] | None,
    empty_slots: Iterable[str] = (),
) -> RestorationResult:
    """Reconcile a live profile with a snapshot.

    Args:
        profile_items: Live profile forest. Not modified.
        snapshot_items: Snapshot forest. Not modified.
        included_slots: Snapshot's managed slot list (None for legacy snapshots).
        empty_slots: Snapshot's recorded empty slots.

    Returns:
        A successful result with the new profile forest and counters, or a
        failed result carrying the error kind and the unchanged profile.
    """
    try:
        result = _restore(profile_items, snapshot_items, included_slots, list(empty_slots))
    except RestorationError as exc:
        logger.warning("Restoration refused", error=exc.message, **exc.details)
        return RestorationResult.failed(exc, profile_items)

    logger.info(
        "Restoration computed",
        managed_slots=len(result.managed_slots),
        **result.counters.model_dump(),
    )
    return result


__all__ = [
    "RestorationErrorKind",
    "RestorationCounters",
    "RestorationResult",
    "managed_slot_set",
    "find_root_slot",
    "restore_inventory",
]
