"""Capture: turn a live inventory into a Snapshot.

The host runtime is reached only through a ``CaptureAdapter``. The
adapter hands out items in the neutral ``Item`` shape and answers a few
questions about them; everything else (which slots to capture, which
items to leave out, how magazine rounds are labelled) is decided here.

Capture rules:

* the Equipment root is always captured first;
* only enabled top-level slots are captured, depth-first;
* an enabled slot holding nothing is recorded in ``empty_slots`` so that
  restoration knows to clear it;
* with ``protect_found_in_raid`` items found in the current raid are left
  out, together with everything inside them;
* with ``exclude_insured`` insured items are left out the same way;
* rounds inside a magazine, whose slot is a small number, are relabelled
  ``cartridges`` with that number as a cartridge index. Loose rounds in a
  grid keep their slot.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple, Protocol, runtime_checkable

from starting_gear.core.constants import CARTRIDGES_SLOT, MAX_DEPTH, MAX_NUMERIC_SLOT_ID, MOD_VERSION
from starting_gear.core.logging import get_logger
from starting_gear.models.enums import DEFAULT_MANAGED_SLOTS, is_top_level_slot
from starting_gear.models.items import CartridgeIndex, Item, Upd, id_key
from starting_gear.models.snapshot import Snapshot, utc_now


if TYPE_CHECKING:
    from starting_gear.core.config import ProtectionSettings


logger = get_logger(__name__)


class SlotContents(NamedTuple):
    """A top-level equipment slot and the item in it, if any."""

    name: str
    item: Item | None


@runtime_checkable
class CaptureAdapter(Protocol):
    """Read-only view of the host's live inventory."""

    def equipment_root(self) -> Item:
        """The Equipment root item."""
        ...

    def iter_top_level_slots(self) -> Iterable[SlotContents]:
        """Every slot of the Equipment root with its contained item."""
        ...

    def iter_children(self, item_id: str) -> Iterable[Item]:
        """Items directly inside an item (grids, slots and cartridges)."""
        ...

    def read_upd(self, item_id: str) -> Upd | None:
        """Current dynamic attributes of an item."""
        ...

    def is_ammo(self, item_id: str) -> bool:
        """Whether an item is a round of ammunition."""
        ...

    def is_magazine(self, item_id: str) -> bool:
        """Whether an item is a magazine."""
        ...

    def is_insured(self, item_id: str) -> bool:
        """Whether an item is currently insured."""
        ...


@dataclass
class CaptureOptions:
    """What to capture.

    Attributes:
        included_slots: Top-level slots to capture.
        protect_found_in_raid: Leave found-in-raid items out.
        exclude_insured: Leave insured items out.
    """

    included_slots: list[str] = field(default_factory=lambda: list(DEFAULT_MANAGED_SLOTS))
    protect_found_in_raid: bool = False
    exclude_insured: bool = False

    @classmethod
    def from_settings(cls, settings: ProtectionSettings) -> CaptureOptions:
        """Create from protection settings."""
        return cls(
            included_slots=list(settings.included_slots_default),
            protect_found_in_raid=settings.protect_found_in_raid,
            exclude_insured=settings.exclude_insured,
        )

    def is_enabled(self, slot_name: str) -> bool:
        """Whether a top-level slot is captured."""
        folded = slot_name.casefold()
        return any(name.casefold() == folded for name in self.included_slots)


def cartridge_position(slot_id: str | None) -> int | None:
    """Magazine position encoded in a numeric slot id, if it is one.

    Example:
        >>> cartridge_position("4")
        4
        >>> cartridge_position("main") is None
        True
    """
    if not slot_id or not slot_id.isdigit():
        return None
    position = int(slot_id)
    return position if position < MAX_NUMERIC_SLOT_ID else None


class _Capture:
    """State of one capture pass."""

    def __init__(self, adapter: CaptureAdapter, options: CaptureOptions) -> None:
        self.adapter = adapter
        self.options = options
        self.items: list[Item] = []
        self.seen: set[str] = set()
        self.skipped_found_in_raid = 0
        self.skipped_insured = 0

    def keep(self, item: Item, upd: Upd | None) -> bool:
        if self.options.protect_found_in_raid and upd is not None and upd.spawned_in_raid:
            self.skipped_found_in_raid += 1
            return False
        if self.options.exclude_insured and self.adapter.is_insured(item.id):
            self.skipped_insured += 1
            return False
        return True

    def normalize(self, item: Item, upd: Upd | None) -> Item:
        update: dict[str, object] = {"upd": upd}
        position = cartridge_position(item.slot_id)
        if (
            position is not None
            and item.parent_id
            and self.adapter.is_ammo(item.id)
            and self.adapter.is_magazine(item.parent_id)
        ):
            update["slot_id"] = CARTRIDGES_SLOT
            update["location"] = item.location if item.location is not None else CartridgeIndex(index=position)
            update["location_index"] = position
        return item.model_copy(update=update)

    def add_tree(self, top: Item) -> None:
        stack: list[tuple[Item, int]] = [(top, 0)]
        while stack:
            item, depth = stack.pop()
            key = id_key(item.id)
            if not key or key in self.seen:
                continue
            upd = self.adapter.read_upd(item.id)
            if not self.keep(item, upd):
                continue
            self.seen.add(key)
            self.items.append(self.normalize(item, upd))
            if depth + 1 >= MAX_DEPTH:
                logger.warning("Capture depth limit reached", item_id=item.id)
                continue
            children = list(self.adapter.iter_children(item.id))
            stack.extend((child, depth + 1) for child in reversed(children))


def capture_snapshot(
    adapter: CaptureAdapter,
    session_id: str,
    *,
    location_name: str | None = None,
    taken_in_raid: bool = False,
    options: CaptureOptions | None = None,
    mod_version: str = MOD_VERSION,
) -> Snapshot:
    """Capture the live inventory into a Snapshot.

    Args:
        adapter: View of the host inventory.
        session_id: Session the snapshot belongs to.
        location_name: Current map, if in a raid.
        taken_in_raid: Whether the capture happens mid-raid.
        options: Slots and protection rules; defaults apply when omitted.
        mod_version: Version stamped into the snapshot.

    Returns:
        The captured snapshot. It is not persisted.
    """
    options = options or CaptureOptions()
    capture = _Capture(adapter, options)

    root = adapter.equipment_root()
    capture.items.append(root.model_copy(update={"upd": adapter.read_upd(root.id)}))
    capture.seen.add(id_key(root.id))

    occupied: set[str] = set()
    for slot in adapter.iter_top_level_slots():
        if not is_top_level_slot(slot.name) or slot.item is None:
            continue
        occupied.add(slot.name.casefold())
        if options.is_enabled(slot.name):
            capture.add_tree(slot.item)

    enabled = [name for name in options.included_slots if is_top_level_slot(name)]
    empty_slots = [name for name in enabled if name.casefold() not in occupied]

    snapshot = Snapshot(
        session_id=session_id,
        timestamp=utc_now(),
        location_name=location_name,
        items=capture.items,
        included_slots=list(options.included_slots),
        empty_slots=empty_slots,
        taken_in_raid=taken_in_raid,
        mod_version=mod_version,
    )
    logger.info(
        "Inventory captured",
        session_id=session_id,
        items=len(snapshot.items),
        empty_slots=len(empty_slots),
        skipped_found_in_raid=capture.skipped_found_in_raid,
        skipped_insured=capture.skipped_insured,
    )
    return snapshot


__all__ = [
    "SlotContents",
    "CaptureAdapter",
    "CaptureOptions",
    "cartridge_position",
    "capture_snapshot",
]
