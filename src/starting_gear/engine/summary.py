"""Summary builder: what a restoration brought back and what was lost.

``build_summary`` is a pure function of the snapshot forest and the
profile forest as it was just before restoration:

* restored: every snapshot item except Equipment roots;
* lost: every pre-restoration item whose id is not in the snapshot,
  except Equipment roots.

Each side is consolidated by template: counts are summed, found-in-raid
flags are OR-ed, and found-in-raid lines sort first, then larger counts.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from starting_gear.core.logging import get_logger
from starting_gear.models.items import Item, id_key
from starting_gear.models.snapshot import utc_now
from starting_gear.models.summary import ItemSummary, RestorationSummary

logger = get_logger(__name__)


class ItemNameCache:
    """Template id to display name lookup filled by the host as it learns names."""

    def __init__(self) -> None:
        self._names: dict[str, tuple[str, str]] = {}

    def remember(self, template_id: str, name: str | None, short_name: str | None = None) -> None:
        """Record the display names of a template."""
        if not template_id:
            return
        full = name or "Unknown"
        self._names[template_id] = (full, short_name or name or "???")

    def lookup(self, template_id: str) -> tuple[str | None, str | None]:
        """Return (name, short name) for a template, or (None, None)."""
        return self._names.get(template_id, (None, None))

    def __len__(self) -> int:
        return len(self._names)


def summarize_item(item: Item, names: ItemNameCache | None = None) -> ItemSummary:
    """Summary line for a single item."""
    name, short_name = names.lookup(item.tpl) if names is not None else (None, None)
    line = ItemSummary(
        template_id=item.tpl,
        name=name,
        short_name=short_name,
        count=item.stack_count,
        found_in_raid=item.found_in_raid,
        slot_name=item.slot_id or "",
    )
    line.name = line.display_name
    return line


def consolidate(lines: Iterable[ItemSummary]) -> list[ItemSummary]:
    """Merge lines per template and order them for display.

    Args:
        lines: Per-item summary lines.

    Returns:
        One line per template: counts summed, found-in-raid OR-ed, name and
        slot taken from the first line. Found-in-raid first, then by
        descending count; ties keep first-seen order.
    """
    merged: dict[str, ItemSummary] = {}
    for line in lines:
        existing = merged.get(line.template_id)
        if existing is None:
            merged[line.template_id] = line.model_copy()
            continue
        existing.count += line.count
        existing.found_in_raid = existing.found_in_raid or line.found_in_raid
    return sorted(merged.values(), key=lambda line: (not line.found_in_raid, -line.count))


def build_summary(
    snapshot_items: Sequence[Item],
    pre_restoration_items: Sequence[Item],
    *,
    map_name: str | None = None,
    names: ItemNameCache | None = None,
) -> RestorationSummary:
    """Build the restored and lost lists for a restoration.

    Args:
        snapshot_items: Items of the snapshot that was restored.
        pre_restoration_items: Profile items just before restoration.
        map_name: Map the raid took place on.
        names: Optional display name lookup.

    Returns:
        A successful summary.
    """
    snapshot_ids = {id_key(item.id) for item in snapshot_items if item.id}

    restored = [
        summarize_item(item, names) for item in snapshot_items if item.tpl and not item.is_equipment_root
    ]
    lost = [
        summarize_item(item, names)
        for item in pre_restoration_items
        if item.tpl and not item.is_equipment_root and id_key(item.id) not in snapshot_ids
    ]

    summary = RestorationSummary(
        restored=consolidate(restored),
        lost=consolidate(lost),
        map_name=map_name or "Unknown",
        restored_at=utc_now(),
        success=True,
    )
    logger.debug("Summary built", restored=summary.restored_count, lost=summary.lost_count)
    return summary


def failed_summary(error_message: str, map_name: str | None = None) -> RestorationSummary:
    """Summary recording that a restoration did not happen."""
    return RestorationSummary(
        map_name=map_name or "Unknown",
        success=False,
        error_message=error_message or "Unknown error",
    )


__all__ = [
    "ItemNameCache",
    "summarize_item",
    "consolidate",
    "build_summary",
    "failed_summary",
]
