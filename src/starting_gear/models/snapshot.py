"""Snapshot model: a captured equipment forest plus capture metadata."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from starting_gear.models.items import Item, id_key


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Snapshot(BaseModel):
    """Point-in-time capture of a character's equipment.

    ``included_slots`` is tri-state and the three states mean different
    things to restoration:

    * ``None``: legacy snapshot, every top-level slot present in the
      snapshot is managed.
    * ``[]``: protection was disabled at capture, nothing is managed.
    * non-empty: exactly these slots are managed.

    Attributes:
        session_id: Owning session id (validated by the stores, not here).
        timestamp: Capture time in UTC.
        location_name: Map the capture was taken on.
        items: Captured equipment forest, Equipment root included.
        included_slots: Slots managed by this snapshot (see above).
        empty_slots: Managed slots that were empty at capture.
        taken_in_raid: Whether the capture happened mid-raid.
        mod_version: Version of the engine that wrote the snapshot.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    session_id: str = Field(default="", alias="sessionId")
    timestamp: datetime = Field(default_factory=utc_now)
    location_name: str | None = Field(default=None, alias="location")
    items: list[Item] = Field(default_factory=list)
    included_slots: list[str] | None = Field(default=None, alias="includedSlots")
    empty_slots: list[str] = Field(default_factory=list, alias="emptySlots")
    taken_in_raid: bool = Field(default=False, alias="takenInRaid")
    mod_version: str | None = Field(default=None, alias="modVersion")

    @field_validator("timestamp", mode="after")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        """Interpret naive timestamps as UTC and normalize aware ones to UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("empty_slots", mode="before")
    @classmethod
    def default_empty_slots(cls, value: Any) -> Any:
        """Older snapshots write null or omit the empty slot list."""
        return [] if value is None else value

    @property
    def equipment_ids(self) -> list[str]:
        """Ids of every Equipment root in the snapshot, in order."""
        return [item.id for item in self.items if item.is_equipment_root]

    @property
    def equipment_id(self) -> str | None:
        """Id of the first Equipment root, if any."""
        ids = self.equipment_ids
        return ids[0] if ids else None

    @property
    def is_legacy(self) -> bool:
        """Whether the snapshot predates explicit slot management."""
        return self.included_slots is None

    def is_valid(self) -> bool:
        """Check the snapshot is worth persisting or restoring.

        Returns:
            True if the snapshot has a session id and at least one item.
        """
        return bool(self.session_id) and bool(self.items)

    def find_item(self, item_id: str) -> Item | None:
        """Look up an item by id, ignoring case."""
        key = id_key(item_id)
        return next((item for item in self.items if id_key(item.id) == key), None)

    def __str__(self) -> str:
        where = self.location_name or "unknown"
        return (
            f"Snapshot[{self.session_id}] {len(self.items)} items at {where} "
            f"({self.timestamp:%Y-%m-%d %H:%M:%S} UTC)"
        )


__all__ = ["Snapshot", "utc_now"]
