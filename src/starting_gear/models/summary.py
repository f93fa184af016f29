"""Restoration summary models.

A summary tells the player what came back and what was lost after a
restore. It is written to a one-shot hand-off file using the PascalCase
keys the overlay reads.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from starting_gear.models.snapshot import utc_now


class ItemSummary(BaseModel):
    """Consolidated line of a summary: one template and its total count."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    template_id: str = Field(alias="TemplateId")
    name: str | None = Field(default=None, alias="Name")
    short_name: str | None = Field(default=None, alias="ShortName")
    count: int = Field(default=1, ge=0, alias="Count")
    found_in_raid: bool = Field(default=False, alias="WasFoundInRaid")
    slot_name: str = Field(default="", alias="SlotName")

    @property
    def display_name(self) -> str:
        """Name for display, falling back to a shortened template id."""
        if self.name:
            return self.name
        short_tpl = f"{self.template_id[:8]}..." if len(self.template_id) > 8 else self.template_id
        return f"Item ({short_tpl})"


class RestorationSummary(BaseModel):
    """What a restoration put back and what the raid took."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    restored: list[ItemSummary] = Field(default_factory=list, alias="RestoredItems")
    lost: list[ItemSummary] = Field(default_factory=list, alias="LostItems")
    restored_at: datetime = Field(default_factory=utc_now, alias="RestorationTime")
    map_name: str = Field(default="Unknown", alias="MapName")
    success: bool = Field(default=True, alias="WasSuccessful")
    error_message: str = Field(default="", alias="ErrorMessage")

    @computed_field(alias="RestoredCount")
    @property
    def restored_count(self) -> int:
        """Number of consolidated restored lines."""
        return len(self.restored)

    @computed_field(alias="LostCount")
    @property
    def lost_count(self) -> int:
        """Number of consolidated lost lines."""
        return len(self.lost)


__all__ = ["ItemSummary", "RestorationSummary"]
