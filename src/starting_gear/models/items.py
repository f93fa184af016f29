"""Item models for equipment forests.

An item is one node of the equipment forest: it carries an opaque id, a
template id, an optional parent pointer with a relationship label, an
optional location inside its parent, and a bag of typed dynamic
attributes (``upd``).

Locations are polymorphic on the wire: an integer is a cartridge index
inside a magazine, an object is a grid cell inside a container. Both are
modelled as distinct types so that neither is silently coerced into the
other.

Example:
    >>> item = Item(id="a1", tpl="5447a9cd4bdc2dbd208b4567", parent_id="eq", slot_id="FirstPrimaryWeapon")
    >>> item.stack_count
    1
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_serializer,
    field_validator,
)

from starting_gear.core.constants import EQUIPMENT_TEMPLATE_ID, I32_MAX, I32_MIN
from starting_gear.core.exceptions import MalformedLocationError


# =============================================================================
# Locations
# =============================================================================


class GridPosition(BaseModel):
    """Cell of a container grid an item occupies."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    x: int = Field(description="Column of the top-left cell")
    y: int = Field(description="Row of the top-left cell")
    r: int = Field(default=0, description="Rotation (0 horizontal, 1 vertical)")
    is_searched: bool = Field(default=False, alias="isSearched", description="Whether the cell was searched")


class CartridgeIndex(BaseModel):
    """Position of a round inside a magazine."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=I32_MIN, le=I32_MAX, description="Zero-based cartridge position")


ItemLocation = GridPosition | CartridgeIndex


def parse_location(value: Any, *, item_id: str | None = None) -> ItemLocation | None:
    """Interpret a raw wire location.

    Args:
        value: Decoded JSON value of an item's ``location`` key.
        item_id: Id of the owning item, used for error context.

    Returns:
        A CartridgeIndex for integers, a GridPosition for objects, None for null.

    Raises:
        MalformedLocationError: For booleans, floats, strings, arrays,
            out-of-range integers, or objects missing grid coordinates.
    """
    if value is None or isinstance(value, (GridPosition, CartridgeIndex)):
        return value
    # bool is an int subclass and must not become a cartridge index
    if isinstance(value, bool):
        raise MalformedLocationError("Boolean is not a valid location", item_id=item_id, raw_value=value)
    if isinstance(value, int):
        if not I32_MIN <= value <= I32_MAX:
            raise MalformedLocationError(
                "Cartridge index out of 32-bit range",
                item_id=item_id,
                raw_value=value,
            )
        return CartridgeIndex(index=value)
    if isinstance(value, dict):
        try:
            return GridPosition.model_validate(value)
        except ValidationError as exc:
            raise MalformedLocationError(
                "Grid location is missing or has invalid coordinates",
                item_id=item_id,
                details={"errors": exc.error_count()},
            ) from exc
    raise MalformedLocationError(
        f"Unsupported location type {type(value).__name__}",
        item_id=item_id,
        raw_value=value,
    )


# =============================================================================
# Dynamic Attributes (upd)
# =============================================================================


class UpdPart(BaseModel):
    """Base for upd sections; unknown keys are kept as-is."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Foldable(UpdPart):
    folded: bool | None = Field(default=None, alias="Folded")


class MedKit(UpdPart):
    hp: float | None = Field(default=None, alias="HpResource")


class Repairable(UpdPart):
    durability: float | None = Field(default=None, alias="Durability")
    max_durability: float | None = Field(default=None, alias="MaxDurability")


class Resource(UpdPart):
    value: float | None = Field(default=None, alias="Value")


class FoodDrink(UpdPart):
    hp_percent: float | None = Field(default=None, alias="HpPercent")


class KeyUsage(UpdPart):
    uses_remaining: int | None = Field(default=None, alias="NumberOfUsages")


class Dogtag(UpdPart):
    """Identity recorded on a dogtag."""

    account_id: str | None = Field(default=None, alias="AccountId")
    profile_id: str | None = Field(default=None, alias="ProfileId")
    nickname: str | None = Field(default=None, alias="Nickname")
    side: str | int | None = Field(default=None, alias="Side")
    level: int | None = Field(default=None, alias="Level")
    time: str | float | None = Field(default=None, alias="Time")
    status: str | None = Field(default=None, alias="Status")
    killer_account_id: str | None = Field(default=None, alias="KillerAccountId")
    killer_profile_id: str | None = Field(default=None, alias="KillerProfileId")
    killer_name: str | None = Field(default=None, alias="KillerName")
    weapon_name: str | None = Field(default=None, alias="WeaponName")


class Upd(UpdPart):
    """Typed dynamic attributes of an item.

    Every section is optional. Keys this model does not know about, at any
    level, survive a decode/encode round trip unchanged.
    """

    stack_count: int | None = Field(default=None, alias="StackObjectsCount")
    spawned_in_raid: bool | None = Field(default=None, alias="SpawnedInSession")
    foldable: Foldable | None = Field(default=None, alias="Foldable")
    med_kit: MedKit | None = Field(default=None, alias="MedKit")
    repairable: Repairable | None = Field(default=None, alias="Repairable")
    resource: Resource | None = Field(default=None, alias="Resource")
    food_drink: FoodDrink | None = Field(default=None, alias="FoodDrink")
    key: KeyUsage | None = Field(default=None, alias="Key")
    dogtag: Dogtag | None = Field(default=None, alias="Dogtag")


UPD_SECTION_FIELDS: dict[str, tuple[str, ...]] = {
    "Foldable": ("Folded",),
    "MedKit": ("HpResource",),
    "Repairable": ("Durability", "MaxDurability"),
    "Resource": ("Value",),
    "FoodDrink": ("HpPercent",),
    "Key": ("NumberOfUsages",),
    "Dogtag": (
        "AccountId",
        "ProfileId",
        "Nickname",
        "Side",
        "Level",
        "Time",
        "Status",
        "KillerAccountId",
        "KillerProfileId",
        "KillerName",
        "WeaponName",
    ),
}
"""Wire names of every known upd section and its fields."""


# =============================================================================
# Item
# =============================================================================


class Item(BaseModel):
    """A node in an equipment forest."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id", description="Opaque item id, unique within a forest")
    tpl: str = Field(alias="_tpl", description="Template id")
    parent_id: str | None = Field(default=None, alias="parentId", description="Parent item id")
    slot_id: str | None = Field(default=None, alias="slotId", description="Relationship label inside the parent")
    location: ItemLocation | None = Field(default=None, description="Grid cell or cartridge index")
    location_index: int | None = Field(
        default=None,
        alias="locationIndex",
        description="Informational cartridge position; location is canonical",
    )
    upd: Upd | None = Field(default=None, description="Dynamic attributes")

    @field_validator("location", mode="before")
    @classmethod
    def validate_location(cls, value: Any, info: ValidationInfo) -> ItemLocation | None:
        """Resolve the polymorphic wire location."""
        return parse_location(value, item_id=info.data.get("id"))

    @field_serializer("location")
    def serialize_location(self, location: ItemLocation | None) -> Any:
        """Write cartridge indices as bare integers and grid cells as objects."""
        if location is None:
            return None
        if isinstance(location, CartridgeIndex):
            return location.index
        return location.model_dump(by_alias=True)

    @property
    def stack_count(self) -> int:
        """Number of units in this stack, never less than one."""
        if self.upd is not None and self.upd.stack_count:
            return max(1, self.upd.stack_count)
        return 1

    @property
    def found_in_raid(self) -> bool:
        """Whether the item was picked up during the current raid."""
        return bool(self.upd is not None and self.upd.spawned_in_raid)

    @property
    def is_equipment_root(self) -> bool:
        """Whether this item is an Equipment container root."""
        return self.tpl == EQUIPMENT_TEMPLATE_ID

    def same_id(self, other_id: str | None) -> bool:
        """Compare this item's id with another id, ignoring case.

        Args:
            other_id: Id to compare against.

        Returns:
            True if both ids are equal under case folding.
        """
        return other_id is not None and self.id.casefold() == other_id.casefold()


def id_key(item_id: str | None) -> str:
    """Normalize an item id for identity comparisons.

    Args:
        item_id: Raw item id.

    Returns:
        The case-folded id, or an empty string for None.
    """
    return item_id.casefold() if item_id else ""


__all__ = [
    "GridPosition",
    "CartridgeIndex",
    "ItemLocation",
    "parse_location",
    "UpdPart",
    "Foldable",
    "MedKit",
    "Repairable",
    "Resource",
    "FoodDrink",
    "KeyUsage",
    "Dogtag",
    "Upd",
    "UPD_SECTION_FIELDS",
    "Item",
    "id_key",
]
