"""Tests for item models and location parsing."""

from __future__ import annotations

import pytest

from starting_gear.core.constants import EQUIPMENT_TEMPLATE_ID, I32_MAX, I32_MIN
from starting_gear.core.exceptions import MalformedLocationError
from starting_gear.models.items import (
    CartridgeIndex,
    GridPosition,
    Item,
    Repairable,
    Upd,
    id_key,
    parse_location,
)


class TestParseLocation:
    """Tests for the polymorphic location parser."""

    def test_none(self) -> None:
        """Test a missing location stays None."""
        assert parse_location(None) is None

    def test_integer_is_cartridge_index(self) -> None:
        """Test integers become cartridge indices."""
        assert parse_location(3) == CartridgeIndex(index=3)

    @pytest.mark.parametrize("value", [I32_MIN, -1, 0, I32_MAX])
    def test_integer_range(self, value: int) -> None:
        """Test the full 32-bit range is accepted."""
        assert parse_location(value) == CartridgeIndex(index=value)

    @pytest.mark.parametrize("value", [I32_MIN - 1, I32_MAX + 1])
    def test_integer_out_of_range(self, value: int) -> None:
        """Test integers outside 32 bits are rejected."""
        with pytest.raises(MalformedLocationError):
            parse_location(value)

    def test_object_is_grid_position(self) -> None:
        """Test objects become grid positions."""
        location = parse_location({"x": 1, "y": 2, "r": 1, "isSearched": True})

        assert isinstance(location, GridPosition)
        assert (location.x, location.y, location.r, location.is_searched) == (1, 2, 1, True)

    def test_grid_rotation_defaults(self) -> None:
        """Test rotation and searched flag are optional."""
        location = parse_location({"x": 0, "y": 0})
        assert location == GridPosition(x=0, y=0, r=0, is_searched=False)

    @pytest.mark.parametrize("value", [True, False, 1.5, "abc", "3", [1, 2]])
    def test_unsupported_shapes(self, value: object) -> None:
        """Test booleans, floats, strings and arrays are rejected."""
        with pytest.raises(MalformedLocationError) as exc_info:
            parse_location(value, item_id="a1")

        assert exc_info.value.details["item_id"] == "a1"

    def test_grid_missing_coordinates(self) -> None:
        """Test grid objects need both coordinates."""
        with pytest.raises(MalformedLocationError):
            parse_location({"x": 1})


class TestUpd:
    """Tests for the dynamic attribute model."""

    def test_aliases(self) -> None:
        """Test wire names populate typed fields."""
        upd = Upd.model_validate(
            {
                "StackObjectsCount": 60,
                "SpawnedInSession": True,
                "Repairable": {"Durability": 40, "MaxDurability": 50},
            }
        )

        assert upd.stack_count == 60
        assert upd.spawned_in_raid is True
        assert upd.repairable == Repairable(durability=40, max_durability=50)

    def test_unknown_keys_preserved(self) -> None:
        """Test keys the model does not know survive a dump."""
        upd = Upd.model_validate({"Togglable": {"On": True}, "Repairable": {"Durability": 1, "Extra": 2}})
        dumped = upd.model_dump(by_alias=True, exclude_unset=True)

        assert dumped["Togglable"] == {"On": True}
        assert dumped["Repairable"] == {"Durability": 1, "Extra": 2}


class TestItem:
    """Tests for the Item model."""

    def test_wire_aliases(self) -> None:
        """Test items load from wire keys."""
        item = Item.model_validate(
            {"_id": "a1", "_tpl": "t1", "parentId": "p", "slotId": "main", "location": {"x": 1, "y": 0}}
        )

        assert item.id == "a1"
        assert item.tpl == "t1"
        assert item.parent_id == "p"
        assert item.slot_id == "main"
        assert isinstance(item.location, GridPosition)

    def test_invalid_location_raises_directly(self) -> None:
        """Test a bad location is not hidden inside a validation error."""
        with pytest.raises(MalformedLocationError) as exc_info:
            Item.model_validate({"_id": "a1", "_tpl": "t1", "location": "abc"})

        assert exc_info.value.details["item_id"] == "a1"

    def test_location_serialization(self) -> None:
        """Test cartridge indices dump as integers and grids as objects."""
        rounds = Item(id="r", tpl="t", location=7)
        boxed = Item(id="b", tpl="t", location={"x": 2, "y": 3})

        assert rounds.model_dump(by_alias=True)["location"] == 7
        assert boxed.model_dump(by_alias=True)["location"] == {"x": 2, "y": 3, "r": 0, "isSearched": False}

    def test_stack_count_default(self) -> None:
        """Test stack count defaults to one."""
        assert Item(id="a", tpl="t").stack_count == 1
        assert Item(id="a", tpl="t", upd=Upd(stack_count=20)).stack_count == 20

    @pytest.mark.parametrize("count", [0, -1, -5])
    def test_stack_count_at_least_one(self, count: int) -> None:
        """Test zero and negative stack sizes count as a single unit."""
        assert Item(id="a", tpl="t", upd=Upd(stack_count=count)).stack_count == 1

    def test_found_in_raid(self) -> None:
        """Test the found-in-raid flag."""
        assert Item(id="a", tpl="t").found_in_raid is False
        assert Item(id="a", tpl="t", upd=Upd(spawned_in_raid=True)).found_in_raid is True

    def test_equipment_root(self) -> None:
        """Test Equipment roots are recognized by template."""
        assert Item(id="eq", tpl=EQUIPMENT_TEMPLATE_ID).is_equipment_root is True
        assert Item(id="eq", tpl="other").is_equipment_root is False

    def test_same_id_ignores_case(self) -> None:
        """Test id comparison ignores case."""
        item = Item(id="ABC", tpl="t")
        assert item.same_id("abc")
        assert not item.same_id(None)


class TestIdKey:
    """Tests for id normalization."""

    def test_casefold(self) -> None:
        """Test ids are case-folded."""
        assert id_key("AbC") == "abc"

    def test_none(self) -> None:
        """Test missing ids normalize to an empty string."""
        assert id_key(None) == ""
