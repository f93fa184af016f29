"""Tests for slot and raid exit enumerations."""

from __future__ import annotations

import pytest

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


class TestEquipmentSlot:
    """Tests for the slot catalogue."""

    def test_catalogue_size(self) -> None:
        """Test every top-level slot is present."""
        assert len(EquipmentSlot) == 19

    def test_lookup_ignores_case(self) -> None:
        """Test lookup by label is case-insensitive."""
        assert EquipmentSlot.lookup("firstprimaryweapon") is EquipmentSlot.FIRST_PRIMARY_WEAPON
        assert EquipmentSlot.lookup("mod_magazine") is None

    def test_protected(self) -> None:
        """Test only pockets and the secure container are protected."""
        assert EquipmentSlot.POCKETS.is_protected
        assert EquipmentSlot.SECURED_CONTAINER.is_protected
        assert not EquipmentSlot.BACKPACK.is_protected
        assert len(PROTECTED_SLOTS) == 2

    def test_default_managed_slots(self) -> None:
        """Test the default managed list is everything but the secure container."""
        assert "SecuredContainer" not in DEFAULT_MANAGED_SLOTS
        assert len(DEFAULT_MANAGED_SLOTS) == len(EquipmentSlot) - 1


class TestSlotHelpers:
    """Tests for slot predicate helpers."""

    @pytest.mark.parametrize("name", ["Backpack", "backpack", "SpecialSlot3"])
    def test_top_level(self, name: str) -> None:
        """Test top-level labels are recognized."""
        assert is_top_level_slot(name)

    @pytest.mark.parametrize("name", ["main", "cartridges", "mod_sight_rear", ""])
    def test_not_top_level(self, name: str) -> None:
        """Test nested labels are not top-level slots."""
        assert not is_top_level_slot(name)

    def test_protected_slot(self) -> None:
        """Test protected slot detection."""
        assert is_protected_slot("pockets")
        assert is_protected_slot("SecuredContainer")
        assert not is_protected_slot("Backpack")
        assert not is_protected_slot(None)


class TestRaidExitStatus:
    """Tests for raid exit categorization."""

    @pytest.mark.parametrize(
        "status",
        [RaidExitStatus.KILLED, RaidExitStatus.MISSING_IN_ACTION, RaidExitStatus.LEFT],
    )
    def test_death_statuses(self, status: RaidExitStatus) -> None:
        """Test deaths are categorized as death."""
        assert status.category is ExitCategory.DEATH

    @pytest.mark.parametrize(
        "status",
        [RaidExitStatus.SURVIVED, RaidExitStatus.RUNNER, RaidExitStatus.TRANSIT],
    )
    def test_extraction_statuses(self, status: RaidExitStatus) -> None:
        """Test extractions are categorized as extraction."""
        assert status.category is ExitCategory.EXTRACTION

    def test_every_status_has_description(self) -> None:
        """Test each status carries a description."""
        for status in RaidExitStatus:
            assert status.description

    def test_categorize_raw_string(self) -> None:
        """Test raw host strings are categorized case-insensitively."""
        assert categorize_exit("killed") is ExitCategory.DEATH
        assert categorize_exit("MISSINGINACTION") is ExitCategory.DEATH
        assert categorize_exit("Survived") is ExitCategory.EXTRACTION
        assert categorize_exit("Disconnected") is ExitCategory.UNKNOWN
