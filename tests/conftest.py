"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the starting gear test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from starting_gear.core.constants import EQUIPMENT_TEMPLATE_ID, MOD_VERSION
from starting_gear.models.items import Item, Upd
from starting_gear.models.snapshot import Snapshot


if TYPE_CHECKING:
    from collections.abc import Generator


EQUIPMENT_ID = "eq-root"
RIFLE_TPL = "5447a9cd4bdc2dbd208b4567"
MAGAZINE_TPL = "55d4887d4bdc2d962f8b4570"
AMMO_TPL = "54527a984bdc2d4e668b4567"
HELMET_TPL = "5aa7cfc0e5b5b00015693143"
BACKPACK_TPL = "5df8a4d786f77412672a1e3b"
POCKETS_TPL = "557ffd194bdc2d28148b457f"
SECURE_TPL = "5857a8bc2459772bad15db29"
BANDAGE_TPL = "544fb25a4bdc2dfb738b4567"
GPU_TPL = "57347ca924597744596b4e71"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from starting_gear.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Provide an empty snapshot directory."""
    directory = tmp_path / "snapshots"
    directory.mkdir()
    return directory


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch, data_dir: Path) -> dict[str, str]:
    """Set up environment variables pointing storage at a temp directory.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "STARTING_GEAR_DATA_DIRECTORY": str(data_dir),
        "STARTING_GEAR_MAX_SNAPSHOT_HISTORY": "3",
        "STARTING_GEAR_DEBUG": "true",
        "STARTING_GEAR_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Item Builders
# =============================================================================


def make_item(
    item_id: str,
    tpl: str = RIFLE_TPL,
    parent_id: str | None = None,
    slot_id: str | None = None,
    **fields: Any,
) -> Item:
    """Build an item with short positional arguments."""
    return Item(id=item_id, tpl=tpl, parent_id=parent_id, slot_id=slot_id, **fields)


def make_root(item_id: str = EQUIPMENT_ID) -> Item:
    """Build an Equipment root."""
    return Item(id=item_id, tpl=EQUIPMENT_TEMPLATE_ID)


@pytest.fixture
def build_item() -> Callable[..., Item]:
    """Provide the item builder."""
    return make_item


@pytest.fixture
def build_root() -> Callable[..., Item]:
    """Provide the Equipment root builder."""
    return make_root


@pytest.fixture
def profile_items() -> list[Item]:
    """A live profile after a death: helmet and rifle gone, loot in the backpack.

    Returns:
        Profile forest with a root, pockets, a secure container, a backpack
        with found-in-raid loot, and a bandage in the pockets.
    """
    return [
        make_root(),
        make_item("pockets", POCKETS_TPL, EQUIPMENT_ID, "Pockets"),
        make_item("bandage", BANDAGE_TPL, "pockets", "pocket1"),
        make_item("secure", SECURE_TPL, EQUIPMENT_ID, "SecuredContainer"),
        make_item("raid-bag", BACKPACK_TPL, EQUIPMENT_ID, "Backpack"),
        make_item(
            "gpu",
            GPU_TPL,
            "raid-bag",
            "main",
            location={"x": 0, "y": 0, "r": 0},
            upd=Upd(spawned_in_raid=True),
        ),
    ]


@pytest.fixture
def snapshot_items() -> list[Item]:
    """The loadout captured at raid start.

    Returns:
        Snapshot forest: root, rifle with a loaded magazine, helmet, backpack.
    """
    return [
        make_root("snap-root"),
        make_item("rifle", RIFLE_TPL, "snap-root", "FirstPrimaryWeapon"),
        make_item("mag", MAGAZINE_TPL, "rifle", "mod_magazine"),
        make_item(
            "rounds",
            AMMO_TPL,
            "mag",
            "cartridges",
            location=0,
            upd=Upd(stack_count=30),
        ),
        make_item("helmet", HELMET_TPL, "snap-root", "Headwear"),
        make_item("bag", BACKPACK_TPL, "snap-root", "Backpack"),
    ]


@pytest.fixture
def sample_snapshot(snapshot_items: list[Item]) -> Snapshot:
    """A valid snapshot managing weapons, head and backpack."""
    return Snapshot(
        session_id="session-1",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        location_name="factory4_day",
        items=snapshot_items,
        included_slots=["FirstPrimaryWeapon", "Headwear", "Backpack"],
        empty_slots=[],
        taken_in_raid=False,
        mod_version=MOD_VERSION,
    )
