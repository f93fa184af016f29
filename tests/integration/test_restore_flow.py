"""Integration tests for the raid start, death and extraction flows.

Tests the engine end to end against a real snapshot directory.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

import pytest

from starting_gear.core.config import Settings, StorageSettings, get_settings
from starting_gear.core.constants import EQUIPMENT_TEMPLATE_ID
from starting_gear.engine import Engine, SlotContents
from starting_gear.engine.restoration import RestorationErrorKind
from starting_gear.models.enums import EquipmentSlot
from starting_gear.models.items import Item, Upd
from starting_gear.models.snapshot import Snapshot
from starting_gear.storage.codec import encode


class LiveInventory:
    """Host inventory backed by a mutable item list."""

    def __init__(self, items: list[Item]) -> None:
        self.items = items

    def equipment_root(self) -> Item:
        return next(item for item in self.items if item.tpl == EQUIPMENT_TEMPLATE_ID)

    def iter_top_level_slots(self) -> Iterable[SlotContents]:
        root = self.equipment_root()
        occupied = {item.slot_id: item for item in self.items if item.parent_id == root.id}
        for slot in EquipmentSlot:
            yield SlotContents(slot.value, occupied.get(slot.value))

    def iter_children(self, item_id: str) -> Iterable[Item]:
        return [item for item in self.items if item.parent_id == item_id]

    def read_upd(self, item_id: str) -> Upd | None:
        return next(item.upd for item in self.items if item.id == item_id)

    def is_ammo(self, item_id: str) -> bool:
        return item_id.startswith("round")

    def is_magazine(self, item_id: str) -> bool:
        return item_id == "mag"

    def is_insured(self, item_id: str) -> bool:
        return False


@pytest.fixture
def engine(data_dir: Path) -> Engine:
    """Provide an engine over a temp directory."""
    settings = Settings(storage=StorageSettings(data_directory=data_dir, max_snapshot_history=3))
    return Engine.create(settings)


@pytest.fixture
def loadout() -> list[Item]:
    """The inventory a player walks into the raid with."""
    return [
        Item(id="eq", tpl=EQUIPMENT_TEMPLATE_ID),
        Item(id="rifle", tpl="rifle-tpl", parent_id="eq", slot_id="FirstPrimaryWeapon"),
        Item(id="mag", tpl="mag-tpl", parent_id="rifle", slot_id="mod_magazine"),
        Item(id="round-a", tpl="ammo-tpl", parent_id="mag", slot_id="0", upd=Upd(stack_count=30)),
        Item(id="helmet", tpl="helmet-tpl", parent_id="eq", slot_id="Headwear"),
        Item(id="pockets", tpl="pockets-tpl", parent_id="eq", slot_id="Pockets"),
        Item(id="secure", tpl="secure-tpl", parent_id="eq", slot_id="SecuredContainer"),
        Item(id="stash-key", tpl="key-tpl", parent_id="secure", slot_id="main", location={"x": 0, "y": 0}),
    ]


def _after_death(loadout: list[Item]) -> list[Item]:
    """Profile after dying: equipment stripped, secure container kept with new loot."""
    kept = [item for item in loadout if item.id in {"eq", "pockets", "secure", "stash-key"}]
    loot = Item(
        id="ledx",
        tpl="ledx-tpl",
        parent_id="secure",
        slot_id="main",
        location={"x": 1, "y": 0},
        upd=Upd(spawned_in_raid=True),
    )
    return [*kept, loot]


class TestDeathFlow:
    """Test capture at raid start and restore after death."""

    def test_capture_then_restore(self, engine: Engine, loadout: list[Item], data_dir: Path) -> None:
        """Gear comes back, the secure container keeps its loot, the snapshot is consumed."""
        engine.names.remember("rifle-tpl", "Assault rifle", "AR")

        saved = engine.capture_and_save(LiveInventory(loadout), "pmc-1", location_name="customs")
        assert saved is not None
        assert (data_dir / "pmc-1.json").exists()

        report = engine.handle_raid_end("pmc-1", "Killed", _after_death(loadout))

        assert report is not None
        assert report.success
        restored_ids = {item.id for item in report.items}
        assert {"rifle", "mag", "round-a", "helmet"} <= restored_ids
        assert {"secure", "stash-key", "ledx"} <= restored_ids
        rounds = next(item for item in report.items if item.id == "round-a")
        assert rounds.slot_id == "cartridges"

        assert not (data_dir / "pmc-1.json").exists()

        summary = engine.pending_summary()
        assert summary is not None
        assert summary.success
        assert summary.map_name == "customs"
        assert any(line.name == "Assault rifle" for line in summary.restored)
        assert engine.pending_summary() is None

    def test_death_without_snapshot(self, engine: Engine, loadout: list[Item]) -> None:
        """Dying with nothing captured changes nothing and publishes nothing."""
        report = engine.handle_raid_end("pmc-1", "MissingInAction", _after_death(loadout))

        assert report is not None
        assert not report.success
        assert report.message == "No snapshot found"
        assert report.items == []
        assert engine.pending_summary() is None

    def test_incompatible_snapshot_discarded(
        self,
        engine: Engine,
        loadout: list[Item],
        data_dir: Path,
    ) -> None:
        """A snapshot from another major version is deleted, not applied."""
        old = Snapshot(session_id="pmc-1", items=loadout, included_slots=None, mod_version="1.4.0")
        (data_dir / "pmc-1.json").write_bytes(encode(old))

        report = engine.restore("pmc-1", _after_death(loadout), map_name="woods")

        assert not report.success
        assert report.message == "Snapshot version is incompatible"
        assert not (data_dir / "pmc-1.json").exists()
        summary = engine.pending_summary()
        assert summary is not None
        assert summary.success is False
        assert summary.map_name == "woods"

    def test_refused_restore_keeps_snapshot(
        self,
        engine: Engine,
        loadout: list[Item],
        data_dir: Path,
    ) -> None:
        """A profile without a root is left alone and the snapshot kept."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1")
        rootless = [item for item in _after_death(loadout) if item.id != "eq"]

        report = engine.restore("pmc-1", rootless)

        assert not report.success
        assert report.result is not None
        assert report.result.error_kind is RestorationErrorKind.NO_EQUIPMENT_ROOT
        assert (data_dir / "pmc-1.json").exists()
        summary = engine.pending_summary()
        assert summary is not None
        assert summary.success is False

    def test_negative_stack_restores(self, engine: Engine, loadout: list[Item], data_dir: Path) -> None:
        """A corrupt stack size in the snapshot does not break the report."""
        damaged = [
            item.model_copy(update={"upd": Upd(stack_count=-5)}) if item.id == "round-a" else item
            for item in loadout
        ]
        engine.save_snapshot(Snapshot(session_id="pmc-1", items=damaged))

        report = engine.restore("pmc-1", _after_death(loadout))

        assert report.success
        assert "round-a" in {item.id for item in report.items}
        assert not (data_dir / "pmc-1.json").exists()
        summary = engine.pending_summary()
        assert summary is not None
        assert all(line.count >= 1 for line in summary.restored)

    def test_preview_summary(self, engine: Engine, loadout: list[Item], data_dir: Path) -> None:
        """Summarizing shows what a restore would do without doing it."""
        snapshot = engine.capture_and_save(LiveInventory(loadout), "pmc-1", location_name="shoreline")
        assert snapshot is not None

        summary = engine.summarize(snapshot, _after_death(loadout))

        assert summary.map_name == "shoreline"
        assert summary.lost[0].template_id == "ledx-tpl"
        assert summary.lost[0].found_in_raid is True
        assert "rifle-tpl" not in {line.template_id for line in summary.lost}
        assert (data_dir / "pmc-1.json").exists()
        assert engine.pending_summary() is None

    def test_summary_file_format(self, engine: Engine, loadout: list[Item], data_dir: Path) -> None:
        """The hand-off file carries the overlay's keys."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1", location_name="interchange")
        engine.handle_raid_end("pmc-1", "Killed", _after_death(loadout))

        document = json.loads((data_dir / "restoration_summary.json").read_text(encoding="utf-8"))

        assert document["MapName"] == "interchange"
        assert document["WasSuccessful"] is True
        assert document["RestoredCount"] == len(document["RestoredItems"])
        assert {"TemplateId", "Name", "Count", "WasFoundInRaid"} <= set(document["RestoredItems"][0])


class TestExtractionFlow:
    """Test extraction and non-PMC raids."""

    @pytest.mark.parametrize("status", ["Survived", "Runner", "Transit"])
    def test_extraction_clears_snapshot(
        self,
        engine: Engine,
        loadout: list[Item],
        data_dir: Path,
        status: str,
    ) -> None:
        """Extracting drops the snapshot so it cannot be restored later."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1")

        assert engine.handle_raid_end("pmc-1", status, loadout) is None
        assert not (data_dir / "pmc-1.json").exists()
        assert engine.restore("pmc-1", loadout).message == "No snapshot found"

    def test_scav_raid_ignored(self, engine: Engine, loadout: list[Item], data_dir: Path) -> None:
        """A scav death never touches the main character's snapshot."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1")

        assert engine.handle_raid_end("pmc-1", "Killed", [], is_scav=True) is None
        assert (data_dir / "pmc-1.json").exists()

    def test_unknown_status_keeps_snapshot(self, engine: Engine, loadout: list[Item], data_dir: Path) -> None:
        """An unrecognised exit status leaves the snapshot for later."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1")

        assert engine.handle_raid_end("pmc-1", "Abandoned", loadout) is None
        assert (data_dir / "pmc-1.json").exists()


class TestProfilesAndHistory:
    """Test profiles and history through the engine."""

    def test_profile_becomes_next_restore(self, engine: Engine, loadout: list[Item]) -> None:
        """A loaded profile is what the next death restores."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1")
        profile = engine.store.load("pmc-1")
        assert profile is not None
        assert engine.profiles.save("pmc-1", "Budget kit", profile)

        engine.handle_extraction("pmc-1")
        assert engine.profiles.load("pmc-1", "Budget kit") is not None

        report = engine.restore("pmc-1", _after_death(loadout))
        assert report.success

    def test_save_snapshot_stamps_version(self, engine: Engine, loadout: list[Item]) -> None:
        """Snapshots saved without a version get the engine's."""
        assert engine.save_snapshot(Snapshot(session_id="pmc-1", items=loadout))

        stored = engine.store.load("pmc-1")
        assert stored is not None
        assert stored.mod_version == engine.settings.mod_version

    def test_history_kept_across_captures(self, engine: Engine, loadout: list[Item]) -> None:
        """Repeated captures leave earlier generations in history."""
        engine.capture_and_save(LiveInventory(loadout), "pmc-1")
        engine.capture_and_save(LiveInventory(loadout[:2]), "pmc-1")

        assert engine.history is not None
        assert [entry.label for entry in engine.history.entries("pmc-1")] == ["Current", "Backup 1"]


class TestEngineFromEnvironment:
    """Test building the engine from environment settings."""

    def test_create_from_env(self, mock_env_vars: dict[str, str], data_dir: Path) -> None:
        """The engine uses the configured data directory."""
        engine = Engine.create()

        assert engine.directory == data_dir
        assert engine.settings is get_settings()
