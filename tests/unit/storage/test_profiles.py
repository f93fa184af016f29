"""Tests for named loadout profiles."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from starting_gear.core.exceptions import InvalidProfileNameError
from starting_gear.models.items import Item
from starting_gear.models.snapshot import Snapshot
from starting_gear.storage.history import SnapshotHistory
from starting_gear.storage.profiles import LoadoutProfiles, sanitize_profile_name
from starting_gear.storage.snapshots import SnapshotStore


@pytest.fixture
def store(data_dir: Path) -> SnapshotStore:
    """Provide a store with history enabled."""
    return SnapshotStore(data_dir, SnapshotHistory(data_dir, 3))


@pytest.fixture
def profiles(store: SnapshotStore) -> LoadoutProfiles:
    """Provide the profile store."""
    return LoadoutProfiles(store)


def _snapshot(tpl: str = "t", session_id: str = "s1") -> Snapshot:
    return Snapshot(
        session_id=session_id,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        items=[Item(id="a", tpl=tpl)],
        mod_version="2.0.0",
    )


class TestSanitizeProfileName:
    """Tests for profile name sanitization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Raid Kit", "Raid Kit"),
            ("  ../Raid Kit #1  ", "Raid Kit 1"),
            ("pvp-loadout_v2", "pvp-loadoutv2"),
            ("A" * 25, "A" * 20),
            ("Nineteen characters x", "Nineteen characters"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        """Test disallowed characters are removed and the name is cut."""
        assert sanitize_profile_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "###", "../..", None])
    def test_empty_after_sanitizing(self, raw: str | None) -> None:
        """Test names with nothing usable are rejected."""
        with pytest.raises(InvalidProfileNameError):
            sanitize_profile_name(raw)


class TestSaveAndList:
    """Tests for saving and listing profiles."""

    def test_save_writes_file(self, profiles: LoadoutProfiles, data_dir: Path) -> None:
        """Test a profile is written under its sanitized name."""
        assert profiles.save("s1", "Raid Kit!", _snapshot()) is True
        assert (data_dir / "profile_Raid Kit_s1.json").exists()

    def test_list_sorted(self, profiles: LoadoutProfiles) -> None:
        """Test profiles are listed by name."""
        for name in ("Zeta", "Alpha", "Mid"):
            profiles.save("s1", name, _snapshot())

        listing = profiles.list("s1")

        assert [info.name for info in listing] == ["Alpha", "Mid", "Zeta"]
        assert all(info.file_size > 0 for info in listing)

    def test_list_separates_sessions(self, profiles: LoadoutProfiles) -> None:
        """Test a session only sees its own profiles."""
        profiles.save("s1", "Kit", _snapshot())
        profiles.save("other_s1", "Kit", _snapshot(session_id="other_s1"))

        assert [info.name for info in profiles.list("s1")] == ["Kit"]
        assert [info.name for info in profiles.list("other_s1")] == ["Kit"]

    def test_limit(self, store: SnapshotStore) -> None:
        """Test new profiles are refused at the limit but overwrites are allowed."""
        profiles = LoadoutProfiles(store, max_profiles=2)
        assert profiles.save("s1", "One", _snapshot())
        assert profiles.save("s1", "Two", _snapshot())

        assert profiles.save("s1", "Three", _snapshot()) is False
        assert profiles.save("s1", "One", _snapshot("updated")) is True
        assert len(profiles.list("s1")) == 2

    def test_default_limit_is_ten(self, profiles: LoadoutProfiles) -> None:
        """Test the eleventh profile is refused."""
        for index in range(10):
            assert profiles.save("s1", f"Kit {index}", _snapshot())

        assert profiles.save("s1", "Kit 10", _snapshot()) is False

    def test_invalid_name(self, profiles: LoadoutProfiles, data_dir: Path) -> None:
        """Test unusable names are refused without writing."""
        assert profiles.save("s1", "###", _snapshot()) is False
        assert list(data_dir.iterdir()) == []

    def test_empty_snapshot_refused(self, profiles: LoadoutProfiles) -> None:
        """Test a snapshot without items is not saved as a profile."""
        assert profiles.save("s1", "Kit", Snapshot(session_id="s1")) is False


class TestLoad:
    """Tests for applying a profile."""

    def test_load_becomes_current(self, profiles: LoadoutProfiles, store: SnapshotStore) -> None:
        """Test loading a profile saves it as the current snapshot."""
        profiles.save("s1", "Kit", _snapshot("from-profile"))

        applied = profiles.load("s1", "Kit")

        assert applied is not None
        assert applied.timestamp > datetime(2024, 1, 1, tzinfo=timezone.utc)
        current = store.load("s1")
        assert current is not None
        assert current.items[0].tpl == "from-profile"

    def test_load_backs_up_previous(self, profiles: LoadoutProfiles, store: SnapshotStore, data_dir: Path) -> None:
        """Test the previous current snapshot moves into history."""
        store.save(_snapshot("previous"))
        profiles.save("s1", "Kit", _snapshot("from-profile"))

        profiles.load("s1", "Kit")

        backup = store.history.load("s1", 1) if store.history is not None else None
        assert backup is not None
        assert backup.items[0].tpl == "previous"

    def test_load_missing(self, profiles: LoadoutProfiles) -> None:
        """Test loading an unknown profile returns None."""
        assert profiles.load("s1", "Nothing") is None

    def test_load_corrupt(self, profiles: LoadoutProfiles, data_dir: Path) -> None:
        """Test a corrupt profile file returns None."""
        (data_dir / "profile_Kit_s1.json").write_text("garbage")
        assert profiles.load("s1", "Kit") is None


class TestRenameAndDelete:
    """Tests for renaming and deleting profiles."""

    def test_rename(self, profiles: LoadoutProfiles) -> None:
        """Test a profile can be renamed."""
        profiles.save("s1", "Old", _snapshot())

        assert profiles.rename("s1", "Old", "New") is True
        assert [info.name for info in profiles.list("s1")] == ["New"]

    def test_rename_same_name(self, profiles: LoadoutProfiles) -> None:
        """Test renaming to the same name succeeds without change."""
        profiles.save("s1", "Kit", _snapshot())
        assert profiles.rename("s1", "Kit", "Kit") is True

    def test_rename_target_taken(self, profiles: LoadoutProfiles) -> None:
        """Test renaming onto an existing profile is refused."""
        profiles.save("s1", "One", _snapshot())
        profiles.save("s1", "Two", _snapshot())

        assert profiles.rename("s1", "One", "Two") is False
        assert [info.name for info in profiles.list("s1")] == ["One", "Two"]

    def test_rename_missing(self, profiles: LoadoutProfiles) -> None:
        """Test renaming an unknown profile fails."""
        assert profiles.rename("s1", "Ghost", "New") is False

    def test_delete(self, profiles: LoadoutProfiles) -> None:
        """Test deleting a profile."""
        profiles.save("s1", "Kit", _snapshot())

        assert profiles.delete("s1", "Kit") is True
        assert profiles.delete("s1", "Kit") is False
        assert profiles.list("s1") == []
