"""Persistence layer: snapshot codec, current snapshots, history and profiles.

All files live in one directory::

    {session}.json                   current snapshot
    {session}.{k}.json               history backup k
    profile_{name}_{session}.json    named loadout
    restoration_summary.json         pending summary hand-off
"""

from __future__ import annotations

from starting_gear.storage.codec import decode, deduplicate_items, encode
from starting_gear.storage.files import (
    atomic_write_bytes,
    is_valid_session_id,
    read_capped,
    validate_session_id,
)
from starting_gear.storage.handoff import consume_pending_summary, write_pending_summary
from starting_gear.storage.history import HistoryEntry, SnapshotHistory
from starting_gear.storage.profiles import LoadoutProfiles, ProfileInfo, sanitize_profile_name
from starting_gear.storage.snapshots import SnapshotStore


__all__ = [
    # Codec
    "encode",
    "decode",
    "deduplicate_items",
    # Files
    "is_valid_session_id",
    "validate_session_id",
    "atomic_write_bytes",
    "read_capped",
    # Stores
    "SnapshotStore",
    "SnapshotHistory",
    "HistoryEntry",
    "LoadoutProfiles",
    "ProfileInfo",
    "sanitize_profile_name",
    # Summary hand-off
    "write_pending_summary",
    "consume_pending_summary",
]
