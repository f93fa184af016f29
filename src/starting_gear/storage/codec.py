"""Snapshot codec: bytes on disk to and from Snapshot models.

The on-disk format is JSON with camelCase snapshot keys and
underscore-prefixed item ids, matching what the host profile format
uses. Decoding is structural only:

* key lookup is case-insensitive, so ``SessionId`` and ``sessionId`` are
  the same key;
* type tags such as ``$type`` are never interpreted;
* documents larger than the size cap are refused before parsing.

Encoding drops duplicate and empty item ids and never fails because of
them.

Example:
    >>> data = encode(snapshot)
    >>> decode(data) == snapshot
    True
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from starting_gear.core.constants import MAX_FILE_SIZE
from starting_gear.core.exceptions import MalformedSnapshotError, SnapshotTooLargeError
from starting_gear.core.logging import get_logger
from starting_gear.models.items import UPD_SECTION_FIELDS, Item, id_key
from starting_gear.models.snapshot import Snapshot

logger = get_logger(__name__)


# =============================================================================
# Key Tables
# =============================================================================


def _key_table(*names: str, **aliases: str) -> dict[str, str]:
    """Map case-folded wire keys to their canonical spelling."""
    table = {name.casefold(): name for name in names}
    table.update({alias.casefold(): canonical for alias, canonical in aliases.items()})
    return table


SNAPSHOT_KEYS = _key_table(
    "sessionId",
    "timestamp",
    "location",
    "items",
    "includedSlots",
    "emptySlots",
    "takenInRaid",
    "modVersion",
)

ITEM_KEYS = _key_table(
    "_id",
    "_tpl",
    "parentId",
    "slotId",
    "location",
    "locationIndex",
    "upd",
    id="_id",
    tpl="_tpl",
)

GRID_KEYS = _key_table("x", "y", "r", "isSearched")

UPD_KEYS = _key_table("StackObjectsCount", "SpawnedInSession", *UPD_SECTION_FIELDS)

UPD_SECTION_KEYS = {section: _key_table(*fields) for section, fields in UPD_SECTION_FIELDS.items()}


def canonicalize_keys(data: Mapping[str, Any], table: Mapping[str, str]) -> dict[str, Any]:
    """Rename known keys to their canonical spelling.

    Keys not in ``table`` are kept verbatim. When two keys differ only in
    case, the last one wins, matching how the host deserializer behaves.

    Args:
        data: Decoded JSON object.
        table: Case-folded key to canonical key mapping.

    Returns:
        A new dict with canonical keys.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        result[table.get(key.casefold(), key)] = value
    return result


# =============================================================================
# Deduplication
# =============================================================================


def deduplicate_items(items: Iterable[Item]) -> tuple[list[Item], int]:
    """Drop items with an empty id or an id already seen.

    Ids are compared case-insensitively and the first occurrence wins.

    Args:
        items: Items in capture order.

    Returns:
        Tuple of (unique items in original order, number of items dropped).
    """
    seen: set[str] = set()
    unique: list[Item] = []
    dropped = 0
    for item in items:
        key = id_key(item.id)
        if not key:
            logger.warning("Dropping item with empty id", tpl=item.tpl)
            dropped += 1
            continue
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        unique.append(item)
    return unique, dropped


# =============================================================================
# Encoding
# =============================================================================


def encode_item(item: Item) -> dict[str, Any]:
    """Convert an item to its wire object.

    Absent optional fields are omitted. ``upd`` keeps exactly the keys that
    were set, unknown ones included.
    """
    data = item.model_dump(mode="json", by_alias=True, exclude={"upd"}, exclude_none=True)
    if item.upd is not None:
        data["upd"] = item.upd.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return data


def encode(snapshot: Snapshot) -> bytes:
    """Serialize a snapshot to UTF-8 JSON bytes.

    Args:
        snapshot: Snapshot to serialize.

    Returns:
        The encoded document.
    """
    items, dropped = deduplicate_items(snapshot.items)
    if dropped:
        logger.warning(
            "Dropped duplicate items while encoding snapshot",
            session_id=snapshot.session_id,
            dropped=dropped,
        )

    document = snapshot.model_dump(mode="json", by_alias=True, exclude={"items"})
    document["items"] = [encode_item(item) for item in items]
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


# =============================================================================
# Decoding
# =============================================================================


def _normalize_upd(raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        return raw
    upd = canonicalize_keys(raw, UPD_KEYS)
    for section, table in UPD_SECTION_KEYS.items():
        value = upd.get(section)
        if isinstance(value, Mapping):
            upd[section] = canonicalize_keys(value, table)
    return upd


def _normalize_item(raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise MalformedSnapshotError("Item entry is not an object", details={"type": type(raw).__name__})
    item = canonicalize_keys(raw, ITEM_KEYS)
    location = item.get("location")
    if isinstance(location, Mapping):
        item["location"] = canonicalize_keys(location, GRID_KEYS)
    if "upd" in item:
        item["upd"] = _normalize_upd(item["upd"])
    return item


def decode(data: bytes | str, *, limit: int = MAX_FILE_SIZE) -> Snapshot:
    """Parse snapshot bytes into a Snapshot.

    Args:
        data: Encoded document.
        limit: Maximum accepted size in bytes.

    Returns:
        The decoded snapshot.

    Raises:
        SnapshotTooLargeError: If the document exceeds ``limit``.
        MalformedLocationError: If an item location has an unsupported shape.
        MalformedSnapshotError: For any other structural problem.
    """
    raw_bytes = data.encode("utf-8") if isinstance(data, str) else data
    if len(raw_bytes) > limit:
        raise SnapshotTooLargeError("Snapshot document exceeds size limit", size=len(raw_bytes), limit=limit)

    try:
        document = json.loads(raw_bytes)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedSnapshotError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(document, Mapping):
        raise MalformedSnapshotError("Snapshot document is not an object", details={"type": type(document).__name__})

    document = canonicalize_keys(document, SNAPSHOT_KEYS)
    items = document.get("items")
    if items is None:
        document["items"] = []
    elif isinstance(items, list):
        document["items"] = [_normalize_item(entry) for entry in items]
    else:
        raise MalformedSnapshotError("Snapshot items is not an array", details={"type": type(items).__name__})

    # MalformedLocationError from the location validator propagates unwrapped
    try:
        return Snapshot.model_validate(document)
    except ValidationError as exc:
        raise MalformedSnapshotError(
            "Snapshot failed structural validation",
            details={"errors": exc.error_count(), "first_error": exc.errors()[0]["msg"]},
        ) from exc


__all__ = [
    "SNAPSHOT_KEYS",
    "ITEM_KEYS",
    "canonicalize_keys",
    "deduplicate_items",
    "encode_item",
    "encode",
    "decode",
]
