"""Application-wide constants for the starting gear engine.

This module defines constants used throughout the application,
including well-known template identifiers, traversal limits, and
storage naming rules.
"""

from __future__ import annotations

# =============================================================================
# Well-Known Templates
# =============================================================================

EQUIPMENT_TEMPLATE_ID = "55d7217a4bdc2d86028b456d"
"""Template id of the invisible Equipment root every equipment forest hangs off."""

# =============================================================================
# Traversal Limits
# =============================================================================

MAX_DEPTH = 20
"""Maximum parent hops followed by any walk over an item forest."""

MAX_NUMERIC_SLOT_ID = 100
"""Numeric slot ids below this value are treated as magazine cartridge positions."""

CARTRIDGES_SLOT = "cartridges"
"""Relationship label of rounds loaded into a magazine."""

# =============================================================================
# Storage Limits
# =============================================================================

MAX_FILE_SIZE = 10 * 1024 * 1024
"""Maximum accepted size of a snapshot or profile file (10 MiB)."""

MAX_PROFILES = 10
"""Maximum number of named loadout profiles kept per session."""

DEFAULT_HISTORY = 3
"""Default depth of the snapshot history ring, counting the current file."""

MAX_PROFILE_NAME_LENGTH = 20
"""Maximum length of a sanitized loadout profile name."""

SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]+$"
"""Whitelist every session id must match before it becomes part of a path."""

PROFILE_PREFIX = "profile_"
"""Filename prefix of named loadout profiles."""

SNAPSHOT_SUFFIX = ".json"
"""Filename suffix of every persisted document."""

SUMMARY_FILENAME = "restoration_summary.json"
"""One-shot hand-off file carrying the last restoration summary."""

# =============================================================================
# Wire Format
# =============================================================================

I32_MIN = -(2**31)
"""Smallest cartridge index representable on the wire."""

I32_MAX = 2**31 - 1
"""Largest cartridge index representable on the wire."""

MOD_VERSION = "2.0.0"
"""Version stamped into every snapshot this engine writes."""


__all__ = [
    "EQUIPMENT_TEMPLATE_ID",
    "MAX_DEPTH",
    "MAX_NUMERIC_SLOT_ID",
    "CARTRIDGES_SLOT",
    "MAX_FILE_SIZE",
    "MAX_PROFILES",
    "DEFAULT_HISTORY",
    "MAX_PROFILE_NAME_LENGTH",
    "SESSION_ID_PATTERN",
    "PROFILE_PREFIX",
    "SNAPSHOT_SUFFIX",
    "SUMMARY_FILENAME",
    "I32_MIN",
    "I32_MAX",
    "MOD_VERSION",
]
