"""Custom exception hierarchy for the starting gear engine.

This module defines the exception hierarchy used across storage, codec,
and restoration code. All exceptions inherit from StartingGearError,
enabling unified error handling at the application boundary while
preserving domain-specific context.

Context passed as keyword arguments (``path``, ``session_id``, ...) is
folded into ``details`` so that log lines and ``str(exc)`` carry it.

Example:
    >>> from starting_gear.core.exceptions import InvalidSessionIdError
    >>> raise InvalidSessionIdError("Rejected session id", session_id="../etc")
"""

from __future__ import annotations

from typing import Any


def _merge_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    """Copy ``details`` and add every context value that was actually given."""
    merged = dict(details or {})
    merged.update({key: value for key, value in context.items() if value is not None and value != ""})
    return merged


class StartingGearError(Exception):
    """Base exception for all starting gear errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{rendered}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Storage Domain Exceptions
# =============================================================================


class StorageError(StartingGearError):
    """Base exception for snapshot, history, and profile storage errors.

    Args:
        message: Human-readable error description.
        path: File or directory the operation targeted.
        details: Additional context.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, path=path))


class InvalidSessionIdError(StorageError):
    """Raised when a session id fails the filename whitelist.

    Session ids become part of file paths, so anything outside
    ``[A-Za-z0-9_-]`` is rejected before any filesystem access.
    """

    def __init__(self, message: str, *, session_id: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=_merge_context(details, session_id=session_id))


class InvalidProfileNameError(StorageError):
    """Raised when a profile name is empty after sanitization."""

    def __init__(
        self,
        message: str,
        *,
        profile_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, profile_name=profile_name))


class SnapshotTooLargeError(StorageError):
    """Raised when a snapshot document exceeds the size cap.

    ``size`` and ``limit`` are in bytes; ``path`` is set when the
    document came from a file.
    """

    def __init__(
        self,
        message: str,
        *,
        size: int | None = None,
        limit: int | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, path=path, details=_merge_context(details, size=size, limit=limit))


class StorageUnavailableError(StorageError):
    """Raised when the snapshot directory cannot be created or used.

    This is the only storage error that propagates out of startup.
    """


# =============================================================================
# Codec Domain Exceptions
# =============================================================================


class CodecError(StartingGearError):
    """Base exception for snapshot encoding and decoding errors."""


class MalformedSnapshotError(CodecError):
    """Raised when a snapshot document is not structurally valid."""


class MalformedLocationError(MalformedSnapshotError):
    """Raised when an item location is neither an integer nor a grid object."""

    def __init__(
        self,
        message: str,
        *,
        item_id: str | None = None,
        raw_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, item_id=item_id, raw_value=raw_value))


# =============================================================================
# Restoration Domain Exceptions
# =============================================================================


class RestorationError(StartingGearError):
    """Base exception for restoration algorithm failures.

    The restoration algorithm reports these to callers as result values;
    ``RestorationResult.raise_for_error`` turns them back into exceptions.
    """


class NoEquipmentRootError(RestorationError):
    """Raised when the live profile has no Equipment root item."""


class CyclicOrDeepRemovalError(RestorationError):
    """Raised when removal traversal exceeds the maximum depth."""

    def __init__(self, message: str, *, depth: int | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=_merge_context(details, depth=depth))


class InvariantViolationError(RestorationError):
    """Raised when the restored inventory breaks a structural invariant.

    Args:
        message: Human-readable error description.
        invariant: Short name of the violated invariant, e.g.
            ``equipment_root_present``.
        details: Additional context.
    """

    def __init__(
        self,
        message: str,
        *,
        invariant: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, invariant=invariant))


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(StartingGearError):
    """Raised when application configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, config_key=config_key))


__all__ = [
    # Base exception
    "StartingGearError",
    # Storage exceptions
    "StorageError",
    "InvalidSessionIdError",
    "InvalidProfileNameError",
    "SnapshotTooLargeError",
    "StorageUnavailableError",
    # Codec exceptions
    "CodecError",
    "MalformedSnapshotError",
    "MalformedLocationError",
    # Restoration exceptions
    "RestorationError",
    "NoEquipmentRootError",
    "CyclicOrDeepRemovalError",
    "InvariantViolationError",
    # Configuration exceptions
    "ConfigurationError",
]
