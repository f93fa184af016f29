"""Core module providing configuration, logging, constants, and base exceptions.

Exports:
    Exceptions:
        StartingGearError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.
        StorageError, CodecError, RestorationError: Domain error bases.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_from_settings: Set up logging from Settings.
        session_context: Bind a session id for a block of work.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from starting_gear.core.config import (
    ProtectionSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from starting_gear.core.exceptions import (
    CodecError,
    ConfigurationError,
    CyclicOrDeepRemovalError,
    InvalidProfileNameError,
    InvalidSessionIdError,
    InvariantViolationError,
    MalformedLocationError,
    MalformedSnapshotError,
    NoEquipmentRootError,
    RestorationError,
    SnapshotTooLargeError,
    StartingGearError,
    StorageError,
    StorageUnavailableError,
)
from starting_gear.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    session_context,
)


__all__ = [
    # Configuration
    "Settings",
    "StorageSettings",
    "ProtectionSettings",
    "get_settings",
    "clear_settings_cache",
    # Exceptions
    "StartingGearError",
    "ConfigurationError",
    "StorageError",
    "InvalidSessionIdError",
    "InvalidProfileNameError",
    "SnapshotTooLargeError",
    "StorageUnavailableError",
    "CodecError",
    "MalformedSnapshotError",
    "MalformedLocationError",
    "RestorationError",
    "NoEquipmentRootError",
    "CyclicOrDeepRemovalError",
    "InvariantViolationError",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "configure_from_settings",
    "session_context",
]
