"""Configuration management for the starting gear engine.

Settings are read from STARTING_GEAR_* environment variables and an optional
.env file. Storage and protection settings are nested models with their own
prefixes so each can also be built on its own.

Example:
    >>> from starting_gear.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.storage.max_snapshot_history)
    3

Environment Variables:
    STARTING_GEAR_DATA_DIRECTORY: Directory holding snapshots, history and profiles
    STARTING_GEAR_MAX_SNAPSHOT_HISTORY: Depth of the history ring (0 or 1 disables backups)
    STARTING_GEAR_PROTECTION_INCLUDED_SLOTS_DEFAULT: JSON list of managed slot names
    STARTING_GEAR_PROTECTION_PROTECT_FOUND_IN_RAID: Skip found-in-raid items at capture
    STARTING_GEAR_PROTECTION_EXCLUDE_INSURED: Skip insured items at capture
    STARTING_GEAR_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from starting_gear.core.constants import DEFAULT_HISTORY, MOD_VERSION
from starting_gear.core.exceptions import ConfigurationError
from starting_gear.models.enums import DEFAULT_MANAGED_SLOTS, is_top_level_slot


class StorageSettings(BaseSettings):
    """Configuration for snapshot file storage.

    Attributes:
        data_directory: Directory for current snapshots, history backups and profiles.
        max_snapshot_history: Number of snapshot generations kept, counting the current one.
    """

    model_config = SettingsConfigDict(
        env_prefix="STARTING_GEAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_directory: Path = Field(
        default=Path("data/snapshots"),
        description="Directory for snapshot storage",
    )
    max_snapshot_history: int = Field(
        default=DEFAULT_HISTORY,
        ge=0,
        le=50,
        description="Snapshot generations kept, counting the current file",
    )

    @field_validator("data_directory", mode="after")
    @classmethod
    def expand_directory(cls, value: Path) -> Path:
        """Expand a leading ``~`` in the data directory.

        The directory itself is created by the snapshot store so that a
        failure surfaces as a storage error rather than a settings error.

        Args:
            value: The configured path.

        Returns:
            The expanded path.
        """
        return value.expanduser()


class ProtectionSettings(BaseSettings):
    """Configuration for which gear is captured and restored.

    Attributes:
        included_slots_default: Slots managed when a snapshot does not say otherwise.
        protect_found_in_raid: Leave found-in-raid items out of snapshots.
        exclude_insured: Leave insured items out of snapshots.
    """

    model_config = SettingsConfigDict(
        env_prefix="STARTING_GEAR_PROTECTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    included_slots_default: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MANAGED_SLOTS),
        description="Top-level slots captured and restored by default",
    )
    protect_found_in_raid: bool = Field(
        default=False,
        description="Skip found-in-raid items at capture",
    )
    exclude_insured: bool = Field(
        default=False,
        description="Skip insured items at capture",
    )

    @model_validator(mode="after")
    def validate_slot_names(self) -> "ProtectionSettings":
        """Ensure every configured slot is a known top-level slot.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If an unknown slot name is configured.
        """
        unknown = [name for name in self.included_slots_default if not is_top_level_slot(name)]
        if unknown:
            raise ConfigurationError(
                f"Unknown equipment slots in included_slots_default: {', '.join(unknown)}",
                config_key="included_slots_default",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        mod_version: Version stamped into snapshots this engine writes.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Emit JSON log lines instead of console output.
        storage: Snapshot storage settings.
        protection: Capture and restore protection settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="STARTING_GEAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application metadata
    app_name: str = Field(
        default="Starting Gear",
        description="Application name",
    )
    mod_version: str = Field(
        default=MOD_VERSION,
        description="Version stamped into written snapshots",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    # Nested domains
    storage: StorageSettings = Field(default_factory=StorageSettings)
    protection: ProtectionSettings = Field(default_factory=ProtectionSettings)

    @property
    def effective_log_level(self) -> str:
        """``DEBUG`` while debug mode is on, otherwise ``log_level``."""
        return "DEBUG" if self.debug else self.log_level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once and return the cached instance.

    Returns:
        The process-wide Settings.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Settings could not be loaded: {exc}",
            details={"cause": type(exc).__name__},
        ) from exc


def clear_settings_cache() -> None:
    """Drop the cached settings so the next ``get_settings`` re-reads the environment."""
    get_settings.cache_clear()


__all__ = [
    "StorageSettings",
    "ProtectionSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
