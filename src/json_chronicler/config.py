"""JSON Chronicler Configuration.

This module defines the JsonChroniclerConfig class and the
ChroniclerDescription used to persist and restore chroniclers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from json_chronicler.rotation import RotationOptions, is_rotation_options
from json_chronicler.types import InvalidConfigError

DEFAULT_BATCH_INTERVAL_MS = 100

# Property keys as written by persisted descriptions -> config field names
PROPERTY_ALIASES = {
    "logDirectory": "log_directory",
    "logName": "log_name",
    "rotationSettings": "rotation_settings",
    "batchIntervalMs": "batch_interval_ms",
}


def _normalize_properties(props: Mapping[str, Any]) -> dict[str, Any]:
    return {PROPERTY_ALIASES.get(key, key): value for key, value in props.items()}


@dataclass
class JsonChroniclerConfig:
    """Configuration for a JsonChronicler.

    Attributes:
        log_directory: Directory holding this chronicler's archive files
        log_name: Filename prefix shared by every archive of this chronicler
        rotation_settings: How long a file stays active before rotation
        batch_interval_ms: How often queued writes reach disk absent an
            explicit flush (default: 100)
        id: Chronicler identity
        name: Human readable name
        description: Free-form description

    Example:
        >>> config = JsonChroniclerConfig(
        ...     log_directory="./logs",
        ...     log_name="sensor",
        ...     rotation_settings=RotationOptions(hours=1),
        ... )
        >>> config.validate()
    """

    log_directory: Union[str, Path]
    log_name: str
    rotation_settings: RotationOptions = field(default_factory=RotationOptions)
    batch_interval_ms: int = DEFAULT_BATCH_INTERVAL_MS
    id: str = ""
    name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.rotation_settings, Mapping):
            self.rotation_settings = RotationOptions.from_dict(self.rotation_settings)

    @property
    def directory(self) -> Path:
        return Path(self.log_directory)

    def validate(self) -> None:
        """Raise InvalidConfigError if the configuration cannot be used."""
        if not self.log_directory:
            raise InvalidConfigError("log_directory is required")
        if not self.log_name:
            raise InvalidConfigError("log_name is required")
        if any(sep in self.log_name for sep in ("/", "\\")):
            raise InvalidConfigError(f"log_name must not contain path separators: {self.log_name!r}")
        if not is_rotation_options(self.rotation_settings):
            raise InvalidConfigError("rotation_settings does not conform to RotationOptions")
        for key, value in self.rotation_settings.to_dict().items():
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidConfigError(f"rotation_settings.{key} must be a number, got {value!r}")
            if value < 0:
                raise InvalidConfigError(f"rotation_settings.{key} must not be negative")
        if self.batch_interval_ms <= 0:
            raise InvalidConfigError("batch_interval_ms must be positive")

    def to_dict(self) -> dict[str, Any]:
        """Properties needed to restore a chronicler with this configuration."""
        return {
            "log_directory": str(self.log_directory),
            "log_name": self.log_name,
            "rotation_settings": self.rotation_settings.to_dict(),
            "batch_interval_ms": self.batch_interval_ms,
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> JsonChroniclerConfig:
        """Create from a properties mapping (snake_case or camelCase keys)."""
        props = _normalize_properties(data)
        rotation = props.get("rotation_settings")
        return cls(
            log_directory=props.get("log_directory", ""),
            log_name=props.get("log_name", ""),
            rotation_settings=RotationOptions.from_dict(rotation) if isinstance(rotation, Mapping) else rotation,
            batch_interval_ms=props.get("batch_interval_ms", DEFAULT_BATCH_INTERVAL_MS),
            id=props.get("id", ""),
            name=props.get("name", ""),
            description=props.get("description", ""),
        )

    def with_directory(self, log_directory: Union[str, Path]) -> JsonChroniclerConfig:
        """Return a new config writing to a different directory."""
        return replace(self, log_directory=log_directory)

    def with_rotation(self, rotation_settings: RotationOptions) -> JsonChroniclerConfig:
        """Return a new config with different rotation settings."""
        return replace(self, rotation_settings=rotation_settings)

    def with_batch_interval(self, batch_interval_ms: int) -> JsonChroniclerConfig:
        """Return a new config with a different batch interval."""
        return replace(self, batch_interval_ms=batch_interval_ms)


@dataclass
class ChroniclerDescription:
    """Everything needed to build a chronicler of a given type.

    ``chronicler_properties`` is type specific; for JSON chroniclers it holds
    the directory, log name and rotation settings.
    """

    type: str
    id: str = ""
    name: str = ""
    description: str = ""
    chronicler_properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "chronicler_properties": dict(self.chronicler_properties),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChroniclerDescription:
        """Create from dictionary."""
        props = data.get("chronicler_properties", data.get("chroniclerProperties")) or {}
        return cls(
            type=data.get("type", ""),
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            chronicler_properties=dict(props),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> ChroniclerDescription:
        """Load a description from a YAML file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, Mapping):
            raise InvalidConfigError(f"{path} does not contain a chronicler description")
        return cls.from_dict(data)


__all__ = [
    "DEFAULT_BATCH_INTERVAL_MS",
    "ChroniclerDescription",
    "JsonChroniclerConfig",
]
