"""JsonChroniclerFactory - build and restore JSON chroniclers.

A host framework keeps chroniclers as ChroniclerDescriptions (type tag,
identity and type-specific properties). This factory turns a description
of type ``JSON-CHRONICLER`` into a live JsonChronicler, and turns a live
chronicler back into a plaintext state string that can recreate it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Union

from json_chronicler.chronicler import JsonChronicler
from json_chronicler.config import ChroniclerDescription, JsonChroniclerConfig
from json_chronicler.rotation import is_rotation_options
from json_chronicler.types import InvalidConfigError

logger = logging.getLogger(__name__)

# Accepted spellings of each required property
_REQUIRED_PROPERTIES = (
    (("logDirectory", "log_directory"), "Missing required logDirectory property for JsonChronicler"),
    (("logName", "log_name"), "Missing required logName property for JsonChronicler"),
    (("rotationSettings", "rotation_settings"), "Missing required rotationSettings property for JsonChronicler"),
)


def _lookup(props: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if props.get(key) not in (None, ""):
            return props[key]
    return None


class JsonChroniclerFactory:
    """Builds JsonChroniclers from descriptions.

    Usage:
        >>> factory = JsonChroniclerFactory()
        >>> chronicler = await factory.build_chronicler({
        ...     "type": "JSON-CHRONICLER",
        ...     "id": "sensor-log",
        ...     "chronicler_properties": {
        ...         "logDirectory": "./logs",
        ...         "logName": "sensor",
        ...         "rotationSettings": {"hours": 1},
        ...     },
        ... })
        >>> state = factory.serialize_state(chronicler)
        >>> restored = await factory.recreate_chronicler(state)
    """

    TYPE = JsonChronicler.TYPE

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the factory.

        Args:
            logger: Logger handed to every chronicler this factory builds
        """
        self._logger = logger

    async def build_chronicler(
        self,
        description: Union[ChroniclerDescription, Mapping[str, Any]],
    ) -> JsonChronicler:
        """Build a chronicler from its description.

        Raises:
            InvalidConfigError: If a required property is missing or the
                rotation settings are malformed
        """
        if isinstance(description, Mapping):
            description = ChroniclerDescription.from_dict(description)

        props = description.chronicler_properties or {}
        for keys, message in _REQUIRED_PROPERTIES:
            if _lookup(props, keys) is None:
                raise InvalidConfigError(message)
        if not is_rotation_options(_lookup(props, ("rotationSettings", "rotation_settings"))):
            raise InvalidConfigError("rotationSettings does not conform to RotationOptions interface")

        config = JsonChroniclerConfig.from_dict(
            {
                **props,
                "id": description.id,
                "name": description.name,
                "description": description.description,
            }
        )
        chronicler = JsonChronicler(config, logger=self._logger)
        logger.debug(f"Built {self.TYPE} {description.id or config.log_name}")
        return chronicler

    def describe(self, chronicler: JsonChronicler) -> ChroniclerDescription:
        """Description that rebuilds ``chronicler``."""
        props = chronicler.get_chronicler_properties()
        return ChroniclerDescription(
            type=chronicler.get_type(),
            id=chronicler.id,
            name=chronicler.name,
            description=chronicler.description,
            chronicler_properties=props,
        )

    def serialize_state(self, chronicler: JsonChronicler) -> str:
        """Plaintext JSON state for ``recreate_chronicler``."""
        return json.dumps(self.describe(chronicler).to_dict(), sort_keys=True)

    async def recreate_chronicler(self, state: Union[str, bytes]) -> JsonChronicler:
        """Rebuild a chronicler from ``serialize_state`` output.

        Raises:
            InvalidConfigError: If the state is not a JSON chronicler description
        """
        try:
            data = json.loads(state)
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"chronicler state is not valid JSON: {e}") from e
        if not isinstance(data, Mapping):
            raise InvalidConfigError("chronicler state must be a JSON object")

        description = ChroniclerDescription.from_dict(data)
        if description.type and description.type != self.TYPE:
            raise InvalidConfigError(f"cannot recreate chronicler of type {description.type!r}")
        return await self.build_chronicler(description)


__all__ = [
    "JsonChroniclerFactory",
]
