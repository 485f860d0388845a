"""Quick Start Example - Rolling JSON archives.

This example writes a stream of readings, forces a rotation and shows the
compressed archive left behind.
"""

import asyncio
import logging
import tempfile
from pathlib import Path

from json_chronicler import (
    JsonChronicler,
    JsonChroniclerConfig,
    JsonChroniclerFactory,
    RotationOptions,
)


class Reading:
    """A sensor reading that knows how to render itself as JSON."""

    def __init__(self, sensor: str, value: float):
        self.sensor = sensor
        self.value = value

    def to_json(self):
        return {"sensor": self.sensor, "value": self.value}


async def example_basic(log_dir: Path):
    """Example: fire-and-forget writes, then a forced rotation."""
    print("=== Basic Example ===")

    config = JsonChroniclerConfig(
        log_directory=log_dir,
        log_name="sensor",
        rotation_settings=RotationOptions(hours=1),
    )
    async with JsonChronicler(config) as chronicler:
        for i in range(5):
            chronicler.save_record(Reading("kitchen", 20.0 + i / 10))
        await chronicler.flush()
        print(f"Active file: {chronicler.get_current_filename()}")
        print(f"Rotation due in {chronicler.seconds_until_rotation()}s")

        new_file = await chronicler.rotate_log()
        print(f"Rotated to: {new_file}")
        await chronicler.save_record(Reading("kitchen", 21.0))

    for path in sorted(log_dir.iterdir()):
        print(f"  {path.name} ({path.stat().st_size} bytes)")


async def example_factory(log_dir: Path):
    """Example: build from a description and restore from saved state."""
    print("\n=== Factory Example ===")

    factory = JsonChroniclerFactory()
    chronicler = await factory.build_chronicler({
        "type": JsonChronicler.TYPE,
        "id": "garage-log",
        "name": "Garage",
        "chronicler_properties": {
            "logDirectory": str(log_dir),
            "logName": "garage",
            "rotationSettings": {"minutes": 30},
        },
    })
    state = factory.serialize_state(chronicler)
    await chronicler.dispose_async()
    print(f"Saved state: {state}")

    restored = await factory.recreate_chronicler(state)
    await restored.save_record({"door": "open"})
    await restored.dispose_async()
    print(f"Restored chronicler wrote {restored.get_current_filename()}")


async def main():
    logging.basicConfig(level=logging.INFO)
    with tempfile.TemporaryDirectory() as tmp:
        await example_basic(Path(tmp) / "basic")
        await example_factory(Path(tmp) / "factory")


if __name__ == "__main__":
    asyncio.run(main())
