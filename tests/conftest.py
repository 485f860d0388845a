"""Test configuration for json-chronicler."""
import sys
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from json_chronicler import JsonChroniclerConfig, RotationOptions


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def fake_clock():
    """Frozen clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def log_dir(tmp_path):
    """Directory for archive files (not created up front)."""
    return tmp_path / "logs"


@pytest.fixture
def make_config(log_dir):
    """Build a config in the test log directory."""

    def _make(log_name: str = "test", **kwargs) -> JsonChroniclerConfig:
        kwargs.setdefault("rotation_settings", RotationOptions(seconds=500))
        kwargs.setdefault("batch_interval_ms", 20)
        return JsonChroniclerConfig(
            log_directory=log_dir,
            log_name=log_name,
            id="test-id",
            name="test-name",
            description="test-desc",
            **kwargs,
        )

    return _make
