"""Tests for rotation interval arithmetic and the rotation policy."""

import pytest

from json_chronicler import (
    RotationOptions,
    RotationPolicy,
    is_rotation_options,
    ms_from_rotation_options,
)


class TestMsFromRotationOptions:
    """Test conversion of rotation settings to milliseconds."""

    def test_sums_every_component(self):
        """Test all components are weighted and summed."""
        result = ms_from_rotation_options(
            RotationOptions(days=2, hours=3, minutes=20, seconds=3, milliseconds=21)
        )
        assert result == 2 * 86_400_000 + 3 * 3_600_000 + 20 * 60_000 + 3 * 1_000 + 21

    def test_single_components(self):
        """Test each component on its own."""
        assert ms_from_rotation_options(RotationOptions(days=7)) == 7 * 24 * 60 * 60 * 1000
        assert ms_from_rotation_options(RotationOptions(hours=12)) == 43_200_000
        assert ms_from_rotation_options(RotationOptions(minutes=2)) == 120_000
        assert ms_from_rotation_options(RotationOptions(seconds=5)) == 5_000
        assert ms_from_rotation_options(RotationOptions(milliseconds=1500)) == 1500

    def test_accepts_mapping(self):
        """Test a plain dict is converted the same way."""
        assert ms_from_rotation_options({"hours": 12}) == 43_200_000
        assert ms_from_rotation_options({"days": 2, "hours": 3, "minutes": 20, "seconds": 3, "milliseconds": 21}) == (
            2 * 86_400_000 + 3 * 3_600_000 + 20 * 60_000 + 3 * 1_000 + 21
        )

    def test_empty_is_zero(self):
        """Test no components means a zero interval."""
        assert ms_from_rotation_options(RotationOptions()) == 0
        assert ms_from_rotation_options({}) == 0

    def test_size_thresholds_do_not_contribute(self):
        """Test size/count thresholds are ignored by the interval."""
        options = RotationOptions(seconds=1, max_file_size=1024, max_file_count=3)
        assert options.interval_ms == 1000


class TestRotationOptionsSerialization:
    """Test RotationOptions dict round trips."""

    def test_to_dict_omits_absent(self):
        """Test only present fields are serialized."""
        assert RotationOptions(hours=1).to_dict() == {"hours": 1}

    def test_from_dict_camel_case(self):
        """Test persisted camelCase threshold keys are understood."""
        options = RotationOptions.from_dict({"minutes": 5, "maxFileSize": 10, "maxFileCount": 2})
        assert options.minutes == 5
        assert options.max_file_size == 10
        assert options.max_file_count == 2

    def test_from_dict_ignores_unknown(self):
        """Test unknown keys are dropped."""
        assert RotationOptions.from_dict({"seconds": 1, "weeks": 4}) == RotationOptions(seconds=1)


class TestIsRotationOptions:
    """Test rotation settings shape check."""

    @pytest.mark.parametrize("value", [RotationOptions(), {}, {"seconds": 30}])
    def test_conforming(self, value):
        assert is_rotation_options(value)

    @pytest.mark.parametrize("value", [None, "1h", 3600, ["seconds", 1]])
    def test_non_conforming(self, value):
        assert not is_rotation_options(value)


class TestRotationPolicy:
    """Test time-since / time-until queries."""

    def test_never_rotated(self, fake_clock):
        """Test sentinels before the first file exists."""
        policy = RotationPolicy(90_500, clock=fake_clock)
        assert policy.seconds_since_rotation() == fake_clock.now / 1000
        assert policy.seconds_until_rotation() == 90
        assert policy.should_rotate() is False

    def test_seconds_since_rotation(self, fake_clock):
        """Test elapsed seconds are floored."""
        policy = RotationPolicy(60_000, clock=fake_clock)
        policy.mark_rotated()
        assert policy.seconds_since_rotation() == 0

        fake_clock.advance(2_999)
        assert policy.seconds_since_rotation() == 2

    def test_seconds_until_rotation(self, fake_clock):
        """Test remaining seconds count down and go negative once due."""
        policy = RotationPolicy(10_000, clock=fake_clock)
        policy.mark_rotated()
        assert policy.seconds_until_rotation() == 10

        fake_clock.advance(4_500)
        assert policy.seconds_until_rotation() == 5
        assert not policy.should_rotate()

        fake_clock.advance(5_500)
        assert policy.seconds_until_rotation() == 0
        assert not policy.should_rotate()

        fake_clock.advance(1)
        assert policy.seconds_until_rotation() == -1
        assert policy.should_rotate()

    def test_zero_interval_rotates_after_any_elapsed_time(self, fake_clock):
        """Test an empty duration rotates on the next write."""
        policy = RotationPolicy(0, clock=fake_clock)
        policy.mark_rotated()
        assert not policy.should_rotate()
        fake_clock.advance(1)
        assert policy.should_rotate()

    def test_mark_rotated_explicit_time(self, fake_clock):
        """Test an explicit stamp overrides the clock."""
        policy = RotationPolicy(1000, clock=fake_clock)
        assert policy.mark_rotated(42) == 42
        assert policy.last_rotation_ms == 42
