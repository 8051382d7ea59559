"""Tests for FIT duration normalisation."""

import pytest

from krd.adapters.fit.duration import decode_fit_duration, encode_fit_duration
from krd.models.duration import (
    OPEN_DURATION,
    CaloriesDuration,
    DistanceDuration,
    HeartRateLessThanDuration,
    PowerGreaterThanDuration,
    RepeatUntilHeartRateGreaterThanDuration,
    RepeatUntilPowerLessThanDuration,
    RepeatUntilTimeDuration,
    TimeDuration,
)


class TestDecodeFitDuration:
    """Test FIT fields to canonical durations."""

    def test_time(self):
        """Test time durations read durationTime."""
        assert decode_fit_duration({"durationType": "time", "durationTime": 300}) == TimeDuration(seconds=300)

    def test_distance(self):
        """Test distance durations read durationDistance."""
        assert decode_fit_duration({"durationType": "distance", "durationDistance": 1000}) == DistanceDuration(
            meters=1000
        )

    def test_threshold_durations(self):
        """Test heart rate, calorie and power thresholds."""
        assert decode_fit_duration({"durationType": "hrLessThan", "durationHr": 120}) == HeartRateLessThanDuration(
            bpm=120
        )
        assert decode_fit_duration({"durationType": "calories", "durationCalories": 200}) == CaloriesDuration(
            calories=200
        )
        assert decode_fit_duration(
            {"durationType": "powerGreaterThan", "durationPower": 300}
        ) == PowerGreaterThanDuration(watts=300)

    def test_repeat_durations_need_step(self):
        """Test repeat-until durations carry the step they loop back to."""
        assert decode_fit_duration(
            {"durationType": "repeatUntilTime", "durationTime": 1800, "durationStep": 1}
        ) == RepeatUntilTimeDuration(seconds=1800, repeat_from=1)
        assert decode_fit_duration({"durationType": "repeatUntilTime", "durationTime": 1800}) == OPEN_DURATION

    @pytest.mark.parametrize(
        "fields",
        [
            None,
            {"durationType": "time"},
            {"durationType": "time", "durationTime": 0},
            {"durationType": "distance", "durationDistance": -5},
            {"durationType": "open"},
            {"durationType": "hrGreaterThan", "durationHr": 160},
            {"durationType": "trainingPeaksTss", "durationTime": 50},
        ],
    )
    def test_fallback_to_open(self, fields):
        """Test missing, non-positive or unsupported durations decode to open."""
        assert decode_fit_duration(fields) == OPEN_DURATION


class TestEncodeFitDuration:
    """Test canonical durations to FIT fields."""

    def test_time(self):
        """Test time durations write durationTime."""
        assert encode_fit_duration(TimeDuration(seconds=300)) == {"durationType": "time", "durationTime": 300}

    def test_open(self):
        """Test open writes only the duration type."""
        assert encode_fit_duration(OPEN_DURATION) == {"durationType": "open"}

    @pytest.mark.parametrize(
        "duration",
        [
            DistanceDuration(meters=400),
            CaloriesDuration(calories=150),
            HeartRateLessThanDuration(bpm=130),
            RepeatUntilHeartRateGreaterThanDuration(bpm=170, repeat_from=0),
            RepeatUntilPowerLessThanDuration(watts=180, repeat_from=2),
        ],
    )
    def test_round_trip(self, duration):
        """Test every FIT-expressible duration survives encode then decode."""
        assert decode_fit_duration(encode_fit_duration(duration)) == duration
