"""Tests for TCX target and duration normalisation."""

import pytest

from krd.adapters.base import EncodeContext
from krd.adapters.tcx.duration import decode_tcx_duration, encode_tcx_duration, tcx_duration_extensions
from krd.adapters.tcx.fields import flatten_tcx_target
from krd.adapters.tcx.target import NONE_TARGET, decode_tcx_target, encode_tcx_target
from krd.models.duration import (
    OPEN_DURATION,
    CaloriesDuration,
    HeartRateLessThanDuration,
    PowerLessThanDuration,
    RepeatUntilTimeDuration,
    TimeDuration,
)
from krd.models.target import (
    OPEN_TARGET,
    BpmValue,
    CadenceTarget,
    HeartRateTarget,
    MpsValue,
    PaceTarget,
    PercentMaxValue,
    PowerTarget,
    RangeValue,
    RpmValue,
    WattsValue,
    ZoneValue,
)


class TestDecodeTcxTarget:
    """Test flat TCX target bags to canonical targets."""

    def test_heart_rate_range_wins_over_zone(self):
        """Test a custom heart rate range takes priority."""
        target = decode_tcx_target(
            {"targetType": "HeartRate", "heartRateZone": 3, "heartRateLow": 140, "heartRateHigh": 160}
        )

        assert target == HeartRateTarget(value=RangeValue(min=140, max=160))

    def test_heart_rate_zone(self):
        """Test a predefined heart rate zone."""
        assert decode_tcx_target({"targetType": "HeartRate", "heartRateZone": 2}) == HeartRateTarget(
            value=ZoneValue(value=2)
        )

    def test_speed_is_pace(self):
        """Test speed maps to pace in metres per second."""
        target = decode_tcx_target({"targetType": "Speed", "speedLow": 3.0, "speedHigh": 3.5})

        assert target == PaceTarget(value=RangeValue(min=3.0, max=3.5))

    def test_running_cadence_halved(self):
        """Test running cadence is read as steps per minute."""
        target = decode_tcx_target(
            {"targetType": "Cadence", "cadenceLow": 170, "cadenceHigh": 180, "sport": "running"}
        )

        assert target == CadenceTarget(value=RangeValue(min=85, max=90))

    @pytest.mark.parametrize(
        "fields",
        [None, {"targetType": "None"}, {"targetType": "HeartRate"}, {"targetType": "Power", "powerLow": 1}],
    )
    def test_open(self, fields):
        """Test unusable bags decode to open."""
        assert decode_tcx_target(fields) == OPEN_TARGET

    def test_flatten_nested_element(self):
        """Test the nested Target element flattens to the bag fields."""
        element = {
            "@_xsi:type": "HeartRate_t",
            "HeartRateZone": {
                "@_xsi:type": "CustomHeartRateZone_t",
                "Low": {"@_xsi:type": "HeartRateInBeatsPerMinute_t", "Value": 130},
                "High": {"@_xsi:type": "HeartRateInBeatsPerMinute_t", "Value": 150},
            },
        }

        assert decode_tcx_target(flatten_tcx_target(element)) == HeartRateTarget(
            value=RangeValue(min=130, max=150)
        )


class TestEncodeTcxTarget:
    """Test canonical targets to TCX Target elements."""

    def test_absolute_bpm_is_degenerate_range(self):
        """Test an absolute bpm becomes Low == High."""
        element = encode_tcx_target(HeartRateTarget(value=BpmValue(value=150)))

        assert element == {
            "@_xsi:type": "HeartRate_t",
            "HeartRateZone": {"@_xsi:type": "CustomHeartRateZone_t", "Low": 150, "High": 150},
        }

    def test_pace_zone(self):
        """Test a pace zone becomes a predefined speed zone."""
        element = encode_tcx_target(PaceTarget(value=ZoneValue(value=3)))

        assert element["SpeedZone"] == {"@_xsi:type": "PredefinedSpeedZone_t", "Number": 3}

    def test_running_cadence_doubled(self):
        """Test running cadence is written in steps per minute."""
        element = encode_tcx_target(
            CadenceTarget(value=RpmValue(value=88)), EncodeContext(sport="running")
        )

        assert element["CadenceZone"]["Low"] == 176
        assert element["CadenceZone"]["High"] == 176

    @pytest.mark.parametrize(
        "target",
        [PowerTarget(value=WattsValue(value=250)), HeartRateTarget(value=PercentMaxValue(value=80))],
    )
    def test_unsupported_is_none_with_notice(self, target, recording_logger):
        """Test inexpressible targets write None_t and report the loss."""
        element = encode_tcx_target(target, EncodeContext(step_index=2), recording_logger)

        assert element == NONE_TARGET
        assert len(recording_logger) == 1
        assert recording_logger.notices[0].context["step_index"] == 2

    def test_speed_round_trip(self):
        """Test an mps target comes back as a degenerate range."""
        element = encode_tcx_target(PaceTarget(value=MpsValue(value=3.2)))

        assert decode_tcx_target(flatten_tcx_target(element)) == PaceTarget(value=RangeValue(min=3.2, max=3.2))


class TestTcxDuration:
    """Test TCX Duration elements."""

    def test_decode_time(self):
        """Test Time_t reads Seconds."""
        assert decode_tcx_duration({"@_xsi:type": "Time_t", "Seconds": 300}) == TimeDuration(seconds=300)

    def test_decode_heart_rate_below(self):
        """Test HeartRateBelow_t unwraps the nested bpm value."""
        element = {
            "@_xsi:type": "HeartRateBelow_t",
            "HeartRate": {"@_xsi:type": "HeartRateInBeatsPerMinute_t", "Value": 120},
        }

        assert decode_tcx_duration(element) == HeartRateLessThanDuration(bpm=120)

    def test_heart_rate_above_kept_in_extensions(self):
        """Test HeartRateAbove_t decodes to open and keeps its threshold."""
        element = {
            "@_xsi:type": "HeartRateAbove_t",
            "HeartRate": {"@_xsi:type": "HeartRateInBeatsPerMinute_t", "Value": 165},
        }

        assert decode_tcx_duration(element) == OPEN_DURATION
        extensions = tcx_duration_extensions(element)
        assert extensions == {"tcx": {"heartRateAbove": 165}}
        assert encode_tcx_duration(OPEN_DURATION, extensions=extensions)["@_xsi:type"] == "HeartRateAbove_t"

    def test_calories(self):
        """Test CaloriesBurned_t in both directions."""
        element = encode_tcx_duration(CaloriesDuration(calories=250))

        assert element == {"@_xsi:type": "CaloriesBurned_t", "Calories": 250}
        assert decode_tcx_duration(element) == CaloriesDuration(calories=250)

    def test_power_threshold_restored(self, recording_logger):
        """Test power thresholds survive as kaiord attributes on a lap button."""
        element = encode_tcx_duration(PowerLessThanDuration(watts=150), conversion_logger=recording_logger)

        assert element["@_xsi:type"] == "LapButton_t"
        assert len(recording_logger) == 1
        assert decode_tcx_duration(element) == PowerLessThanDuration(watts=150)

    def test_repeat_duration_is_lossy(self, recording_logger):
        """Test repeat-until durations become a plain lap button."""
        element = encode_tcx_duration(
            RepeatUntilTimeDuration(seconds=600, repeat_from=0), conversion_logger=recording_logger
        )

        assert element == {"@_xsi:type": "LapButton_t"}
        assert decode_tcx_duration(element) == OPEN_DURATION
        assert len(recording_logger) == 1
