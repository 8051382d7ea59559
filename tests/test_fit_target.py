"""Tests for FIT target normalisation."""

import pytest

from krd.adapters.base import EncodeContext
from krd.adapters.fit.target import decode_fit_target, encode_fit_target
from krd.models.target import (
    OPEN_TARGET,
    BpmValue,
    CadenceTarget,
    HeartRateTarget,
    MpsValue,
    PaceTarget,
    PercentFtpValue,
    PercentMaxValue,
    PowerTarget,
    RangeValue,
    RpmValue,
    StrokeTypeTarget,
    SwimStrokeValue,
    WattsValue,
    ZoneValue,
)


class TestDecodeFitTarget:
    """Test FIT fields to canonical targets."""

    def test_power_watts_offset(self):
        """Test targetValue above 1000 is absolute watts."""
        target = decode_fit_target({"targetType": "power", "targetValue": 1250})

        assert target == PowerTarget(value=WattsValue(value=250))

    def test_power_percent_ftp(self):
        """Test targetValue up to 1000 is percent of FTP."""
        target = decode_fit_target({"targetType": "power", "targetValue": 95})

        assert target == PowerTarget(value=PercentFtpValue(value=95))

    def test_power_zone(self):
        """Test the power zone field."""
        target = decode_fit_target({"targetType": "power", "targetPowerZone": 4})

        assert target == PowerTarget(value=ZoneValue(value=4))

    def test_range_wins_over_zone(self):
        """Test custom low/high take priority over the zone."""
        target = decode_fit_target(
            {
                "targetType": "power",
                "targetPowerZone": 3,
                "customTargetPowerLow": 200,
                "customTargetPowerHigh": 250,
            }
        )

        assert target == PowerTarget(value=RangeValue(min=200, max=250))

    def test_generic_custom_pair(self):
        """Test the generic custom value pair is used as a fallback."""
        target = decode_fit_target(
            {"targetType": "heartRate", "customTargetValueLow": 140, "customTargetValueHigh": 155}
        )

        assert target == HeartRateTarget(value=RangeValue(min=140, max=155))

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (250, BpmValue(value=150)),
            (150, PercentMaxValue(value=150)),
            (80, BpmValue(value=80)),
        ],
    )
    def test_heart_rate_bands(self, raw, expected):
        """Test heart rate targetValue bands."""
        target = decode_fit_target({"targetType": "heartRate", "targetValue": raw})

        assert target == HeartRateTarget(value=expected)

    def test_heart_rate_zone(self):
        """Test the heart rate zone field."""
        assert decode_fit_target({"targetType": "heartRate", "targetHrZone": 2}) == HeartRateTarget(
            value=ZoneValue(value=2)
        )

    def test_cadence_zone_is_rpm(self):
        """Test FIT cadence zones carry rpm."""
        target = decode_fit_target({"targetType": "cadence", "targetCadenceZone": 90})

        assert target == CadenceTarget(value=RpmValue(value=90))

    def test_speed_is_pace(self):
        """Test speed targets map to the pace dimension."""
        assert decode_fit_target({"targetType": "speed", "targetValue": 3.5}) == PaceTarget(
            value=MpsValue(value=3.5)
        )
        assert decode_fit_target({"targetType": "speed", "targetSpeedZone": 2}) == PaceTarget(
            value=ZoneValue(value=2)
        )

    def test_swim_stroke(self):
        """Test swim stroke targets."""
        target = decode_fit_target({"targetType": "swimStroke", "targetValue": 2})

        assert target == StrokeTypeTarget(value=SwimStrokeValue(value=2))

    def test_individual_medley_is_mixed(self):
        """Test FIT stroke 6 (individual medley) decodes to mixed."""
        target = decode_fit_target({"targetType": "swimStroke", "targetValue": 6})

        assert target == StrokeTypeTarget(value=SwimStrokeValue(value=5))

    def test_unknown_swim_stroke_is_open(self):
        """Test a stroke outside the canonical table decodes to open."""
        assert decode_fit_target({"targetType": "swimStroke", "targetValue": 9}) == OPEN_TARGET

    @pytest.mark.parametrize(
        "fields",
        [
            None,
            {},
            {"targetType": "open"},
            {"targetType": "resistance", "targetValue": 5},
            {"targetType": "power"},
            {"targetType": "power", "targetValue": 0},
            {"targetType": "heartRate", "targetValue": 350},
        ],
    )
    def test_uninterpretable_is_open(self, fields):
        """Test missing, unknown or unusable fields decode to open."""
        assert decode_fit_target(fields) == OPEN_TARGET


class TestEncodeFitTarget:
    """Test canonical targets to FIT fields."""

    def test_watts_offset(self):
        """Test absolute watts gain the 1000 offset."""
        fields = encode_fit_target(PowerTarget(value=WattsValue(value=250)))

        assert fields == {"targetType": "power", "targetValue": 1250}

    def test_power_range(self):
        """Test ranges write the custom pair with a zero targetValue."""
        fields = encode_fit_target(PowerTarget(value=RangeValue(min=200, max=250)))

        assert fields == {
            "targetType": "power",
            "targetValue": 0,
            "customTargetPowerLow": 200,
            "customTargetPowerHigh": 250,
        }

    def test_bpm_offset(self, recording_logger):
        """Test absolute bpm gains the 100 offset without a notice."""
        fields = encode_fit_target(HeartRateTarget(value=BpmValue(value=150)), conversion_logger=recording_logger)

        assert fields == {"targetType": "heartRate", "targetValue": 250}
        assert len(recording_logger) == 0

    def test_bpm_outside_band_is_reported(self, recording_logger):
        """Test bpm above 200 cannot decode back and is reported."""
        context = EncodeContext(step_index=3)
        encode_fit_target(HeartRateTarget(value=BpmValue(value=210)), context, recording_logger)

        assert len(recording_logger) == 1
        assert recording_logger.notices[0].step_index == 3

    def test_open(self):
        """Test open writes only the target type."""
        assert encode_fit_target(OPEN_TARGET) == {"targetType": "open"}

    @pytest.mark.parametrize(
        "target",
        [
            PowerTarget(value=WattsValue(value=250)),
            PowerTarget(value=PercentFtpValue(value=90)),
            PowerTarget(value=ZoneValue(value=5)),
            HeartRateTarget(value=BpmValue(value=160)),
            HeartRateTarget(value=PercentMaxValue(value=185)),
            HeartRateTarget(value=RangeValue(min=120, max=140)),
            CadenceTarget(value=RpmValue(value=85)),
            PaceTarget(value=RangeValue(min=3.2, max=3.6)),
            StrokeTypeTarget(value=SwimStrokeValue(value=1)),
            OPEN_TARGET,
        ],
    )
    def test_round_trip(self, target):
        """Test in-band targets survive encode then decode."""
        assert decode_fit_target(encode_fit_target(target)) == target
