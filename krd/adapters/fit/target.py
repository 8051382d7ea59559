"""FIT workout step targets <-> canonical targets."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.fit.fields import FitTargetFields, FitTargetType
from krd.models.base import Number
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
    SwimStroke,
    SwimStrokeValue,
    Target,
    WattsValue,
    ZoneValue,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy
from krd.services.value_converters import (
    FIT_HR_BPM_CEILING,
    FIT_HR_BPM_OFFSET,
    FIT_HR_PERCENT_MAX_CEILING,
    FIT_POWER_WATTS_OFFSET,
    decode_fit_heart_rate_value,
    decode_fit_power_value,
    encode_fit_heart_rate_bpm,
    encode_fit_power_watts,
)

logger = logging.getLogger(__name__)

FitFields = Mapping[str, Any] | FitTargetFields | None

# FIT swim_stroke 6 is individual medley, folded into mixed.
FIT_STROKE_IM = 6


def _range(
    low: Number | None, high: Number | None, bag: FitTargetFields
) -> RangeValue | None:
    """Dimension-specific pair first, then the generic custom value pair."""
    if low is not None and high is not None:
        return RangeValue(min=low, max=high)
    if bag.custom_target_value_low is not None and bag.custom_target_value_high is not None:
        return RangeValue(min=bag.custom_target_value_low, max=bag.custom_target_value_high)
    return None


def _decode_power(bag: FitTargetFields) -> Target:
    value_range = _range(bag.custom_target_power_low, bag.custom_target_power_high, bag)
    if value_range is not None:
        return PowerTarget(value=value_range)
    if bag.target_power_zone is not None:
        return PowerTarget(value=ZoneValue(value=bag.target_power_zone))
    if bag.target_value is not None:
        decoded = decode_fit_power_value(bag.target_value)
        if decoded is not None:
            return PowerTarget(value=decoded)
    return OPEN_TARGET


def _decode_heart_rate(bag: FitTargetFields) -> Target:
    value_range = _range(
        bag.custom_target_heart_rate_low, bag.custom_target_heart_rate_high, bag
    )
    if value_range is not None:
        return HeartRateTarget(value=value_range)
    if bag.target_hr_zone is not None:
        return HeartRateTarget(value=ZoneValue(value=bag.target_hr_zone))
    if bag.target_value is not None:
        decoded = decode_fit_heart_rate_value(bag.target_value)
        if decoded is not None:
            return HeartRateTarget(value=decoded)
    return OPEN_TARGET


def _decode_cadence(bag: FitTargetFields) -> Target:
    value_range = _range(bag.custom_target_cadence_low, bag.custom_target_cadence_high, bag)
    if value_range is not None:
        return CadenceTarget(value=value_range)
    # FIT has no cadence zone unit; the zone field already carries rpm.
    if bag.target_cadence_zone is not None:
        return CadenceTarget(value=RpmValue(value=bag.target_cadence_zone))
    if bag.target_value is not None:
        return CadenceTarget(value=RpmValue(value=bag.target_value))
    return OPEN_TARGET


def _decode_speed(bag: FitTargetFields) -> Target:
    value_range = _range(bag.custom_target_speed_low, bag.custom_target_speed_high, bag)
    if value_range is not None:
        return PaceTarget(value=value_range)
    if bag.target_speed_zone is not None:
        return PaceTarget(value=ZoneValue(value=bag.target_speed_zone))
    if bag.target_value is not None:
        return PaceTarget(value=MpsValue(value=bag.target_value))
    return OPEN_TARGET


def _decode_swim_stroke(bag: FitTargetFields) -> Target:
    if bag.target_value is None:
        return OPEN_TARGET
    stroke = int(bag.target_value)
    if stroke == FIT_STROKE_IM:
        stroke = SwimStroke.MIXED.value
    try:
        SwimStroke(stroke)
    except ValueError:
        logger.debug("Unknown FIT swim stroke %r decodes to open", stroke)
        return OPEN_TARGET
    return StrokeTypeTarget(value=SwimStrokeValue(value=stroke))


_DECODERS: dict[str, Callable[[FitTargetFields], Target]] = {
    FitTargetType.POWER.value: _decode_power,
    FitTargetType.HEART_RATE.value: _decode_heart_rate,
    FitTargetType.CADENCE.value: _decode_cadence,
    FitTargetType.SPEED.value: _decode_speed,
    FitTargetType.SWIM_STROKE.value: _decode_swim_stroke,
}


def decode_fit_target(fields: FitFields) -> Target:
    """Convert FIT step target fields into a canonical target.

    Ranges win over zones and zones over the plain ``targetValue``. Unknown
    or missing target types, and target types without any usable field,
    decode to ``open``.

    Args:
        fields: FIT step fields as a mapping or ``FitTargetFields``

    Returns:
        Canonical target
    """
    bag = FitTargetFields.from_bag(fields)
    decoder = _DECODERS.get(bag.target_type or "")
    if decoder is None:
        logger.debug("FIT target type %r decodes to open", bag.target_type)
        return OPEN_TARGET
    return decoder(bag)


def _encode_power(target: PowerTarget, context: EncodeContext, conversion_logger) -> FitTargetFields:
    value = target.value
    if isinstance(value, ZoneValue):
        return FitTargetFields(target_type=FitTargetType.POWER.value, target_power_zone=value.value)
    if isinstance(value, RangeValue):
        return FitTargetFields(
            target_type=FitTargetType.POWER.value,
            target_value=0,
            custom_target_power_low=value.min,
            custom_target_power_high=value.max,
        )
    if isinstance(value, WattsValue):
        return FitTargetFields(
            target_type=FitTargetType.POWER.value,
            target_value=encode_fit_power_watts(value.value),
        )
    if not 0 < value.value <= FIT_POWER_WATTS_OFFSET:
        report_lossy(
            conversion_logger,
            "Percent FTP outside the FIT percent band will not decode as percent FTP",
            step_index=context.step_index,
            percent_ftp=value.value,
        )
    return FitTargetFields(target_type=FitTargetType.POWER.value, target_value=value.value)


def _encode_heart_rate(
    target: HeartRateTarget, context: EncodeContext, conversion_logger
) -> FitTargetFields:
    value = target.value
    if isinstance(value, ZoneValue):
        return FitTargetFields(target_type=FitTargetType.HEART_RATE.value, target_hr_zone=value.value)
    if isinstance(value, RangeValue):
        return FitTargetFields(
            target_type=FitTargetType.HEART_RATE.value,
            target_value=0,
            custom_target_heart_rate_low=value.min,
            custom_target_heart_rate_high=value.max,
        )
    if isinstance(value, BpmValue):
        encoded = encode_fit_heart_rate_bpm(value.value)
        if not FIT_HR_PERCENT_MAX_CEILING < encoded <= FIT_HR_BPM_CEILING:
            report_lossy(
                conversion_logger,
                "Heart rate bpm outside the FIT bpm band will not decode as bpm",
                step_index=context.step_index,
                bpm=value.value,
                encoded=encoded,
            )
        return FitTargetFields(target_type=FitTargetType.HEART_RATE.value, target_value=encoded)
    if not FIT_HR_BPM_OFFSET < value.value <= FIT_HR_PERCENT_MAX_CEILING:
        report_lossy(
            conversion_logger,
            "Percent of max heart rate outside the FIT percent band will not decode as percent",
            step_index=context.step_index,
            percent_max=value.value,
        )
    return FitTargetFields(target_type=FitTargetType.HEART_RATE.value, target_value=value.value)


def _encode_cadence(target: CadenceTarget, context: EncodeContext, conversion_logger) -> FitTargetFields:
    value = target.value
    if isinstance(value, RangeValue):
        return FitTargetFields(
            target_type=FitTargetType.CADENCE.value,
            target_value=0,
            custom_target_cadence_low=value.min,
            custom_target_cadence_high=value.max,
        )
    return FitTargetFields(target_type=FitTargetType.CADENCE.value, target_value=value.value)


def _encode_pace(target: PaceTarget, context: EncodeContext, conversion_logger) -> FitTargetFields:
    value = target.value
    if isinstance(value, ZoneValue):
        return FitTargetFields(target_type=FitTargetType.SPEED.value, target_speed_zone=value.value)
    if isinstance(value, RangeValue):
        return FitTargetFields(
            target_type=FitTargetType.SPEED.value,
            target_value=0,
            custom_target_speed_low=value.min,
            custom_target_speed_high=value.max,
        )
    return FitTargetFields(target_type=FitTargetType.SPEED.value, target_value=value.value)


def _encode_swim_stroke(
    target: StrokeTypeTarget, context: EncodeContext, conversion_logger
) -> FitTargetFields:
    return FitTargetFields(
        target_type=FitTargetType.SWIM_STROKE.value, target_value=target.value.value
    )


_ENCODERS: dict[type, Callable[..., FitTargetFields]] = {
    PowerTarget: _encode_power,
    HeartRateTarget: _encode_heart_rate,
    CadenceTarget: _encode_cadence,
    PaceTarget: _encode_pace,
    StrokeTypeTarget: _encode_swim_stroke,
}


def encode_fit_target(
    target: Target,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
) -> dict[str, Any]:
    """Convert a canonical target into FIT step target fields.

    Absolute watts carry a +1000 offset and absolute bpm a +100 offset. Values
    that would land in another unit's band on decode are written anyway and
    reported as lossy.
    """
    context = context or DEFAULT_CONTEXT
    encoder = _ENCODERS.get(type(target))
    if encoder is None:
        return FitTargetFields(target_type=FitTargetType.OPEN.value).to_bag()
    return encoder(target, context, conversion_logger).to_bag()
