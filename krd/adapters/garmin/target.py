"""Garmin Connect step targets <-> canonical targets.

GCN mirrors the FIT target model in JSON: a type key, two values and a zone
number. A lone ``targetValueOne`` follows the FIT offset rules, so absolute
watts and bpm carry the same +1000 / +100 offsets.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.garmin.fields import GarminTargetFields, GarminTargetKey, build_target_type
from krd.models.base import Number
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
    StrokeTypeTarget,
    SwimStroke,
    SwimStrokeValue,
    Target,
    WattsValue,
    ZoneValue,
    is_open,
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

GarminFields = Mapping[str, Any] | GarminTargetFields | None

# Connect stroke keys, by canonical swim stroke.
STROKE_KEYS = {
    "free": SwimStroke.FREESTYLE,
    "backstroke": SwimStroke.BACKSTROKE,
    "breaststroke": SwimStroke.BREASTSTROKE,
    "fly": SwimStroke.BUTTERFLY,
    "drill": SwimStroke.DRILL,
    "mixed": SwimStroke.MIXED,
    "individual_medley": SwimStroke.MIXED,
}
STROKE_TYPE_IDS = {
    SwimStroke.BACKSTROKE: (2, "backstroke"),
    SwimStroke.BREASTSTROKE: (3, "breaststroke"),
    SwimStroke.DRILL: (4, "drill"),
    SwimStroke.BUTTERFLY: (5, "fly"),
    SwimStroke.FREESTYLE: (6, "free"),
    SwimStroke.MIXED: (8, "mixed"),
}
NO_STROKE = {"strokeTypeId": 0, "strokeTypeKey": None, "displayOrder": 0}


def _resolve(key: str | None, value_one: Number | None, value_two: Number | None, zone: int | None) -> Target:
    """Range first, then zone, then a lone absolute value."""
    if key == GarminTargetKey.POWER_ZONE.value:
        if value_one is not None and value_two is not None:
            return PowerTarget(value=RangeValue(min=value_one, max=value_two))
        if zone is not None:
            return PowerTarget(value=ZoneValue(value=zone))
        decoded = decode_fit_power_value(value_one) if value_one is not None else None
        return PowerTarget(value=decoded) if decoded is not None else OPEN_TARGET

    if key == GarminTargetKey.HEART_RATE_ZONE.value:
        if value_one is not None and value_two is not None:
            return HeartRateTarget(value=RangeValue(min=value_one, max=value_two))
        if zone is not None:
            return HeartRateTarget(value=ZoneValue(value=zone))
        decoded = decode_fit_heart_rate_value(value_one) if value_one is not None else None
        return HeartRateTarget(value=decoded) if decoded is not None else OPEN_TARGET

    if key == GarminTargetKey.CADENCE.value:
        if value_one is not None and value_two is not None:
            return CadenceTarget(value=RangeValue(min=value_one, max=value_two))
        if value_one is not None:
            return CadenceTarget(value=RpmValue(value=value_one))
        return OPEN_TARGET

    if key in (GarminTargetKey.PACE_ZONE.value, GarminTargetKey.SPEED_ZONE.value):
        if value_one is not None and value_two is not None:
            return PaceTarget(value=RangeValue(min=value_one, max=value_two))
        if zone is not None:
            return PaceTarget(value=ZoneValue(value=zone))
        if value_one is not None:
            return PaceTarget(value=MpsValue(value=value_one))
        return OPEN_TARGET

    if key not in (None, GarminTargetKey.NO_TARGET.value):
        logger.debug("Unknown GCN target type %r decodes to open", key)
    return OPEN_TARGET


def decode_garmin_stroke(fields: GarminFields) -> StrokeTypeTarget | None:
    """Swim stroke of a step, ``None`` for no stroke or an unknown key."""
    bag = GarminTargetFields.from_bag(fields)
    if bag.stroke_type_key is None or not bag.stroke_type_id:
        return None
    stroke = STROKE_KEYS.get(bag.stroke_type_key)
    if stroke is None:
        logger.debug("Unknown GCN stroke type %r ignored", bag.stroke_type_key)
        return None
    return StrokeTypeTarget(value=SwimStrokeValue(value=stroke.value))


def decode_garmin_target(fields: GarminFields) -> Target:
    """Convert GCN step target fields into a canonical target.

    Args:
        fields: Step JSON (nested ``targetType`` objects are accepted) or a
            ``GarminTargetFields`` bag

    Returns:
        The stroke target when the step names a swim stroke, otherwise the
        primary target, falling back to the secondary one when the primary
        resolves to ``open``
    """
    bag = GarminTargetFields.from_bag(fields)

    stroke = decode_garmin_stroke(bag)
    if stroke is not None:
        return stroke

    target = _resolve(bag.target_type_key, bag.target_value_one, bag.target_value_two, bag.zone_number)
    if is_open(target) and bag.secondary_target_type_key is not None:
        target = _resolve(
            bag.secondary_target_type_key,
            bag.secondary_target_value_one,
            bag.secondary_target_value_two,
            bag.secondary_zone_number,
        )
    return target


def _target_fields(
    key: str,
    value_one: Number | None = None,
    value_two: Number | None = None,
    zone: int | None = None,
) -> dict[str, Any]:
    return {
        "targetType": build_target_type(key),
        "targetValueOne": value_one,
        "targetValueTwo": value_two,
        "zoneNumber": zone,
        "strokeType": dict(NO_STROKE),
    }


def _encode_power(target: PowerTarget, context: EncodeContext, conversion_logger) -> dict[str, Any]:
    key = GarminTargetKey.POWER_ZONE.value
    value = target.value
    if isinstance(value, ZoneValue):
        return _target_fields(key, zone=value.value)
    if isinstance(value, RangeValue):
        return _target_fields(key, value.min, value.max)
    if isinstance(value, WattsValue):
        return _target_fields(key, encode_fit_power_watts(value.value))
    if not 0 < value.value <= FIT_POWER_WATTS_OFFSET:
        report_lossy(
            conversion_logger,
            "Percent FTP outside the GCN percent band will not decode as percent FTP",
            step_index=context.step_index,
            percent_ftp=value.value,
        )
    return _target_fields(key, value.value)


def _encode_heart_rate(target: HeartRateTarget, context: EncodeContext, conversion_logger) -> dict[str, Any]:
    key = GarminTargetKey.HEART_RATE_ZONE.value
    value = target.value
    if isinstance(value, ZoneValue):
        return _target_fields(key, zone=value.value)
    if isinstance(value, RangeValue):
        return _target_fields(key, value.min, value.max)
    if isinstance(value, BpmValue):
        encoded = encode_fit_heart_rate_bpm(value.value)
        if not FIT_HR_PERCENT_MAX_CEILING < encoded <= FIT_HR_BPM_CEILING:
            report_lossy(
                conversion_logger,
                "Heart rate bpm outside the GCN bpm band will not decode as bpm",
                step_index=context.step_index,
                bpm=value.value,
                encoded=encoded,
            )
        return _target_fields(key, encoded)
    if isinstance(value, PercentMaxValue) and not FIT_HR_BPM_OFFSET < value.value <= FIT_HR_PERCENT_MAX_CEILING:
        report_lossy(
            conversion_logger,
            "Percent of max heart rate outside the GCN percent band will not decode as percent",
            step_index=context.step_index,
            percent_max=value.value,
        )
    return _target_fields(key, value.value)


def _encode_cadence(target: CadenceTarget, context: EncodeContext, conversion_logger) -> dict[str, Any]:
    key = GarminTargetKey.CADENCE.value
    value = target.value
    if isinstance(value, RangeValue):
        return _target_fields(key, value.min, value.max)
    return _target_fields(key, value.value)


def _encode_pace(target: PaceTarget, context: EncodeContext, conversion_logger) -> dict[str, Any]:
    key = GarminTargetKey.PACE_ZONE.value
    value = target.value
    if isinstance(value, ZoneValue):
        return _target_fields(key, zone=value.value)
    if isinstance(value, RangeValue):
        return _target_fields(key, value.min, value.max)
    return _target_fields(key, value.value)


def _encode_stroke(target: StrokeTypeTarget, context: EncodeContext, conversion_logger) -> dict[str, Any]:
    fields = _target_fields(GarminTargetKey.NO_TARGET.value)
    try:
        stroke = SwimStroke(target.value.value)
    except ValueError:
        report_lossy(
            conversion_logger,
            "Swim stroke has no GCN stroke type; exporting without a stroke",
            step_index=context.step_index,
            swim_stroke=target.value.value,
        )
        return fields
    stroke_id, stroke_key = STROKE_TYPE_IDS[stroke]
    fields["strokeType"] = {"strokeTypeId": stroke_id, "strokeTypeKey": stroke_key, "displayOrder": stroke_id}
    return fields


_ENCODERS = {
    PowerTarget: _encode_power,
    HeartRateTarget: _encode_heart_rate,
    CadenceTarget: _encode_cadence,
    PaceTarget: _encode_pace,
    StrokeTypeTarget: _encode_stroke,
}


def encode_garmin_target(
    target: Target,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
) -> dict[str, Any]:
    """Convert a canonical target into GCN step target fields.

    The result always holds ``targetType``, both values, ``zoneNumber`` and
    ``strokeType``; unused values are ``None``. Swim strokes are written to
    ``strokeType`` with a ``no.target`` target type.
    """
    context = context or DEFAULT_CONTEXT
    encoder = _ENCODERS.get(type(target))
    if encoder is None:
        return _target_fields(GarminTargetKey.NO_TARGET.value)
    return encoder(target, context, conversion_logger)
