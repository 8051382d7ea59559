"""TCX step targets <-> canonical targets.

TCX can only express heart rate, speed and cadence. Speed maps to the
canonical ``pace`` dimension (both in metres per second). Running cadence is
written in steps per minute.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.tcx.fields import XSI_TYPE, TcxTargetFields, TcxTargetType
from krd.models.target import (
    OPEN_TARGET,
    BpmValue,
    CadenceTarget,
    HeartRateTarget,
    PaceTarget,
    RangeValue,
    Target,
    ZoneValue,
    is_open,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy
from krd.services.value_converters import cadence_from_canonical, cadence_to_canonical

logger = logging.getLogger(__name__)

NONE_TARGET = {XSI_TYPE: "None_t"}


def decode_tcx_target(fields: Mapping[str, Any] | TcxTargetFields | None) -> Target:
    """Convert a flat TCX target bag into a canonical target.

    Args:
        fields: Flat bag (``targetType``, ``heartRateLow``, ``speedZone`` ...)

    Returns:
        Canonical target; anything other than heart rate, speed or cadence,
        or a target type without usable values, is ``open``
    """
    bag = TcxTargetFields.from_bag(fields)

    if bag.target_type == TcxTargetType.HEART_RATE.value:
        if bag.heart_rate_low is not None and bag.heart_rate_high is not None:
            return HeartRateTarget(value=RangeValue(min=bag.heart_rate_low, max=bag.heart_rate_high))
        if bag.heart_rate_zone is not None:
            return HeartRateTarget(value=ZoneValue(value=bag.heart_rate_zone))
        return OPEN_TARGET

    if bag.target_type == TcxTargetType.SPEED.value:
        if bag.speed_low is not None and bag.speed_high is not None:
            return PaceTarget(value=RangeValue(min=bag.speed_low, max=bag.speed_high))
        if bag.speed_zone is not None:
            return PaceTarget(value=ZoneValue(value=bag.speed_zone))
        return OPEN_TARGET

    if bag.target_type == TcxTargetType.CADENCE.value:
        if bag.cadence_low is not None and bag.cadence_high is not None:
            return CadenceTarget(
                value=RangeValue(
                    min=cadence_to_canonical(bag.cadence_low, bag.sport),
                    max=cadence_to_canonical(bag.cadence_high, bag.sport),
                )
            )
        return OPEN_TARGET

    logger.debug("TCX target type %r decodes to open", bag.target_type)
    return OPEN_TARGET


def _heart_rate_element(target: HeartRateTarget, context: EncodeContext, conversion_logger) -> dict[str, Any]:
    value = target.value
    if isinstance(value, ZoneValue):
        zone = {XSI_TYPE: "PredefinedHeartRateZone_t", "Number": value.value}
    elif isinstance(value, RangeValue):
        zone = {XSI_TYPE: "CustomHeartRateZone_t", "Low": value.min, "High": value.max}
    elif isinstance(value, BpmValue):
        zone = {XSI_TYPE: "CustomHeartRateZone_t", "Low": value.value, "High": value.value}
    else:
        report_lossy(
            conversion_logger,
            "TCX cannot express percent of max heart rate; writing no target",
            step_index=context.step_index,
            percent_max=value.value,
        )
        return dict(NONE_TARGET)
    return {XSI_TYPE: "HeartRate_t", "HeartRateZone": zone}


def _speed_element(target: PaceTarget) -> dict[str, Any]:
    value = target.value
    if isinstance(value, ZoneValue):
        zone = {XSI_TYPE: "PredefinedSpeedZone_t", "Number": value.value}
    elif isinstance(value, RangeValue):
        zone = {
            XSI_TYPE: "CustomSpeedZone_t",
            "LowInMetersPerSecond": value.min,
            "HighInMetersPerSecond": value.max,
        }
    else:
        zone = {
            XSI_TYPE: "CustomSpeedZone_t",
            "LowInMetersPerSecond": value.value,
            "HighInMetersPerSecond": value.value,
        }
    return {XSI_TYPE: "Speed_t", "SpeedZone": zone}


def _cadence_element(target: CadenceTarget, sport: str | None) -> dict[str, Any]:
    value = target.value
    if isinstance(value, RangeValue):
        low, high = value.min, value.max
    else:
        low = high = value.value
    return {
        XSI_TYPE: "Cadence_t",
        "CadenceZone": {
            XSI_TYPE: "CustomCadenceZone_t",
            "Low": cadence_from_canonical(low, sport),
            "High": cadence_from_canonical(high, sport),
        },
    }


def encode_tcx_target(
    target: Target,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
) -> dict[str, Any]:
    """Convert a canonical target into a nested TCX ``Target`` element.

    Absolute values become a custom zone with ``Low == High``. Power and
    stroke targets are not expressible and produce ``None_t`` with a lossy
    notice.
    """
    context = context or DEFAULT_CONTEXT

    if is_open(target):
        return dict(NONE_TARGET)
    if isinstance(target, HeartRateTarget):
        return _heart_rate_element(target, context, conversion_logger)
    if isinstance(target, PaceTarget):
        return _speed_element(target)
    if isinstance(target, CadenceTarget):
        return _cadence_element(target, context.sport)

    report_lossy(
        conversion_logger,
        f"TCX does not support {target.type} targets; writing no target",
        step_index=context.step_index,
        target_type=target.type,
    )
    return dict(NONE_TARGET)
