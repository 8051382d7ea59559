"""TCX ``Duration`` elements <-> canonical durations."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.tcx.fields import TcxDurationFields, TcxDurationType
from krd.models.duration import (
    OPEN_DURATION,
    CaloriesDuration,
    DistanceDuration,
    Duration,
    DurationType,
    HeartRateLessThanDuration,
    OpenDuration,
    PowerGreaterThanDuration,
    PowerLessThanDuration,
    TimeDuration,
    distance_or_open,
    time_or_open,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy

logger = logging.getLogger(__name__)

HEART_RATE_ABOVE_EXTENSION = "heartRateAbove"

TcxDurationInput = Mapping[str, Any] | TcxDurationFields | None


def _restore_original(bag: TcxDurationFields) -> Duration | None:
    """Durations TCX cannot hold are parked in ``kaiord:`` attributes on export."""
    kind = bag.original_duration_type
    if kind == DurationType.HEART_RATE_LESS_THAN.value and bag.original_duration_bpm:
        return HeartRateLessThanDuration(bpm=bag.original_duration_bpm)
    if kind == DurationType.POWER_LESS_THAN.value and bag.original_duration_watts:
        return PowerLessThanDuration(watts=bag.original_duration_watts)
    if kind == DurationType.POWER_GREATER_THAN.value and bag.original_duration_watts:
        return PowerGreaterThanDuration(watts=bag.original_duration_watts)
    if kind == DurationType.CALORIES.value and bag.original_duration_calories:
        return CaloriesDuration(calories=bag.original_duration_calories)
    return None


def decode_tcx_duration(fields: TcxDurationInput) -> Duration:
    """Convert a TCX ``Duration`` element into a canonical duration.

    ``HeartRateAbove_t`` has no canonical counterpart and decodes to ``open``;
    use :func:`tcx_duration_extensions` to keep its threshold.
    """
    bag = TcxDurationFields.from_bag(fields)

    restored = _restore_original(bag)
    if restored is not None:
        return restored

    kind = bag.duration_type
    if kind == TcxDurationType.TIME.value:
        return time_or_open(bag.seconds)
    if kind == TcxDurationType.DISTANCE.value:
        return distance_or_open(bag.meters)
    if kind == TcxDurationType.HEART_RATE_BELOW.value and bag.heart_rate and bag.heart_rate > 0:
        return HeartRateLessThanDuration(bpm=bag.heart_rate)
    if kind == TcxDurationType.CALORIES_BURNED.value and bag.calories and bag.calories > 0:
        return CaloriesDuration(calories=bag.calories)
    if kind not in (None, TcxDurationType.LAP_BUTTON.value):
        logger.debug("TCX duration %r decodes to open", kind)
    return OPEN_DURATION


def tcx_duration_extensions(fields: TcxDurationInput) -> dict[str, Any] | None:
    """Round-trip data for durations that decode to ``open``."""
    bag = TcxDurationFields.from_bag(fields)
    if bag.duration_type == TcxDurationType.HEART_RATE_ABOVE.value and bag.heart_rate is not None:
        return {"tcx": {HEART_RATE_ABOVE_EXTENSION: bag.heart_rate}}
    return None


def _heart_rate_value(bpm: Any) -> dict[str, Any]:
    return {"@_xsi:type": "HeartRateInBeatsPerMinute_t", "Value": bpm}


def encode_tcx_duration(
    duration: Duration,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
    extensions: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Convert a canonical duration into a TCX ``Duration`` element.

    Args:
        duration: Canonical duration
        context: Step context used for lossy notices
        conversion_logger: Receives lossy notices
        extensions: Step extensions; an ``open`` duration with a stored
            ``tcx.heartRateAbove`` is written back as ``HeartRateAbove_t``

    Returns:
        The element as a mapping of TCX keys
    """
    context = context or DEFAULT_CONTEXT

    if isinstance(duration, TimeDuration):
        return {"@_xsi:type": TcxDurationType.TIME.value, "Seconds": duration.seconds}
    if isinstance(duration, DistanceDuration):
        return {"@_xsi:type": TcxDurationType.DISTANCE.value, "Meters": duration.meters}
    if isinstance(duration, HeartRateLessThanDuration):
        return {
            "@_xsi:type": TcxDurationType.HEART_RATE_BELOW.value,
            "HeartRate": _heart_rate_value(duration.bpm),
        }
    if isinstance(duration, CaloriesDuration):
        return {"@_xsi:type": TcxDurationType.CALORIES_BURNED.value, "Calories": duration.calories}
    if isinstance(duration, OpenDuration):
        heart_rate_above = ((extensions or {}).get("tcx") or {}).get(HEART_RATE_ABOVE_EXTENSION)
        if heart_rate_above is not None:
            return {
                "@_xsi:type": TcxDurationType.HEART_RATE_ABOVE.value,
                "HeartRate": _heart_rate_value(heart_rate_above),
            }
        return {"@_xsi:type": TcxDurationType.LAP_BUTTON.value}

    report_lossy(
        conversion_logger,
        f"TCX does not support {duration.type} durations; writing lap button",
        step_index=context.step_index,
        duration_type=duration.type,
    )
    element: dict[str, Any] = {"@_xsi:type": TcxDurationType.LAP_BUTTON.value}
    if isinstance(duration, (PowerLessThanDuration, PowerGreaterThanDuration)):
        element["@_kaiord:originalDurationType"] = duration.type
        element["@_kaiord:originalDurationWatts"] = duration.watts
    return element
