"""Garmin Connect end conditions <-> canonical durations."""
from __future__ import annotations

from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.garmin.fields import GarminConditionKey, GarminDurationFields, build_end_condition
from krd.models.duration import (
    OPEN_DURATION,
    CaloriesDuration,
    DistanceDuration,
    Duration,
    OpenDuration,
    TimeDuration,
    distance_or_open,
    time_or_open,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy


def decode_garmin_duration(fields: Mapping[str, Any] | GarminDurationFields | None) -> Duration:
    """Map ``endCondition`` and ``endConditionValue`` to a canonical duration.

    Missing or non-positive values, ``lap.button`` and unknown conditions
    all give an open step.
    """
    bag = GarminDurationFields.from_bag(fields)
    key = bag.condition_type_key
    value = bag.end_condition_value

    if key == GarminConditionKey.TIME.value:
        return time_or_open(value)
    if key == GarminConditionKey.DISTANCE.value:
        return distance_or_open(value)
    if key == GarminConditionKey.CALORIES.value and value is not None and value >= 1:
        return CaloriesDuration(calories=int(value))
    return OPEN_DURATION


def encode_garmin_duration(
    duration: Duration,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
) -> dict[str, Any]:
    """Return ``endCondition`` and ``endConditionValue`` for a canonical duration."""
    context = context or DEFAULT_CONTEXT

    if isinstance(duration, TimeDuration):
        key, value = GarminConditionKey.TIME.value, duration.seconds
    elif isinstance(duration, DistanceDuration):
        key, value = GarminConditionKey.DISTANCE.value, duration.meters
    elif isinstance(duration, CaloriesDuration):
        key, value = GarminConditionKey.CALORIES.value, duration.calories
    else:
        if not isinstance(duration, OpenDuration):
            report_lossy(
                conversion_logger,
                f"Garmin Connect does not support {duration.type} durations; writing lap.button",
                step_index=context.step_index,
                duration_type=duration.type,
            )
        key, value = GarminConditionKey.LAP_BUTTON.value, None

    return {"endCondition": build_end_condition(key), "endConditionValue": value}
