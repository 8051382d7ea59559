"""FIT step durations <-> canonical durations."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from krd.adapters.base import DEFAULT_CONTEXT, EncodeContext
from krd.adapters.fit.fields import FitDurationFields, FitDurationType
from krd.models.base import Number
from krd.models.duration import (
    OPEN_DURATION,
    CaloriesDuration,
    DistanceDuration,
    Duration,
    HeartRateLessThanDuration,
    OpenDuration,
    PowerGreaterThanDuration,
    PowerLessThanDuration,
    RepeatUntilCaloriesDuration,
    RepeatUntilDistanceDuration,
    RepeatUntilHeartRateGreaterThanDuration,
    RepeatUntilHeartRateLessThanDuration,
    RepeatUntilPowerGreaterThanDuration,
    RepeatUntilPowerLessThanDuration,
    RepeatUntilTimeDuration,
    TimeDuration,
    distance_or_open,
    time_or_open,
)
from krd.services.lossy_reporter import ConversionLogger, report_lossy

logger = logging.getLogger(__name__)


def _positive(value: Number | None) -> bool:
    return value is not None and value > 0


def _repeat_ready(value: Number | None, step: int | None) -> bool:
    return _positive(value) and step is not None and step >= 0


def decode_fit_duration(fields: Mapping[str, Any] | FitDurationFields | None) -> Duration:
    """Convert FIT step duration fields into a canonical duration.

    Missing or non-positive magnitudes, a repeat without ``durationStep``,
    ``hrGreaterThan`` and unknown tags all decode to ``open``.
    """
    bag = FitDurationFields.from_bag(fields)
    kind = bag.duration_type

    if kind == FitDurationType.TIME.value:
        return time_or_open(bag.duration_time)
    if kind == FitDurationType.DISTANCE.value:
        return distance_or_open(bag.duration_distance)

    if kind == FitDurationType.HR_LESS_THAN.value and _positive(bag.duration_hr):
        return HeartRateLessThanDuration(bpm=bag.duration_hr)
    if kind == FitDurationType.CALORIES.value and _positive(bag.duration_calories):
        return CaloriesDuration(calories=bag.duration_calories)
    if kind == FitDurationType.POWER_LESS_THAN.value and _positive(bag.duration_power):
        return PowerLessThanDuration(watts=bag.duration_power)
    if kind == FitDurationType.POWER_GREATER_THAN.value and _positive(bag.duration_power):
        return PowerGreaterThanDuration(watts=bag.duration_power)

    step = bag.duration_step
    if kind == FitDurationType.REPEAT_UNTIL_TIME.value and _repeat_ready(bag.duration_time, step):
        return RepeatUntilTimeDuration(seconds=bag.duration_time, repeat_from=step)
    if kind == FitDurationType.REPEAT_UNTIL_DISTANCE.value and _repeat_ready(
        bag.duration_distance, step
    ):
        return RepeatUntilDistanceDuration(meters=bag.duration_distance, repeat_from=step)
    if kind == FitDurationType.REPEAT_UNTIL_CALORIES.value and _repeat_ready(
        bag.duration_calories, step
    ):
        return RepeatUntilCaloriesDuration(calories=bag.duration_calories, repeat_from=step)
    if kind == FitDurationType.REPEAT_UNTIL_HR_LESS_THAN.value and _repeat_ready(
        bag.duration_hr, step
    ):
        return RepeatUntilHeartRateLessThanDuration(bpm=bag.duration_hr, repeat_from=step)
    if kind == FitDurationType.REPEAT_UNTIL_HR_GREATER_THAN.value and _repeat_ready(
        bag.duration_hr, step
    ):
        return RepeatUntilHeartRateGreaterThanDuration(bpm=bag.duration_hr, repeat_from=step)
    if kind == FitDurationType.REPEAT_UNTIL_POWER_LESS_THAN.value and _repeat_ready(
        bag.duration_power, step
    ):
        return RepeatUntilPowerLessThanDuration(watts=bag.duration_power, repeat_from=step)
    if kind == FitDurationType.REPEAT_UNTIL_POWER_GREATER_THAN.value and _repeat_ready(
        bag.duration_power, step
    ):
        return RepeatUntilPowerGreaterThanDuration(watts=bag.duration_power, repeat_from=step)

    if kind not in (None, FitDurationType.OPEN.value):
        logger.debug("FIT duration type %r decodes to open", kind)
    return OPEN_DURATION


def encode_fit_duration(
    duration: Duration,
    context: EncodeContext | None = None,
    conversion_logger: ConversionLogger | None = None,
) -> dict[str, Any]:
    """Convert a canonical duration into FIT step duration fields."""
    context = context or DEFAULT_CONTEXT

    if isinstance(duration, TimeDuration):
        bag = FitDurationFields(duration_type=FitDurationType.TIME.value, duration_time=duration.seconds)
    elif isinstance(duration, DistanceDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.DISTANCE.value, duration_distance=duration.meters
        )
    elif isinstance(duration, OpenDuration):
        bag = FitDurationFields(duration_type=FitDurationType.OPEN.value)
    elif isinstance(duration, HeartRateLessThanDuration):
        bag = FitDurationFields(duration_type=FitDurationType.HR_LESS_THAN.value, duration_hr=duration.bpm)
    elif isinstance(duration, CaloriesDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.CALORIES.value, duration_calories=duration.calories
        )
    elif isinstance(duration, PowerLessThanDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.POWER_LESS_THAN.value, duration_power=duration.watts
        )
    elif isinstance(duration, PowerGreaterThanDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.POWER_GREATER_THAN.value, duration_power=duration.watts
        )
    elif isinstance(duration, RepeatUntilTimeDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_TIME.value,
            duration_time=duration.seconds,
            duration_step=duration.repeat_from,
        )
    elif isinstance(duration, RepeatUntilDistanceDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_DISTANCE.value,
            duration_distance=duration.meters,
            duration_step=duration.repeat_from,
        )
    elif isinstance(duration, RepeatUntilCaloriesDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_CALORIES.value,
            duration_calories=duration.calories,
            duration_step=duration.repeat_from,
        )
    elif isinstance(duration, RepeatUntilHeartRateLessThanDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_HR_LESS_THAN.value,
            duration_hr=duration.bpm,
            duration_step=duration.repeat_from,
        )
    elif isinstance(duration, RepeatUntilHeartRateGreaterThanDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_HR_GREATER_THAN.value,
            duration_hr=duration.bpm,
            duration_step=duration.repeat_from,
        )
    elif isinstance(duration, RepeatUntilPowerLessThanDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_POWER_LESS_THAN.value,
            duration_power=duration.watts,
            duration_step=duration.repeat_from,
        )
    elif isinstance(duration, RepeatUntilPowerGreaterThanDuration):
        bag = FitDurationFields(
            duration_type=FitDurationType.REPEAT_UNTIL_POWER_GREATER_THAN.value,
            duration_power=duration.watts,
            duration_step=duration.repeat_from,
        )
    else:
        report_lossy(
            conversion_logger,
            "Duration has no FIT equivalent; writing open",
            step_index=context.step_index,
            duration_type=getattr(duration, "type", None),
        )
        bag = FitDurationFields(duration_type=FitDurationType.OPEN.value)
    return bag.to_bag()
