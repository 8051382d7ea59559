"""Canonical step durations.

Only ``time``, ``distance`` and ``open`` take part in the per-format
normalisation rules; the remaining variants are carried through as opaque data
for formats that can express them.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field, NonNegativeInt, PositiveFloat, PositiveInt, TypeAdapter

from krd.models.base import KrdModel, Number


class DurationType(str, Enum):
    TIME = "time"
    DISTANCE = "distance"
    HEART_RATE_LESS_THAN = "heart_rate_less_than"
    REPEAT_UNTIL_HEART_RATE_GREATER_THAN = "repeat_until_heart_rate_greater_than"
    CALORIES = "calories"
    POWER_LESS_THAN = "power_less_than"
    POWER_GREATER_THAN = "power_greater_than"
    REPEAT_UNTIL_TIME = "repeat_until_time"
    REPEAT_UNTIL_DISTANCE = "repeat_until_distance"
    REPEAT_UNTIL_CALORIES = "repeat_until_calories"
    REPEAT_UNTIL_HEART_RATE_LESS_THAN = "repeat_until_heart_rate_less_than"
    REPEAT_UNTIL_POWER_LESS_THAN = "repeat_until_power_less_than"
    REPEAT_UNTIL_POWER_GREATER_THAN = "repeat_until_power_greater_than"
    OPEN = "open"


PositiveNumber = Union[PositiveInt, PositiveFloat]
RepeatFrom = NonNegativeInt


class TimeDuration(KrdModel):
    type: Literal["time"] = "time"
    seconds: PositiveNumber


class DistanceDuration(KrdModel):
    type: Literal["distance"] = "distance"
    meters: PositiveNumber


class OpenDuration(KrdModel):
    """Unbounded step, ended with the lap button."""

    type: Literal["open"] = "open"


class HeartRateLessThanDuration(KrdModel):
    type: Literal["heart_rate_less_than"] = "heart_rate_less_than"
    bpm: PositiveInt


class RepeatUntilHeartRateGreaterThanDuration(KrdModel):
    type: Literal["repeat_until_heart_rate_greater_than"] = (
        "repeat_until_heart_rate_greater_than"
    )
    bpm: PositiveInt
    repeat_from: RepeatFrom


class CaloriesDuration(KrdModel):
    type: Literal["calories"] = "calories"
    calories: PositiveInt


class PowerLessThanDuration(KrdModel):
    type: Literal["power_less_than"] = "power_less_than"
    watts: PositiveNumber


class PowerGreaterThanDuration(KrdModel):
    type: Literal["power_greater_than"] = "power_greater_than"
    watts: PositiveNumber


class RepeatUntilTimeDuration(KrdModel):
    type: Literal["repeat_until_time"] = "repeat_until_time"
    seconds: PositiveNumber
    repeat_from: RepeatFrom


class RepeatUntilDistanceDuration(KrdModel):
    type: Literal["repeat_until_distance"] = "repeat_until_distance"
    meters: PositiveNumber
    repeat_from: RepeatFrom


class RepeatUntilCaloriesDuration(KrdModel):
    type: Literal["repeat_until_calories"] = "repeat_until_calories"
    calories: PositiveInt
    repeat_from: RepeatFrom


class RepeatUntilHeartRateLessThanDuration(KrdModel):
    type: Literal["repeat_until_heart_rate_less_than"] = (
        "repeat_until_heart_rate_less_than"
    )
    bpm: PositiveInt
    repeat_from: RepeatFrom


class RepeatUntilPowerLessThanDuration(KrdModel):
    type: Literal["repeat_until_power_less_than"] = "repeat_until_power_less_than"
    watts: PositiveNumber
    repeat_from: RepeatFrom


class RepeatUntilPowerGreaterThanDuration(KrdModel):
    type: Literal["repeat_until_power_greater_than"] = (
        "repeat_until_power_greater_than"
    )
    watts: PositiveNumber
    repeat_from: RepeatFrom


Duration = Annotated[
    Union[
        TimeDuration,
        DistanceDuration,
        HeartRateLessThanDuration,
        RepeatUntilHeartRateGreaterThanDuration,
        CaloriesDuration,
        PowerLessThanDuration,
        PowerGreaterThanDuration,
        RepeatUntilTimeDuration,
        RepeatUntilDistanceDuration,
        RepeatUntilCaloriesDuration,
        RepeatUntilHeartRateLessThanDuration,
        RepeatUntilPowerLessThanDuration,
        RepeatUntilPowerGreaterThanDuration,
        OpenDuration,
    ],
    Field(discriminator="type"),
]

OPEN_DURATION = OpenDuration()

_DURATION_ADAPTER: TypeAdapter[Duration] = TypeAdapter(Duration)


def parse_duration(data: dict[str, Any]) -> Duration:
    """Build a canonical duration from its KRD dict form."""
    return _DURATION_ADAPTER.validate_python(data)


def time_or_open(seconds: Number | None) -> Duration:
    """Non-positive or missing seconds mean an open step."""
    if seconds is None or seconds <= 0:
        return OPEN_DURATION
    return TimeDuration(seconds=seconds)


def distance_or_open(meters: Number | None) -> Duration:
    if meters is None or meters <= 0:
        return OPEN_DURATION
    return DistanceDuration(meters=meters)
