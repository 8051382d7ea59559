"""Typed field bags for decoded FIT workout messages.

Field names follow the camelCase keys produced by the FIT SDK decoder for
``workoutMesgs`` and ``workoutStepMesgs``.
"""
from __future__ import annotations

from enum import Enum

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from krd.adapters.base import FieldBag
from krd.models.base import Number


class FitTargetType(str, Enum):
    POWER = "power"
    HEART_RATE = "heartRate"
    CADENCE = "cadence"
    SPEED = "speed"
    SWIM_STROKE = "swimStroke"
    OPEN = "open"


class FitDurationType(str, Enum):
    TIME = "time"
    DISTANCE = "distance"
    OPEN = "open"
    HR_LESS_THAN = "hrLessThan"
    HR_GREATER_THAN = "hrGreaterThan"
    CALORIES = "calories"
    POWER_LESS_THAN = "powerLessThan"
    POWER_GREATER_THAN = "powerGreaterThan"
    REPEAT_UNTIL_STEPS_COMPLETE = "repeatUntilStepsCmplt"
    REPEAT_UNTIL_TIME = "repeatUntilTime"
    REPEAT_UNTIL_DISTANCE = "repeatUntilDistance"
    REPEAT_UNTIL_CALORIES = "repeatUntilCalories"
    REPEAT_UNTIL_HR_LESS_THAN = "repeatUntilHrLessThan"
    REPEAT_UNTIL_HR_GREATER_THAN = "repeatUntilHrGreaterThan"
    REPEAT_UNTIL_POWER_LESS_THAN = "repeatUntilPowerLessThan"
    REPEAT_UNTIL_POWER_GREATER_THAN = "repeatUntilPowerGreaterThan"


class FitBag(FieldBag):
    model_config = ConfigDict(alias_generator=to_camel)


class FitTargetFields(FitBag):
    target_type: str | None = None
    target_value: Number | None = None
    target_power_zone: int | None = None
    target_hr_zone: int | None = None
    target_cadence_zone: Number | None = None
    target_speed_zone: int | None = None
    custom_target_value_low: Number | None = None
    custom_target_value_high: Number | None = None
    custom_target_power_low: Number | None = None
    custom_target_power_high: Number | None = None
    custom_target_heart_rate_low: Number | None = None
    custom_target_heart_rate_high: Number | None = None
    custom_target_cadence_low: Number | None = None
    custom_target_cadence_high: Number | None = None
    custom_target_speed_low: Number | None = None
    custom_target_speed_high: Number | None = None


class FitDurationFields(FitBag):
    duration_type: str | None = None
    duration_time: Number | None = None
    duration_distance: Number | None = None
    duration_hr: Number | None = None
    duration_calories: Number | None = None
    duration_power: Number | None = None
    # Index of the step a repeat loops back to.
    duration_step: int | None = None


class FitStepFields(FitTargetFields, FitDurationFields):
    message_index: int | None = None
    wkt_step_name: str | None = None
    intensity: str | None = None
    notes: str | None = None
    equipment: str | None = None


class FitWorkoutFields(FitBag):
    wkt_name: str | None = None
    sport: str | None = None
    sub_sport: str | None = None
    num_valid_steps: int | None = None
    pool_length: Number | None = None
    pool_length_unit: str | None = None
